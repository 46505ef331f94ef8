import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from practicehub.common.deps import CurrentUser, get_current_user
from practicehub.common.errors import PracticeHubError, _err, to_http
from practicehub.core.clock import ReferenceClock, get_clock
from practicehub.db.session import get_db
from practicehub.features.execution.service import ExecutionClient, get_execution_client
from .schemas import SubmissionHistoryItem, SubmissionResult, SubmitRequest
from .service import grade_submission, list_history

logger = logging.getLogger("submissions.endpoints")

router = APIRouter(tags=["submissions"])


@router.post("/submit", response_model=SubmissionResult)
async def submit(
    req: SubmitRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: ExecutionClient = Depends(get_execution_client),
    clock: ReferenceClock = Depends(get_clock),
):
    try:
        return await grade_submission(
            db,
            client,
            clock,
            user_id=current_user.id,
            problem_id=req.problem_id,
            code=req.code,
            language=req.language,
        )
    except PracticeHubError as e:
        raise to_http(e)


@router.get("/submissions/me", response_model=List[SubmissionHistoryItem])
async def my_submissions(
    problem_id: Optional[int] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return await list_history(db, current_user.id, problem_id=problem_id, limit=limit)
    except SQLAlchemyError:
        logger.exception("submission_history_failed user_id=%s", current_user.id)
        raise _err(503, "persistence_error", "Submission history is temporarily unavailable")
