import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from practicehub.common.deps import CurrentUser, get_current_user
from practicehub.common.errors import PracticeHubError, _err, to_http
from practicehub.db.session import get_db
from .schemas import LeaderboardEntry, LeaderboardResponse
from .service import get_entry, get_leaderboard

logger = logging.getLogger("leaderboard.endpoints")

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("", response_model=LeaderboardResponse)
async def leaderboard(limit: Optional[int] = Query(default=None, ge=1, le=1000), db: Session = Depends(get_db)):
    try:
        entries = await get_leaderboard(db, limit)
    except SQLAlchemyError:
        logger.exception("leaderboard_query_failed")
        raise _err(503, "persistence_error", "Leaderboard is temporarily unavailable")
    return LeaderboardResponse(entries=entries, total_count=len(entries))


@router.get("/me", response_model=LeaderboardEntry)
async def my_rank(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return await get_entry(db, current_user.id)
    except PracticeHubError as e:
        raise to_http(e)
    except SQLAlchemyError:
        logger.exception("leaderboard_query_failed user_id=%s", current_user.id)
        raise _err(503, "persistence_error", "Leaderboard is temporarily unavailable")
