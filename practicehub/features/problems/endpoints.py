from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from practicehub.common.deps import CurrentUser, get_optional_user, require_admin
from practicehub.common.errors import PracticeHubError, to_http
from practicehub.db.session import get_db
from .models import Difficulty
from .schemas import ProblemCreate, ProblemDetail, ProblemSummary, ProblemUpdate
from . import service

router = APIRouter(prefix="/problems", tags=["problems"])


@router.get("", response_model=List[ProblemSummary])
async def list_problems(
    company_id: Optional[int] = Query(default=None),
    difficulty: Optional[Difficulty] = Query(default=None),
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    user_id = current_user.id if current_user else None
    return await service.list_problems(
        db, user_id=user_id, company_id=company_id, difficulty=difficulty.value if difficulty else None
    )


@router.get("/{problem_id}", response_model=ProblemDetail)
async def get_problem(
    problem_id: int,
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    try:
        return await service.get_problem(db, problem_id, current_user.id if current_user else None)
    except PracticeHubError as e:
        raise to_http(e)


# Authoring (admin only)
@router.post("", response_model=ProblemDetail, status_code=status.HTTP_201_CREATED)
async def create_problem(req: ProblemCreate, _admin: CurrentUser = Depends(require_admin()), db: Session = Depends(get_db)):
    try:
        return await service.create_problem(db, req)
    except PracticeHubError as e:
        raise to_http(e)


@router.put("/{problem_id}", response_model=ProblemDetail)
async def update_problem(problem_id: int, req: ProblemUpdate, _admin: CurrentUser = Depends(require_admin()),
                         db: Session = Depends(get_db)):
    try:
        return await service.update_problem(db, problem_id, req)
    except PracticeHubError as e:
        raise to_http(e)


@router.delete("/{problem_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_problem(problem_id: int, _admin: CurrentUser = Depends(require_admin()), db: Session = Depends(get_db)):
    try:
        await service.delete_problem(db, problem_id)
    except PracticeHubError as e:
        raise to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
