from __future__ import annotations

import logging
from typing import List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from practicehub.common.errors import InvalidSubmissionError, NotFoundError, PracticeHubError
from practicehub.features.companies.models import Company
from .models import Problem, Visibility
from .repository import problems_repository
from .schemas import ProblemCreate, ProblemDetail, ProblemSummary, ProblemUpdate

logger = logging.getLogger("problems.service")


class ProblemInUseError(PracticeHubError):
    """Deleting a problem that already has submissions or solved facts."""

    status_code = 409
    error_code = "problem_in_use"

    def __init__(self, problem_id: int) -> None:
        super().__init__("Problem has submissions and cannot be deleted", problem_id=problem_id)


def _detail(db: Session, problem: Problem, user_id: Optional[int]) -> ProblemDetail:
    return ProblemDetail(
        id=problem.id,
        title=problem.title,
        difficulty=problem.difficulty,
        company_id=problem.company_id,
        company_name=problem.company.name if problem.company else None,
        is_solved=bool(user_id) and problems_repository.is_solved(db, user_id, problem.id),
        created_at=problem.created_at,
        description=problem.description or "",
        function_signature=problem.function_signature,
        test_cases=problems_repository.public_test_cases(db, problem.id),
    )


def _check_company(db: Session, company_id: Optional[int]) -> None:
    if company_id is not None and db.get(Company, company_id) is None:
        raise InvalidSubmissionError(f"Unknown company {company_id}", company_id=company_id)


def _warn_if_ungradable(problem: Problem) -> None:
    if not any(tc.visibility == Visibility.hidden for tc in problem.test_cases):
        logger.warning("problem_without_hidden_tests problem_id=%s title=%s", problem.id, problem.title)


def list_problems_sync(db: Session, user_id: Optional[int] = None, company_id: Optional[int] = None,
                       difficulty: Optional[str] = None) -> List[ProblemSummary]:
    return problems_repository.list_problems(db, user_id=user_id, company_id=company_id, difficulty=difficulty)


async def list_problems(db: Session, user_id: Optional[int] = None, company_id: Optional[int] = None,
                        difficulty: Optional[str] = None) -> List[ProblemSummary]:
    return await run_in_threadpool(list_problems_sync, db, user_id, company_id, difficulty)


def get_problem_sync(db: Session, problem_id: int, user_id: Optional[int] = None) -> ProblemDetail:
    problem = problems_repository.get_problem(db, problem_id)
    if problem is None:
        raise NotFoundError("Problem not found", problem_id=problem_id)
    return _detail(db, problem, user_id)


async def get_problem(db: Session, problem_id: int, user_id: Optional[int] = None) -> ProblemDetail:
    return await run_in_threadpool(get_problem_sync, db, problem_id, user_id)


def create_problem_sync(db: Session, data: ProblemCreate) -> ProblemDetail:
    _check_company(db, data.company_id)
    problem = problems_repository.create_problem(db, data)
    logger.info("problem_created problem_id=%s tests=%d", problem.id, len(problem.test_cases))
    _warn_if_ungradable(problem)
    return _detail(db, problem, None)


async def create_problem(db: Session, data: ProblemCreate) -> ProblemDetail:
    return await run_in_threadpool(create_problem_sync, db, data)


def update_problem_sync(db: Session, problem_id: int, data: ProblemUpdate) -> ProblemDetail:
    problem = problems_repository.get_problem(db, problem_id)
    if problem is None:
        raise NotFoundError("Problem not found", problem_id=problem_id)
    if "company_id" in data.model_fields_set:
        _check_company(db, data.company_id)
    problem = problems_repository.update_problem(db, problem, data)
    logger.info("problem_updated problem_id=%s", problem.id)
    _warn_if_ungradable(problem)
    return _detail(db, problem, None)


async def update_problem(db: Session, problem_id: int, data: ProblemUpdate) -> ProblemDetail:
    return await run_in_threadpool(update_problem_sync, db, problem_id, data)


def delete_problem_sync(db: Session, problem_id: int) -> None:
    problem = problems_repository.get_problem(db, problem_id)
    if problem is None:
        raise NotFoundError("Problem not found", problem_id=problem_id)
    if problems_repository.has_history(db, problem_id):
        logger.warning("problem_delete_refused problem_id=%s reason=has_history", problem_id)
        raise ProblemInUseError(problem_id)
    problems_repository.delete_problem(db, problem)
    logger.info("problem_deleted problem_id=%s", problem_id)


async def delete_problem(db: Session, problem_id: int) -> None:
    await run_in_threadpool(delete_problem_sync, db, problem_id)
