"""Submission grading pipeline: validate, grade against hidden tests, record."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from practicehub.common.errors import (
    ErrorKind,
    ExecutionTransportError,
    InvalidSubmissionError,
    NoHiddenTestsError,
    NotFoundError,
    UnsupportedLanguageError,
)
from practicehub.core.clock import ReferenceClock
from practicehub.features.execution.service import ExecutionClient, normalize_language
from practicehub.features.problems.repository import problems_repository
from .grading import AbortReason, GradingEngine, GradingState, Verdict
from .models import SubmissionStatus
from .repository import submissions_repository
from .schemas import GradingErrorSchema, SubmissionHistoryItem, SubmissionResult, TestRunResultSchema

logger = logging.getLogger("submissions.service")

_ERROR_MESSAGES = {
    ErrorKind.wrong_answer: "Wrong answer",
    ErrorKind.compile_or_runtime_error: "Compilation/Runtime Error",
}


def _status_for(verdict: Verdict) -> SubmissionStatus:
    if verdict.state is GradingState.passed:
        return SubmissionStatus.accepted
    if verdict.state is GradingState.failed:
        return SubmissionStatus.wrong_answer
    if verdict.abort_reason is AbortReason.compile_or_runtime_error:
        return SubmissionStatus.compile_error
    return SubmissionStatus.execution_error


def _validate(problem_id: Optional[int], code: Optional[str], language: Optional[str], client: ExecutionClient) -> str:
    if problem_id is None or problem_id <= 0:
        raise InvalidSubmissionError("problem_id is required")
    if not code or not code.strip():
        raise InvalidSubmissionError("code is required")
    if not language or not language.strip():
        raise InvalidSubmissionError("language is required")
    if not client.supports(language):
        raise UnsupportedLanguageError(language)
    return normalize_language(language)


def _problem_exists(db: Session, problem_id: int) -> bool:
    return problems_repository.get_problem(db, problem_id) is not None


def build_result(verdict: Verdict, submission_id: Optional[int] = None, newly_solved: bool = False) -> SubmissionResult:
    error = None
    kind = verdict.error_kind
    if kind is not None:
        error = GradingErrorSchema(kind=kind.value, message=_ERROR_MESSAGES.get(kind, kind.value), stderr=verdict.stderr)
    return SubmissionResult(
        success=verdict.success,
        passed=verdict.passed,
        failed=verdict.failed,
        total=verdict.total,
        results=[
            TestRunResultSchema(test_case_id=r.test_case_id, passed=r.passed, output=r.output, expected=r.expected)
            for r in verdict.results
        ],
        error=error,
        submission_id=submission_id,
        newly_solved=newly_solved,
    )


async def grade_submission(
    db: Session,
    client: ExecutionClient,
    clock: ReferenceClock,
    *,
    user_id: int,
    problem_id: Optional[int],
    code: Optional[str],
    language: Optional[str],
) -> SubmissionResult:
    """Grade one submission and record its outcome.

    Raises a ``PracticeHubError`` subclass for outcomes that are not a verdict:
    validation, unknown problem, no hidden tests, transport failure and
    persistence failure. Wrong answers and compile/runtime errors are returned
    as unsuccessful results.
    """
    lang = _validate(problem_id, code, language, client)

    if not await run_in_threadpool(_problem_exists, db, problem_id):
        raise NotFoundError("Problem not found", problem_id=problem_id)

    cases = await run_in_threadpool(problems_repository.hidden_test_cases, db, problem_id)
    verdict = await GradingEngine(client).grade(code, lang, cases)

    if verdict.abort_reason is AbortReason.no_hidden_tests:
        logger.warning("problem_without_hidden_tests problem_id=%s user_id=%s", problem_id, user_id)
        raise NoHiddenTestsError("Problem has no hidden test cases configured", problem_id=problem_id)

    status = _status_for(verdict)
    submission_id, newly_solved = await run_in_threadpool(
        submissions_repository.record,
        db,
        user_id=user_id,
        problem_id=problem_id,
        language=lang,
        code=code,
        status=status,
        passed=verdict.passed,
        total=verdict.total,
        now=clock.now(),
    )
    logger.info(
        "submission_graded user_id=%s problem_id=%s status=%s passed=%d total=%d",
        user_id, problem_id, status.value, verdict.passed, verdict.total,
    )

    if verdict.abort_reason is AbortReason.execution_error:
        raise ExecutionTransportError(
            f"Code execution service unavailable ({verdict.transport_reason})",
            reason=verdict.transport_reason,
            submission_id=submission_id,
        )
    return build_result(verdict, submission_id=submission_id, newly_solved=newly_solved)


def list_history_sync(db: Session, user_id: int, problem_id: Optional[int] = None, limit: int = 50) -> List[SubmissionHistoryItem]:
    return [
        SubmissionHistoryItem(
            id=s.id,
            problem_id=s.problem_id,
            problem_title=title,
            language=s.language,
            success=s.success,
            status=s.status,
            passed=s.passed,
            total=s.total,
            created_at=s.created_at,
        )
        for s, title in submissions_repository.list_for_user(db, user_id, problem_id=problem_id, limit=limit)
    ]


async def list_history(db: Session, user_id: int, problem_id: Optional[int] = None, limit: int = 50) -> List[SubmissionHistoryItem]:
    return await run_in_threadpool(list_history_sync, db, user_id, problem_id, limit)
