from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from practicehub.common.errors import PersistenceError
from practicehub.features.problems.models import Problem
from .models import SolvedFact, Submission, SubmissionStatus

logger = logging.getLogger("submissions.repository")


class SubmissionsRepository:
    def _insert_solved(self, db: Session, values: Dict[str, Any]) -> bool:
        """Insert-if-absent on (user_id, problem_id). Returns True when a row was written."""
        dialect = db.get_bind().dialect.name
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        elif dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        else:
            try:
                with db.begin_nested():
                    db.add(SolvedFact(**values))
                return True
            except IntegrityError:
                return False

        stmt = insert(SolvedFact).values(**values).on_conflict_do_nothing(index_elements=["user_id", "problem_id"])
        result = db.execute(stmt)
        return result.rowcount == 1

    def record(
        self,
        db: Session,
        *,
        user_id: int,
        problem_id: int,
        language: str,
        code: str,
        status: SubmissionStatus,
        passed: int,
        total: int,
        now: datetime,
    ) -> Tuple[int, bool]:
        """Append the submission and, when accepted, the solved fact in one transaction."""
        success = status is SubmissionStatus.accepted
        try:
            submission = Submission(
                user_id=user_id,
                problem_id=problem_id,
                language=language,
                success=success,
                status=status,
                passed=passed,
                total=total,
                created_at=now,
            )
            db.add(submission)
            db.flush()
            submission_id = submission.id
            newly_solved = False
            if success:
                newly_solved = self._insert_solved(
                    db,
                    {
                        "user_id": user_id,
                        "problem_id": problem_id,
                        "code": code,
                        "language": language,
                        "solved_at": now,
                    },
                )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("submission_record_failed user_id=%s problem_id=%s", user_id, problem_id)
            raise PersistenceError(
                "Submission could not be recorded", user_id=user_id, problem_id=problem_id
            ) from e
        logger.info(
            "submission_recorded id=%s user_id=%s problem_id=%s status=%s newly_solved=%s",
            submission_id, user_id, problem_id, status.value, newly_solved,
        )
        return submission_id, newly_solved

    def get_solved(self, db: Session, user_id: int, problem_id: int) -> Optional[SolvedFact]:
        stmt = select(SolvedFact).where(SolvedFact.user_id == user_id, SolvedFact.problem_id == problem_id)
        return db.scalar(stmt)

    def list_for_user(self, db: Session, user_id: int, problem_id: Optional[int] = None, limit: int = 50) -> List[Tuple[Submission, str]]:
        stmt = (
            select(Submission, Problem.title)
            .join(Problem, Problem.id == Submission.problem_id)
            .where(Submission.user_id == user_id)
            .order_by(Submission.created_at.desc(), Submission.id.desc())
            .limit(limit)
        )
        if problem_id is not None:
            stmt = stmt.where(Submission.problem_id == problem_id)
        return [(row[0], row[1]) for row in db.execute(stmt).all()]


submissions_repository = SubmissionsRepository()
