"""Problem and test case queries.

All functions are synchronous and take an open ``Session``; async callers wrap
them with ``run_in_threadpool``.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from practicehub.features.companies.models import Company
from practicehub.features.submissions.models import SolvedFact, Submission
from .models import Problem, TestCase, Visibility
from .schemas import ProblemCreate, ProblemSummary, ProblemUpdate, PublicTestCase, TestCaseSchema


class ProblemsRepository:
    def get_problem(self, db: Session, problem_id: int) -> Optional[Problem]:
        return db.get(Problem, problem_id)

    def _test_cases(self, db: Session, problem_id: int, visibility: Visibility) -> List[TestCase]:
        stmt = (
            select(TestCase)
            .where(TestCase.problem_id == problem_id, TestCase.visibility == visibility)
            .order_by(TestCase.order_index.asc(), TestCase.id.asc())
        )
        return list(db.scalars(stmt))

    def hidden_test_cases(self, db: Session, problem_id: int) -> List[TestCaseSchema]:
        """Hidden cases in grading order. Unknown problems yield an empty list."""
        return [TestCaseSchema.model_validate(tc) for tc in self._test_cases(db, problem_id, Visibility.hidden)]

    def public_test_cases(self, db: Session, problem_id: int) -> List[PublicTestCase]:
        return [PublicTestCase.model_validate(tc) for tc in self._test_cases(db, problem_id, Visibility.public)]

    def list_problems(
        self,
        db: Session,
        user_id: Optional[int] = None,
        company_id: Optional[int] = None,
        difficulty: Optional[str] = None,
    ) -> List[ProblemSummary]:
        solved_join = and_(SolvedFact.problem_id == Problem.id, SolvedFact.user_id == (user_id or -1))
        stmt = (
            select(Problem, Company.name, SolvedFact.id)
            .outerjoin(Company, Company.id == Problem.company_id)
            .outerjoin(SolvedFact, solved_join)
            .order_by(Problem.id.asc())
        )
        if company_id is not None:
            stmt = stmt.where(Problem.company_id == company_id)
        if difficulty:
            stmt = stmt.where(Problem.difficulty == difficulty)
        out: List[ProblemSummary] = []
        for problem, company_name, solved_id in db.execute(stmt).all():
            out.append(
                ProblemSummary(
                    id=problem.id,
                    title=problem.title,
                    difficulty=problem.difficulty,
                    company_id=problem.company_id,
                    company_name=company_name,
                    is_solved=solved_id is not None,
                    created_at=problem.created_at,
                )
            )
        return out

    def is_solved(self, db: Session, user_id: int, problem_id: int) -> bool:
        stmt = select(SolvedFact.id).where(SolvedFact.user_id == user_id, SolvedFact.problem_id == problem_id)
        return db.scalar(stmt) is not None

    def create_problem(self, db: Session, data: ProblemCreate) -> Problem:
        problem = Problem(
            title=data.title.strip(),
            description=data.description,
            difficulty=data.difficulty,
            function_signature=data.function_signature,
            company_id=data.company_id,
        )
        problem.test_cases = [TestCase(**tc.model_dump()) for tc in data.test_cases]
        db.add(problem)
        db.commit()
        db.refresh(problem)
        return problem

    def update_problem(self, db: Session, problem: Problem, data: ProblemUpdate) -> Problem:
        changes = data.model_dump(exclude_unset=True, exclude={"test_cases"})
        for field, value in changes.items():
            setattr(problem, field, value)
        if data.test_cases is not None:
            problem.test_cases = [TestCase(**tc.model_dump()) for tc in data.test_cases]
        db.commit()
        db.refresh(problem)
        return problem

    def has_history(self, db: Session, problem_id: int) -> bool:
        """True once any submission or solved fact references the problem."""
        submitted = db.scalar(select(Submission.id).where(Submission.problem_id == problem_id).limit(1))
        if submitted is not None:
            return True
        return db.scalar(select(SolvedFact.id).where(SolvedFact.problem_id == problem_id).limit(1)) is not None

    def delete_problem(self, db: Session, problem: Problem) -> None:
        db.delete(problem)
        db.commit()


problems_repository = ProblemsRepository()
