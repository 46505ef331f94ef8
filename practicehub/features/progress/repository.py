"""Read-side queries feeding the progress and leaderboard computations."""

from __future__ import annotations

from typing import List, NamedTuple, Optional, Tuple

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from practicehub.features.companies.models import Company
from practicehub.features.problems.models import Difficulty, Problem
from practicehub.features.submissions.models import SolvedFact
from practicehub.features.users.models import User
from .stats import DIFFICULTY_WEIGHTS


class ScoreRow(NamedTuple):
    user_id: int
    username: str
    solved: int
    score: int


class SolvedRow(NamedTuple):
    problem_id: int
    title: str
    difficulty: Difficulty
    company_id: Optional[int]
    solved_at: object


def _weight_expr():
    return case(
        *[(Problem.difficulty == Difficulty(name), weight) for name, weight in DIFFICULTY_WEIGHTS.items()],
        else_=0,
    )


def solved_rows(db: Session, user_id: int) -> List[SolvedRow]:
    """Solved facts joined with their problem, newest first."""
    stmt = (
        select(Problem.id, Problem.title, Problem.difficulty, Problem.company_id, SolvedFact.solved_at)
        .join(Problem, Problem.id == SolvedFact.problem_id)
        .where(SolvedFact.user_id == user_id)
        .order_by(SolvedFact.solved_at.desc(), SolvedFact.id.desc())
    )
    return [SolvedRow(*row) for row in db.execute(stmt).all()]


def score_table(db: Session) -> List[ScoreRow]:
    """Every user with solved count and weighted score (zeros included)."""
    stmt = (
        select(
            User.id,
            User.username,
            func.count(Problem.id),
            func.coalesce(func.sum(_weight_expr()), 0),
        )
        .select_from(User)
        .outerjoin(SolvedFact, SolvedFact.user_id == User.id)
        .outerjoin(Problem, Problem.id == SolvedFact.problem_id)
        .group_by(User.id, User.username)
    )
    return [ScoreRow(int(uid), name, int(solved or 0), int(score or 0)) for uid, name, solved, score in db.execute(stmt).all()]


def company_totals(db: Session) -> List[Tuple[int, str, int]]:
    stmt = (
        select(Company.id, Company.name, func.count(Problem.id))
        .outerjoin(Problem, Problem.company_id == Company.id)
        .group_by(Company.id, Company.name)
        .order_by(Company.name.asc())
    )
    return [(int(cid), name, int(total)) for cid, name, total in db.execute(stmt).all()]


def unsolved_problems(db: Session, user_id: int) -> List[Problem]:
    solved_ids = select(SolvedFact.problem_id).where(SolvedFact.user_id == user_id)
    stmt = select(Problem).where(Problem.id.not_in(solved_ids)).order_by(Problem.id.asc())
    return list(db.scalars(stmt))
