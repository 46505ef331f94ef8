"""Per-user progress aggregation."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from practicehub.common.errors import NotFoundError
from practicehub.core.clock import ReferenceClock
from practicehub.features.users.models import User
from . import repository
from .schemas import (
    AchievementSchema,
    CompanyProgress,
    HeatmapDay,
    ProblemRef,
    RecentActivity,
    StreakResponse,
    UserProgress,
)
from .stats import (
    AchievementContext,
    build_heatmap,
    compute_score,
    compute_streak,
    count_by_difficulty,
    difficulty_weight,
    evaluate_achievements,
    global_rank,
)

logger = logging.getLogger("progress.service")

RECENT_ACTIVITY_LIMIT = 10
RECOMMENDED_LIMIT = 5


def _require_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found", user_id=user_id)
    return user


def get_user_progress_sync(db: Session, clock: ReferenceClock, user_id: int) -> UserProgress:
    user = _require_user(db, user_id)
    rows = repository.solved_rows(db, user_id)
    today = clock.today()

    difficulties = [r.difficulty for r in rows]
    solve_dates = [clock.local_date(r.solved_at) for r in rows]
    score = compute_score(difficulties)
    counts = count_by_difficulty(difficulties)
    streak = compute_streak(solve_dates, today)
    rank = global_rank(score, [row.score for row in repository.score_table(db)])

    solved_per_company: dict[int, int] = {}
    for r in rows:
        if r.company_id is not None:
            solved_per_company[r.company_id] = solved_per_company.get(r.company_id, 0) + 1
    company_progress = [
        CompanyProgress(id=cid, name=name, solved=solved_per_company.get(cid, 0), total=total)
        for cid, name, total in repository.company_totals(db)
    ]

    ctx = AchievementContext(
        solved=len(rows),
        score=score,
        streak=streak,
        companies=sum(1 for n in solved_per_company.values() if n > 0),
    )

    progress = UserProgress(
        user_id=user.id,
        username=user.username,
        solved=len(rows),
        score=score,
        easy=counts["easy"],
        medium=counts["medium"],
        hard=counts["hard"],
        streak=streak,
        rank=rank,
        company_progress=company_progress,
        heatmap=[HeatmapDay(**d) for d in build_heatmap(solve_dates, today)],
        achievements=[AchievementSchema(**a) for a in evaluate_achievements(ctx)],
        recent_activity=[
            RecentActivity(problem_id=r.problem_id, title=r.title, difficulty=r.difficulty, solved_at=r.solved_at)
            for r in rows[:RECENT_ACTIVITY_LIMIT]
        ],
    )
    logger.debug("progress_computed user_id=%s solved=%d score=%d rank=%d", user_id, progress.solved, score, rank)
    return progress


async def get_user_progress(db: Session, clock: ReferenceClock, user_id: int) -> UserProgress:
    return await run_in_threadpool(get_user_progress_sync, db, clock, user_id)


def get_streak_sync(db: Session, clock: ReferenceClock, user_id: int) -> StreakResponse:
    _require_user(db, user_id)
    today = clock.today()
    dates = [clock.local_date(r.solved_at) for r in repository.solved_rows(db, user_id)]
    return StreakResponse(user_id=user_id, streak=compute_streak(dates, today), today=today)


async def get_streak(db: Session, clock: ReferenceClock, user_id: int) -> StreakResponse:
    return await run_in_threadpool(get_streak_sync, db, clock, user_id)


def get_last_problem_sync(db: Session, user_id: int) -> Optional[ProblemRef]:
    _require_user(db, user_id)
    rows = repository.solved_rows(db, user_id)
    if not rows:
        return None
    last = rows[0]
    return ProblemRef(id=last.problem_id, title=last.title, difficulty=last.difficulty, solved_at=last.solved_at)


async def get_last_problem(db: Session, user_id: int) -> Optional[ProblemRef]:
    return await run_in_threadpool(get_last_problem_sync, db, user_id)


def get_recommended_sync(db: Session, user_id: int, limit: int = RECOMMENDED_LIMIT) -> List[ProblemRef]:
    """Unsolved problems, easiest first."""
    _require_user(db, user_id)
    problems = sorted(repository.unsolved_problems(db, user_id), key=lambda p: (difficulty_weight(p.difficulty), p.id))
    return [ProblemRef(id=p.id, title=p.title, difficulty=p.difficulty) for p in problems[:limit]]


async def get_recommended(db: Session, user_id: int, limit: int = RECOMMENDED_LIMIT) -> List[ProblemRef]:
    return await run_in_threadpool(get_recommended_sync, db, user_id, limit)
