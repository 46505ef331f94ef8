"""Pure progress computations over a user's solved facts.

Nothing here touches the database or the wall clock; callers pass in the
solved records and the reference ``today``.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Sequence

DIFFICULTY_WEIGHTS: Dict[str, int] = {"Easy": 10, "Medium": 20, "Hard": 30}
HEATMAP_DAYS = 90


def _difficulty_name(difficulty) -> str:
    return getattr(difficulty, "value", difficulty) or ""


def difficulty_weight(difficulty) -> int:
    return DIFFICULTY_WEIGHTS.get(_difficulty_name(difficulty), 0)


def compute_score(difficulties: Iterable) -> int:
    return sum(difficulty_weight(d) for d in difficulties)


def count_by_difficulty(difficulties: Iterable) -> Dict[str, int]:
    counts = Counter(_difficulty_name(d) for d in difficulties)
    return {name.lower(): counts.get(name, 0) for name in DIFFICULTY_WEIGHTS}


def compute_streak(solve_dates: Iterable[date], today: date) -> int:
    """Consecutive solve days ending today. No solve today means 0."""
    days = set(solve_dates)
    streak = 0
    cursor = today
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def build_heatmap(solve_dates: Iterable[date], today: date, days: int = HEATMAP_DAYS) -> List[Dict[str, object]]:
    """``days`` entries, oldest first, ending today; days without solves are 0."""
    counts = Counter(solve_dates)
    start = today - timedelta(days=days - 1)
    return [
        {"date": start + timedelta(days=offset), "count": counts.get(start + timedelta(days=offset), 0)}
        for offset in range(days)
    ]


def global_rank(user_score: int, all_scores: Iterable[int]) -> int:
    return 1 + sum(1 for s in all_scores if s > user_score)


# Achievements

@dataclass(frozen=True)
class AchievementContext:
    solved: int
    score: int
    streak: int
    companies: int


@dataclass(frozen=True)
class Achievement:
    key: str
    name: str
    description: str
    predicate: Callable[[AchievementContext], bool]


ACHIEVEMENTS: Sequence[Achievement] = (
    Achievement("first_solve", "First Solve", "Solve your first problem", lambda c: c.solved >= 1),
    Achievement("five_day_streak", "5 Day Streak", "Solve problems five days in a row", lambda c: c.streak >= 5),
    Achievement("rising_star", "Rising Star", "Reach a score of 100", lambda c: c.score >= 100),
    Achievement("problem_solver", "Problem Solver", "Solve 10 problems", lambda c: c.solved >= 10),
    Achievement("company_explorer", "Explorer", "Solve problems from 3 different companies", lambda c: c.companies >= 3),
    Achievement("code_warrior", "Code Warrior", "Solve 50 problems", lambda c: c.solved >= 50),
    Achievement("algorithm_master", "Algorithm Master", "Solve 100 problems", lambda c: c.solved >= 100),
)


def evaluate_achievements(ctx: AchievementContext, catalogue: Sequence[Achievement] = ACHIEVEMENTS) -> List[Dict[str, object]]:
    return [
        {"key": a.key, "name": a.name, "description": a.description, "earned": bool(a.predicate(ctx))}
        for a in catalogue
    ]
