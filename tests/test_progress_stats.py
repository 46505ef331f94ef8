from datetime import date, timedelta

import pytest

from practicehub.features.progress.stats import (
    ACHIEVEMENTS,
    AchievementContext,
    HEATMAP_DAYS,
    build_heatmap,
    compute_score,
    compute_streak,
    count_by_difficulty,
    evaluate_achievements,
    global_rank,
)

TODAY = date(2024, 6, 15)


def _days_ago(*offsets):
    return [TODAY - timedelta(days=o) for o in offsets]


def test_score_uses_difficulty_weights():
    assert compute_score(["Easy", "Medium", "Hard"]) == 60
    assert compute_score([]) == 0
    assert compute_score(["Hard", "Hard"]) == 60


def test_counts_by_difficulty():
    assert count_by_difficulty(["Easy", "Easy", "Hard"]) == {"easy": 2, "medium": 0, "hard": 1}


@pytest.mark.parametrize(
    "offsets, expected",
    [
        ((1, 3), 0),  # nothing today
        ((0, 1), 2),
        ((0,), 1),
        ((0, 1, 2, 4), 3),
        ((0, 0, 1), 2),  # several solves on one day count once
        ((), 0),
    ],
)
def test_streak_must_include_today(offsets, expected):
    assert compute_streak(_days_ago(*offsets), TODAY) == expected


def test_heatmap_covers_ninety_days_with_zeros():
    heatmap = build_heatmap(_days_ago(0, 0, 5, 120), TODAY)

    assert len(heatmap) == HEATMAP_DAYS
    assert heatmap[0]["date"] == TODAY - timedelta(days=HEATMAP_DAYS - 1)
    assert heatmap[-1]["date"] == TODAY
    assert heatmap[-1]["count"] == 2
    assert heatmap[-6]["count"] == 1
    assert sum(d["count"] for d in heatmap) == 3


def test_global_rank_counts_strictly_greater_scores():
    scores = [300, 300, 200, 100, 0]
    assert global_rank(300, scores) == 1
    assert global_rank(200, scores) == 3
    assert global_rank(0, scores) == 5


def test_achievements_are_stateless_predicates():
    earned = lambda ctx: {a["key"] for a in evaluate_achievements(ctx) if a["earned"]}

    assert earned(AchievementContext(solved=0, score=0, streak=0, companies=0)) == set()
    assert earned(AchievementContext(solved=1, score=10, streak=1, companies=1)) == {"first_solve"}
    assert {"five_day_streak", "rising_star", "problem_solver", "company_explorer"} <= earned(
        AchievementContext(solved=10, score=150, streak=5, companies=3)
    )
    # dropping below a threshold un-earns it
    assert "five_day_streak" not in earned(AchievementContext(solved=10, score=150, streak=0, companies=3))


def test_every_achievement_is_reported():
    result = evaluate_achievements(AchievementContext(solved=0, score=0, streak=0, companies=0))
    assert [a["key"] for a in result] == [a.key for a in ACHIEVEMENTS]
