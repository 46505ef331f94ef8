from datetime import timedelta

import pytest

from practicehub.common.errors import NotFoundError
from practicehub.features.progress.service import (
    get_last_problem_sync,
    get_recommended_sync,
    get_streak_sync,
    get_user_progress_sync,
)
from practicehub.features.submissions.models import SolvedFact


def _solve(db, user, problem, when):
    db.add(SolvedFact(user_id=user.id, problem_id=problem.id, code="ok", language="python", solved_at=when))
    db.commit()


def test_progress_payload(db, seed, clock, fixed_now):
    acme = seed.company("Acme")
    globex = seed.company("Globex")
    alice = seed.user("alice")
    bob = seed.user("bob")
    easy = seed.problem("Easy one", "Easy", company=acme)
    medium = seed.problem("Medium one", "Medium", company=globex)
    hard = seed.problem("Hard one", "Hard")
    seed.problem("Unsolved", "Easy", company=acme)

    _solve(db, alice, easy, fixed_now - timedelta(days=2))
    _solve(db, alice, medium, fixed_now - timedelta(days=1))
    _solve(db, alice, hard, fixed_now)
    _solve(db, bob, hard, fixed_now - timedelta(days=10))

    progress = get_user_progress_sync(db, clock, alice.id)

    assert progress.solved == 3
    assert progress.score == 60
    assert (progress.easy, progress.medium, progress.hard) == (1, 1, 1)
    assert progress.streak == 3
    assert progress.rank == 1
    assert len(progress.heatmap) == 90
    assert progress.heatmap[-1].count == 1
    assert [a.title for a in progress.recent_activity] == ["Hard one", "Medium one", "Easy one"]

    by_company = {c.name: (c.solved, c.total) for c in progress.company_progress}
    assert by_company == {"Acme": (1, 2), "Globex": (1, 1)}

    earned = {a.key for a in progress.achievements if a.earned}
    assert "first_solve" in earned
    assert "company_explorer" not in earned

    bob_progress = get_user_progress_sync(db, clock, bob.id)
    assert bob_progress.score == 30
    assert bob_progress.rank == 2
    assert bob_progress.streak == 0


def test_streak_respects_reference_day(db, seed, clock, fixed_now):
    user = seed.user()
    p1 = seed.problem("One")
    p2 = seed.problem("Two")
    _solve(db, user, p1, fixed_now - timedelta(days=1))
    _solve(db, user, p2, fixed_now - timedelta(days=3))

    assert get_streak_sync(db, clock, user.id).streak == 0


def test_last_and_recommended(db, seed, fixed_now):
    user = seed.user()
    hard = seed.problem("Hard", "Hard")
    medium = seed.problem("Medium", "Medium")
    easy_a = seed.problem("Easy A", "Easy")
    easy_b = seed.problem("Easy B", "Easy")

    assert get_last_problem_sync(db, user.id) is None

    _solve(db, user, easy_a, fixed_now)
    last = get_last_problem_sync(db, user.id)
    assert last.id == easy_a.id

    recommended = get_recommended_sync(db, user.id)
    assert [p.id for p in recommended] == [easy_b.id, medium.id, hard.id]


def test_unknown_user(db, clock):
    with pytest.raises(NotFoundError):
        get_user_progress_sync(db, clock, 12345)
