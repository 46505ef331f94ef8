from dataclasses import dataclass
from datetime import timedelta

from practicehub.features.leaderboard.ranking import rank_entries
from practicehub.features.leaderboard.service import get_entry_sync, get_leaderboard_sync
from practicehub.features.submissions.models import SolvedFact


@dataclass
class _Entry:
    user_id: int
    solved: int
    score: int


def test_competition_ranking_shares_rank_on_score_ties():
    entries = [_Entry(4, 3, 100), _Entry(2, 10, 300), _Entry(3, 7, 200), _Entry(1, 10, 300)]

    ranked = rank_entries(entries)

    assert [r for r, _ in ranked] == [1, 1, 3, 4]
    assert [e.user_id for _, e in ranked] == [1, 2, 3, 4]


def test_tie_break_by_solved_then_user_id():
    entries = [_Entry(5, 1, 30), _Entry(3, 3, 30), _Entry(1, 1, 30)]

    ranked = rank_entries(entries)

    assert [e.user_id for _, e in ranked] == [3, 1, 5]
    # equal score means equal rank even when the tie-break orders them
    assert [r for r, _ in ranked] == [1, 1, 1]


def test_empty_leaderboard():
    assert rank_entries([]) == []


def test_leaderboard_from_store(db, seed, fixed_now):
    alice = seed.user("alice")
    bob = seed.user("bob")
    carol = seed.user("carol")
    hard = seed.problem("Hard", "Hard")
    easy = seed.problem("Easy", "Easy")

    for user, problem in ((alice, hard), (alice, easy), (bob, hard)):
        db.add(SolvedFact(user_id=user.id, problem_id=problem.id, code="ok", language="python",
                          solved_at=fixed_now - timedelta(hours=1)))
    db.commit()

    board = get_leaderboard_sync(db)

    assert [(e.username, e.score, e.solved, e.rank) for e in board] == [
        ("alice", 40, 2, 1),
        ("bob", 30, 1, 2),
        ("carol", 0, 0, 3),
    ]
    assert get_entry_sync(db, carol.id).rank == 3
    assert len(get_leaderboard_sync(db, limit=2)) == 2
