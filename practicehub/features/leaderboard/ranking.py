"""Competition ranking ("1224"): equal scores share the earlier rank."""

from __future__ import annotations

from typing import Iterable, List, Protocol, TypeVar


class Rankable(Protocol):
    user_id: int
    solved: int
    score: int


T = TypeVar("T", bound=Rankable)


def sort_entries(entries: Iterable[T]) -> List[T]:
    return sorted(entries, key=lambda e: (-e.score, -e.solved, e.user_id))


def assign_ranks(ordered: List[T]) -> List[int]:
    """Rank is position + 1 unless the score ties the previous entry's score."""
    ranks: List[int] = []
    for index, entry in enumerate(ordered):
        if index > 0 and entry.score == ordered[index - 1].score:
            ranks.append(ranks[-1])
        else:
            ranks.append(index + 1)
    return ranks


def rank_entries(entries: Iterable[T]) -> List[tuple[int, T]]:
    ordered = sort_entries(entries)
    return list(zip(assign_ranks(ordered), ordered))
