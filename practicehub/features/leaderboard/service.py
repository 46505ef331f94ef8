from __future__ import annotations

import logging
from typing import List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from practicehub.common.errors import NotFoundError
from practicehub.features.progress.repository import score_table
from .ranking import rank_entries
from .schemas import LeaderboardEntry

logger = logging.getLogger("leaderboard.service")


def get_leaderboard_sync(db: Session, limit: Optional[int] = None) -> List[LeaderboardEntry]:
    ranked = [
        LeaderboardEntry(user_id=row.user_id, username=row.username, solved=row.solved, score=row.score, rank=rank)
        for rank, row in rank_entries(score_table(db))
    ]
    return ranked[:limit] if limit else ranked


async def get_leaderboard(db: Session, limit: Optional[int] = None) -> List[LeaderboardEntry]:
    return await run_in_threadpool(get_leaderboard_sync, db, limit)


def get_entry_sync(db: Session, user_id: int) -> LeaderboardEntry:
    for entry in get_leaderboard_sync(db):
        if entry.user_id == user_id:
            return entry
    raise NotFoundError("User not on leaderboard", user_id=user_id)


async def get_entry(db: Session, user_id: int) -> LeaderboardEntry:
    return await run_in_threadpool(get_entry_sync, db, user_id)
