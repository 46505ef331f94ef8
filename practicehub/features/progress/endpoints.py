#Progress feature - stats, streak, heatmap, achievements per user
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from practicehub.common.errors import PracticeHubError, _err, to_http
from practicehub.core.clock import ReferenceClock, get_clock
from practicehub.db.session import get_db
from .schemas import AchievementSchema, HeatmapDay, ProblemRef, RecentActivity, StreakResponse, UserProgress, UserStats
from . import service

logger = logging.getLogger("progress.endpoints")

router = APIRouter(prefix="/users", tags=["progress"])


async def _guarded(user_id: int, call, *args):
    try:
        return await call(*args)
    except PracticeHubError as e:
        raise to_http(e)
    except SQLAlchemyError:
        logger.exception("progress_query_failed user_id=%s", user_id)
        raise _err(503, "persistence_error", "Progress is temporarily unavailable")


async def _progress(db: Session, clock: ReferenceClock, user_id: int) -> UserProgress:
    return await _guarded(user_id, service.get_user_progress, db, clock, user_id)


#full progress payload for the profile page
@router.get("/{user_id}/progress", response_model=UserProgress)
async def get_progress(user_id: int, db: Session = Depends(get_db), clock: ReferenceClock = Depends(get_clock)):
    return await _progress(db, clock, user_id)


@router.get("/{user_id}/stats", response_model=UserStats)
async def get_stats(user_id: int, db: Session = Depends(get_db), clock: ReferenceClock = Depends(get_clock)):
    progress = await _progress(db, clock, user_id)
    return UserStats(**progress.model_dump(include=set(UserStats.model_fields)))


@router.get("/{user_id}/streak", response_model=StreakResponse)
async def get_streak(user_id: int, db: Session = Depends(get_db), clock: ReferenceClock = Depends(get_clock)):
    return await _guarded(user_id, service.get_streak, db, clock, user_id)


#90-day heatmap
@router.get("/{user_id}/activity", response_model=List[HeatmapDay])
async def get_activity(user_id: int, db: Session = Depends(get_db), clock: ReferenceClock = Depends(get_clock)):
    return (await _progress(db, clock, user_id)).heatmap


@router.get("/{user_id}/recent", response_model=List[RecentActivity])
async def get_recent(user_id: int, db: Session = Depends(get_db), clock: ReferenceClock = Depends(get_clock)):
    return (await _progress(db, clock, user_id)).recent_activity


@router.get("/{user_id}/badges", response_model=List[AchievementSchema])
async def get_badges(user_id: int, db: Session = Depends(get_db), clock: ReferenceClock = Depends(get_clock)):
    return (await _progress(db, clock, user_id)).achievements


@router.get("/{user_id}/last-problem", response_model=Optional[ProblemRef])
async def get_last_problem(user_id: int, db: Session = Depends(get_db)):
    return await _guarded(user_id, service.get_last_problem, db, user_id)


@router.get("/{user_id}/recommended", response_model=List[ProblemRef])
async def get_recommended(user_id: int, db: Session = Depends(get_db)):
    return await _guarded(user_id, service.get_recommended, db, user_id)
