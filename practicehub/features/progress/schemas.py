from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field

from practicehub.features.problems.models import Difficulty


class HeatmapDay(BaseModel):
    date: dt.date
    count: int


class AchievementSchema(BaseModel):
    key: str
    name: str
    description: str
    earned: bool


class CompanyProgress(BaseModel):
    id: int
    name: str
    solved: int
    total: int


class RecentActivity(BaseModel):
    problem_id: int
    title: str
    difficulty: Difficulty
    solved_at: dt.datetime


class UserStats(BaseModel):
    user_id: int
    username: str
    solved: int
    score: int
    easy: int
    medium: int
    hard: int
    streak: int
    rank: int


class UserProgress(UserStats):
    company_progress: List[CompanyProgress] = Field(default_factory=list)
    heatmap: List[HeatmapDay] = Field(default_factory=list)
    achievements: List[AchievementSchema] = Field(default_factory=list)
    recent_activity: List[RecentActivity] = Field(default_factory=list)


class StreakResponse(BaseModel):
    user_id: int
    streak: int
    today: dt.date


class ProblemRef(BaseModel):
    id: int
    title: str
    difficulty: Difficulty
    solved_at: Optional[dt.datetime] = None
