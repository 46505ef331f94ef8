from typing import List

from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    user_id: int
    username: str
    solved: int
    score: int
    rank: int


class LeaderboardResponse(BaseModel):
    entries: List[LeaderboardEntry]
    total_count: int
