"""Leaderboard schemas for request/response validation."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class RankedEntry(BaseModel):
    """One player's best valid score in the ranked view."""

    rank: int
    user_id: str
    user_name: str
    best_score: int
    time: int
    created_at: datetime

    class Config:
        from_attributes = True


class LeaderboardResponse(BaseModel):
    """Schema for leaderboard pull response."""

    status: int = 200
    leaderboard: list[RankedEntry]


class LeaderboardUpdateMessage(BaseModel):
    """Schema for WebSocket leaderboard update message."""

    type: Literal["leaderboard_update"] = "leaderboard_update"
    leaderboard: list[RankedEntry]
