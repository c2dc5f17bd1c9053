"""Leaderboard response schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class LeaderboardRow(BaseModel):
    """One ranked user for the current week."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    user_name: str
    points: int = Field(..., ge=0)
    weekly_time_spent: int = Field(..., ge=0, description="Seconds spent this week.")
    videos_watched: int = Field(..., ge=0)
    assessments_completed: int = Field(..., ge=0)
    rank: int = Field(..., ge=1)
    week_start: datetime
    week_end: datetime


class UnrankedResponse(BaseModel):
    """Returned by my-rank when the user has no entry this week."""

    rank: Optional[int] = None
    message: str = "No ranking for this week yet"


class LeaderboardGenerated(BaseModel):
    """Response of a manual regeneration."""

    message: str = "Leaderboard generated"
    week_start: datetime
    week_end: datetime
    leaderboard: List[LeaderboardRow]
