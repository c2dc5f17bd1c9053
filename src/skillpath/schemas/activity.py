"""Pydantic schemas for activity tracking endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TrackTimeRequest(BaseModel):
    """Elapsed seconds reported by the client timer."""

    seconds: int = Field(..., gt=0, strict=True, description="Positive number of seconds since the last report.")
    timestamp: Optional[datetime] = Field(None, description="Client time of the report; defaults to server time.")


class TrackTimeResponse(BaseModel):
    total_time_spent: int
    weekly_time_spent: int
    week_start: datetime
    new_week: bool


class DurationBreakdown(BaseModel):
    hours: int
    minutes: int
    total_seconds: int


class ActivityStats(BaseModel):
    """Dashboard summary of a user's activity."""

    total_time_spent: DurationBreakdown
    weekly_time_spent: DurationBreakdown
    week_start: datetime
    weekly_points_earned: int
    hourly_usage: List[int] = Field(..., min_length=24, max_length=24)
    points: int
    videos_completed: int
    assessments_completed: int
    last_active_at: datetime


class VideoProgressUpdate(BaseModel):
    watched_duration: int = Field(..., ge=0, description="Seconds watched so far.")
    total_duration: int = Field(..., gt=0, description="Video length in seconds.")


class VideoProgressRead(BaseModel):
    video_id: str
    watched_duration: int
    total_duration: int
    completed: bool
    points_awarded: int
    progress: float = Field(..., description="Percentage of the video watched.")


class AssessmentCompletion(BaseModel):
    assessment_id: str = Field(..., min_length=1)
    score: int = Field(..., ge=0, le=100)


class AssessmentResultRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    assessment_id: str
    score: int
    completed_at: datetime
