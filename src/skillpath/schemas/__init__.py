"""Public schema exports."""

from .activity import (
    ActivityStats,
    AssessmentCompletion,
    AssessmentResultRead,
    TrackTimeRequest,
    TrackTimeResponse,
    VideoProgressRead,
    VideoProgressUpdate,
)
from .leaderboard import LeaderboardGenerated, LeaderboardRow, UnrankedResponse

__all__ = [
    "ActivityStats",
    "AssessmentCompletion",
    "AssessmentResultRead",
    "LeaderboardGenerated",
    "LeaderboardRow",
    "TrackTimeRequest",
    "TrackTimeResponse",
    "UnrankedResponse",
    "VideoProgressRead",
    "VideoProgressUpdate",
]
