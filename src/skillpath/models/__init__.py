"""SQLAlchemy models for SkillPath."""

from .assessment_result import AssessmentResult
from .hourly_usage import HourlyUsage
from .leaderboard_entry import LeaderboardEntry
from .user import User
from .video_progress import VideoProgress

__all__ = [
    "AssessmentResult",
    "HourlyUsage",
    "LeaderboardEntry",
    "User",
    "VideoProgress",
]
