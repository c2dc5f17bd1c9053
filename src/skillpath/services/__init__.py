"""Service layer exports."""

from . import (
	activity_service,
	leaderboard_service,
)

__all__ = [
	"activity_service",
	"leaderboard_service",
]
