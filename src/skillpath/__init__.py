"""SkillPath weekly leaderboard and activity tracking service."""

__version__ = "0.1.0"
