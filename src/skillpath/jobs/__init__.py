"""Scheduled background jobs."""

from .weekly_leaderboard import register_scheduler, run_generation_once

__all__ = ["register_scheduler", "run_generation_once"]
