"""Background scheduler that opens each week's leaderboard."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from ..core.config import get_settings
from ..core.database import session_scope
from ..services.leaderboard_service import ensure_leaderboard
from ..utils.datetime import week_window

logger = logging.getLogger(__name__)

_scheduler = AsyncIOScheduler(timezone=get_settings().week_timezone)


def run_generation_once(now: Optional[datetime] = None) -> dict[str, object]:
    """Generate the leaderboard for the week containing ``now`` if it is missing."""

    start, end = week_window(now)
    with session_scope() as session:
        entries, generated = ensure_leaderboard(session, week_start=start, week_end=end)
    return {"week_start": start, "entries": len(entries), "generated": generated}


async def _execute_weekly_generation() -> None:
    try:
        summary = run_generation_once()
        logger.info("weekly leaderboard job completed: %s", summary)
    except Exception:  # pragma: no cover - safeguard for background job
        logger.exception("weekly leaderboard job failed")
        raise


@_scheduler.scheduled_job(
    "cron",
    day_of_week="sun",
    hour=0,
    minute=5,
    id="weekly_leaderboard",
    misfire_grace_time=3600,
)
async def _scheduled_job() -> None:
    await _execute_weekly_generation()


def register_scheduler(app: FastAPI) -> None:
    """Attach APScheduler lifecycle hooks to the FastAPI app."""

    @app.on_event("startup")
    async def start_scheduler() -> None:
        if not _scheduler.running:
            _scheduler.start()
            logger.info("weekly leaderboard scheduler started")

    @app.on_event("shutdown")
    async def shutdown_scheduler() -> None:
        if _scheduler.running:
            _scheduler.shutdown(wait=False)
            logger.info("weekly leaderboard scheduler stopped")
