"""Weekly leaderboard generation, syncing and queries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import LeaderboardEntry
from ..utils.datetime import week_window
from . import activity_service
from .activity_service import ActivityNotFound, ActivityRuleViolation, ActivitySnapshot

logger = logging.getLogger(__name__)

# Bonus points for ranks 1, 2 and 3, awarded once per generation.
BONUS_POINTS = (100, 50, 25)
MAX_LIMIT = 100


class LeaderboardRuleViolation(Exception):
    """Raised when a leaderboard operation cannot be completed."""

    def __init__(self, detail: str, status_code: int = 400) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


@dataclass(frozen=True)
class LeaderboardView:
    """Live-ranked leaderboard row built for a response; never persisted."""

    user_id: UUID
    user_name: str
    points: int
    weekly_time_spent: int
    videos_watched: int
    assessments_completed: int
    rank: int
    week_start: datetime
    week_end: datetime

    @classmethod
    def from_entry(cls, entry: LeaderboardEntry, rank: Optional[int] = None) -> "LeaderboardView":
        return cls(
            user_id=entry.user_id,
            user_name=entry.user_name,
            points=entry.points,
            weekly_time_spent=entry.weekly_time_spent,
            videos_watched=entry.videos_watched,
            assessments_completed=entry.assessments_completed,
            rank=entry.rank if rank is None else rank,
            week_start=entry.week_start,
            week_end=entry.week_end,
        )


@dataclass
class SyncSummary:
    synced: int = 0
    skipped: int = 0


def rank_key(stats) -> tuple[int, int, int]:
    """Sort key: weekly time, then points, then videos watched, all descending."""

    return (
        -(stats.weekly_time_spent or 0),
        -(stats.points or 0),
        -(stats.videos_watched or 0),
    )


def clamp_limit(limit: int) -> int:
    return max(1, min(limit, MAX_LIMIT))


def _entries_for_week(
    session: Session,
    week_start: datetime,
    *,
    limit: Optional[int] = None,
) -> list[LeaderboardEntry]:
    stmt = (
        select(LeaderboardEntry)
        .where(LeaderboardEntry.week_start == week_start)
        .order_by(LeaderboardEntry.rank.asc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(session.execute(stmt).scalars().all())


def _week_has_entries(session: Session, week_start: datetime) -> bool:
    stmt = select(LeaderboardEntry.entry_id).where(LeaderboardEntry.week_start == week_start).limit(1)
    return session.execute(stmt).scalar_one_or_none() is not None


def _purge_week(session: Session, week_start: datetime) -> int:
    result = session.execute(
        delete(LeaderboardEntry)
        .where(LeaderboardEntry.week_start == week_start)
        .execution_options(synchronize_session="evaluate")
    )
    return result.rowcount or 0


def _build_entries(
    ranked: Sequence[ActivitySnapshot],
    week_start: datetime,
    week_end: datetime,
) -> list[LeaderboardEntry]:
    return [
        LeaderboardEntry(
            user_id=stats.user_id,
            user_name=stats.user_name,
            points=stats.points,
            weekly_time_spent=stats.weekly_time_spent,
            videos_watched=stats.videos_watched,
            assessments_completed=stats.assessments_completed,
            rank=position,
            week_start=week_start,
            week_end=week_end,
        )
        for position, stats in enumerate(ranked, start=1)
    ]


def generate_leaderboard(
    session: Session,
    *,
    week_start: datetime,
    week_end: datetime,
) -> list[LeaderboardEntry]:
    """Rank every user for the week, award top-3 bonuses and persist the batch.

    Bonus writes and the snapshot insert share the caller's transaction; the
    caller commits once. A bonus that cannot be written raises
    ``LeaderboardRuleViolation``. Running this again after a purge awards the
    bonuses again.
    """

    ranked = sorted(activity_service.list_activity(session, week=week_start), key=rank_key)
    entries = _build_entries(ranked, week_start, week_end)

    for entry, bonus in zip(entries, BONUS_POINTS):
        entry.points += bonus
        try:
            activity_service.apply_points_delta(session, entry.user_id, bonus)
        except ActivityRuleViolation as exc:
            raise LeaderboardRuleViolation(
                f"Could not award the rank {entry.rank} bonus: {exc.detail}",
                status_code=409,
            ) from exc
        logger.info("awarded %s bonus points to user %s (rank %s, week %s)", bonus, entry.user_id, entry.rank, week_start)

    session.add_all(entries)
    session.flush()

    logger.info("generated leaderboard for week %s with %s entries", week_start.date(), len(entries))
    return entries


def ensure_leaderboard(
    session: Session,
    *,
    week_start: datetime,
    week_end: datetime,
) -> tuple[list[LeaderboardEntry], bool]:
    """Return the week's entries, generating them if none exist.

    Generation runs in a savepoint; if a concurrent writer inserted the week
    first, the unique constraint rejects ours and the winner's rows are used.
    The boolean reports whether this call generated the week.
    """

    if _week_has_entries(session, week_start):
        return _entries_for_week(session, week_start), False

    try:
        with session.begin_nested():
            entries = generate_leaderboard(session, week_start=week_start, week_end=week_end)
    except IntegrityError:
        logger.warning("leaderboard for week %s was generated concurrently; using existing entries", week_start.date())
        return _entries_for_week(session, week_start), False

    return entries, True


def regenerate_leaderboard(
    session: Session,
    *,
    now: Optional[datetime] = None,
) -> tuple[datetime, datetime, list[LeaderboardEntry]]:
    """Purge the current week's entries and generate them again."""

    start, end = week_window(now)
    purged = _purge_week(session, start)
    if purged:
        logger.info("purged %s leaderboard entries for week %s", purged, start.date())
    session.flush()
    entries = generate_leaderboard(session, week_start=start, week_end=end)
    return start, end, entries


def sync_entries(session: Session, entries: Iterable[LeaderboardEntry]) -> SyncSummary:
    """Refresh stat columns of persisted entries from live activity.

    ``rank`` is never written here. An entry whose user cannot be read keeps
    its stale values. Each read runs in its own savepoint so a failed
    statement does not abort the reads that follow it.
    """

    summary = SyncSummary()
    for entry in entries:
        try:
            with session.begin_nested():
                stats = activity_service.get_activity(session, entry.user_id, week=entry.week_start)
        except (ActivityNotFound, SQLAlchemyError) as exc:
            logger.warning("skipping leaderboard sync for entry %s: %s", entry.entry_id, exc)
            summary.skipped += 1
            continue

        entry.user_name = stats.user_name
        entry.weekly_time_spent = stats.weekly_time_spent
        entry.points = stats.points
        entry.videos_watched = stats.videos_watched
        entry.assessments_completed = stats.assessments_completed
        summary.synced += 1

    session.flush()
    return summary


def live_rank(entries: Sequence[LeaderboardEntry]) -> list[LeaderboardView]:
    """Re-sort entries by current stats and number them 1..N for display."""

    ordered = sorted(entries, key=lambda entry: rank_key(entry) + (entry.rank,))
    return [LeaderboardView.from_entry(entry, rank=position) for position, entry in enumerate(ordered, start=1)]


def get_weekly(
    session: Session,
    *,
    limit: int = 10,
    now: Optional[datetime] = None,
) -> list[LeaderboardView]:
    """Return the current week's leaderboard, generating it on first access."""

    limit = clamp_limit(limit)
    start, end = week_window(now)

    entries, generated = ensure_leaderboard(session, week_start=start, week_end=end)
    if generated:
        return [LeaderboardView.from_entry(entry) for entry in entries[:limit]]

    summary = sync_entries(session, entries)
    if summary.skipped:
        logger.info("leaderboard sync for week %s skipped %s entries", start.date(), summary.skipped)
    return live_rank(entries)[:limit]


def get_top3(session: Session, *, now: Optional[datetime] = None) -> list[LeaderboardView]:
    return get_weekly(session, limit=3, now=now)


def get_user_rank(
    session: Session,
    user_id: UUID,
    *,
    now: Optional[datetime] = None,
) -> Optional[LeaderboardEntry]:
    """Return the persisted entry of ``user_id`` for the current week, if any."""

    start, _ = week_window(now)
    stmt = select(LeaderboardEntry).where(
        LeaderboardEntry.week_start == start,
        LeaderboardEntry.user_id == user_id,
    )
    return session.execute(stmt).scalar_one_or_none()
