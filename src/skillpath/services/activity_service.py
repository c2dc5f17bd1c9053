"""Domain logic for per-user activity counters."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ..models import AssessmentResult, HourlyUsage, User, VideoProgress
from ..utils.datetime import is_same_week, to_local, utc_now, week_start

logger = logging.getLogger(__name__)

VIDEO_COMPLETION_RATIO = 0.9
VIDEO_COMPLETION_POINTS = 10
HOURS_PER_DAY = 24


class ActivityRuleViolation(Exception):
    """Raised when an activity update breaks a business rule."""

    def __init__(self, detail: str, status_code: int = 400) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class ActivityNotFound(ActivityRuleViolation):
    """Raised when the referenced user does not exist."""

    def __init__(self, user_id: UUID) -> None:
        super().__init__(f"User {user_id} not found", status_code=404)
        self.user_id = user_id


@dataclass(frozen=True)
class ActivitySnapshot:
    """Leaderboard-relevant counters of one user, scoped to one week."""

    user_id: UUID
    user_name: str
    points: int
    weekly_time_spent: int
    videos_watched: int
    assessments_completed: int


@dataclass(frozen=True)
class TimeTrackResult:
    total_time_spent: int
    weekly_time_spent: int
    week_start: datetime
    new_week: bool


def _ensure_user(session: Session, user_id: UUID, *, for_update: bool = False) -> User:
    stmt = select(User).where(User.user_id == user_id)
    if for_update:
        stmt = stmt.with_for_update()
    user = session.execute(stmt).scalar_one_or_none()
    if user is None:
        raise ActivityNotFound(user_id)
    return user


def _scoped_weekly_time(user: User, week: datetime) -> int:
    # Counters stamped with another week must not leak into this one.
    if user.weekly_stats_week_start != week:
        return 0
    return user.weekly_time_spent or 0


def _completed_videos():
    return (
        select(VideoProgress.user_id, func.count(VideoProgress.progress_id).label("videos_watched"))
        .where(VideoProgress.completed.is_(True))
        .group_by(VideoProgress.user_id)
        .subquery()
    )


def _completed_assessments():
    return (
        select(AssessmentResult.user_id, func.count(AssessmentResult.result_id).label("assessments_completed"))
        .group_by(AssessmentResult.user_id)
        .subquery()
    )


def _activity_query():
    videos = _completed_videos()
    assessments = _completed_assessments()
    return (
        select(
            User,
            func.coalesce(videos.c.videos_watched, 0),
            func.coalesce(assessments.c.assessments_completed, 0),
        )
        .outerjoin(videos, videos.c.user_id == User.user_id)
        .outerjoin(assessments, assessments.c.user_id == User.user_id)
    )


def _snapshot(user: User, videos_watched, assessments_completed, week: datetime) -> ActivitySnapshot:
    return ActivitySnapshot(
        user_id=user.user_id,
        user_name=user.display_name,
        points=user.points or 0,
        weekly_time_spent=_scoped_weekly_time(user, week),
        videos_watched=int(videos_watched or 0),
        assessments_completed=int(assessments_completed or 0),
    )


def get_activity(
    session: Session,
    user_id: UUID,
    *,
    week: Optional[datetime] = None,
) -> ActivitySnapshot:
    """Return the counters of one user for ``week`` (defaults to the current week)."""

    week = week or week_start()
    row = session.execute(_activity_query().where(User.user_id == user_id)).one_or_none()
    if row is None:
        raise ActivityNotFound(user_id)
    user, videos_watched, assessments_completed = row
    return _snapshot(user, videos_watched, assessments_completed, week)


def list_activity(session: Session, *, week: Optional[datetime] = None) -> list[ActivitySnapshot]:
    """Return counters for every user, oldest account first."""

    week = week or week_start()
    stmt = _activity_query().order_by(User.created_at.asc(), User.user_id.asc())
    return [
        _snapshot(user, videos_watched, assessments_completed, week)
        for user, videos_watched, assessments_completed in session.execute(stmt).all()
    ]


def apply_points_delta(session: Session, user_id: UUID, delta: int) -> int:
    """Atomically add ``delta`` to a user's points and return the new total.

    Every points mutation goes through here so that it stays a single
    ``UPDATE ... SET points = points + :delta`` inside the caller's transaction.
    """

    session.flush()
    result = session.execute(
        update(User)
        .where(User.user_id == user_id, User.points + delta >= 0)
        .values(points=User.points + delta, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    user = session.get(User, user_id, populate_existing=True)
    if user is None:
        raise ActivityNotFound(user_id)
    if result.rowcount == 0:
        raise ActivityRuleViolation("Points balance cannot become negative.")
    return user.points


def _add_hourly_usage(session: Session, user_id: UUID, week: datetime, hour: int, seconds: int) -> None:
    bucket = session.get(HourlyUsage, (user_id, week, hour))
    if bucket is None:
        bucket = HourlyUsage(user_id=user_id, week_start=week, hour=hour, seconds=0)
        session.add(bucket)
    bucket.seconds += seconds


def record_time(
    session: Session,
    user_id: UUID,
    *,
    seconds: int,
    timestamp: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> TimeTrackResult:
    """Accumulate a client-reported time delta.

    The delta's own timestamp decides its week, capped at the server clock so
    a client running ahead cannot open a future week. A delta from a later
    week than the stored one resets the weekly counters to this delta; a delta
    from an earlier week only counts toward the lifetime total.
    """

    if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds <= 0:
        raise ActivityRuleViolation("Tracked seconds must be a positive integer.")

    server_now = to_local(now)
    moment = min(to_local(timestamp or server_now), server_now)
    delta_week = week_start(moment)
    user = _ensure_user(session, user_id, for_update=True)

    user.total_time_spent = (user.total_time_spent or 0) + seconds
    user.last_active_at = utc_now()

    stored_week = user.weekly_stats_week_start
    new_week = stored_week is None or delta_week > stored_week
    if new_week:
        user.weekly_stats_week_start = delta_week
        user.weekly_time_spent = seconds
        user.weekly_points_earned = 0
        logger.debug("weekly counters rolled over for user %s to %s", user_id, delta_week)
    elif is_same_week(moment, stored_week):
        user.weekly_time_spent = (user.weekly_time_spent or 0) + seconds
    else:
        logger.info(
            "late time delta for user %s from week %s ignored for weekly totals",
            user_id,
            delta_week,
        )

    if delta_week == user.weekly_stats_week_start:
        _add_hourly_usage(session, user.user_id, delta_week, moment.hour, seconds)

    session.flush()
    return TimeTrackResult(
        total_time_spent=user.total_time_spent,
        weekly_time_spent=user.weekly_time_spent,
        week_start=user.weekly_stats_week_start,
        new_week=new_week,
    )


def record_video_progress(
    session: Session,
    user_id: UUID,
    *,
    video_id: str,
    watched_duration: int,
    total_duration: int,
) -> tuple[VideoProgress, bool]:
    """Store watch progress; returns the record and whether it just completed."""

    if total_duration <= 0:
        raise ActivityRuleViolation("Total duration must be positive.")
    if watched_duration < 0:
        raise ActivityRuleViolation("Watched duration cannot be negative.")

    user = _ensure_user(session, user_id, for_update=True)
    stmt = select(VideoProgress).where(VideoProgress.user_id == user.user_id, VideoProgress.video_id == video_id)
    progress = session.execute(stmt).scalar_one_or_none()

    if progress is None:
        progress = VideoProgress(user_id=user.user_id, video_id=video_id, watched_duration=0, completed=False)
        session.add(progress)

    was_completed = bool(progress.completed)
    progress.watched_duration = max(progress.watched_duration or 0, watched_duration)
    progress.total_duration = total_duration
    progress.completed = was_completed or watched_duration >= total_duration * VIDEO_COMPLETION_RATIO
    progress.last_watched_at = utc_now()
    session.flush()

    just_completed = progress.completed and not was_completed
    if just_completed:
        apply_points_delta(session, user.user_id, VIDEO_COMPLETION_POINTS)
        if user.weekly_stats_week_start == week_start():
            user.weekly_points_earned = (user.weekly_points_earned or 0) + VIDEO_COMPLETION_POINTS
        session.flush()

    return progress, just_completed


def record_assessment(
    session: Session,
    user_id: UUID,
    *,
    assessment_id: str,
    score: int,
) -> AssessmentResult:
    if not 0 <= score <= 100:
        raise ActivityRuleViolation("Score must be between 0 and 100.")

    user = _ensure_user(session, user_id)
    result = AssessmentResult(user_id=user.user_id, assessment_id=assessment_id, score=score)
    session.add(result)
    session.flush()
    session.refresh(result)
    return result


def format_duration(seconds: int) -> dict[str, int]:
    return {
        "hours": seconds // 3600,
        "minutes": (seconds % 3600) // 60,
        "total_seconds": seconds,
    }


def activity_stats(session: Session, user_id: UUID, *, now: Optional[datetime] = None) -> dict:
    """Summarise a user's activity for the dashboard."""

    current_week = week_start(now)
    snapshot = get_activity(session, user_id, week=current_week)
    user = _ensure_user(session, user_id)

    hourly = [0] * HOURS_PER_DAY
    buckets = session.execute(
        select(HourlyUsage.hour, HourlyUsage.seconds).where(
            HourlyUsage.user_id == user_id,
            HourlyUsage.week_start == current_week,
        )
    ).all()
    for hour, seconds in buckets:
        hourly[hour] = seconds

    in_current_week = user.weekly_stats_week_start == current_week
    return {
        "total_time_spent": format_duration(user.total_time_spent or 0),
        "weekly_time_spent": format_duration(snapshot.weekly_time_spent),
        "week_start": current_week,
        "weekly_points_earned": (user.weekly_points_earned or 0) if in_current_week else 0,
        "hourly_usage": hourly,
        "points": snapshot.points,
        "videos_completed": snapshot.videos_watched,
        "assessments_completed": snapshot.assessments_completed,
        "last_active_at": user.last_active_at,
    }
