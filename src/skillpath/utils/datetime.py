"""Date-time helpers for Sunday-to-Saturday week windows.

Week boundaries are cut in the configured leaderboard timezone and returned
as naive datetimes in that zone, which is how they are stored.
"""

from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from ..core.config import get_settings

WEEK = timedelta(days=7)
END_OF_WEEK = WEEK - timedelta(microseconds=1)


@lru_cache(maxsize=8)
def _zone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def week_zone() -> tzinfo:
    """Timezone in which week boundaries are computed."""

    return _zone(get_settings().week_timezone)


def local_now() -> datetime:
    """Current naive wall-clock time in the week timezone."""

    return datetime.now(week_zone()).replace(tzinfo=None)


def to_local(moment: Optional[datetime] = None) -> datetime:
    """Normalise ``moment`` to a naive datetime in the week timezone.

    Aware values are converted; naive values are assumed to be local already.
    """

    if moment is None:
        return local_now()
    if moment.tzinfo is not None:
        return moment.astimezone(week_zone()).replace(tzinfo=None)
    return moment


def week_start(moment: Optional[datetime] = None) -> datetime:
    """Return Sunday 00:00:00.000000 of the week containing ``moment``."""

    current = to_local(moment)
    days_since_sunday = (current.weekday() + 1) % 7
    sunday = current - timedelta(days=days_since_sunday)
    return sunday.replace(hour=0, minute=0, second=0, microsecond=0)


def week_end(moment: Optional[datetime] = None) -> datetime:
    """Return Saturday 23:59:59.999999 of the week containing ``moment``."""

    return week_start(moment) + END_OF_WEEK


def week_window(moment: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    start = week_start(moment)
    return start, start + END_OF_WEEK


def is_same_week(first: datetime, second: datetime) -> bool:
    return week_start(first) == week_start(second)


def utc_now() -> datetime:
    """Naive UTC timestamp for audit columns."""

    return datetime.now(timezone.utc).replace(tzinfo=None)
