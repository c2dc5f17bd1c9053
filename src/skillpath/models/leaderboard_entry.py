"""Weekly leaderboard snapshot rows."""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, UniqueConstraint, Uuid

from ..core.database import Base
from ..utils.datetime import utc_now


class LeaderboardEntry(Base):
    """Persisted rank and stats of one user for one week.

    ``rank`` is assigned once at generation time; syncing only refreshes the
    stat columns. ``user_id`` is a plain reference: users are owned by the
    activity store and an entry outlives a deleted user with stale stats.
    """

    __tablename__ = "leaderboard_entries"
    __table_args__ = (
        UniqueConstraint("week_start", "user_id", name="leaderboard_entries_week_user_unique"),
        UniqueConstraint("week_start", "rank", name="leaderboard_entries_week_rank_unique"),
        CheckConstraint("rank >= 1", name="leaderboard_entries_rank_positive"),
        CheckConstraint("points >= 0", name="leaderboard_entries_points_non_negative"),
        CheckConstraint("weekly_time_spent >= 0", name="leaderboard_entries_time_non_negative"),
    )

    entry_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False)
    user_name = Column(String, nullable=False)
    points = Column(Integer, nullable=False, default=0)
    weekly_time_spent = Column(Integer, nullable=False, default=0)
    videos_watched = Column(Integer, nullable=False, default=0)
    assessments_completed = Column(Integer, nullable=False, default=0)
    rank = Column(Integer, nullable=False)
    week_start = Column(DateTime, nullable=False)
    week_end = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)


Index(
    "ix_leaderboard_entries_week_desc_rank",
    LeaderboardEntry.week_start.desc(),
    LeaderboardEntry.rank.asc(),
)
