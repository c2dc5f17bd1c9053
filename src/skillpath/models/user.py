"""User activity model."""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utc_now


class User(Base):
    """Learner account together with its activity counters."""

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="users_email_unique"),
        CheckConstraint("points >= 0", name="users_points_non_negative"),
        CheckConstraint("total_time_spent >= 0", name="users_total_time_non_negative"),
        CheckConstraint("weekly_time_spent >= 0", name="users_weekly_time_non_negative"),
    )

    user_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String, nullable=False)
    display_name = Column(String, nullable=False)
    points = Column(Integer, nullable=False, default=0)
    total_time_spent = Column(Integer, nullable=False, default=0)
    weekly_time_spent = Column(Integer, nullable=False, default=0)
    # Week the weekly counters belong to; NULL until the first tracked delta.
    weekly_stats_week_start = Column(DateTime)
    weekly_points_earned = Column(Integer, nullable=False, default=0)
    last_active_at = Column(DateTime, default=utc_now, nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    video_progress = relationship("VideoProgress", back_populates="user", cascade="all, delete-orphan")
    assessment_results = relationship("AssessmentResult", back_populates="user", cascade="all, delete-orphan")
    hourly_usage = relationship("HourlyUsage", back_populates="user", cascade="all, delete-orphan")
