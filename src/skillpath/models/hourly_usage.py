"""Hour-of-day usage buckets for the weekly activity chart."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base


class HourlyUsage(Base):
    """Seconds spent in one local hour slot of one week."""

    __tablename__ = "hourly_usage"
    __table_args__ = (
        CheckConstraint("hour >= 0 AND hour <= 23", name="hourly_usage_hour_range"),
        CheckConstraint("seconds >= 0", name="hourly_usage_seconds_non_negative"),
    )

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True)
    week_start = Column(DateTime, primary_key=True)
    hour = Column(Integer, primary_key=True)
    seconds = Column(Integer, nullable=False, default=0)

    user = relationship("User", back_populates="hourly_usage")
