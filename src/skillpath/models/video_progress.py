"""Per-video watch progress."""

import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utc_now


class VideoProgress(Base):
    """Furthest point a user has watched in one video."""

    __tablename__ = "video_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="video_progress_user_video_unique"),
        CheckConstraint("watched_duration >= 0", name="video_progress_watched_non_negative"),
        CheckConstraint("total_duration > 0", name="video_progress_total_positive"),
    )

    progress_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    video_id = Column(String, nullable=False)
    watched_duration = Column(Integer, nullable=False, default=0)
    total_duration = Column(Integer, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    last_watched_at = Column(DateTime, default=utc_now, nullable=False)

    user = relationship("User", back_populates="video_progress")
