"""Submitted assessment results."""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utc_now


class AssessmentResult(Base):
    """One completed assessment attempt."""

    __tablename__ = "assessment_results"
    __table_args__ = (
        CheckConstraint("score >= 0 AND score <= 100", name="assessment_results_score_range"),
    )

    result_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    assessment_id = Column(String, nullable=False)
    score = Column(Integer, nullable=False)
    completed_at = Column(DateTime, default=utc_now, nullable=False)

    user = relationship("User", back_populates="assessment_results")
