"""
Timeline event SQLAlchemy model.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base


class TimelineEventModel(Base):
    """Append-only status history row."""

    __tablename__ = "timeline_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(Integer, ForeignKey("service_requests.id"), nullable=False)
    status = Column(String(20), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    actor_id = Column(Integer, nullable=True)
    actor_role = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    request = relationship("ServiceRequestModel", back_populates="timeline_events")

    __table_args__ = (
        Index("idx_timeline_events_request_timestamp", "request_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<TimelineEvent(id={self.id}, request_id={self.request_id}, status={self.status})>"
