"""
Outbox event SQLAlchemy model.
"""

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text, Uuid

from .base import Base


class OutboxEventModel(Base):
    """Transactional outbox row, written in the same transaction as the change."""

    __tablename__ = "outbox_events"

    id = Column(Uuid, primary_key=True)
    event_type = Column(String(50), nullable=False)
    aggregate_id = Column(String(255), nullable=False)
    event_data = Column(JSON, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    retry_count = Column(Integer, nullable=False, default=0)
    max_retries = Column(Integer, nullable=False, default=3)
    created_at = Column(DateTime(timezone=True), nullable=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    error_message = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_outbox_events_status", "status"),
        Index("idx_outbox_events_type", "event_type"),
        Index("idx_outbox_events_created", "created_at"),
        Index("idx_outbox_events_aggregate", "aggregate_id"),
    )
