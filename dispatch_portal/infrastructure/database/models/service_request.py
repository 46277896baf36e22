"""
Service request SQLAlchemy model.
"""

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from dispatch_portal.domain.value_objects.request_status import RequestStatus

from .base import BaseModel


class ServiceRequestModel(BaseModel):
    """Service request database model."""

    __tablename__ = "service_requests"

    request_number = Column(String(32), nullable=False, unique=True, index=True)
    category_id = Column(Integer, nullable=False)
    service_id = Column(Integer, nullable=True)
    pickup_option_id = Column(Integer, nullable=False)
    customer_id = Column(Integer, nullable=True, index=True)

    # Customer snapshot
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=False)
    customer_address = Column(Text, nullable=False)
    customer_lat = Column(Float, nullable=False)
    customer_lng = Column(Float, nullable=False)

    # Dispatch state
    status = Column(
        String(20), nullable=False, default=RequestStatus.SUBMITTED.value, index=True
    )
    partner_id = Column(Integer, ForeignKey("partners.id"), nullable=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True)

    # Timing
    submitted_at = Column(DateTime(timezone=True), nullable=False, index=True)
    assigned_at = Column(DateTime(timezone=True))
    sla_deadline = Column(DateTime(timezone=True))
    confirmed_at = Column(DateTime(timezone=True))
    rejected_at = Column(DateTime(timezone=True))
    in_progress_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    closed_at = Column(DateTime(timezone=True))

    # Post-completion
    rating = Column(Integer, nullable=True)
    feedback = Column(Text, nullable=True)
    rated_at = Column(DateTime(timezone=True))

    # Optimistic concurrency
    version = Column(Integer, nullable=False, default=1)

    timeline_events = relationship(
        "TimelineEventModel",
        back_populates="request",
        order_by="TimelineEventModel.timestamp",
    )

    __table_args__ = (
        Index("idx_service_requests_status_deadline", "status", "sla_deadline"),
    )

    def __repr__(self) -> str:
        return (
            f"<ServiceRequest(id={self.id}, number={self.request_number}, "
            f"status={self.status}, version={self.version})>"
        )
