"""
Request assignment SQLAlchemy model.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text

from dispatch_portal.domain.value_objects.assignment_response import AssignmentResponse

from .base import Base


class RequestAssignmentModel(Base):
    """One row per assignment of a request to a partner branch."""

    __tablename__ = "request_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(Integer, ForeignKey("service_requests.id"), nullable=False)
    partner_id = Column(Integer, ForeignKey("partners.id"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    assigned_by = Column(Integer, nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=False)
    sla_deadline = Column(DateTime(timezone=True), nullable=True)
    response = Column(
        String(20), nullable=False, default=AssignmentResponse.PENDING.value
    )
    responded_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_request_assignments_request_active", "request_id", "is_active"),
    )

    def __repr__(self) -> str:
        return (
            f"<RequestAssignment(id={self.id}, request_id={self.request_id}, "
            f"partner_id={self.partner_id}, response={self.response})>"
        )
