"""
Assignment history entity.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from dispatch_portal.domain.value_objects.assignment_response import AssignmentResponse


@dataclass(frozen=True)
class Assignment:
    """
    One partner/branch assignment of a request and how it ended.

    A request accumulates one row per assign call. Only the latest row is
    active; reassignment deactivates the earlier ones.
    """

    request_id: int
    partner_id: int
    branch_id: int
    assigned_at: datetime
    sla_deadline: Optional[datetime] = None
    assigned_by: Optional[int] = None
    response: AssignmentResponse = AssignmentResponse.PENDING
    responded_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    is_active: bool = True
    id: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "request_id": self.request_id,
            "partner_id": self.partner_id,
            "branch_id": self.branch_id,
            "assigned_at": self.assigned_at.isoformat(),
            "sla_deadline": self.sla_deadline.isoformat() if self.sla_deadline else None,
            "assigned_by": self.assigned_by,
            "response": self.response.value,
            "responded_at": self.responded_at.isoformat() if self.responded_at else None,
            "rejection_reason": self.rejection_reason,
            "is_active": self.is_active,
        }
