"""
Service request entity.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from dispatch_portal.domain.clock import ensure_utc
from dispatch_portal.domain.value_objects.customer_snapshot import CustomerSnapshot
from dispatch_portal.domain.value_objects.request_status import RequestStatus

MIN_RATING = 1
MAX_RATING = 5


@dataclass(frozen=True)
class ServiceRequest:
    """
    Service request domain entity.

    Instances are immutable snapshots. Status changes go through
    RequestStateMachine.apply(), which returns a new snapshot that the
    coordinator persists with a version check.
    """

    request_number: str
    category_id: int
    pickup_option_id: int
    customer: CustomerSnapshot
    submitted_at: datetime
    id: Optional[int] = None
    service_id: Optional[int] = None
    customer_id: Optional[int] = None
    status: RequestStatus = RequestStatus.SUBMITTED
    partner_id: Optional[int] = None
    branch_id: Optional[int] = None
    assigned_at: Optional[datetime] = None
    sla_deadline: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    in_progress_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None
    rated_at: Optional[datetime] = None
    version: int = 1
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Normalize timestamps and validate invariants."""
        if not self.request_number or not self.request_number.strip():
            raise ValueError("Request number is required")
        if self.version < 1:
            raise ValueError("Version must be positive")
        if (self.partner_id is None) != (self.branch_id is None):
            raise ValueError("Partner and branch must be assigned together")
        if self.rating is not None and not MIN_RATING <= self.rating <= MAX_RATING:
            raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")

        for name in (
            "submitted_at",
            "assigned_at",
            "sla_deadline",
            "confirmed_at",
            "rejected_at",
            "in_progress_at",
            "completed_at",
            "closed_at",
            "rated_at",
            "updated_at",
        ):
            value = getattr(self, name)
            if value is not None and value.tzinfo is None:
                object.__setattr__(self, name, ensure_utc(value))

        if self.updated_at is None:
            object.__setattr__(self, "updated_at", self.submitted_at)

    @property
    def has_active_assignment(self) -> bool:
        """Check if a partner branch currently holds the request."""
        return self.partner_id is not None and self.branch_id is not None

    @property
    def is_rated(self) -> bool:
        return self.rating is not None

    def belongs_to_customer(self, customer_id: int) -> bool:
        """Check request ownership for customer-facing operations."""
        return self.customer_id is not None and self.customer_id == customer_id
