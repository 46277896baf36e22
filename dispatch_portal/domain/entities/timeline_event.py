"""
Timeline event entity.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from dispatch_portal.domain.value_objects.actor import ActorRole
from dispatch_portal.domain.value_objects.request_status import RequestStatus


@dataclass(frozen=True)
class TimelineEvent:
    """One immutable audit record per status transition."""

    request_id: int
    status: RequestStatus
    timestamp: datetime
    actor_id: Optional[int] = None
    actor_role: Optional[ActorRole] = None
    notes: Optional[str] = None
    id: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "request_id": self.request_id,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "actor_id": self.actor_id,
            "actor_role": self.actor_role.value if self.actor_role else None,
            "notes": self.notes,
        }
