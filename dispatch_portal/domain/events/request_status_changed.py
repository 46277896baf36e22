"""
Request status changed domain event.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from dispatch_portal.domain.value_objects.actor import Actor, ActorRole
from dispatch_portal.domain.value_objects.request_status import RequestStatus


@dataclass(frozen=True)
class RequestStatusChanged:
    """Event raised after a request transition has been committed."""

    request_id: int
    request_number: str
    previous_status: Optional[RequestStatus]
    new_status: RequestStatus
    occurred_at: datetime
    actor: Actor
    partner_id: Optional[int] = None
    branch_id: Optional[int] = None
    notes: Optional[str] = None

    event_type = "request.status_changed"

    def to_payload(self) -> Dict[str, Any]:
        """Serialize for the outbox / notification collaborator."""
        return {
            "request_id": self.request_id,
            "request_number": self.request_number,
            "previous_status": self.previous_status.value if self.previous_status else None,
            "new_status": self.new_status.value,
            "occurred_at": self.occurred_at.isoformat(),
            "actor_id": self.actor.id,
            "actor_role": self.actor.role.value if self.actor.role else None,
            "partner_id": self.partner_id,
            "branch_id": self.branch_id,
            "notes": self.notes,
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "RequestStatusChanged":
        """Rebuild the event from a stored outbox payload."""
        previous = payload.get("previous_status")
        role = payload.get("actor_role")
        return cls(
            request_id=payload["request_id"],
            request_number=payload["request_number"],
            previous_status=RequestStatus(previous) if previous else None,
            new_status=RequestStatus(payload["new_status"]),
            occurred_at=datetime.fromisoformat(payload["occurred_at"]),
            actor=Actor(id=payload.get("actor_id"), role=ActorRole(role) if role else None),
            partner_id=payload.get("partner_id"),
            branch_id=payload.get("branch_id"),
            notes=payload.get("notes"),
        )
