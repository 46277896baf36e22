"""
Request status and transition trigger value objects.
"""

from enum import Enum


class RequestStatus(str, Enum):
    """Service request status enumeration."""

    SUBMITTED = "submitted"
    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CLOSED = "closed"
    REJECTED = "rejected"

    def is_initial(self) -> bool:
        """Check if this is the status every request starts in."""
        return self == RequestStatus.SUBMITTED

    def is_terminal(self) -> bool:
        """Check if status has no outgoing transitions."""
        return self in [RequestStatus.CLOSED, RequestStatus.REJECTED]

    def is_assignable(self) -> bool:
        """Check if a partner branch can be assigned from this status."""
        return self in [RequestStatus.SUBMITTED, RequestStatus.UNASSIGNED]

    def is_post_completion(self) -> bool:
        """Check if the work has been completed (rating is allowed)."""
        return self in [RequestStatus.COMPLETED, RequestStatus.CLOSED]


class TransitionTrigger(str, Enum):
    """Actions that move a request between statuses."""

    ASSIGN = "assign"
    ACCEPT = "accept"
    REJECT = "reject"
    START = "start"
    COMPLETE = "complete"
    REVERT_TO_CONFIRMED = "revert_to_confirmed"
    REOPEN = "reopen"
    CLOSE = "close"

    def is_partner_driven(self) -> bool:
        """Check if the trigger can be requested through a plain status update."""
        return self in [
            TransitionTrigger.ACCEPT,
            TransitionTrigger.START,
            TransitionTrigger.COMPLETE,
            TransitionTrigger.REVERT_TO_CONFIRMED,
            TransitionTrigger.REOPEN,
        ]
