"""
Dispatch-related domain exceptions.
"""

from datetime import datetime
from typing import Optional, Union


class DispatchError(Exception):
    """Base exception for request lifecycle and dispatch errors."""

    pass


class InvalidTransitionError(DispatchError):
    """Raised when a trigger is not legal from the request's current status."""

    def __init__(self, current_status: str, trigger: str, message: Optional[str] = None):
        self.current_status = str(getattr(current_status, "value", current_status))
        self.trigger = str(getattr(trigger, "value", trigger))
        super().__init__(
            message
            or f"Cannot apply '{self.trigger}' to a request in status '{self.current_status}'"
        )


class SlaExpiredError(InvalidTransitionError):
    """Raised when a partner tries to accept after the SLA window closed."""

    def __init__(self, current_status: str, trigger: str, deadline: datetime):
        self.deadline = deadline
        super().__init__(
            current_status,
            trigger,
            f"Confirmation window has expired (deadline {deadline.isoformat()})",
        )


class BranchMismatchError(DispatchError):
    """Raised when the selected branch belongs to a different partner."""

    def __init__(self, branch_id: int, partner_id: int, owner_partner_id: int):
        self.branch_id = branch_id
        self.partner_id = partner_id
        self.owner_partner_id = owner_partner_id
        super().__init__(
            f"Branch {branch_id} belongs to partner {owner_partner_id}, not {partner_id}"
        )


class ConfirmationRequiredError(DispatchError):
    """Raised when a close is attempted without customer confirmation."""

    def __init__(self, request_id: int):
        self.request_id = request_id
        super().__init__(
            f"Request {request_id} cannot be closed without customer confirmation"
        )


class ConflictError(DispatchError):
    """Raised when a concurrent transition changed the request first."""

    def __init__(self, request_id: int, expected_version: int):
        self.request_id = request_id
        self.expected_version = expected_version
        super().__init__(
            f"Request {request_id} was modified concurrently "
            f"(expected version {expected_version})"
        )


class NotFoundError(DispatchError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: Union[int, str, None]):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class DuplicateRequestNumberError(DispatchError):
    """Raised when a request number is already taken by another request."""

    def __init__(self, request_number: str):
        self.request_number = request_number
        super().__init__(f"Request number {request_number} is already in use")
