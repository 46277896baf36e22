"""
Assignment response value object.
"""

from enum import Enum


class AssignmentResponse(str, Enum):
    """How a partner answered one assignment."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    TIMEOUT = "timeout"

    def is_final(self) -> bool:
        return self != AssignmentResponse.PENDING
