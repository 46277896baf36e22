"""
Actor value objects.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ActorRole(str, Enum):
    """Role of whoever performs an operation."""

    ADMIN = "admin"
    PARTNER = "partner"
    CUSTOMER = "customer"
    SYSTEM = "system"


@dataclass(frozen=True)
class Actor:
    """Identity recorded on timeline events."""

    id: Optional[int] = None
    role: Optional[ActorRole] = None

    @classmethod
    def system(cls, user_id: Optional[int] = None) -> "Actor":
        """Actor used by scheduled jobs."""
        return cls(id=user_id, role=ActorRole.SYSTEM)

    @classmethod
    def anonymous(cls) -> "Actor":
        return cls()
