"""
SLA status value object.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class SlaStatus:
    """Snapshot of an assignment's SLA window at a given instant."""

    deadline: Optional[datetime]
    remaining_minutes: Optional[int]
    expired: bool

    @property
    def has_deadline(self) -> bool:
        return self.deadline is not None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "remaining_minutes": self.remaining_minutes,
            "expired": self.expired,
        }
