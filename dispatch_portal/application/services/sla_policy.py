"""
SLA policy for partner assignments.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.clock import ensure_utc
from dispatch_portal.domain.entities.service_request import ServiceRequest
from dispatch_portal.domain.value_objects.sla_status import SlaStatus

logger = get_logger(__name__)

ONE_MINUTE = timedelta(minutes=1)


class SlaPolicy:
    """
    Computes and evaluates the accept/reject window of an assignment.

    The deadline is stamped once when a request is assigned. Everything
    else is a pure function of (deadline, now), so callers can poll the
    remaining time as often as they like.
    """

    def __init__(self, default_timeout_minutes: int = 15, max_timeout_minutes: int = 60):
        if default_timeout_minutes <= 0:
            raise ValueError("Default SLA timeout must be positive")
        self.default_timeout_minutes = default_timeout_minutes
        self.max_timeout_minutes = max_timeout_minutes

    def parse_timeout(self, raw_value: Any) -> Optional[int]:
        """Parse a configured timeout; None when absent, unparseable or out of range."""
        if raw_value is None or isinstance(raw_value, bool):
            return None

        try:
            minutes = int(str(raw_value).strip())
        except ValueError:
            logger.warning("Unparseable SLA timeout ignored", raw_value=raw_value)
            return None

        if not 0 < minutes <= self.max_timeout_minutes:
            logger.warning(
                "SLA timeout out of range ignored",
                raw_value=raw_value,
                max_timeout_minutes=self.max_timeout_minutes,
            )
            return None

        return minutes

    def resolve_timeout(self, *raw_values: Any) -> int:
        """
        First usable timeout among raw_values, else the default.

        Callers pass the most specific value first, e.g. the partner value
        and then the global one.
        """
        for raw_value in raw_values:
            minutes = self.parse_timeout(raw_value)
            if minutes is not None:
                return minutes
        return self.default_timeout_minutes

    def compute_deadline(self, assigned_at: datetime, timeout_minutes: int) -> datetime:
        """Deadline for an assignment made at assigned_at."""
        if isinstance(timeout_minutes, bool) or not isinstance(timeout_minutes, int):
            raise TypeError("Timeout must be an integer number of minutes")
        if timeout_minutes <= 0:
            raise ValueError("Timeout must be positive")
        return ensure_utc(assigned_at) + timedelta(minutes=timeout_minutes)

    def remaining_minutes(self, deadline: datetime, now: datetime) -> int:
        """
        Whole minutes left before the deadline.

        A partial minute counts as a full one, so the value only reaches
        zero at the deadline itself.
        """
        delta = ensure_utc(deadline) - ensure_utc(now)
        return -((-delta) // ONE_MINUTE)

    def is_expired(self, deadline: datetime, now: datetime) -> bool:
        return self.remaining_minutes(deadline, now) <= 0

    def status(self, request: ServiceRequest, now: datetime) -> SlaStatus:
        """SLA snapshot for a request at the given instant."""
        if request.sla_deadline is None:
            return SlaStatus(deadline=None, remaining_minutes=None, expired=False)

        remaining = self.remaining_minutes(request.sla_deadline, now)
        return SlaStatus(
            deadline=request.sla_deadline,
            remaining_minutes=remaining,
            expired=remaining <= 0,
        )
