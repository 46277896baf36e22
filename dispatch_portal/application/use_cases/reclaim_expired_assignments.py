"""Reclaim expired assignments use case."""

from dataclasses import dataclass, field
from typing import List

from dispatch_portal.application.interfaces.repositories import (
    ServiceRequestRepositoryInterface,
)
from dispatch_portal.application.services.dispatch_coordinator import DispatchCoordinator
from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.clock import Clock, utc_now
from dispatch_portal.domain.exceptions.dispatch_error import (
    ConflictError,
    InvalidTransitionError,
)
from dispatch_portal.domain.value_objects.actor import Actor
from dispatch_portal.infrastructure.monitoring.metrics import record_sla_reclaim

logger = get_logger(__name__)


@dataclass
class ReclaimResult:
    """Outcome of one reclaim run."""

    reclaimed: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)

    @property
    def total_found(self) -> int:
        return len(self.reclaimed) + len(self.skipped)

    def to_dict(self) -> dict:
        return {
            "reclaimed": self.reclaimed,
            "skipped": self.skipped,
            "total_found": self.total_found,
        }


class ReclaimExpiredAssignmentsUseCase:
    """
    Return assignments whose SLA lapsed without an answer to unassigned.

    Runs outside the coordinator as a scheduled job and goes through
    DispatchCoordinator.reject(), so every reclaim is subject to the same
    version check as a partner's own rejection. A request the partner
    accepted or rejected in the meantime is skipped.
    """

    def __init__(
        self,
        request_repo: ServiceRequestRepositoryInterface,
        coordinator: DispatchCoordinator,
        system_user_id: int,
        clock: Clock = utc_now,
    ):
        self.request_repo = request_repo
        self.coordinator = coordinator
        self.system_actor = Actor.system(system_user_id)
        self.clock = clock

    async def execute(self, limit: int = 100) -> ReclaimResult:
        """Reclaim up to limit expired assignments."""
        now = self.clock()
        expired = await self.request_repo.find_expired_assignments(now, limit)
        result = ReclaimResult()

        for request in expired:
            timeout_minutes = self._timeout_minutes(request)
            reason = (
                f"SLA timeout - no partner response within {timeout_minutes} minutes"
            )
            try:
                await self.coordinator.reject(request.id, reason, actor=self.system_actor)
            except (ConflictError, InvalidTransitionError) as e:
                record_sla_reclaim("skipped")
                result.skipped.append(request.id)
                logger.warning(
                    "Expired assignment changed before reclaim",
                    request_id=request.id,
                    error=str(e),
                )
                continue

            record_sla_reclaim("reclaimed")
            result.reclaimed.append(request.id)
            logger.info(
                "Expired assignment reclaimed",
                request_id=request.id,
                request_number=request.request_number,
                partner_id=request.partner_id,
                branch_id=request.branch_id,
                sla_deadline=request.sla_deadline.isoformat(),
            )

        if result.total_found:
            logger.info("SLA reclaim run finished", **result.to_dict())

        return result

    @staticmethod
    def _timeout_minutes(request) -> int:
        """Window length the partner was given for this assignment."""
        window = request.sla_deadline - request.assigned_at
        return int(window.total_seconds() // 60)
