"""
Append-only request timeline.
"""

from datetime import datetime
from typing import Optional, Tuple

from dispatch_portal.application.interfaces.repositories import TimelineRepositoryInterface
from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.clock import ensure_utc
from dispatch_portal.domain.entities.timeline_event import TimelineEvent
from dispatch_portal.domain.exceptions.validation_error import TimelineOrderError
from dispatch_portal.domain.value_objects.actor import Actor
from dispatch_portal.domain.value_objects.request_status import RequestStatus

logger = get_logger(__name__)


class Timeline:
    """Audit log of every status a request has been in."""

    def __init__(self, timeline_repo: TimelineRepositoryInterface):
        self.timeline_repo = timeline_repo

    async def append(
        self,
        request_id: int,
        status: RequestStatus,
        actor: Optional[Actor],
        notes: Optional[str],
        timestamp: datetime,
    ) -> TimelineEvent:
        """
        Append one event.

        The timestamp must come from the transition's own clock read and may
        not precede the request's latest event.
        """
        timestamp = ensure_utc(timestamp)
        last = await self.timeline_repo.last_for(request_id)
        if last is not None and timestamp < last.timestamp:
            raise TimelineOrderError(request_id, timestamp, last.timestamp)

        actor = actor or Actor.anonymous()
        event = await self.timeline_repo.append(
            TimelineEvent(
                request_id=request_id,
                status=status,
                timestamp=timestamp,
                actor_id=actor.id,
                actor_role=actor.role,
                notes=notes,
            )
        )

        logger.debug(
            "Timeline event appended",
            request_id=request_id,
            status=status.value,
            timeline_event_id=event.id,
        )
        return event

    async def list_for(self, request_id: int) -> Tuple[TimelineEvent, ...]:
        """Events for a request, oldest first."""
        return tuple(await self.timeline_repo.list_for(request_id))
