"""
Timeline event repository implementation.
"""

from dataclasses import replace
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch_portal.application.interfaces.repositories import TimelineRepositoryInterface
from dispatch_portal.domain.clock import ensure_utc
from dispatch_portal.domain.entities.timeline_event import TimelineEvent
from dispatch_portal.domain.value_objects.actor import ActorRole
from dispatch_portal.domain.value_objects.request_status import RequestStatus
from dispatch_portal.infrastructure.database.models.timeline_event import TimelineEventModel


class TimelineRepository(TimelineRepositoryInterface):
    """Timeline event repository implementation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(self, event: TimelineEvent) -> TimelineEvent:
        """Insert a timeline event."""
        model = TimelineEventModel(
            request_id=event.request_id,
            status=event.status.value,
            timestamp=ensure_utc(event.timestamp),
            actor_id=event.actor_id,
            actor_role=event.actor_role.value if event.actor_role else None,
            notes=event.notes,
        )
        self.db.add(model)
        await self.db.flush()

        return replace(event, id=model.id)

    async def list_for(self, request_id: int) -> List[TimelineEvent]:
        """Get a request's events ordered by (timestamp, id)."""
        stmt = (
            select(TimelineEventModel)
            .where(TimelineEventModel.request_id == request_id)
            .order_by(TimelineEventModel.timestamp.asc(), TimelineEventModel.id.asc())
        )
        result = await self.db.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def last_for(self, request_id: int) -> Optional[TimelineEvent]:
        """Get a request's latest event."""
        stmt = (
            select(TimelineEventModel)
            .where(TimelineEventModel.request_id == request_id)
            .order_by(TimelineEventModel.timestamp.desc(), TimelineEventModel.id.desc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    def _model_to_entity(self, model: TimelineEventModel) -> TimelineEvent:
        """Convert SQLAlchemy model to domain entity."""
        return TimelineEvent(
            id=model.id,
            request_id=model.request_id,
            status=RequestStatus(model.status),
            timestamp=ensure_utc(model.timestamp),
            actor_id=model.actor_id,
            actor_role=ActorRole(model.actor_role) if model.actor_role else None,
            notes=model.notes,
        )
