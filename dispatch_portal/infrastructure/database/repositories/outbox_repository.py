"""
Transactional outbox for status change notifications.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.clock import ensure_utc
from dispatch_portal.infrastructure.database.models.outbox_event import OutboxEventModel

logger = get_logger(__name__)


class OutboxEventType(str, Enum):
    """Types of outbox events."""

    REQUEST_STATUS_CHANGED = "request.status_changed"


class OutboxEventStatus(str, Enum):
    """Status of outbox events."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class OutboxEvent:
    """Outbox event for transactional operations."""

    id: UUID
    event_type: OutboxEventType
    aggregate_id: str
    event_data: Dict[str, Any]
    status: OutboxEventStatus = OutboxEventStatus.PENDING
    retry_count: int = 0
    max_retries: int = 3
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    error_message: Optional[str] = None


class TransactionalOutbox:
    """
    Writes outbox rows inside the caller's transaction and tracks their delivery.

    create_event never commits. The mark_* and cleanup methods are used by
    the relay on its own session and commit immediately.
    """

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session
        self.logger = logger

    async def create_event(
        self,
        event_type: OutboxEventType,
        aggregate_id: str,
        event_data: Dict[str, Any],
        max_retries: int = 3,
        created_at: Optional[datetime] = None,
    ) -> OutboxEvent:
        """
        Create an outbox event within the current transaction.

        Nothing is committed here; the row becomes visible together with the
        change it describes.
        """
        event = OutboxEvent(
            id=uuid4(),
            event_type=event_type,
            aggregate_id=aggregate_id,
            event_data=event_data,
            max_retries=max_retries,
            created_at=ensure_utc(created_at) or datetime.now(timezone.utc),
        )

        self.db_session.add(
            OutboxEventModel(
                id=event.id,
                event_type=event.event_type.value,
                aggregate_id=event.aggregate_id,
                event_data=event.event_data,
                status=event.status.value,
                retry_count=event.retry_count,
                max_retries=event.max_retries,
                created_at=event.created_at,
            )
        )
        await self.db_session.flush()

        self.logger.debug(
            "Outbox event created",
            event_id=str(event.id),
            event_type=event.event_type.value,
            aggregate_id=event.aggregate_id,
        )
        return event

    async def get_pending_events(
        self, event_type: Optional[OutboxEventType] = None, limit: int = 100
    ) -> List[OutboxEvent]:
        """Get pending events, oldest first."""
        stmt = select(OutboxEventModel).where(
            OutboxEventModel.status == OutboxEventStatus.PENDING.value
        )
        if event_type is not None:
            stmt = stmt.where(OutboxEventModel.event_type == event_type.value)
        stmt = (
            stmt.order_by(OutboxEventModel.created_at.asc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )

        result = await self.db_session.execute(stmt)
        return [self._model_to_event(model) for model in result.scalars().all()]

    async def get_failed_events_for_retry(self, limit: int = 25) -> List[OutboxEvent]:
        """Get failed events that still have retries left, oldest first."""
        stmt = (
            select(OutboxEventModel)
            .where(
                and_(
                    OutboxEventModel.status == OutboxEventStatus.FAILED.value,
                    OutboxEventModel.retry_count < OutboxEventModel.max_retries,
                )
            )
            .order_by(OutboxEventModel.created_at.asc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.db_session.execute(stmt)
        return [self._model_to_event(model) for model in result.scalars().all()]

    async def mark_event_processing(
        self, event_id: UUID, now: Optional[datetime] = None
    ) -> bool:
        """Claim a pending event; False when another relay got it first."""
        result = await self.db_session.execute(
            update(OutboxEventModel)
            .where(
                and_(
                    OutboxEventModel.id == event_id,
                    OutboxEventModel.status == OutboxEventStatus.PENDING.value,
                )
            )
            .values(
                status=OutboxEventStatus.PROCESSING.value,
                processed_at=now or datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        await self.db_session.commit()
        return result.rowcount > 0

    async def mark_event_completed(self, event_id: UUID, now: Optional[datetime] = None) -> None:
        """Mark an event as delivered."""
        await self.db_session.execute(
            update(OutboxEventModel)
            .where(OutboxEventModel.id == event_id)
            .values(
                status=OutboxEventStatus.COMPLETED.value,
                processed_at=now or datetime.now(timezone.utc),
                error_message=None,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db_session.commit()

    async def mark_event_failed(
        self, event_id: UUID, error_message: str, now: Optional[datetime] = None
    ) -> None:
        """Mark an event as failed and count the attempt."""
        await self.db_session.execute(
            update(OutboxEventModel)
            .where(OutboxEventModel.id == event_id)
            .values(
                status=OutboxEventStatus.FAILED.value,
                error_message=error_message,
                retry_count=OutboxEventModel.retry_count + 1,
                processed_at=now or datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        await self.db_session.commit()

    async def reset_event_for_retry(self, event_id: UUID) -> bool:
        """Put a failed event back to pending so it can be claimed again."""
        result = await self.db_session.execute(
            update(OutboxEventModel)
            .where(
                and_(
                    OutboxEventModel.id == event_id,
                    OutboxEventModel.status == OutboxEventStatus.FAILED.value,
                )
            )
            .values(status=OutboxEventStatus.PENDING.value)
            .execution_options(synchronize_session=False)
        )
        await self.db_session.commit()
        return result.rowcount > 0

    async def cleanup_completed_events(self, older_than: datetime) -> int:
        """Delete completed events created before older_than."""
        result = await self.db_session.execute(
            delete(OutboxEventModel)
            .where(
                and_(
                    OutboxEventModel.status == OutboxEventStatus.COMPLETED.value,
                    OutboxEventModel.created_at < ensure_utc(older_than),
                )
            )
            .execution_options(synchronize_session=False)
        )
        await self.db_session.commit()

        deleted_count = result.rowcount
        self.logger.info(
            "Cleaned up completed outbox events",
            deleted_count=deleted_count,
            older_than=ensure_utc(older_than).isoformat(),
        )
        return deleted_count

    def _model_to_event(self, model: OutboxEventModel) -> OutboxEvent:
        """Convert SQLAlchemy model to outbox event."""
        return OutboxEvent(
            id=model.id,
            event_type=OutboxEventType(model.event_type),
            aggregate_id=model.aggregate_id,
            event_data=model.event_data,
            status=OutboxEventStatus(model.status),
            retry_count=model.retry_count,
            max_retries=model.max_retries,
            created_at=ensure_utc(model.created_at),
            processed_at=ensure_utc(model.processed_at),
            error_message=model.error_message,
        )
