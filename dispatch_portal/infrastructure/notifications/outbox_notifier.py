"""
Notifier that records status changes in the transactional outbox.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from dispatch_portal.application.interfaces.services import NotifierInterface
from dispatch_portal.domain.events.request_status_changed import RequestStatusChanged
from dispatch_portal.infrastructure.database.repositories.outbox_repository import (
    OutboxEventType,
    TransactionalOutbox,
)


class OutboxNotifier(NotifierInterface):
    """Queues notifications for delivery by writing outbox rows."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session
        self.outbox = TransactionalOutbox(db_session)

    async def notify(self, event: RequestStatusChanged) -> None:
        # Savepoint keeps a failed insert from aborting the surrounding transaction
        async with self.db_session.begin_nested():
            await self.outbox.create_event(
                event_type=OutboxEventType.REQUEST_STATUS_CHANGED,
                aggregate_id=str(event.request_id),
                event_data=event.to_payload(),
                created_at=event.occurred_at,
            )
