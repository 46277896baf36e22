"""
Relay delivering outbox rows to the notification collaborator.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict

from dispatch_portal.application.interfaces.services import NotifierInterface
from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.clock import Clock, utc_now
from dispatch_portal.domain.events.request_status_changed import RequestStatusChanged
from dispatch_portal.infrastructure.database.repositories.outbox_repository import (
    OutboxEvent,
    OutboxEventStatus,
    OutboxEventType,
    TransactionalOutbox,
)
from dispatch_portal.infrastructure.monitoring.metrics import record_outbox_delivery

logger = get_logger(__name__)


@dataclass
class RelayResult:
    """Outcome of one relay pass."""

    delivered: int = 0
    failed: int = 0
    skipped: int = 0
    retried: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "delivered": self.delivered,
            "failed": self.failed,
            "skipped": self.skipped,
            "retried": self.retried,
        }


class OutboxRelay:
    """
    Hands committed status changes to the notifier.

    Pending rows are delivered first; failed rows are retried with
    exponential backoff (5, 15, 45 minutes by default) until they run out of
    retries. Each row is claimed before delivery so two relays never deliver
    the same row at the same time.
    """

    def __init__(
        self,
        outbox: TransactionalOutbox,
        delivery: NotifierInterface,
        clock: Clock = utc_now,
        base_retry_delay_minutes: int = 5,
    ):
        self.outbox = outbox
        self.delivery = delivery
        self.clock = clock
        self.base_retry_delay_minutes = base_retry_delay_minutes

    async def process_pending_events(self, batch_size: int = 50) -> RelayResult:
        """Deliver one batch of pending events plus a share of retryable ones."""
        result = RelayResult()

        pending_events = await self.outbox.get_pending_events(limit=batch_size)
        retry_limit = max(1, batch_size // 4)
        failed_events = await self.outbox.get_failed_events_for_retry(limit=retry_limit)

        if not pending_events and not failed_events:
            logger.debug("No pending or retryable outbox events")
            return result

        for event in pending_events + failed_events:
            if event.status == OutboxEventStatus.FAILED:
                if not self.should_retry(event):
                    result.skipped += 1
                    continue
                if not await self.outbox.reset_event_for_retry(event.id):
                    result.skipped += 1
                    continue
                result.retried += 1

            if not await self.outbox.mark_event_processing(event.id, self.clock()):
                logger.info("Outbox event claimed elsewhere", event_id=str(event.id))
                result.skipped += 1
                continue

            try:
                await self._deliver(event)
            except Exception as e:
                logger.error(
                    "Outbox event delivery failed",
                    event_id=str(event.id),
                    aggregate_id=event.aggregate_id,
                    retry_count=event.retry_count,
                    error=str(e),
                )
                await self.outbox.mark_event_failed(event.id, str(e), self.clock())
                record_outbox_delivery("failed")
                result.failed += 1
                continue

            await self.outbox.mark_event_completed(event.id, self.clock())
            record_outbox_delivery("delivered")
            result.delivered += 1

        logger.info(
            "Outbox relay pass finished",
            pending_count=len(pending_events),
            retry_candidates=len(failed_events),
            **result.to_dict(),
        )
        return result

    def should_retry(self, event: OutboxEvent) -> bool:
        """A failed event is retried once its backoff has elapsed."""
        if event.retry_count >= event.max_retries:
            return False
        if event.processed_at is None:
            return True

        backoff_step = max(event.retry_count - 1, 0)
        delay = timedelta(minutes=self.base_retry_delay_minutes * (3**backoff_step))
        return event.processed_at + delay <= self.clock()

    async def _deliver(self, event: OutboxEvent) -> None:
        if event.event_type != OutboxEventType.REQUEST_STATUS_CHANGED:
            raise ValueError(f"Unknown outbox event type '{event.event_type.value}'")
        await self.delivery.notify(RequestStatusChanged.from_payload(event.event_data))
