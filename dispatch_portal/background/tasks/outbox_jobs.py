"""
Celery tasks for outbox delivery and retention.
"""

from datetime import timedelta
from typing import Any, Dict

from celery import current_app

from dispatch_portal.config.database import get_session_factory
from dispatch_portal.config.logging import get_logger
from dispatch_portal.config.settings import settings
from dispatch_portal.domain.clock import utc_now
from dispatch_portal.infrastructure.database.repositories.outbox_repository import (
    TransactionalOutbox,
)
from dispatch_portal.infrastructure.notifications import LoggingNotifier, OutboxRelay

from .sla_jobs import run_async_in_new_loop

logger = get_logger(__name__)


async def relay_outbox_events(batch_size: int) -> Dict[str, Any]:
    """Deliver one batch of outbox events on a dedicated session."""
    async with get_session_factory()() as session:
        relay = OutboxRelay(
            TransactionalOutbox(session),
            LoggingNotifier(),
            base_retry_delay_minutes=settings.OUTBOX_RETRY_BASE_DELAY_MINUTES,
        )
        result = await relay.process_pending_events(batch_size)
    return result.to_dict()


async def cleanup_outbox_events(retention_days: int) -> int:
    """Delete delivered outbox rows older than the retention window."""
    async with get_session_factory()() as session:
        cutoff = utc_now() - timedelta(days=retention_days)
        return await TransactionalOutbox(session).cleanup_completed_events(cutoff)


@current_app.task(bind=True, max_retries=3, name="relay_outbox_events_task")
def relay_outbox_events_task(self):
    """Periodic relay of committed status changes to the notifier."""
    if settings.STORAGE_BACKEND == "memory":
        logger.debug("Memory backend notifies inline, skipping outbox relay")
        return {"status": "skipped"}

    try:
        summary = run_async_in_new_loop(
            relay_outbox_events(settings.OUTBOX_RELAY_BATCH_SIZE)
        )
    except Exception as e:
        logger.error("Outbox relay failed", error=str(e), exc_info=True)
        raise self.retry(exc=e, countdown=30)

    return {"status": "success", **summary}


@current_app.task(bind=True, max_retries=2, name="cleanup_outbox_events_task")
def cleanup_outbox_events_task(self):
    """Clean up old completed outbox events."""
    if settings.STORAGE_BACKEND == "memory":
        return {"status": "skipped"}

    logger.info(
        "Starting outbox events cleanup task",
        attempt=self.request.retries + 1,
        retention_days=settings.OUTBOX_RETENTION_DAYS,
    )

    try:
        cleaned_count = run_async_in_new_loop(
            cleanup_outbox_events(settings.OUTBOX_RETENTION_DAYS)
        )
    except Exception as e:
        logger.error("Outbox events cleanup failed", error=str(e), exc_info=True)
        raise self.retry(exc=e, countdown=300)

    logger.info("Outbox events cleanup finished", events_cleaned=cleaned_count)
    return {"status": "success", "events_cleaned": cleaned_count}
