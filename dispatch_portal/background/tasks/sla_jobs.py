"""
Celery tasks for SLA enforcement.
"""

import asyncio
from typing import Any, Dict

from celery import current_app

from dispatch_portal.config.logging import get_logger
from dispatch_portal.config.settings import settings
from dispatch_portal.infrastructure.storage import open_storage

logger = get_logger(__name__)


def run_async_in_new_loop(coro):
    """
    Run an async coroutine in a new event loop.

    Each Celery task gets its own loop so prefork workers never share one.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()
        asyncio.set_event_loop(None)


async def reclaim_expired_assignments(limit: int) -> Dict[str, Any]:
    """Reject every assignment whose SLA deadline has passed."""
    async with open_storage() as storage:
        result = await storage.reclaim_use_case().execute(limit)
    return result.to_dict()


@current_app.task(bind=True, max_retries=3, name="reclaim_expired_assignments_task")
def reclaim_expired_assignments_task(self):
    """Periodic sweep returning unanswered assignments to the pool."""
    if not settings.SLA_AUTO_RECLAIM_ENABLED:
        logger.debug("SLA auto reclaim disabled, skipping sweep")
        return {"status": "disabled"}

    logger.info(
        "Starting expired assignment sweep",
        attempt=self.request.retries + 1,
        batch_size=settings.SLA_RECLAIM_BATCH_SIZE,
    )

    try:
        summary = run_async_in_new_loop(
            reclaim_expired_assignments(settings.SLA_RECLAIM_BATCH_SIZE)
        )
    except Exception as e:
        logger.error("Expired assignment sweep failed", error=str(e), exc_info=True)
        raise self.retry(exc=e, countdown=30)

    logger.info("Expired assignment sweep finished", **summary)
    return {"status": "success", **summary}
