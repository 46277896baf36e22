"""
Notifier that logs status changes.
"""

from typing import Optional

from dispatch_portal.application.interfaces.services import NotifierInterface
from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.events.request_status_changed import RequestStatusChanged
from dispatch_portal.infrastructure.memory.store import InMemoryStore

logger = get_logger(__name__)


class LoggingNotifier(NotifierInterface):
    """Logs each status change and keeps it in the in-memory store, if given."""

    def __init__(self, store: Optional[InMemoryStore] = None):
        self.store = store

    async def notify(self, event: RequestStatusChanged) -> None:
        if self.store is not None:
            self.store.notifications.append(event)
        logger.info("Request status change notification", **event.to_payload())
