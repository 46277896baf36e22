"""
Status change notifiers.
"""

from .logging_notifier import LoggingNotifier
from .outbox_notifier import OutboxNotifier
from .outbox_relay import OutboxRelay, RelayResult

__all__ = [
    "LoggingNotifier",
    "OutboxNotifier",
    "OutboxRelay",
    "RelayResult",
]
