"""
Background tasks package.
"""

from .outbox_jobs import cleanup_outbox_events_task, relay_outbox_events_task
from .sla_jobs import reclaim_expired_assignments_task

__all__ = [
    "cleanup_outbox_events_task",
    "reclaim_expired_assignments_task",
    "relay_outbox_events_task",
]
