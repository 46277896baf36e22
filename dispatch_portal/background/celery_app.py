"""
Celery application configuration and setup.
"""

from celery import Celery

from dispatch_portal.config.settings import settings

celery_app = Celery(
    "dispatch_portal",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "dispatch_portal.background.tasks.sla_jobs",
        "dispatch_portal.background.tasks.outbox_jobs",
    ],
)

celery_app.conf.update(
    task_routes={
        "reclaim_expired_assignments_task": {"queue": "sla"},
        "relay_outbox_events_task": {"queue": "outbox"},
        "cleanup_outbox_events_task": {"queue": "cleanup"},
    },
    # Worker configuration
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=100,
    worker_hijack_root_logger=False,
    # Task configuration
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    result_expires=3600,
    task_default_queue="default",
    task_acks_late=settings.CELERY_TASK_ACKS_LATE,
    task_reject_on_worker_lost=settings.CELERY_TASK_REJECT_ON_WORKER_LOST,
    task_time_limit=settings.CELERY_TASK_TIME_LIMIT,
    task_soft_time_limit=settings.CELERY_TASK_SOFT_TIME_LIMIT,
    beat_schedule={
        # Return assignments whose confirmation window elapsed to the pool
        "reclaim-expired-assignments": {
            "task": "reclaim_expired_assignments_task",
            "schedule": float(settings.SLA_RECLAIM_INTERVAL_SECONDS),
            "options": {"queue": "sla"},
        },
        # Deliver committed status changes
        "relay-outbox-events": {
            "task": "relay_outbox_events_task",
            "schedule": float(settings.OUTBOX_RELAY_INTERVAL_SECONDS),
            "options": {"queue": "outbox"},
        },
        # Drop delivered outbox rows past retention
        "cleanup-outbox-events": {
            "task": "cleanup_outbox_events_task",
            "schedule": float(settings.OUTBOX_CLEANUP_INTERVAL_HOURS * 3600),
            "options": {"queue": "cleanup"},
        },
    },
)

if __name__ == "__main__":
    celery_app.start()
