"""
Prometheus metrics for system monitoring.
"""

import time
from functools import wraps
from typing import Callable

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

registry = CollectorRegistry()


def get_registry() -> CollectorRegistry:
    """Get the application registry."""
    return registry


REQUESTS_SUBMITTED = Counter(
    "dispatch_requests_submitted_total",
    "Total number of service requests submitted",
    ["category_id"],
    registry=registry,
)

REQUEST_TRANSITIONS = Counter(
    "dispatch_request_transitions_total",
    "Total number of committed request status transitions",
    ["trigger", "to_status"],
    registry=registry,
)

REQUEST_TRANSITION_FAILURES = Counter(
    "dispatch_request_transition_failures_total",
    "Total number of rejected request transitions",
    ["trigger", "reason"],
    registry=registry,
)

SLA_RECLAIMS = Counter(
    "dispatch_sla_reclaims_total",
    "Total number of assignments reclaimed after SLA expiry",
    ["outcome"],
    registry=registry,
)

BRANCH_RANKINGS = Histogram(
    "dispatch_branch_ranking_candidates",
    "Number of rankable branches per ranking call",
    buckets=[0, 1, 2, 5, 10, 25, 50, 100],
    registry=registry,
)

OPERATION_DURATION = Histogram(
    "dispatch_operation_duration_seconds",
    "Duration of dispatch coordinator operations",
    ["operation", "status"],
    registry=registry,
)

OUTBOX_DELIVERIES = Counter(
    "dispatch_outbox_deliveries_total",
    "Total number of outbox delivery attempts by outcome",
    ["outcome"],
    registry=registry,
)

API_ERRORS = Counter(
    "dispatch_api_errors_total",
    "Total number of API errors by type",
    ["error_type", "status_code"],
    registry=registry,
)


def track_duration(operation: str):
    """Decorator recording the duration of an async operation."""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            status = "success"
            try:
                return await func(*args, **kwargs)
            except Exception:
                status = "error"
                raise
            finally:
                OPERATION_DURATION.labels(operation=operation, status=status).observe(
                    time.perf_counter() - start_time
                )

        return wrapper

    return decorator


def record_request_submitted(category_id: int):
    """Record a submitted request."""
    REQUESTS_SUBMITTED.labels(category_id=str(category_id)).inc()


def record_transition(trigger: str, to_status: str):
    """Record a committed status transition."""
    REQUEST_TRANSITIONS.labels(trigger=trigger, to_status=to_status).inc()


def record_transition_failure(trigger: str, reason: str):
    """Record a transition refused by a guard or a version conflict."""
    REQUEST_TRANSITION_FAILURES.labels(trigger=trigger, reason=reason).inc()


def record_sla_reclaim(outcome: str):
    """Record the outcome of one reclaim attempt."""
    SLA_RECLAIMS.labels(outcome=outcome).inc()


def record_branch_ranking(candidates: int):
    """Record the number of candidates ranked."""
    BRANCH_RANKINGS.observe(candidates)


def record_outbox_delivery(outcome: str):
    """Record one outbox delivery attempt."""
    OUTBOX_DELIVERIES.labels(outcome=outcome).inc()


def record_api_error(error_type: str, status_code: int):
    """Record an error response."""
    API_ERRORS.labels(error_type=error_type, status_code=str(status_code)).inc()


def get_metrics() -> bytes:
    """Get metrics in Prometheus format."""
    return generate_latest(registry)


def get_metrics_content_type() -> str:
    """Get metrics content type."""
    return CONTENT_TYPE_LATEST
