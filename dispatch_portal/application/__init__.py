"""
Application layer package.

This package contains use cases, services, and interfaces that implement
the business logic of the application.
"""

from .services.dispatch_coordinator import DispatchCoordinator
from .services.timeline import Timeline
from .use_cases.reclaim_expired_assignments import ReclaimExpiredAssignmentsUseCase
from .use_cases.submit_request import SubmitRequestUseCase

__all__ = [
    "DispatchCoordinator",
    "ReclaimExpiredAssignmentsUseCase",
    "SubmitRequestUseCase",
    "Timeline",
]
