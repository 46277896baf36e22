"""
Use cases package.

This package contains the business logic use cases that orchestrate
the application services and repositories.
"""

from .reclaim_expired_assignments import ReclaimExpiredAssignmentsUseCase, ReclaimResult
from .submit_request import SubmitRequestCommand, SubmitRequestUseCase

__all__ = [
    "ReclaimExpiredAssignmentsUseCase",
    "ReclaimResult",
    "SubmitRequestCommand",
    "SubmitRequestUseCase",
]
