"""
Domain entities package.
"""

from .assignment import Assignment
from .branch import Branch
from .service_request import ServiceRequest
from .timeline_event import TimelineEvent

__all__ = [
    "Assignment",
    "Branch",
    "ServiceRequest",
    "TimelineEvent",
]
