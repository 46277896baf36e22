"""
Domain value objects package.
"""

from .actor import Actor, ActorRole
from .assignment_response import AssignmentResponse
from .customer_snapshot import CustomerSnapshot
from .geo_point import GeoPoint
from .request_status import RequestStatus, TransitionTrigger
from .sla_status import SlaStatus

__all__ = [
    "Actor",
    "ActorRole",
    "AssignmentResponse",
    "CustomerSnapshot",
    "GeoPoint",
    "RequestStatus",
    "SlaStatus",
    "TransitionTrigger",
]
