"""
Domain package.
"""

from .entities import *
from .events import *
from .exceptions import *
from .value_objects import *

__all__ = [
    # Entities
    "Branch",
    "ServiceRequest",
    "TimelineEvent",
    # Events
    "RequestStatusChanged",
    # Exceptions
    "BranchMismatchError",
    "ConfirmationRequiredError",
    "ConflictError",
    "DispatchError",
    "InvalidTransitionError",
    "NotFoundError",
    "SlaExpiredError",
    "ValidationError",
    # Value Objects
    "Actor",
    "ActorRole",
    "CustomerSnapshot",
    "GeoPoint",
    "RequestStatus",
    "SlaStatus",
    "TransitionTrigger",
]
