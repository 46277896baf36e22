"""
Database models package.
"""

from .base import Base, BaseModel
from .configuration import ConfigurationModel
from .outbox_event import OutboxEventModel
from .partner import BranchModel, PartnerModel
from .request_assignment import RequestAssignmentModel
from .service_request import ServiceRequestModel
from .timeline_event import TimelineEventModel

__all__ = [
    "Base",
    "BaseModel",
    "BranchModel",
    "ConfigurationModel",
    "OutboxEventModel",
    "PartnerModel",
    "RequestAssignmentModel",
    "ServiceRequestModel",
    "TimelineEventModel",
]
