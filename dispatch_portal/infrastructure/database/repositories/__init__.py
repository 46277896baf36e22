"""
Database repositories package.
"""

from .assignment_repository import AssignmentRepository
from .branch_repository import BranchRepository
from .configuration_repository import ConfigurationRepository
from .outbox_repository import TransactionalOutbox
from .service_request_repository import ServiceRequestRepository
from .timeline_repository import TimelineRepository
from .transaction_repository import TransactionService

__all__ = [
    "AssignmentRepository",
    "BranchRepository",
    "ConfigurationRepository",
    "ServiceRequestRepository",
    "TimelineRepository",
    "TransactionService",
    "TransactionalOutbox",
]
