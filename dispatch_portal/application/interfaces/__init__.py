"""
Application interfaces package.
"""

from .repositories import (
    AssignmentRepositoryInterface,
    ServiceRequestRepositoryInterface,
    TimelineRepositoryInterface,
)
from .services import (
    BranchDirectoryInterface,
    ConfigurationStoreInterface,
    NotifierInterface,
    TransactionServiceInterface,
)

__all__ = [
    "AssignmentRepositoryInterface",
    "BranchDirectoryInterface",
    "ConfigurationStoreInterface",
    "NotifierInterface",
    "ServiceRequestRepositoryInterface",
    "TimelineRepositoryInterface",
    "TransactionServiceInterface",
]
