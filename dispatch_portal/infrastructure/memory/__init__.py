"""
In-memory storage backend.
"""

from .repositories import (
    InMemoryAssignmentRepository,
    InMemoryBranchDirectory,
    InMemoryConfigurationStore,
    InMemoryServiceRequestRepository,
    InMemoryTimelineRepository,
    InMemoryTransactionService,
)
from .store import InMemoryStore, get_memory_store, reset_memory_store

__all__ = [
    "InMemoryAssignmentRepository",
    "InMemoryBranchDirectory",
    "InMemoryConfigurationStore",
    "InMemoryServiceRequestRepository",
    "InMemoryStore",
    "InMemoryTimelineRepository",
    "InMemoryTransactionService",
    "get_memory_store",
    "reset_memory_store",
]
