"""
Process-local data store used by the in-memory backend.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.entities.assignment import Assignment
from dispatch_portal.domain.entities.branch import Branch
from dispatch_portal.domain.entities.service_request import ServiceRequest
from dispatch_portal.domain.entities.timeline_event import TimelineEvent
from dispatch_portal.domain.events.request_status_changed import RequestStatusChanged

logger = get_logger(__name__)

# (partner_id, key); partner_id None is the global scope
ConfigKey = Tuple[Optional[int], str]


@dataclass
class _Snapshot:
    requests: Dict[int, ServiceRequest]
    timeline: Dict[int, List[TimelineEvent]]
    assignments: Dict[int, List[Assignment]]
    config: Dict[ConfigKey, str]
    notifications: List[RequestStatusChanged]
    next_request_id: int
    next_event_id: int
    next_assignment_id: int


@dataclass
class InMemoryStore:
    """Holds every table of the in-memory backend."""

    requests: Dict[int, ServiceRequest] = field(default_factory=dict)
    timeline: Dict[int, List[TimelineEvent]] = field(default_factory=dict)
    assignments: Dict[int, List[Assignment]] = field(default_factory=dict)
    partners: Dict[int, bool] = field(default_factory=dict)
    branches: Dict[int, Branch] = field(default_factory=dict)
    config: Dict[ConfigKey, str] = field(default_factory=dict)
    notifications: List[RequestStatusChanged] = field(default_factory=list)
    next_request_id: int = 1
    next_event_id: int = 1
    next_assignment_id: int = 1
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def add_partner(self, partner_id: int, is_active: bool = True) -> None:
        self.partners[partner_id] = is_active

    def add_branch(self, branch: Branch) -> Branch:
        """Register a branch, creating its partner as active if unknown."""
        self.partners.setdefault(branch.partner_id, True)
        self.branches[branch.id] = branch
        return branch

    def allocate_request_id(self) -> int:
        request_id = self.next_request_id
        self.next_request_id += 1
        return request_id

    def allocate_event_id(self) -> int:
        event_id = self.next_event_id
        self.next_event_id += 1
        return event_id

    def allocate_assignment_id(self) -> int:
        assignment_id = self.next_assignment_id
        self.next_assignment_id += 1
        return assignment_id

    def snapshot(self) -> _Snapshot:
        """Copy the mutable tables; entities themselves are immutable."""
        return _Snapshot(
            requests=dict(self.requests),
            timeline={key: list(events) for key, events in self.timeline.items()},
            assignments={key: list(rows) for key, rows in self.assignments.items()},
            config=dict(self.config),
            notifications=list(self.notifications),
            next_request_id=self.next_request_id,
            next_event_id=self.next_event_id,
            next_assignment_id=self.next_assignment_id,
        )

    def restore(self, snapshot: _Snapshot) -> None:
        self.requests = snapshot.requests
        self.timeline = snapshot.timeline
        self.assignments = snapshot.assignments
        self.config = snapshot.config
        self.notifications = snapshot.notifications
        self.next_request_id = snapshot.next_request_id
        self.next_event_id = snapshot.next_event_id
        self.next_assignment_id = snapshot.next_assignment_id


_memory_store: Optional[InMemoryStore] = None


def get_memory_store() -> InMemoryStore:
    """Process-wide store shared by API requests and background tasks."""
    global _memory_store
    if _memory_store is None:
        _memory_store = InMemoryStore()
        logger.info("In-memory store created")
    return _memory_store


def reset_memory_store() -> InMemoryStore:
    """Replace the process-wide store with an empty one."""
    global _memory_store
    _memory_store = InMemoryStore()
    return _memory_store
