"""
In-memory implementations of the repository and collaborator interfaces.
"""

from dataclasses import replace
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, TypeVar

from dispatch_portal.application.interfaces.repositories import (
    AssignmentRepositoryInterface,
    ServiceRequestRepositoryInterface,
    TimelineRepositoryInterface,
)
from dispatch_portal.application.interfaces.services import (
    BranchDirectoryInterface,
    ConfigurationStoreInterface,
    TransactionServiceInterface,
)
from dispatch_portal.application.services.sla_policy import SlaPolicy
from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.entities.assignment import Assignment
from dispatch_portal.domain.entities.branch import Branch
from dispatch_portal.domain.entities.service_request import ServiceRequest
from dispatch_portal.domain.entities.timeline_event import TimelineEvent
from dispatch_portal.domain.exceptions.dispatch_error import (
    ConflictError,
    DuplicateRequestNumberError,
)
from dispatch_portal.domain.value_objects.assignment_response import AssignmentResponse
from dispatch_portal.domain.value_objects.request_status import RequestStatus
from dispatch_portal.infrastructure.memory.store import InMemoryStore

logger = get_logger(__name__)

T = TypeVar("T")


class InMemoryServiceRequestRepository(ServiceRequestRepositoryInterface):
    """Service request repository backed by InMemoryStore."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, request: ServiceRequest) -> ServiceRequest:
        if await self.get_by_number(request.request_number) is not None:
            raise DuplicateRequestNumberError(request.request_number)

        created = replace(request, id=self.store.allocate_request_id())
        self.store.requests[created.id] = created
        logger.info(
            "Service request created",
            request_id=created.id,
            request_number=created.request_number,
        )
        return created

    async def get_by_id(self, request_id: int) -> Optional[ServiceRequest]:
        return self.store.requests.get(request_id)

    async def get_by_number(self, request_number: str) -> Optional[ServiceRequest]:
        for request in self.store.requests.values():
            if request.request_number == request_number:
                return request
        return None

    async def list_by_status(
        self, status: RequestStatus, limit: int = 100
    ) -> List[ServiceRequest]:
        matching = [
            request for request in self.store.requests.values() if request.status == status
        ]
        matching.sort(key=lambda request: (request.submitted_at, request.id), reverse=True)
        return matching[:limit]
    async def compare_and_set(
        self, request: ServiceRequest, expected_version: int
    ) -> ServiceRequest:
        current = self.store.requests.get(request.id)
        if current is None or current.version != expected_version:
            raise ConflictError(request.id, expected_version)

        stored = replace(request, version=expected_version + 1)
        self.store.requests[stored.id] = stored
        return stored

    async def count_submitted_between(self, start: datetime, end: datetime) -> int:
        return sum(
            1 for request in self.store.requests.values() if start <= request.submitted_at < end
        )

    async def find_expired_assignments(
        self, now: datetime, limit: int = 100
    ) -> List[ServiceRequest]:
        expired = [
            request
            for request in self.store.requests.values()
            if request.status == RequestStatus.ASSIGNED
            and request.sla_deadline is not None
            and request.sla_deadline <= now
        ]
        expired.sort(key=lambda request: (request.sla_deadline, request.id))
        return expired[:limit]


class InMemoryTimelineRepository(TimelineRepositoryInterface):
    """Timeline repository backed by InMemoryStore."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def append(self, event: TimelineEvent) -> TimelineEvent:
        stored = replace(event, id=self.store.allocate_event_id())
        self.store.timeline.setdefault(stored.request_id, []).append(stored)
        return stored

    async def list_for(self, request_id: int) -> List[TimelineEvent]:
        events = self.store.timeline.get(request_id, [])
        return sorted(events, key=lambda event: (event.timestamp, event.id))

    async def last_for(self, request_id: int) -> Optional[TimelineEvent]:
        events = await self.list_for(request_id)
        return events[-1] if events else None


class InMemoryAssignmentRepository(AssignmentRepositoryInterface):
    """Assignment history backed by InMemoryStore."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def open(self, assignment: Assignment) -> Assignment:
        rows = self.store.assignments.setdefault(assignment.request_id, [])
        rows[:] = [replace(row, is_active=False) if row.is_active else row for row in rows]

        opened = replace(assignment, id=self.store.allocate_assignment_id(), is_active=True)
        rows.append(opened)
        return opened

    async def record_response(
        self,
        request_id: int,
        response: AssignmentResponse,
        responded_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> Optional[Assignment]:
        rows = self.store.assignments.get(request_id, [])
        for index, row in enumerate(rows):
            if row.is_active and row.response == AssignmentResponse.PENDING:
                answered = replace(
                    row,
                    response=response,
                    responded_at=responded_at,
                    rejection_reason=rejection_reason,
                )
                rows[index] = answered
                return answered
        return None

    async def list_for(self, request_id: int) -> List[Assignment]:
        rows = self.store.assignments.get(request_id, [])
        return sorted(rows, key=lambda row: (row.assigned_at, row.id))

    async def get_active(self, request_id: int) -> Optional[Assignment]:
        for row in self.store.assignments.get(request_id, []):
            if row.is_active:
                return row
        return None


class InMemoryBranchDirectory(BranchDirectoryInterface):
    """Branch directory backed by InMemoryStore."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_branch(self, branch_id: int) -> Optional[Branch]:
        return self.store.branches.get(branch_id)

    async def list_branches(self, partner_id: Optional[int] = None) -> List[Branch]:
        branches = [
            branch
            for branch in self.store.branches.values()
            if branch.is_active
            and self.store.partners.get(branch.partner_id, False)
            and (partner_id is None or branch.partner_id == partner_id)
        ]
        return sorted(branches, key=lambda branch: branch.id)


class InMemoryConfigurationStore(ConfigurationStoreInterface):
    """Configuration store backed by InMemoryStore."""

    def __init__(
        self,
        store: InMemoryStore,
        sla_policy: SlaPolicy,
        sla_timeout_key: str = "sla_timeout_minutes",
    ):
        self.store = store
        self.sla_policy = sla_policy
        self.sla_timeout_key = sla_timeout_key

    async def get_config(self, key: str, partner_id: Optional[int] = None) -> Optional[str]:
        return self.store.config.get((partner_id, key))

    async def set_config(self, key: str, value: str, partner_id: Optional[int] = None) -> None:
        self.store.config[(partner_id, key)] = value
        logger.info("Configuration updated", key=key, value=value, partner_id=partner_id)

    async def get_sla_timeout_minutes(self, partner_id: Optional[int] = None) -> int:
        partner_value = None
        if partner_id is not None:
            partner_value = await self.get_config(self.sla_timeout_key, partner_id)
        global_value = await self.get_config(self.sla_timeout_key)
        return self.sla_policy.resolve_timeout(partner_value, global_value)


class InMemoryTransactionService(TransactionServiceInterface):
    """
    All-or-nothing execution against InMemoryStore.

    Operations run one at a time under the store lock. On any error the
    tables are restored to their state before the operation started.
    """

    def __init__(self, store: InMemoryStore):
        self.store = store
        self.logger = logger

    async def execute_in_transaction(self, operation: Callable[[], Awaitable[T]]) -> T:
        async with self.store.lock:
            snapshot = self.store.snapshot()
            try:
                return await operation()
            except Exception as e:
                self.store.restore(snapshot)
                self.logger.warning("In-memory transaction rolled back", error=str(e))
                raise
