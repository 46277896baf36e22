"""
Repository interfaces for dependency inversion.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

from dispatch_portal.domain.entities.assignment import Assignment
from dispatch_portal.domain.entities.service_request import ServiceRequest
from dispatch_portal.domain.entities.timeline_event import TimelineEvent
from dispatch_portal.domain.value_objects.assignment_response import AssignmentResponse
from dispatch_portal.domain.value_objects.request_status import RequestStatus


class ServiceRequestRepositoryInterface(ABC):
    """Service request repository interface."""

    @abstractmethod
    async def create(self, request: ServiceRequest) -> ServiceRequest:
        """
        Persist a new request and return it with its assigned id.

        Raises DuplicateRequestNumberError when the request number is taken.
        """
        pass

    @abstractmethod
    async def get_by_id(self, request_id: int) -> Optional[ServiceRequest]:
        """Get request by ID."""
        pass

    @abstractmethod
    async def get_by_number(self, request_number: str) -> Optional[ServiceRequest]:
        """Get request by its human-readable number."""
        pass

    @abstractmethod
    async def list_by_status(
        self, status: RequestStatus, limit: int = 100
    ) -> List[ServiceRequest]:
        """List requests in a status, newest submission first."""
        pass

    @abstractmethod
    async def compare_and_set(
        self, request: ServiceRequest, expected_version: int
    ) -> ServiceRequest:
        """
        Store the request only if its stored version equals expected_version.

        The stored version becomes expected_version + 1. Raises ConflictError
        when another writer got there first.
        """
        pass

    @abstractmethod
    async def count_submitted_between(self, start: datetime, end: datetime) -> int:
        """Count requests submitted in [start, end)."""
        pass

    @abstractmethod
    async def find_expired_assignments(
        self, now: datetime, limit: int = 100
    ) -> List[ServiceRequest]:
        """Find requests still assigned whose SLA deadline is before now."""
        pass


class TimelineRepositoryInterface(ABC):
    """Timeline event repository interface."""

    @abstractmethod
    async def append(self, event: TimelineEvent) -> TimelineEvent:
        """Store a new event and return it with its assigned id."""
        pass

    @abstractmethod
    async def list_for(self, request_id: int) -> Sequence[TimelineEvent]:
        """Get all events for a request ordered by (timestamp, id)."""
        pass

    @abstractmethod
    async def last_for(self, request_id: int) -> Optional[TimelineEvent]:
        """Get the most recent event for a request."""
        pass


class AssignmentRepositoryInterface(ABC):
    """Assignment history repository interface."""

    @abstractmethod
    async def open(self, assignment: Assignment) -> Assignment:
        """Deactivate the request's earlier assignments and store a new active one."""
        pass

    @abstractmethod
    async def record_response(
        self,
        request_id: int,
        response: AssignmentResponse,
        responded_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> Optional[Assignment]:
        """
        Close the request's pending active assignment with a response.

        Returns None when there is no pending active assignment.
        """
        pass

    @abstractmethod
    async def list_for(self, request_id: int) -> List[Assignment]:
        """All assignments of a request, oldest first."""
        pass

    @abstractmethod
    async def get_active(self, request_id: int) -> Optional[Assignment]:
        """The request's current assignment, if any."""
        pass
