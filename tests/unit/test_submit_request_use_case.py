"""
Unit tests for the submit request use case.
"""

from datetime import datetime, timedelta, timezone

import pytest

from dispatch_portal.application.use_cases.submit_request import (
    SubmitRequestUseCase,
    format_request_number,
)
from dispatch_portal.domain.exceptions.dispatch_error import DuplicateRequestNumberError
from dispatch_portal.domain.exceptions.validation_error import ValidationError
from dispatch_portal.domain.value_objects.actor import ActorRole
from dispatch_portal.domain.value_objects.request_status import RequestStatus
from dispatch_portal.infrastructure.memory import InMemoryServiceRequestRepository

from conftest import CUSTOMER_LAT, CUSTOMER_LNG, T0, make_submit_command


class StaleCountRepository(InMemoryServiceRequestRepository):
    """Reports a zero daily count a fixed number of times, like a concurrent reader would."""

    def __init__(self, store, stale_reads: int):
        super().__init__(store)
        self.stale_reads = stale_reads
        self.count_calls = 0

    async def count_submitted_between(self, start, end):
        self.count_calls += 1
        if self.stale_reads > 0:
            self.stale_reads -= 1
            return 0
        return await super().count_submitted_between(start, end)


class TestFormatRequestNumber:
    """Test request number formatting."""

    def test_format(self):
        day = datetime(2024, 1, 15, tzinfo=timezone.utc)
        assert format_request_number("REQ", day, 1) == "REQ-20240115-0001"
        assert format_request_number("REQ", day, 42) == "REQ-20240115-0042"


class TestSubmitRequestUseCase:
    """Test SubmitRequestUseCase."""

    @pytest.mark.asyncio
    async def test_submit_creates_request_and_timeline(self, storage, clock):
        # Arrange
        use_case = storage.submit_request_use_case(clock)

        # Act
        request = await use_case.execute(make_submit_command())
        events = await storage.timeline.list_for(request.id)

        # Assert
        assert request.id is not None
        assert request.status == RequestStatus.SUBMITTED
        assert request.request_number == "REQ-20240115-0001"
        assert request.submitted_at == T0
        assert request.version == 1
        assert request.customer.location.lat == CUSTOMER_LAT
        assert request.customer.location.lng == CUSTOMER_LNG
        assert request.partner_id is None
        assert len(events) == 1
        assert events[0].status == RequestStatus.SUBMITTED
        assert events[0].actor_role == ActorRole.CUSTOMER
        assert events[0].actor_id == 501
        assert events[0].timestamp == T0

    @pytest.mark.asyncio
    async def test_sequence_per_day(self, storage, clock):
        use_case = storage.submit_request_use_case(clock)

        first = await use_case.execute(make_submit_command())
        second = await use_case.execute(make_submit_command())
        clock.advance(days=1)
        next_day = await use_case.execute(make_submit_command())

        assert first.request_number == "REQ-20240115-0001"
        assert second.request_number == "REQ-20240115-0002"
        assert next_day.request_number == "REQ-20240116-0001"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"customer_lat": 91.0},
            {"customer_lng": -200.0},
            {"customer_lat": float("nan")},
            {"customer_name": "   "},
            {"customer_phone": ""},
            {"customer_address": " "},
        ],
    )
    async def test_invalid_input(self, storage, clock, memory_store, overrides):
        use_case = storage.submit_request_use_case(clock)

        with pytest.raises(ValidationError):
            await use_case.execute(make_submit_command(**overrides))

        assert memory_store.requests == {}

    @pytest.mark.asyncio
    async def test_customer_fields_trimmed(self, storage, clock):
        use_case = storage.submit_request_use_case(clock)

        request = await use_case.execute(
            make_submit_command(customer_name="  Jane Doe  ", customer_phone=" 555-0100 ")
        )

        assert request.customer.name == "Jane Doe"
        assert request.customer.phone == "555-0100"


class TestRequestNumberCollision:
    """Test recovery when another submission takes the same number."""

    def _use_case(self, storage, memory_store, clock, stale_reads, max_number_attempts=5):
        repo = StaleCountRepository(memory_store, stale_reads)
        use_case = SubmitRequestUseCase(
            repo,
            storage.timeline,
            storage.transaction_service,
            clock=clock,
            max_number_attempts=max_number_attempts,
        )
        return use_case, repo

    @pytest.mark.asyncio
    async def test_collision_retried_with_fresh_count(self, storage, memory_store, clock):
        # Arrange
        winner = await storage.submit_request_use_case(clock).execute(make_submit_command())
        use_case, repo = self._use_case(storage, memory_store, clock, stale_reads=1)

        # Act
        request = await use_case.execute(make_submit_command(customer_name="John Roe"))

        # Assert
        assert winner.request_number == "REQ-20240115-0001"
        assert request.request_number == "REQ-20240115-0002"
        assert repo.count_calls == 2
        assert len(memory_store.requests) == 2
        events = await storage.timeline.list_for(request.id)
        assert [event.status for event in events] == [RequestStatus.SUBMITTED]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, storage, memory_store, clock):
        await storage.submit_request_use_case(clock).execute(make_submit_command())
        use_case, repo = self._use_case(
            storage, memory_store, clock, stale_reads=10, max_number_attempts=2
        )

        with pytest.raises(DuplicateRequestNumberError) as exc_info:
            await use_case.execute(make_submit_command(customer_name="John Roe"))

        assert exc_info.value.request_number == "REQ-20240115-0001"
        assert repo.count_calls == 2
        assert len(memory_store.requests) == 1
