"""
Unit tests for the dispatch coordinator on the in-memory backend.
"""

import asyncio
from dataclasses import replace
from datetime import timedelta

import pytest

from dispatch_portal.application.interfaces.services import NotifierInterface
from dispatch_portal.domain.exceptions.dispatch_error import (
    BranchMismatchError,
    ConfirmationRequiredError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    SlaExpiredError,
)
from dispatch_portal.domain.exceptions.validation_error import (
    FieldLengthError,
    ValidationError,
    ValueOutOfRangeError,
)
from dispatch_portal.domain.value_objects.actor import Actor, ActorRole
from dispatch_portal.domain.value_objects.assignment_response import AssignmentResponse
from dispatch_portal.domain.value_objects.request_status import RequestStatus
from dispatch_portal.infrastructure.memory import InMemoryServiceRequestRepository

from conftest import (
    BROOKLYN,
    CLOSED_BRANCH,
    JERSEY_CITY,
    MIDTOWN,
    NO_LOCATION,
    T0,
    make_submit_command,
)

PARTNER = Actor(id=10, role=ActorRole.PARTNER)
ADMIN = Actor(id=1, role=ActorRole.ADMIN)


class FailingNotifier(NotifierInterface):
    """Notifier whose delivery always fails."""

    async def notify(self, event):
        raise RuntimeError("notification service unavailable")


class YieldingRequestRepository(InMemoryServiceRequestRepository):
    """Yields to the event loop after every read so callers can interleave."""

    async def get_by_id(self, request_id):
        request = await super().get_by_id(request_id)
        await asyncio.sleep(0)
        return request


async def drive_to_completed(coordinator, request_id, clock):
    """Assign, accept, start and complete a request one minute apart."""
    await coordinator.assign(request_id, MIDTOWN.partner_id, MIDTOWN.id, ADMIN)
    clock.advance(minutes=1)
    await coordinator.accept(request_id, PARTNER)
    clock.advance(minutes=1)
    await coordinator.update_status(request_id, RequestStatus.IN_PROGRESS, None, PARTNER)
    clock.advance(minutes=1)
    return await coordinator.update_status(
        request_id, RequestStatus.COMPLETED, "Work done", PARTNER
    )


class TestLifecycle:
    """Test the full request lifecycle."""

    @pytest.mark.asyncio
    async def test_happy_path_records_every_transition(
        self, coordinator, submitted_request, clock, memory_store
    ):
        # Act
        await drive_to_completed(coordinator, submitted_request.id, clock)
        clock.advance(minutes=1)
        closed = await coordinator.close(submitted_request.id, True, actor=ADMIN)
        events = await coordinator.get_timeline(submitted_request.id)

        # Assert
        assert closed.status == RequestStatus.CLOSED
        assert closed.version == 6
        assert closed.closed_at == T0 + timedelta(minutes=4)
        assert [event.status for event in events] == [
            RequestStatus.SUBMITTED,
            RequestStatus.ASSIGNED,
            RequestStatus.CONFIRMED,
            RequestStatus.IN_PROGRESS,
            RequestStatus.COMPLETED,
            RequestStatus.CLOSED,
        ]
        timestamps = [event.timestamp for event in events]
        assert timestamps == sorted(timestamps)
        assert events[-1].notes == "Request closed after customer verification"
        assert events[-1].actor_role == ActorRole.ADMIN
        assert len(memory_store.notifications) == 5

    @pytest.mark.asyncio
    async def test_each_transition_appends_one_event(
        self, coordinator, submitted_request, clock
    ):
        before = await coordinator.get_timeline(submitted_request.id)

        await coordinator.assign(submitted_request.id, MIDTOWN.partner_id, MIDTOWN.id)

        after = await coordinator.get_timeline(submitted_request.id)
        assert len(after) == len(before) + 1
        assert after[-1].status == RequestStatus.ASSIGNED
        assert after[-1].notes == "Assigned to partner 10, branch Midtown"

    @pytest.mark.asyncio
    async def test_notification_payload(self, coordinator, submitted_request, memory_store):
        await coordinator.assign(submitted_request.id, MIDTOWN.partner_id, MIDTOWN.id, ADMIN)

        event = memory_store.notifications[-1]
        assert event.previous_status == RequestStatus.SUBMITTED
        assert event.new_status == RequestStatus.ASSIGNED
        assert event.partner_id == MIDTOWN.partner_id
        assert event.to_payload()["actor_role"] == "admin"

    @pytest.mark.asyncio
    async def test_clock_never_runs_backwards(self, coordinator, assigned_request, clock):
        """A clock read behind the last write is clamped to it."""
        clock.set(T0 - timedelta(minutes=5))

        confirmed = await coordinator.accept(assigned_request.id, PARTNER)
        events = await coordinator.get_timeline(assigned_request.id)

        assert confirmed.confirmed_at == assigned_request.updated_at
        assert events[-1].timestamp >= events[-2].timestamp

    @pytest.mark.asyncio
    async def test_missing_request(self, coordinator):
        with pytest.raises(NotFoundError):
            await coordinator.get_request(999)
        with pytest.raises(NotFoundError):
            await coordinator.get_timeline(999)


class TestAssign:
    """Test assignment and SLA deadline stamping."""

    @pytest.mark.asyncio
    async def test_assign_uses_default_timeout(self, coordinator, submitted_request, clock):
        clock.advance(minutes=1)

        request = await coordinator.assign(submitted_request.id, MIDTOWN.partner_id, MIDTOWN.id)

        assert request.status == RequestStatus.ASSIGNED
        assert request.assigned_at == T0 + timedelta(minutes=1)
        assert request.sla_deadline == T0 + timedelta(minutes=16)
        assert request.version == submitted_request.version + 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "configured, expected_minutes",
        [("30", 30), ("abc", 15), ("0", 15), ("120", 15)],
    )
    async def test_assign_reads_configured_timeout(
        self, coordinator, submitted_request, memory_store, configured, expected_minutes
    ):
        memory_store.config[(None, "sla_timeout_minutes")] = configured

        request = await coordinator.assign(submitted_request.id, MIDTOWN.partner_id, MIDTOWN.id)

        assert request.sla_deadline == T0 + timedelta(minutes=expected_minutes)

    @pytest.mark.asyncio
    async def test_config_change_does_not_move_existing_deadline(
        self, coordinator, assigned_request, memory_store
    ):
        memory_store.config[(None, "sla_timeout_minutes")] = "45"

        request = await coordinator.get_request(assigned_request.id)

        assert request.sla_deadline == assigned_request.sla_deadline

    @pytest.mark.asyncio
    async def test_partner_timeout_overrides_global(
        self, coordinator, submitted_request, memory_store
    ):
        memory_store.config[(None, "sla_timeout_minutes")] = "40"
        memory_store.config[(MIDTOWN.partner_id, "sla_timeout_minutes")] = "25"

        midtown = await coordinator.assign(submitted_request.id, MIDTOWN.partner_id, MIDTOWN.id)

        assert midtown.sla_deadline == T0 + timedelta(minutes=25)

    @pytest.mark.asyncio
    async def test_unusable_partner_timeout_falls_back_to_global(
        self, coordinator, submitted_request, memory_store
    ):
        memory_store.config[(None, "sla_timeout_minutes")] = "40"
        memory_store.config[(MIDTOWN.partner_id, "sla_timeout_minutes")] = "soon"

        request = await coordinator.assign(submitted_request.id, MIDTOWN.partner_id, MIDTOWN.id)

        assert request.sla_deadline == T0 + timedelta(minutes=40)

    @pytest.mark.asyncio
    async def test_other_partner_keeps_global_timeout(
        self, coordinator, submitted_request, memory_store
    ):
        memory_store.config[(None, "sla_timeout_minutes")] = "40"
        memory_store.config[(MIDTOWN.partner_id, "sla_timeout_minutes")] = "25"

        request = await coordinator.assign(
            submitted_request.id, JERSEY_CITY.partner_id, JERSEY_CITY.id
        )

        assert request.sla_deadline == T0 + timedelta(minutes=40)

    @pytest.mark.asyncio
    async def test_branch_of_other_partner(self, coordinator, submitted_request):
        with pytest.raises(BranchMismatchError) as exc_info:
            await coordinator.assign(submitted_request.id, JERSEY_CITY.partner_id, MIDTOWN.id)

        assert exc_info.value.owner_partner_id == MIDTOWN.partner_id
        request = await coordinator.get_request(submitted_request.id)
        assert request.status == RequestStatus.SUBMITTED
        assert len(await coordinator.get_timeline(submitted_request.id)) == 1

    @pytest.mark.asyncio
    async def test_unknown_branch(self, coordinator, submitted_request):
        with pytest.raises(NotFoundError):
            await coordinator.assign(submitted_request.id, 10, 999)

    @pytest.mark.asyncio
    async def test_inactive_branch(self, coordinator, submitted_request):
        with pytest.raises(ValidationError):
            await coordinator.assign(
                submitted_request.id, CLOSED_BRANCH.partner_id, CLOSED_BRANCH.id
            )

    @pytest.mark.asyncio
    async def test_assign_twice_fails(self, coordinator, assigned_request):
        with pytest.raises(InvalidTransitionError):
            await coordinator.assign(assigned_request.id, BROOKLYN.partner_id, BROOKLYN.id)

    @pytest.mark.asyncio
    async def test_reassign_after_rejection(self, coordinator, assigned_request, clock):
        clock.advance(minutes=3)
        await coordinator.reject(assigned_request.id, "No technician available today")
        clock.advance(minutes=2)

        request = await coordinator.assign(
            assigned_request.id, JERSEY_CITY.partner_id, JERSEY_CITY.id
        )

        assert request.status == RequestStatus.ASSIGNED
        assert request.partner_id == JERSEY_CITY.partner_id
        assert request.sla_deadline == T0 + timedelta(minutes=5 + 15)
        events = await coordinator.get_timeline(assigned_request.id)
        assert events[-1].notes == "Reassigned to partner 20, branch Jersey City"


class TestAssignNearest:
    """Test ranking-driven assignment."""

    @pytest.mark.asyncio
    async def test_picks_nearest_across_partners(self, coordinator, submitted_request):
        request = await coordinator.assign_nearest(submitted_request.id)

        assert request.branch_id == MIDTOWN.id
        assert request.partner_id == MIDTOWN.partner_id

    @pytest.mark.asyncio
    async def test_limited_to_one_partner(self, coordinator, submitted_request):
        request = await coordinator.assign_nearest(submitted_request.id, JERSEY_CITY.partner_id)

        assert request.branch_id == JERSEY_CITY.id

    @pytest.mark.asyncio
    async def test_rank_for_request_skips_unusable_branches(
        self, coordinator, submitted_request
    ):
        ranked = await coordinator.rank_branches_for_request(submitted_request.id)

        ids = [item.branch.id for item in ranked]
        assert ids == [MIDTOWN.id, JERSEY_CITY.id, BROOKLYN.id]
        assert NO_LOCATION.id not in ids
        assert CLOSED_BRANCH.id not in ids

    @pytest.mark.asyncio
    async def test_no_rankable_branch(self, coordinator, submitted_request, memory_store):
        memory_store.branches.pop(JERSEY_CITY.id)

        with pytest.raises(NotFoundError):
            await coordinator.assign_nearest(submitted_request.id, JERSEY_CITY.partner_id)

    def test_rank_branches_invalid_origin(self, coordinator):
        with pytest.raises(ValidationError):
            coordinator.rank_branches(95.0, 0.0, [MIDTOWN])


class TestSlaEnforcement:
    """Test the accept window."""

    @pytest.mark.asyncio
    async def test_accept_after_expiry_fails_but_reject_succeeds(
        self, coordinator, assigned_request, clock
    ):
        # Arrange
        clock.advance(minutes=16)

        # Act / Assert
        with pytest.raises(SlaExpiredError):
            await coordinator.accept(assigned_request.id, PARTNER)

        still_assigned = await coordinator.get_request(assigned_request.id)
        assert still_assigned.status == RequestStatus.ASSIGNED
        assert still_assigned.version == assigned_request.version

        rejected = await coordinator.reject(
            assigned_request.id, "Missed the window, cannot take it", PARTNER
        )
        assert rejected.status == RequestStatus.UNASSIGNED
        assert rejected.sla_deadline is None
        assert rejected.partner_id is None
        assert rejected.branch_id is None
        assert rejected.rejected_at == T0 + timedelta(minutes=16)

    @pytest.mark.asyncio
    async def test_accept_at_deadline_fails(self, coordinator, assigned_request, clock):
        clock.set(assigned_request.sla_deadline)

        with pytest.raises(SlaExpiredError):
            await coordinator.accept(assigned_request.id, PARTNER)

    @pytest.mark.asyncio
    async def test_accept_just_before_deadline(self, coordinator, assigned_request, clock):
        clock.set(assigned_request.sla_deadline - timedelta(seconds=1))

        request = await coordinator.accept(assigned_request.id, PARTNER)

        assert request.status == RequestStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_sla_status(self, coordinator, assigned_request, clock):
        clock.advance(minutes=5, seconds=30)

        status = coordinator.sla_status(assigned_request)

        assert status.deadline == T0 + timedelta(minutes=15)
        assert status.remaining_minutes == 10
        assert status.expired is False
        assert coordinator.sla_status(assigned_request, T0 + timedelta(hours=1)).expired


class TestReject:
    """Test rejection."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reason", ["", "too short", "   tiny      "])
    async def test_short_reason(self, coordinator, assigned_request, reason):
        with pytest.raises(FieldLengthError):
            await coordinator.reject(assigned_request.id, reason, PARTNER)

        request = await coordinator.get_request(assigned_request.id)
        assert request.status == RequestStatus.ASSIGNED

    @pytest.mark.asyncio
    async def test_reason_recorded_as_note(self, coordinator, assigned_request):
        await coordinator.reject(assigned_request.id, "  Fully booked this week  ", PARTNER)

        events = await coordinator.get_timeline(assigned_request.id)
        assert events[-1].status == RequestStatus.UNASSIGNED
        assert events[-1].notes == "Partner rejected: Fully booked this week"

    @pytest.mark.asyncio
    async def test_system_timeout_keeps_reason_verbatim(self, coordinator, assigned_request):
        system = Actor(id=0, role=ActorRole.SYSTEM)

        await coordinator.reject(
            assigned_request.id, "SLA timeout - no partner response within 15 minutes", system
        )

        events = await coordinator.get_timeline(assigned_request.id)
        assert events[-1].notes == "SLA timeout - no partner response within 15 minutes"
        history = await coordinator.get_assignments(assigned_request.id)
        assert history[-1].response == AssignmentResponse.TIMEOUT

    @pytest.mark.asyncio
    async def test_reject_unassigned_request(self, coordinator, submitted_request):
        with pytest.raises(InvalidTransitionError):
            await coordinator.reject(submitted_request.id, "Not our service area at all")


class TestUpdateStatus:
    """Test partner-driven status updates."""

    @pytest.mark.asyncio
    async def test_skipping_statuses_fails(self, coordinator, assigned_request):
        with pytest.raises(InvalidTransitionError) as exc_info:
            await coordinator.update_status(assigned_request.id, "completed")

        assert exc_info.value.trigger == "to_completed"

    @pytest.mark.asyncio
    async def test_unknown_status(self, coordinator, assigned_request):
        with pytest.raises(ValidationError):
            await coordinator.update_status(assigned_request.id, "bogus")

    @pytest.mark.asyncio
    async def test_close_not_reachable_by_status_update(
        self, coordinator, submitted_request, clock
    ):
        await drive_to_completed(coordinator, submitted_request.id, clock)

        with pytest.raises(InvalidTransitionError):
            await coordinator.update_status(submitted_request.id, RequestStatus.CLOSED)

    @pytest.mark.asyncio
    async def test_assign_not_reachable_by_status_update(self, coordinator, submitted_request):
        with pytest.raises(InvalidTransitionError):
            await coordinator.update_status(submitted_request.id, RequestStatus.ASSIGNED)

    @pytest.mark.asyncio
    async def test_reversals_need_no_reason(self, coordinator, submitted_request, clock):
        # Arrange
        completed = await drive_to_completed(coordinator, submitted_request.id, clock)

        # Act
        clock.advance(minutes=1)
        reopened = await coordinator.update_status(
            submitted_request.id, RequestStatus.IN_PROGRESS, None, PARTNER
        )
        clock.advance(minutes=1)
        reverted = await coordinator.update_status(
            submitted_request.id, RequestStatus.CONFIRMED, None, PARTNER
        )

        # Assert
        assert reopened.status == RequestStatus.IN_PROGRESS
        assert reopened.completed_at == completed.completed_at
        assert reverted.status == RequestStatus.CONFIRMED
        assert reverted.confirmed_at == T0 + timedelta(minutes=1)


class TestClose:
    """Test admin close."""

    @pytest.mark.asyncio
    async def test_close_without_confirmation(self, coordinator, submitted_request, clock):
        await drive_to_completed(coordinator, submitted_request.id, clock)
        before = await coordinator.get_timeline(submitted_request.id)

        with pytest.raises(ConfirmationRequiredError):
            await coordinator.close(submitted_request.id, False, actor=ADMIN)

        request = await coordinator.get_request(submitted_request.id)
        assert request.status == RequestStatus.COMPLETED
        assert await coordinator.get_timeline(submitted_request.id) == before

    @pytest.mark.asyncio
    async def test_close_before_completion(self, coordinator, assigned_request):
        with pytest.raises(InvalidTransitionError):
            await coordinator.close(assigned_request.id, True, actor=ADMIN)

    @pytest.mark.asyncio
    async def test_close_is_terminal(self, coordinator, submitted_request, clock):
        await drive_to_completed(coordinator, submitted_request.id, clock)
        await coordinator.close(submitted_request.id, True, "Customer happy", ADMIN)

        with pytest.raises(InvalidTransitionError):
            await coordinator.update_status(submitted_request.id, RequestStatus.IN_PROGRESS)

        events = await coordinator.get_timeline(submitted_request.id)
        assert events[-1].notes == "Customer happy"


class TestRate:
    """Test customer rating."""

    @pytest.mark.asyncio
    async def test_rate_completed_request(self, coordinator, submitted_request, clock):
        await drive_to_completed(coordinator, submitted_request.id, clock)
        events_before = await coordinator.get_timeline(submitted_request.id)

        rated = await coordinator.rate(submitted_request.id, 5, " Great work ", 501)

        assert rated.rating == 5
        assert rated.feedback == "Great work"
        assert rated.rated_at == clock()
        assert rated.status == RequestStatus.COMPLETED
        assert await coordinator.get_timeline(submitted_request.id) == events_before

    @pytest.mark.asyncio
    async def test_rate_only_once(self, coordinator, submitted_request, clock):
        await drive_to_completed(coordinator, submitted_request.id, clock)
        await coordinator.rate(submitted_request.id, 4)

        with pytest.raises(ValidationError):
            await coordinator.rate(submitted_request.id, 5)

    @pytest.mark.asyncio
    async def test_rate_before_completion(self, coordinator, assigned_request):
        with pytest.raises(InvalidTransitionError):
            await coordinator.rate(assigned_request.id, 5)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rating", [0, 6, True])
    async def test_rating_out_of_range(self, coordinator, submitted_request, rating):
        with pytest.raises(ValueOutOfRangeError):
            await coordinator.rate(submitted_request.id, rating)

    @pytest.mark.asyncio
    async def test_other_customer_cannot_rate(self, coordinator, submitted_request, clock):
        await drive_to_completed(coordinator, submitted_request.id, clock)

        with pytest.raises(NotFoundError):
            await coordinator.rate(submitted_request.id, 5, customer_id=999)


class TestAssignmentHistory:
    """Test the per-request assignment history."""

    @pytest.mark.asyncio
    async def test_reject_then_reassign_then_accept(
        self, coordinator, submitted_request, clock
    ):
        # Arrange
        await coordinator.assign(submitted_request.id, MIDTOWN.partner_id, MIDTOWN.id, ADMIN)
        clock.advance(minutes=2)
        await coordinator.reject(submitted_request.id, "No technician available today", PARTNER)
        clock.advance(minutes=1)
        await coordinator.assign(
            submitted_request.id, JERSEY_CITY.partner_id, JERSEY_CITY.id, ADMIN
        )
        clock.advance(minutes=1)

        # Act
        await coordinator.accept(submitted_request.id, Actor(id=20, role=ActorRole.PARTNER))
        history = await coordinator.get_assignments(submitted_request.id)

        # Assert
        assert [row.partner_id for row in history] == [MIDTOWN.partner_id, JERSEY_CITY.partner_id]
        assert [row.response for row in history] == [
            AssignmentResponse.REJECTED,
            AssignmentResponse.ACCEPTED,
        ]
        assert [row.is_active for row in history] == [False, True]
        assert history[0].rejection_reason == "No technician available today"
        assert history[0].responded_at == T0 + timedelta(minutes=2)
        assert history[0].assigned_by == ADMIN.id
        assert history[1].sla_deadline == T0 + timedelta(minutes=3 + 15)
        assert history[1].responded_at == T0 + timedelta(minutes=4)

    @pytest.mark.asyncio
    async def test_failed_assign_leaves_no_history(self, coordinator, submitted_request):
        with pytest.raises(BranchMismatchError):
            await coordinator.assign(submitted_request.id, JERSEY_CITY.partner_id, MIDTOWN.id)

        assert await coordinator.get_assignments(submitted_request.id) == []

    @pytest.mark.asyncio
    async def test_history_of_missing_request(self, coordinator):
        with pytest.raises(NotFoundError):
            await coordinator.get_assignments(999)


class TestDispatchQueue:
    """Test listing and lookup reads."""

    @pytest.mark.asyncio
    async def test_rejected_requests_return_to_queue(self, storage, coordinator, clock):
        # Arrange
        use_case = storage.submit_request_use_case(clock)
        first = await use_case.execute(make_submit_command())
        clock.advance(minutes=1)
        second = await use_case.execute(make_submit_command(customer_name="John Roe"))
        clock.advance(minutes=1)
        third = await use_case.execute(make_submit_command(customer_name="Jim Poe"))
        for request in (first, second, third):
            await coordinator.assign(request.id, MIDTOWN.partner_id, MIDTOWN.id)
        await coordinator.reject(first.id, "No technician available today", PARTNER)
        await coordinator.reject(second.id, "No technician available today", PARTNER)

        # Act
        queue = await coordinator.list_requests()
        limited = await coordinator.list_requests(RequestStatus.UNASSIGNED, limit=1)
        assigned = await coordinator.list_requests("assigned")

        # Assert
        assert [request.id for request in queue] == [second.id, first.id]
        assert [request.id for request in limited] == [second.id]
        assert [request.id for request in assigned] == [third.id]

    @pytest.mark.asyncio
    async def test_unknown_status_filter(self, coordinator):
        with pytest.raises(ValidationError):
            await coordinator.list_requests("lost")

    @pytest.mark.asyncio
    async def test_non_positive_limit(self, coordinator):
        with pytest.raises(ValidationError):
            await coordinator.list_requests(limit=0)

    @pytest.mark.asyncio
    async def test_get_by_number(self, coordinator, submitted_request):
        found = await coordinator.get_request_by_number(
            f" {submitted_request.request_number} "
        )

        assert found.id == submitted_request.id

    @pytest.mark.asyncio
    async def test_unknown_number(self, coordinator):
        with pytest.raises(NotFoundError):
            await coordinator.get_request_by_number("REQ-20240115-9999")


class TestConcurrency:
    """Test version-checked writes."""

    @pytest.mark.asyncio
    async def test_accept_and_reject_race(self, storage, memory_store, clock, assigned_request):
        # Arrange
        racing_storage = replace(storage, request_repo=YieldingRequestRepository(memory_store))
        first = racing_storage.coordinator(clock)
        second = racing_storage.coordinator(clock)

        # Act
        results = await asyncio.gather(
            first.accept(assigned_request.id, PARTNER),
            second.reject(assigned_request.id, "Changed our mind about it", PARTNER),
            return_exceptions=True,
        )

        # Assert
        conflicts = [result for result in results if isinstance(result, ConflictError)]
        winners = [result for result in results if not isinstance(result, Exception)]
        assert len(conflicts) == 1
        assert len(winners) == 1

        stored = memory_store.requests[assigned_request.id]
        assert stored.version == assigned_request.version + 1
        assert stored.status == winners[0].status

        events = await first.get_timeline(assigned_request.id)
        assert len(events) == 3

    @pytest.mark.asyncio
    async def test_stale_snapshot_rejected(self, storage, assigned_request):
        stale = replace(assigned_request, status=RequestStatus.CONFIRMED)
        await storage.request_repo.compare_and_set(
            replace(assigned_request, status=RequestStatus.CONFIRMED),
            assigned_request.version,
        )

        with pytest.raises(ConflictError):
            await storage.request_repo.compare_and_set(stale, assigned_request.version)


class TestNotificationFailure:
    """Test best-effort notification."""

    @pytest.mark.asyncio
    async def test_transition_survives_failed_notification(
        self, storage, clock, submitted_request
    ):
        coordinator = replace(storage, notifier=FailingNotifier()).coordinator(clock)

        request = await coordinator.assign(submitted_request.id, MIDTOWN.partner_id, MIDTOWN.id)

        assert request.status == RequestStatus.ASSIGNED
        events = await coordinator.get_timeline(submitted_request.id)
        assert events[-1].status == RequestStatus.ASSIGNED


class TestSubmitThenDispatchIsolation:
    """Independent requests do not interfere."""

    @pytest.mark.asyncio
    async def test_two_requests(self, storage, coordinator, clock):
        use_case = storage.submit_request_use_case(clock)
        first = await use_case.execute(make_submit_command())
        second = await use_case.execute(make_submit_command(customer_name="John Roe"))

        await coordinator.assign(first.id, MIDTOWN.partner_id, MIDTOWN.id)

        untouched = await coordinator.get_request(second.id)
        assert untouched.status == RequestStatus.SUBMITTED
        assert untouched.version == 1
