"""
Dispatch coordinator: assignment, rejection, status updates and close.
"""

from dataclasses import replace
from datetime import datetime
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple, Union

from dispatch_portal.application.interfaces.repositories import (
    AssignmentRepositoryInterface,
    ServiceRequestRepositoryInterface,
)
from dispatch_portal.application.interfaces.services import (
    BranchDirectoryInterface,
    ConfigurationStoreInterface,
    NotifierInterface,
    TransactionServiceInterface,
)
from dispatch_portal.application.services.branch_ranker import BranchRanker, RankedBranch
from dispatch_portal.application.services.request_state_machine import (
    RequestStateMachine,
    TransitionContext,
)
from dispatch_portal.application.services.sla_policy import SlaPolicy
from dispatch_portal.application.services.timeline import Timeline
from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.clock import Clock, utc_now
from dispatch_portal.domain.entities.assignment import Assignment
from dispatch_portal.domain.entities.branch import Branch
from dispatch_portal.domain.entities.service_request import (
    MAX_RATING,
    MIN_RATING,
    ServiceRequest,
)
from dispatch_portal.domain.entities.timeline_event import TimelineEvent
from dispatch_portal.domain.events.request_status_changed import RequestStatusChanged
from dispatch_portal.domain.exceptions.dispatch_error import (
    BranchMismatchError,
    ConfirmationRequiredError,
    ConflictError,
    DispatchError,
    InvalidTransitionError,
    NotFoundError,
)
from dispatch_portal.domain.exceptions.validation_error import (
    FieldLengthError,
    ValidationError,
    ValueOutOfRangeError,
)
from dispatch_portal.domain.value_objects.actor import Actor, ActorRole
from dispatch_portal.domain.value_objects.assignment_response import AssignmentResponse
from dispatch_portal.domain.value_objects.geo_point import GeoPoint
from dispatch_portal.domain.value_objects.request_status import (
    RequestStatus,
    TransitionTrigger,
)
from dispatch_portal.domain.value_objects.sla_status import SlaStatus
from dispatch_portal.infrastructure.monitoring.metrics import (
    record_transition,
    record_transition_failure,
    track_duration,
)

logger = get_logger(__name__)

CLOSE_NOTES = "Request closed after customer verification"

StoredHook = Callable[[ServiceRequest], Awaitable[None]]


class DispatchCoordinator:
    """
    Orchestrates the request lifecycle.

    Every write follows the same shape: read a snapshot, let the state
    machine compute the next snapshot, then inside one transaction store it
    with a version check, append the timeline event, update the assignment
    history and hand the change to the notifier. Two callers racing from
    the same prior state cannot both succeed; the loser gets ConflictError
    and nothing it did is kept.
    """

    def __init__(
        self,
        request_repo: ServiceRequestRepositoryInterface,
        timeline: Timeline,
        branch_directory: BranchDirectoryInterface,
        config_store: ConfigurationStoreInterface,
        notifier: NotifierInterface,
        transaction_service: TransactionServiceInterface,
        assignment_repo: Optional[AssignmentRepositoryInterface] = None,
        sla_policy: Optional[SlaPolicy] = None,
        state_machine: Optional[RequestStateMachine] = None,
        branch_ranker: Optional[BranchRanker] = None,
        clock: Clock = utc_now,
        rejection_reason_min_length: int = 10,
    ):
        self.request_repo = request_repo
        self.timeline = timeline
        self.branch_directory = branch_directory
        self.config_store = config_store
        self.notifier = notifier
        self.transaction_service = transaction_service
        self.assignment_repo = assignment_repo
        self.sla_policy = sla_policy or SlaPolicy()
        self.state_machine = state_machine or RequestStateMachine(
            self.sla_policy, rejection_reason_min_length
        )
        self.branch_ranker = branch_ranker or BranchRanker()
        self.clock = clock
        self.rejection_reason_min_length = rejection_reason_min_length
        self.logger = logger

    # Reads

    async def get_request(self, request_id: int) -> ServiceRequest:
        """Get a request or raise NotFoundError."""
        request = await self.request_repo.get_by_id(request_id)
        if request is None:
            raise NotFoundError("ServiceRequest", request_id)
        return request

    async def get_timeline(self, request_id: int) -> Tuple[TimelineEvent, ...]:
        """Timeline of an existing request, oldest first."""
        await self.get_request(request_id)
        return await self.timeline.list_for(request_id)

    async def get_request_by_number(self, request_number: str) -> ServiceRequest:
        """Get a request by its human-readable number or raise NotFoundError."""
        request = await self.request_repo.get_by_number(request_number.strip())
        if request is None:
            raise NotFoundError("ServiceRequest", request_number)
        return request

    async def list_requests(
        self,
        status: Union[RequestStatus, str] = RequestStatus.UNASSIGNED,
        limit: int = 100,
    ) -> List[ServiceRequest]:
        """
        Requests in one status, most recently submitted first.

        Defaults to the dispatch queue: requests returned to the pool by a
        rejection or an SLA timeout.
        """
        try:
            status = RequestStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown status '{status}'")
        if limit <= 0:
            raise ValidationError("Limit must be positive")
        return await self.request_repo.list_by_status(status, limit)

    async def get_assignments(self, request_id: int) -> List[Assignment]:
        """Assignment history of an existing request, oldest first."""
        await self.get_request(request_id)
        if self.assignment_repo is None:
            return []
        return await self.assignment_repo.list_for(request_id)

    def sla_status(self, request: ServiceRequest, now: Optional[datetime] = None) -> SlaStatus:
        """SLA snapshot of a request; pure function of its deadline and now."""
        return self.sla_policy.status(request, now or self.clock())

    def rank_branches(
        self, customer_lat: float, customer_lng: float, branches: Iterable[Branch]
    ) -> List[RankedBranch]:
        """Rank branches by distance to a customer location."""
        origin = GeoPoint.try_create(customer_lat, customer_lng)
        if origin is None:
            raise ValidationError(
                f"Invalid customer location: lat={customer_lat!r}, lng={customer_lng!r}"
            )
        return self.branch_ranker.rank(origin, branches)

    async def rank_branches_for_request(
        self, request_id: int, partner_id: Optional[int] = None
    ) -> List[RankedBranch]:
        """Rank one partner's (or all active partners') branches for a request."""
        request = await self.get_request(request_id)
        branches = await self.branch_directory.list_branches(partner_id)
        return self.branch_ranker.rank(request.customer.location, branches)

    # Writes

    @track_duration("assign")
    async def assign(
        self,
        request_id: int,
        partner_id: int,
        branch_id: int,
        actor: Optional[Actor] = None,
    ) -> ServiceRequest:
        """
        Assign a request to a partner branch and start the SLA window.

        Reassignment after a rejection is the same operation. The SLA
        timeout is read from configuration once here and the resulting
        deadline is never recomputed for this assignment.

        Raises:
            NotFoundError: request or branch does not exist
            BranchMismatchError: branch belongs to another partner
            InvalidTransitionError: request is not submitted or unassigned
        """
        trigger = TransitionTrigger.ASSIGN
        request = await self.get_request(request_id)

        branch = await self.branch_directory.get_branch(branch_id)
        if branch is None:
            raise NotFoundError("Branch", branch_id)
        if not branch.belongs_to(partner_id):
            record_transition_failure(trigger.value, "branch_mismatch")
            raise BranchMismatchError(branch_id, partner_id, branch.partner_id)
        if not branch.is_active:
            raise ValidationError(f"Branch {branch_id} is not active")

        self._ensure_allowed(request, trigger)

        timeout_minutes = await self.config_store.get_sla_timeout_minutes(partner_id)
        now = self._now(request)
        deadline = self.sla_policy.compute_deadline(now, timeout_minutes)

        updated = self._apply(
            request,
            trigger,
            now,
            TransitionContext(partner_id=partner_id, branch_id=branch_id, sla_deadline=deadline),
        )

        async def open_assignment(stored: ServiceRequest) -> None:
            await self.assignment_repo.open(
                Assignment(
                    request_id=stored.id,
                    partner_id=partner_id,
                    branch_id=branch_id,
                    assigned_at=stored.assigned_at,
                    sla_deadline=stored.sla_deadline,
                    assigned_by=actor.id if actor else None,
                )
            )

        verb = "Reassigned" if request.status == RequestStatus.UNASSIGNED else "Assigned"
        return await self._commit(
            request,
            updated,
            trigger,
            actor,
            notes=f"{verb} to partner {partner_id}, branch {branch.name or branch_id}",
            record_assignment=open_assignment,
        )

    async def assign_nearest(
        self,
        request_id: int,
        partner_id: Optional[int] = None,
        actor: Optional[Actor] = None,
    ) -> ServiceRequest:
        """Assign the request to the nearest rankable branch."""
        ranked = await self.rank_branches_for_request(request_id, partner_id)
        if not ranked:
            raise NotFoundError("Branch", f"near request {request_id}")

        nearest = ranked[0].branch
        self.logger.info(
            "Nearest branch selected",
            request_id=request_id,
            branch_id=nearest.id,
            partner_id=nearest.partner_id,
            distance_km=ranked[0].distance_km,
        )
        return await self.assign(request_id, nearest.partner_id, nearest.id, actor)

    async def accept(
        self, request_id: int, actor: Optional[Actor] = None, notes: Optional[str] = None
    ) -> ServiceRequest:
        """Partner accepts the assignment while the SLA window is open."""
        return await self.update_status(request_id, RequestStatus.CONFIRMED, notes, actor)

    @track_duration("reject")
    async def reject(
        self, request_id: int, reason: str, actor: Optional[Actor] = None
    ) -> ServiceRequest:
        """
        Reject the current assignment and return the request to unassigned.

        Allowed at any time while assigned, before or after SLA expiry. The
        partner, branch, assignment time and deadline are cleared. A partner
        rejection is noted as "Partner rejected: <reason>"; a system actor
        (the SLA sweep) records its reason as is and the assignment as timed
        out.
        """
        trigger = TransitionTrigger.REJECT
        reason = (reason or "").strip()
        if len(reason) < self.rejection_reason_min_length:
            record_transition_failure(trigger.value, "validation")
            raise FieldLengthError("reason", self.rejection_reason_min_length, len(reason))

        request = await self.get_request(request_id)
        now = self._now(request)
        updated = self._apply(request, trigger, now, TransitionContext(reason=reason))

        timed_out = actor is not None and actor.role == ActorRole.SYSTEM
        response = AssignmentResponse.TIMEOUT if timed_out else AssignmentResponse.REJECTED
        notes = reason if timed_out else f"Partner rejected: {reason}"
        return await self._commit(
            request,
            updated,
            trigger,
            actor,
            notes=notes,
            record_assignment=self._answer_assignment(response, reason),
        )

    @track_duration("update_status")
    async def update_status(
        self,
        request_id: int,
        new_status: Union[RequestStatus, str],
        notes: Optional[str] = None,
        actor: Optional[Actor] = None,
    ) -> ServiceRequest:
        """
        Move a request to a partner-reachable status.

        Covers accept, start, complete, and the two reversals
        (in_progress -> confirmed, completed -> in_progress). Reversals take
        optional notes only; no justification is required.

        Raises:
            InvalidTransitionError: target not reachable from the current
                status through a partner-driven trigger
            SlaExpiredError: accept attempted after the deadline
        """
        try:
            target = RequestStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown status '{new_status}'")

        request = await self.get_request(request_id)
        trigger = self.state_machine.trigger_for(request.status, target)
        if trigger is None or not trigger.is_partner_driven():
            attempted = trigger.value if trigger else f"to_{target.value}"
            record_transition_failure(attempted, "invalid_transition")
            raise InvalidTransitionError(request.status, attempted)

        now = self._now(request)
        updated = self._apply(request, trigger, now)
        record_assignment = None
        if trigger == TransitionTrigger.ACCEPT:
            record_assignment = self._answer_assignment(AssignmentResponse.ACCEPTED)
        return await self._commit(
            request, updated, trigger, actor, notes=notes, record_assignment=record_assignment
        )

    @track_duration("close")
    async def close(
        self,
        request_id: int,
        customer_confirmed: bool,
        notes: Optional[str] = None,
        actor: Optional[Actor] = None,
    ) -> ServiceRequest:
        """
        Close a completed request after the customer confirmed the work.

        Without confirmation the close always fails, whatever the status.
        """
        trigger = TransitionTrigger.CLOSE
        if customer_confirmed is not True:
            record_transition_failure(trigger.value, "confirmation_required")
            raise ConfirmationRequiredError(request_id)

        request = await self.get_request(request_id)
        now = self._now(request)
        updated = self._apply(
            request, trigger, now, TransitionContext(customer_confirmed=True)
        )
        return await self._commit(request, updated, trigger, actor, notes=notes or CLOSE_NOTES)

    async def rate(
        self,
        request_id: int,
        rating: int,
        feedback: Optional[str] = None,
        customer_id: Optional[int] = None,
    ) -> ServiceRequest:
        """Record the customer's rating once the work is completed."""
        if isinstance(rating, bool) or not isinstance(rating, int) or not (
            MIN_RATING <= rating <= MAX_RATING
        ):
            raise ValueOutOfRangeError("rating", rating, MIN_RATING, MAX_RATING)

        request = await self.get_request(request_id)
        if customer_id is not None and not request.belongs_to_customer(customer_id):
            raise NotFoundError("ServiceRequest", request_id)
        if not request.status.is_post_completion():
            raise InvalidTransitionError(request.status, "rate")
        if request.is_rated:
            raise ValidationError(f"Request {request_id} has already been rated")

        now = self._now(request)
        updated = replace(
            request,
            rating=rating,
            feedback=(feedback or "").strip() or None,
            rated_at=now,
            updated_at=now,
        )

        async def operation() -> ServiceRequest:
            return await self.request_repo.compare_and_set(updated, request.version)

        stored = await self.transaction_service.execute_in_transaction(operation)
        self.logger.info("Request rated", request_id=request_id, rating=rating)
        return stored

    # Internals

    def _now(self, request: ServiceRequest) -> datetime:
        """Clock read that never goes behind the request's last write."""
        now = self.clock()
        if request.updated_at is not None and now < request.updated_at:
            return request.updated_at
        return now

    def _ensure_allowed(self, request: ServiceRequest, trigger: TransitionTrigger) -> None:
        try:
            self.state_machine.ensure_allowed(request.status, trigger)
        except InvalidTransitionError:
            record_transition_failure(trigger.value, "invalid_transition")
            raise

    def _apply(
        self,
        request: ServiceRequest,
        trigger: TransitionTrigger,
        now: datetime,
        context: Optional[TransitionContext] = None,
    ) -> ServiceRequest:
        try:
            return self.state_machine.apply(request, trigger, now, context)
        except (DispatchError, ValidationError) as e:
            record_transition_failure(trigger.value, type(e).__name__)
            self.logger.warning(
                "Transition refused",
                request_id=request.id,
                trigger=trigger.value,
                current_status=request.status.value,
                error=str(e),
            )
            raise

    async def _commit(
        self,
        current: ServiceRequest,
        updated: ServiceRequest,
        trigger: TransitionTrigger,
        actor: Optional[Actor],
        notes: Optional[str],
        record_assignment: Optional[StoredHook] = None,
    ) -> ServiceRequest:
        actor = actor or Actor.anonymous()

        async def operation() -> ServiceRequest:
            stored = await self.request_repo.compare_and_set(updated, current.version)
            await self.timeline.append(stored.id, stored.status, actor, notes, stored.updated_at)
            if record_assignment is not None and self.assignment_repo is not None:
                await record_assignment(stored)
            await self._notify(current, stored, actor, notes)
            return stored

        try:
            stored = await self.transaction_service.execute_in_transaction(operation)
        except ConflictError:
            record_transition_failure(trigger.value, "conflict")
            self.logger.warning(
                "Concurrent transition lost the version check",
                request_id=current.id,
                trigger=trigger.value,
                expected_version=current.version,
            )
            raise

        record_transition(trigger.value, stored.status.value)
        self.logger.info(
            "Request transitioned",
            request_id=stored.id,
            request_number=stored.request_number,
            trigger=trigger.value,
            from_status=current.status.value,
            to_status=stored.status.value,
            version=stored.version,
            actor_id=actor.id,
            actor_role=actor.role.value if actor.role else None,
        )
        return stored

    def _answer_assignment(
        self, response: AssignmentResponse, reason: Optional[str] = None
    ) -> StoredHook:
        async def answer(stored: ServiceRequest) -> None:
            await self.assignment_repo.record_response(
                stored.id, response, stored.updated_at, reason
            )

        return answer

    async def _notify(
        self,
        previous: ServiceRequest,
        stored: ServiceRequest,
        actor: Actor,
        notes: Optional[str],
    ) -> None:
        event = RequestStatusChanged(
            request_id=stored.id,
            request_number=stored.request_number,
            previous_status=previous.status,
            new_status=stored.status,
            occurred_at=stored.updated_at,
            actor=actor,
            partner_id=stored.partner_id if stored.partner_id is not None else previous.partner_id,
            branch_id=stored.branch_id if stored.branch_id is not None else previous.branch_id,
            notes=notes,
        )
        try:
            await self.notifier.notify(event)
        except Exception as e:
            # Notification is best effort; the transition stands
            self.logger.error(
                "Status change notification failed",
                request_id=stored.id,
                new_status=stored.status.value,
                error=str(e),
            )
