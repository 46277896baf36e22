"""
Request lifecycle state machine.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from dispatch_portal.application.services.sla_policy import SlaPolicy
from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.entities.service_request import ServiceRequest
from dispatch_portal.domain.exceptions.dispatch_error import (
    ConfirmationRequiredError,
    InvalidTransitionError,
    SlaExpiredError,
)
from dispatch_portal.domain.exceptions.validation_error import (
    FieldLengthError,
    RequiredFieldError,
)
from dispatch_portal.domain.value_objects.request_status import (
    RequestStatus,
    TransitionTrigger,
)

logger = get_logger(__name__)

S = RequestStatus
T = TransitionTrigger

TRANSITIONS: Dict[Tuple[RequestStatus, TransitionTrigger], RequestStatus] = {
    (S.SUBMITTED, T.ASSIGN): S.ASSIGNED,
    (S.UNASSIGNED, T.ASSIGN): S.ASSIGNED,
    (S.ASSIGNED, T.ACCEPT): S.CONFIRMED,
    (S.ASSIGNED, T.REJECT): S.UNASSIGNED,
    (S.CONFIRMED, T.START): S.IN_PROGRESS,
    (S.IN_PROGRESS, T.COMPLETE): S.COMPLETED,
    (S.IN_PROGRESS, T.REVERT_TO_CONFIRMED): S.CONFIRMED,
    (S.COMPLETED, T.REOPEN): S.IN_PROGRESS,
    (S.COMPLETED, T.CLOSE): S.CLOSED,
}

# Field stamped the first time a status is reached
STATUS_TIMESTAMP_FIELDS: Dict[RequestStatus, str] = {
    S.CONFIRMED: "confirmed_at",
    S.IN_PROGRESS: "in_progress_at",
    S.COMPLETED: "completed_at",
    S.CLOSED: "closed_at",
}


def _validate_transition_table() -> None:
    """Fail at import time if the transition table is inconsistent."""
    sources = {status for status, _ in TRANSITIONS}
    targets = set(TRANSITIONS.values())

    if S.SUBMITTED in targets:
        raise RuntimeError("No transition may lead back to 'submitted'")

    for status in RequestStatus:
        if status.is_terminal() and status in sources:
            raise RuntimeError(f"Terminal status '{status.value}' has outgoing transitions")
        if not status.is_terminal() and status not in sources:
            raise RuntimeError(f"Status '{status.value}' has no outgoing transitions")
        if status not in targets and not status.is_initial() and status != S.REJECTED:
            raise RuntimeError(f"Status '{status.value}' is unreachable")

    seen = set()
    for (source, _), target in TRANSITIONS.items():
        if (source, target) in seen:
            raise RuntimeError(
                f"More than one trigger leads from '{source.value}' to '{target.value}'"
            )
        seen.add((source, target))


_validate_transition_table()


@dataclass(frozen=True)
class TransitionContext:
    """Inputs some triggers need besides the request itself."""

    partner_id: Optional[int] = None
    branch_id: Optional[int] = None
    sla_deadline: Optional[datetime] = None
    reason: Optional[str] = None
    customer_confirmed: bool = False


class RequestStateMachine:
    """Authoritative status graph, guards, and transition application."""

    def __init__(self, sla_policy: SlaPolicy, rejection_reason_min_length: int = 10):
        self.sla_policy = sla_policy
        self.rejection_reason_min_length = rejection_reason_min_length

    @staticmethod
    def target_for(
        status: RequestStatus, trigger: TransitionTrigger
    ) -> Optional[RequestStatus]:
        """Target status for (status, trigger), or None if the pair is illegal."""
        return TRANSITIONS.get((status, trigger))

    @staticmethod
    def allowed_triggers(status: RequestStatus) -> List[TransitionTrigger]:
        """Triggers legal from a status, in declaration order."""
        return [trigger for (source, trigger) in TRANSITIONS if source == status]

    @staticmethod
    def trigger_for(
        current: RequestStatus, target: RequestStatus
    ) -> Optional[TransitionTrigger]:
        """Trigger that moves current to target, or None if there is none."""
        for (source, trigger), destination in TRANSITIONS.items():
            if source == current and destination == target:
                return trigger
        return None

    def ensure_allowed(
        self, status: RequestStatus, trigger: TransitionTrigger
    ) -> RequestStatus:
        """Return the target status or raise InvalidTransitionError."""
        target = self.target_for(status, trigger)
        if target is None:
            raise InvalidTransitionError(status, trigger)
        return target

    def apply(
        self,
        request: ServiceRequest,
        trigger: TransitionTrigger,
        now: datetime,
        context: Optional[TransitionContext] = None,
    ) -> ServiceRequest:
        """
        Apply a trigger to a request snapshot.

        Returns a new snapshot with the target status, stamped timestamps,
        and trigger side effects. The input snapshot is not modified and
        nothing is persisted here.

        Raises:
            InvalidTransitionError: trigger not legal from the current status
            SlaExpiredError: accept attempted after the SLA deadline
            ConfirmationRequiredError: close without customer confirmation
            ValidationError: missing assignment data or short rejection reason
        """
        context = context or TransitionContext()
        target = self.ensure_allowed(request.status, trigger)

        changes = {"status": target, "updated_at": now}

        if trigger == T.ASSIGN:
            changes.update(self._assignment_changes(context, now))
        elif trigger == T.ACCEPT:
            self._guard_sla(request, trigger, now)
        elif trigger == T.REJECT:
            self._guard_reason(context.reason)
            changes.update(
                partner_id=None,
                branch_id=None,
                assigned_at=None,
                sla_deadline=None,
                rejected_at=request.rejected_at or now,
            )
        elif trigger == T.CLOSE and not context.customer_confirmed:
            raise ConfirmationRequiredError(request.id)

        timestamp_field = STATUS_TIMESTAMP_FIELDS.get(target)
        if timestamp_field and getattr(request, timestamp_field) is None:
            changes[timestamp_field] = now

        logger.debug(
            "Transition applied",
            request_id=request.id,
            trigger=trigger.value,
            from_status=request.status.value,
            to_status=target.value,
        )

        return replace(request, **changes)

    def _assignment_changes(self, context: TransitionContext, now: datetime) -> dict:
        if context.partner_id is None:
            raise RequiredFieldError("partner_id")
        if context.branch_id is None:
            raise RequiredFieldError("branch_id")
        if context.sla_deadline is None:
            raise RequiredFieldError("sla_deadline")

        return {
            "partner_id": context.partner_id,
            "branch_id": context.branch_id,
            "assigned_at": now,
            "sla_deadline": context.sla_deadline,
        }

    def _guard_sla(
        self, request: ServiceRequest, trigger: TransitionTrigger, now: datetime
    ) -> None:
        deadline = request.sla_deadline
        if deadline is not None and self.sla_policy.is_expired(deadline, now):
            raise SlaExpiredError(request.status, trigger, deadline)

    def _guard_reason(self, reason: Optional[str]) -> None:
        stripped = (reason or "").strip()
        if len(stripped) < self.rejection_reason_min_length:
            raise FieldLengthError("reason", self.rejection_reason_min_length, len(stripped))
