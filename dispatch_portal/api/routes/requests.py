"""Service request lifecycle endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Query, status

from dispatch_portal.api.dependencies import (
    ActorDep,
    DispatchCoordinatorDep,
    SubmitRequestUseCaseDep,
)
from dispatch_portal.api.schemas.branch import RankedBranchResponse
from dispatch_portal.api.schemas.request import (
    AcceptRequestBody,
    AssignmentResponseSchema,
    AssignNearestBody,
    AssignRequestBody,
    CloseRequestBody,
    RatingBody,
    RejectRequestBody,
    ServiceRequestResponse,
    SlaStatusResponse,
    StatusUpdateBody,
    SubmitRequestBody,
    TimelineEventResponse,
)
from dispatch_portal.application.use_cases.submit_request import SubmitRequestCommand
from dispatch_portal.config.logging import get_logger
from dispatch_portal.config.settings import settings
from dispatch_portal.domain.value_objects.actor import ActorRole
from dispatch_portal.domain.value_objects.request_status import RequestStatus

logger = get_logger(__name__)
router = APIRouter(prefix="/requests", tags=["requests"])


@router.post("/", response_model=ServiceRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_request(body: SubmitRequestBody, use_case: SubmitRequestUseCaseDep):
    """Create a request in the submitted status."""
    request = await use_case.execute(
        SubmitRequestCommand(
            category_id=body.category_id,
            service_id=body.service_id,
            pickup_option_id=body.pickup_option_id,
            customer_id=body.customer_id,
            customer_name=body.customer.name,
            customer_phone=body.customer.phone,
            customer_address=body.customer.address,
            customer_lat=body.customer.lat,
            customer_lng=body.customer.lng,
        )
    )
    return ServiceRequestResponse.from_entity(request)


@router.get("/", response_model=List[ServiceRequestResponse])
async def list_requests(
    coordinator: DispatchCoordinatorDep,
    status_filter: RequestStatus = Query(RequestStatus.UNASSIGNED, alias="status"),
    limit: int = Query(settings.DISPATCH_QUEUE_LIMIT, ge=1, le=500),
):
    """Requests in one status, newest first. Defaults to the dispatch queue."""
    requests = await coordinator.list_requests(status_filter, limit)
    return [ServiceRequestResponse.from_entity(request) for request in requests]


@router.get("/by-number/{request_number}", response_model=ServiceRequestResponse)
async def get_request_by_number(request_number: str, coordinator: DispatchCoordinatorDep):
    """Get a request by its human-readable number."""
    return ServiceRequestResponse.from_entity(
        await coordinator.get_request_by_number(request_number)
    )


@router.get("/{request_id}", response_model=ServiceRequestResponse)
async def get_request(request_id: int, coordinator: DispatchCoordinatorDep):
    """Get a request by id."""
    return ServiceRequestResponse.from_entity(await coordinator.get_request(request_id))


@router.get("/{request_id}/branches", response_model=List[RankedBranchResponse])
async def rank_branches_for_request(
    request_id: int,
    coordinator: DispatchCoordinatorDep,
    partner_id: Optional[int] = Query(None),
):
    """Candidate branches ordered by distance to the customer."""
    ranked = await coordinator.rank_branches_for_request(request_id, partner_id)
    return [RankedBranchResponse.from_ranked(item) for item in ranked]


@router.post("/{request_id}/assign", response_model=ServiceRequestResponse)
async def assign_request(
    request_id: int,
    body: AssignRequestBody,
    coordinator: DispatchCoordinatorDep,
    actor: ActorDep,
):
    """Assign the request to a partner branch."""
    request = await coordinator.assign(request_id, body.partner_id, body.branch_id, actor)
    return ServiceRequestResponse.from_entity(request)


@router.post("/{request_id}/assign-nearest", response_model=ServiceRequestResponse)
async def assign_nearest(
    request_id: int,
    body: AssignNearestBody,
    coordinator: DispatchCoordinatorDep,
    actor: ActorDep,
):
    """Assign the request to the nearest branch."""
    request = await coordinator.assign_nearest(request_id, body.partner_id, actor)
    return ServiceRequestResponse.from_entity(request)


@router.post("/{request_id}/accept", response_model=ServiceRequestResponse)
async def accept_request(
    request_id: int,
    body: AcceptRequestBody,
    coordinator: DispatchCoordinatorDep,
    actor: ActorDep,
):
    """Partner accepts the assignment."""
    request = await coordinator.accept(request_id, actor, body.notes)
    return ServiceRequestResponse.from_entity(request)


@router.post("/{request_id}/reject", response_model=ServiceRequestResponse)
async def reject_request(
    request_id: int,
    body: RejectRequestBody,
    coordinator: DispatchCoordinatorDep,
    actor: ActorDep,
):
    """Partner rejects the assignment."""
    request = await coordinator.reject(request_id, body.reason, actor)
    return ServiceRequestResponse.from_entity(request)


@router.patch("/{request_id}/status", response_model=ServiceRequestResponse)
async def update_status(
    request_id: int,
    body: StatusUpdateBody,
    coordinator: DispatchCoordinatorDep,
    actor: ActorDep,
):
    """Partner-driven status change."""
    request = await coordinator.update_status(request_id, body.status, body.notes, actor)
    return ServiceRequestResponse.from_entity(request)


@router.post("/{request_id}/close", response_model=ServiceRequestResponse)
async def close_request(
    request_id: int,
    body: CloseRequestBody,
    coordinator: DispatchCoordinatorDep,
    actor: ActorDep,
):
    """Admin closes a completed request after customer confirmation."""
    request = await coordinator.close(
        request_id, body.customer_confirmed, body.notes, actor
    )
    return ServiceRequestResponse.from_entity(request)


@router.post("/{request_id}/rating", response_model=ServiceRequestResponse)
async def rate_request(
    request_id: int,
    body: RatingBody,
    coordinator: DispatchCoordinatorDep,
    actor: ActorDep,
):
    """Customer rates a completed request."""
    customer_id = actor.id if actor.role == ActorRole.CUSTOMER else None
    request = await coordinator.rate(request_id, body.rating, body.feedback, customer_id)
    return ServiceRequestResponse.from_entity(request)


@router.get("/{request_id}/sla", response_model=SlaStatusResponse)
async def get_sla_status(request_id: int, coordinator: DispatchCoordinatorDep):
    """Remaining SLA time, computed at request time."""
    request = await coordinator.get_request(request_id)
    return SlaStatusResponse.from_status(request_id, coordinator.sla_status(request))


@router.get("/{request_id}/timeline", response_model=List[TimelineEventResponse])
async def get_timeline(request_id: int, coordinator: DispatchCoordinatorDep):
    """Status history, oldest first."""
    events = await coordinator.get_timeline(request_id)
    return [TimelineEventResponse.from_entity(event) for event in events]


@router.get("/{request_id}/assignments", response_model=List[AssignmentResponseSchema])
async def get_assignments(request_id: int, coordinator: DispatchCoordinatorDep):
    """Partner assignment history, oldest first."""
    assignments = await coordinator.get_assignments(request_id)
    return [AssignmentResponseSchema.from_entity(item) for item in assignments]
