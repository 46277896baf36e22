"""
Service request API schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from dispatch_portal.domain.entities.assignment import Assignment
from dispatch_portal.domain.entities.service_request import ServiceRequest
from dispatch_portal.domain.entities.timeline_event import TimelineEvent
from dispatch_portal.domain.value_objects.actor import ActorRole
from dispatch_portal.domain.value_objects.assignment_response import AssignmentResponse
from dispatch_portal.domain.value_objects.request_status import RequestStatus
from dispatch_portal.domain.value_objects.sla_status import SlaStatus


class CustomerSchema(BaseModel):
    """Customer snapshot schema."""

    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=50)
    address: str = Field(..., min_length=1)
    lat: float
    lng: float


class SubmitRequestBody(BaseModel):
    """Request intake schema."""

    category_id: int
    service_id: Optional[int] = None
    pickup_option_id: int
    customer: CustomerSchema
    customer_id: Optional[int] = None


class AssignRequestBody(BaseModel):
    """Direct assignment schema."""

    partner_id: int
    branch_id: int


class AssignNearestBody(BaseModel):
    """Nearest-branch assignment schema."""

    partner_id: Optional[int] = Field(
        None, description="Limit candidates to one partner; all active partners if omitted"
    )


class RejectRequestBody(BaseModel):
    """Rejection schema."""

    reason: str = Field(..., description="Why the partner declines; at least 10 characters")


class StatusUpdateBody(BaseModel):
    """Partner status update schema."""

    status: RequestStatus
    notes: Optional[str] = None


class AcceptRequestBody(BaseModel):
    """Acceptance schema."""

    notes: Optional[str] = None


class CloseRequestBody(BaseModel):
    """Admin close schema."""

    customer_confirmed: bool = Field(
        False, description="Customer confirmed the work was completed"
    )
    notes: Optional[str] = None


class RatingBody(BaseModel):
    """Customer rating schema."""

    rating: int
    feedback: Optional[str] = Field(None, max_length=2000)


class ServiceRequestResponse(BaseModel):
    """Service request response schema."""

    id: int
    request_number: str
    category_id: int
    service_id: Optional[int]
    pickup_option_id: int
    customer_id: Optional[int]
    customer: CustomerSchema
    status: RequestStatus
    partner_id: Optional[int]
    branch_id: Optional[int]
    submitted_at: datetime
    assigned_at: Optional[datetime]
    sla_deadline: Optional[datetime]
    confirmed_at: Optional[datetime]
    rejected_at: Optional[datetime]
    in_progress_at: Optional[datetime]
    completed_at: Optional[datetime]
    closed_at: Optional[datetime]
    rating: Optional[int]
    feedback: Optional[str]
    rated_at: Optional[datetime]
    version: int
    updated_at: Optional[datetime]

    @classmethod
    def from_entity(cls, request: ServiceRequest) -> "ServiceRequestResponse":
        return cls(
            id=request.id,
            request_number=request.request_number,
            category_id=request.category_id,
            service_id=request.service_id,
            pickup_option_id=request.pickup_option_id,
            customer_id=request.customer_id,
            customer=CustomerSchema(**request.customer.to_dict()),
            status=request.status,
            partner_id=request.partner_id,
            branch_id=request.branch_id,
            submitted_at=request.submitted_at,
            assigned_at=request.assigned_at,
            sla_deadline=request.sla_deadline,
            confirmed_at=request.confirmed_at,
            rejected_at=request.rejected_at,
            in_progress_at=request.in_progress_at,
            completed_at=request.completed_at,
            closed_at=request.closed_at,
            rating=request.rating,
            feedback=request.feedback,
            rated_at=request.rated_at,
            version=request.version,
            updated_at=request.updated_at,
        )


class TimelineEventResponse(BaseModel):
    """Timeline event response schema."""

    id: Optional[int]
    request_id: int
    status: RequestStatus
    timestamp: datetime
    actor_id: Optional[int]
    actor_role: Optional[ActorRole]
    notes: Optional[str]

    model_config = {"from_attributes": True}

    @classmethod
    def from_entity(cls, event: TimelineEvent) -> "TimelineEventResponse":
        return cls.model_validate(event)


class SlaStatusResponse(BaseModel):
    """SLA status response schema."""

    request_id: int
    deadline: Optional[datetime]
    remaining_minutes: Optional[int]
    expired: bool

    @classmethod
    def from_status(cls, request_id: int, sla: SlaStatus) -> "SlaStatusResponse":
        return cls(
            request_id=request_id,
            deadline=sla.deadline,
            remaining_minutes=sla.remaining_minutes,
            expired=sla.expired,
        )


class AssignmentResponseSchema(BaseModel):
    """Assignment history entry schema."""

    id: Optional[int]
    request_id: int
    partner_id: int
    branch_id: int
    assigned_by: Optional[int]
    assigned_at: datetime
    sla_deadline: Optional[datetime]
    response: AssignmentResponse
    responded_at: Optional[datetime]
    rejection_reason: Optional[str]
    is_active: bool

    model_config = {"from_attributes": True}

    @classmethod
    def from_entity(cls, assignment: Assignment) -> "AssignmentResponseSchema":
        return cls.model_validate(assignment)
