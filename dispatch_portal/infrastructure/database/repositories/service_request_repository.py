"""
Service request repository implementation.
"""

from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch_portal.application.interfaces.repositories import (
    ServiceRequestRepositoryInterface,
)
from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.clock import ensure_utc
from dispatch_portal.domain.entities.service_request import ServiceRequest
from dispatch_portal.domain.exceptions.dispatch_error import (
    ConflictError,
    DuplicateRequestNumberError,
)
from dispatch_portal.domain.value_objects.customer_snapshot import CustomerSnapshot
from dispatch_portal.domain.value_objects.geo_point import GeoPoint
from dispatch_portal.domain.value_objects.request_status import RequestStatus
from dispatch_portal.infrastructure.database.models.service_request import (
    ServiceRequestModel,
)

logger = get_logger(__name__)


class ServiceRequestRepository(ServiceRequestRepositoryInterface):
    """Service request repository implementation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, request: ServiceRequest) -> ServiceRequest:
        """
        Create a new service request.

        Raises:
            DuplicateRequestNumberError: another transaction already stored
                a request with the same number
        """
        model = ServiceRequestModel(
            request_number=request.request_number,
            version=request.version,
            **self._entity_values(request),
        )

        self.db.add(model)
        try:
            await self.db.flush()
        except IntegrityError as e:
            if "request_number" not in str(e.orig):
                raise
            logger.warning(
                "Request number already taken",
                request_number=request.request_number,
            )
            raise DuplicateRequestNumberError(request.request_number) from e
        await self.db.refresh(model)

        logger.info(
            "Service request created",
            request_id=model.id,
            request_number=model.request_number,
        )
        return self._model_to_entity(model)

    async def get_by_id(self, request_id: int) -> Optional[ServiceRequest]:
        """Get service request by ID."""
        stmt = (
            select(ServiceRequestModel)
            .where(ServiceRequestModel.id == request_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        model = result.scalar_one_or_none()

        return self._model_to_entity(model) if model else None

    async def get_by_number(self, request_number: str) -> Optional[ServiceRequest]:
        """Get service request by its request number."""
        stmt = (
            select(ServiceRequestModel)
            .where(ServiceRequestModel.request_number == request_number)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        model = result.scalar_one_or_none()

        return self._model_to_entity(model) if model else None

    async def list_by_status(
        self, status: RequestStatus, limit: int = 100
    ) -> List[ServiceRequest]:
        """List requests in a status, most recently submitted first."""
        stmt = (
            select(ServiceRequestModel)
            .where(ServiceRequestModel.status == status.value)
            .order_by(ServiceRequestModel.submitted_at.desc(), ServiceRequestModel.id.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def compare_and_set(
        self, request: ServiceRequest, expected_version: int
    ) -> ServiceRequest:
        """Update the row only if nobody else changed it since it was read."""
        new_version = expected_version + 1
        stmt = (
            update(ServiceRequestModel)
            .where(
                and_(
                    ServiceRequestModel.id == request.id,
                    ServiceRequestModel.version == expected_version,
                )
            )
            .values(version=new_version, **self._entity_values(request))
            .execution_options(synchronize_session=False)
        )

        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            logger.warning(
                "Service request version check failed",
                request_id=request.id,
                expected_version=expected_version,
            )
            raise ConflictError(request.id, expected_version)

        await self.db.flush()
        return replace(request, version=new_version)

    async def count_submitted_between(self, start: datetime, end: datetime) -> int:
        """Count requests submitted in [start, end)."""
        stmt = select(func.count(ServiceRequestModel.id)).where(
            and_(
                ServiceRequestModel.submitted_at >= ensure_utc(start),
                ServiceRequestModel.submitted_at < ensure_utc(end),
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def find_expired_assignments(
        self, now: datetime, limit: int = 100
    ) -> List[ServiceRequest]:
        """Find assigned requests whose SLA deadline has passed."""
        stmt = (
            select(ServiceRequestModel)
            .where(
                and_(
                    ServiceRequestModel.status == RequestStatus.ASSIGNED.value,
                    ServiceRequestModel.sla_deadline.is_not(None),
                    ServiceRequestModel.sla_deadline <= ensure_utc(now),
                )
            )
            .order_by(ServiceRequestModel.sla_deadline.asc(), ServiceRequestModel.id.asc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        models = result.scalars().all()

        return [self._model_to_entity(model) for model in models]

    def _entity_values(self, request: ServiceRequest) -> dict:
        """Column values shared by insert and update."""
        return {
            "category_id": request.category_id,
            "service_id": request.service_id,
            "pickup_option_id": request.pickup_option_id,
            "customer_id": request.customer_id,
            "customer_name": request.customer.name,
            "customer_phone": request.customer.phone,
            "customer_address": request.customer.address,
            "customer_lat": request.customer.location.lat,
            "customer_lng": request.customer.location.lng,
            "status": request.status.value,
            "partner_id": request.partner_id,
            "branch_id": request.branch_id,
            "submitted_at": ensure_utc(request.submitted_at),
            "assigned_at": ensure_utc(request.assigned_at),
            "sla_deadline": ensure_utc(request.sla_deadline),
            "confirmed_at": ensure_utc(request.confirmed_at),
            "rejected_at": ensure_utc(request.rejected_at),
            "in_progress_at": ensure_utc(request.in_progress_at),
            "completed_at": ensure_utc(request.completed_at),
            "closed_at": ensure_utc(request.closed_at),
            "rating": request.rating,
            "feedback": request.feedback,
            "rated_at": ensure_utc(request.rated_at),
            "updated_at": ensure_utc(request.updated_at),
        }

    def _model_to_entity(self, model: ServiceRequestModel) -> ServiceRequest:
        """Convert SQLAlchemy model to domain entity."""
        return ServiceRequest(
            id=model.id,
            request_number=model.request_number,
            category_id=model.category_id,
            service_id=model.service_id,
            pickup_option_id=model.pickup_option_id,
            customer_id=model.customer_id,
            customer=CustomerSnapshot(
                name=model.customer_name,
                phone=model.customer_phone,
                address=model.customer_address,
                location=GeoPoint(model.customer_lat, model.customer_lng),
            ),
            status=RequestStatus(model.status),
            partner_id=model.partner_id,
            branch_id=model.branch_id,
            submitted_at=ensure_utc(model.submitted_at),
            assigned_at=ensure_utc(model.assigned_at),
            sla_deadline=ensure_utc(model.sla_deadline),
            confirmed_at=ensure_utc(model.confirmed_at),
            rejected_at=ensure_utc(model.rejected_at),
            in_progress_at=ensure_utc(model.in_progress_at),
            completed_at=ensure_utc(model.completed_at),
            closed_at=ensure_utc(model.closed_at),
            rating=model.rating,
            feedback=model.feedback,
            rated_at=ensure_utc(model.rated_at),
            version=model.version,
            updated_at=ensure_utc(model.updated_at),
        )
