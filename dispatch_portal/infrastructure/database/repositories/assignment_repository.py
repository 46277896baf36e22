"""
Assignment history repository implementation.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch_portal.application.interfaces.repositories import (
    AssignmentRepositoryInterface,
)
from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.clock import ensure_utc
from dispatch_portal.domain.entities.assignment import Assignment
from dispatch_portal.domain.value_objects.assignment_response import AssignmentResponse
from dispatch_portal.infrastructure.database.models.request_assignment import (
    RequestAssignmentModel,
)

logger = get_logger(__name__)


class AssignmentRepository(AssignmentRepositoryInterface):
    """Assignment history repository implementation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def open(self, assignment: Assignment) -> Assignment:
        """Deactivate earlier assignments of the request and insert the new one."""
        await self.db.execute(
            update(RequestAssignmentModel)
            .where(
                and_(
                    RequestAssignmentModel.request_id == assignment.request_id,
                    RequestAssignmentModel.is_active.is_(True),
                )
            )
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )

        model = RequestAssignmentModel(
            request_id=assignment.request_id,
            partner_id=assignment.partner_id,
            branch_id=assignment.branch_id,
            assigned_by=assignment.assigned_by,
            assigned_at=ensure_utc(assignment.assigned_at),
            sla_deadline=ensure_utc(assignment.sla_deadline),
            response=assignment.response.value,
            is_active=True,
        )
        self.db.add(model)
        await self.db.flush()

        logger.debug(
            "Assignment opened",
            assignment_id=model.id,
            request_id=model.request_id,
            partner_id=model.partner_id,
            branch_id=model.branch_id,
        )
        return self._model_to_entity(model)

    async def record_response(
        self,
        request_id: int,
        response: AssignmentResponse,
        responded_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> Optional[Assignment]:
        """Answer the request's pending active assignment."""
        stmt = (
            select(RequestAssignmentModel)
            .where(
                and_(
                    RequestAssignmentModel.request_id == request_id,
                    RequestAssignmentModel.is_active.is_(True),
                    RequestAssignmentModel.response == AssignmentResponse.PENDING.value,
                )
            )
            .order_by(RequestAssignmentModel.id.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            logger.warning("No pending assignment to answer", request_id=request_id)
            return None

        model.response = response.value
        model.responded_at = ensure_utc(responded_at)
        model.rejection_reason = rejection_reason
        await self.db.flush()
        return self._model_to_entity(model)

    async def list_for(self, request_id: int) -> List[Assignment]:
        """Get a request's assignments, oldest first."""
        stmt = (
            select(RequestAssignmentModel)
            .where(RequestAssignmentModel.request_id == request_id)
            .order_by(RequestAssignmentModel.assigned_at.asc(), RequestAssignmentModel.id.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def get_active(self, request_id: int) -> Optional[Assignment]:
        """Get a request's current assignment."""
        stmt = (
            select(RequestAssignmentModel)
            .where(
                and_(
                    RequestAssignmentModel.request_id == request_id,
                    RequestAssignmentModel.is_active.is_(True),
                )
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    def _model_to_entity(self, model: RequestAssignmentModel) -> Assignment:
        """Convert SQLAlchemy model to domain entity."""
        return Assignment(
            id=model.id,
            request_id=model.request_id,
            partner_id=model.partner_id,
            branch_id=model.branch_id,
            assigned_by=model.assigned_by,
            assigned_at=ensure_utc(model.assigned_at),
            sla_deadline=ensure_utc(model.sla_deadline),
            response=AssignmentResponse(model.response),
            responded_at=ensure_utc(model.responded_at),
            rejection_reason=model.rejection_reason,
            is_active=model.is_active,
        )
