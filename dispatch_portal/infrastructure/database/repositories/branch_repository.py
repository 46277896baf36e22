"""
Branch directory repository implementation.
"""

from typing import List, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch_portal.application.interfaces.services import BranchDirectoryInterface
from dispatch_portal.domain.entities.branch import Branch
from dispatch_portal.infrastructure.database.models.partner import BranchModel, PartnerModel


class BranchRepository(BranchDirectoryInterface):
    """Reads partner branches from the database."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_branch(self, branch_id: int) -> Optional[Branch]:
        """Get branch by ID, active or not."""
        stmt = select(BranchModel).where(BranchModel.id == branch_id)
        result = await self.db.execute(stmt)
        model = result.scalar_one_or_none()

        return self._model_to_entity(model) if model else None

    async def list_branches(self, partner_id: Optional[int] = None) -> List[Branch]:
        """List active branches of active partners, optionally for one partner."""
        conditions = [BranchModel.is_active.is_(True), PartnerModel.is_active.is_(True)]
        if partner_id is not None:
            conditions.append(BranchModel.partner_id == partner_id)

        stmt = (
            select(BranchModel)
            .join(PartnerModel, PartnerModel.id == BranchModel.partner_id)
            .where(and_(*conditions))
            .order_by(BranchModel.id.asc())
        )
        result = await self.db.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    def _model_to_entity(self, model: BranchModel) -> Branch:
        """Convert SQLAlchemy model to domain entity."""
        return Branch(
            id=model.id,
            partner_id=model.partner_id,
            name=model.name or "",
            lat=model.lat,
            lng=model.lng,
            service_radius_km=model.service_radius_km,
            is_active=model.is_active,
        )
