"""
Branch ranking API schemas.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from dispatch_portal.application.services.branch_ranker import RankedBranch
from dispatch_portal.domain.entities.branch import DEFAULT_SERVICE_RADIUS_KM, Branch


class BranchSchema(BaseModel):
    """Candidate branch schema."""

    id: int
    partner_id: int
    name: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    service_radius_km: float = Field(DEFAULT_SERVICE_RADIUS_KM, gt=0)
    is_active: bool = True

    def to_entity(self) -> Branch:
        return Branch(**self.model_dump())


class RankBranchesBody(BaseModel):
    """Ranking input schema."""

    customer_lat: float
    customer_lng: float
    branches: List[BranchSchema]


class RankedBranchResponse(BaseModel):
    """Ranked branch response schema."""

    branch_id: int
    partner_id: int
    name: str
    distance_km: float
    is_nearest: bool
    within_service_radius: bool

    @classmethod
    def from_ranked(cls, ranked: RankedBranch) -> "RankedBranchResponse":
        return cls(**ranked.to_dict())
