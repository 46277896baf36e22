"""Branch ranking endpoints."""

from typing import List

from fastapi import APIRouter

from dispatch_portal.api.dependencies import DispatchCoordinatorDep
from dispatch_portal.api.schemas.branch import RankBranchesBody, RankedBranchResponse

router = APIRouter(prefix="/branches", tags=["branches"])


@router.post("/rank", response_model=List[RankedBranchResponse])
async def rank_branches(body: RankBranchesBody, coordinator: DispatchCoordinatorDep):
    """Rank the given branches by distance to a customer location."""
    ranked = coordinator.rank_branches(
        body.customer_lat,
        body.customer_lng,
        [branch.to_entity() for branch in body.branches],
    )
    return [RankedBranchResponse.from_ranked(item) for item in ranked]
