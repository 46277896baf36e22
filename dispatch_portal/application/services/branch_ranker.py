"""
Branch ranking by distance to a customer location.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from dispatch_portal.application.services.geo_distance import distance_km
from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.entities.branch import Branch
from dispatch_portal.domain.value_objects.geo_point import GeoPoint
from dispatch_portal.infrastructure.monitoring.metrics import record_branch_ranking

logger = get_logger(__name__)


@dataclass(frozen=True)
class RankedBranch:
    """Branch ranking result."""

    branch: Branch
    distance_km: float
    is_nearest: bool
    within_service_radius: bool

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "branch_id": self.branch.id,
            "partner_id": self.branch.partner_id,
            "name": self.branch.name,
            "distance_km": self.distance_km,
            "is_nearest": self.is_nearest,
            "within_service_radius": self.within_service_radius,
        }


class BranchRanker:
    """Orders candidate branches by great-circle distance."""

    def __init__(self):
        self.logger = logger

    def rank(self, origin: GeoPoint, branches: Iterable[Branch]) -> List[RankedBranch]:
        """
        Rank branches nearest first.

        Branches without usable coordinates are left out rather than placed
        at distance zero. Equal rounded distances are ordered by branch id,
        so identical input always produces identical output. The service
        radius is reported on each result but never excludes a branch.

        Args:
            origin: Customer location
            branches: Candidate branches (one partner's or all partners')

        Returns:
            List of RankedBranch sorted by (distance_km, branch id)
        """
        candidates = []
        skipped = 0

        for branch in branches:
            location = branch.location
            if location is None:
                skipped += 1
                continue
            candidates.append((distance_km(origin, location), branch))

        candidates.sort(key=lambda item: (item[0], item[1].id))

        ranked = [
            RankedBranch(
                branch=branch,
                distance_km=distance,
                is_nearest=index == 0,
                within_service_radius=distance <= branch.service_radius_km,
            )
            for index, (distance, branch) in enumerate(candidates)
        ]

        record_branch_ranking(len(ranked))
        self.logger.debug(
            "Branches ranked",
            candidates=len(ranked),
            skipped_invalid_location=skipped,
            nearest_branch_id=ranked[0].branch.id if ranked else None,
        )

        return ranked

    def nearest(self, origin: GeoPoint, branches: Iterable[Branch]) -> Optional[RankedBranch]:
        """Return the nearest rankable branch, if any."""
        ranked = self.rank(origin, branches)
        return ranked[0] if ranked else None
