"""
Branch entity.
"""

from dataclasses import dataclass
from typing import Optional

from dispatch_portal.domain.value_objects.geo_point import GeoPoint

DEFAULT_SERVICE_RADIUS_KM = 10.0


@dataclass(frozen=True)
class Branch:
    """A partner's physical service point."""

    id: int
    partner_id: int
    name: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    service_radius_km: float = DEFAULT_SERVICE_RADIUS_KM
    is_active: bool = True

    @property
    def location(self) -> Optional[GeoPoint]:
        """Branch position, or None when coordinates are missing or invalid."""
        return GeoPoint.try_create(self.lat, self.lng)

    def belongs_to(self, partner_id: int) -> bool:
        return self.partner_id == partner_id
