"""
Geographic point value object.
"""

import math
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float

    def __post_init__(self):
        """Validate coordinate ranges."""
        if not self.is_valid(self.lat, self.lng):
            raise ValueError(f"Invalid coordinates: lat={self.lat!r}, lng={self.lng!r}")

    @staticmethod
    def is_valid(lat: Any, lng: Any) -> bool:
        """Check that both values are finite numbers within range."""
        if isinstance(lat, bool) or isinstance(lng, bool):
            return False
        if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
            return False
        if not (math.isfinite(lat) and math.isfinite(lng)):
            return False
        return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0

    @classmethod
    def try_create(cls, lat: Any, lng: Any) -> Optional["GeoPoint"]:
        """Build a point, or return None when the coordinates are unusable."""
        if not cls.is_valid(lat, lng):
            return None
        return cls(float(lat), float(lng))

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"lat": self.lat, "lng": self.lng}
