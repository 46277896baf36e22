"""
Customer snapshot value object.
"""

from dataclasses import dataclass

from dispatch_portal.domain.value_objects.geo_point import GeoPoint


@dataclass(frozen=True)
class CustomerSnapshot:
    """Customer contact details captured when the request is submitted."""

    name: str
    phone: str
    address: str
    location: GeoPoint

    def __post_init__(self):
        """Validate customer fields."""
        if not self.name or not self.name.strip():
            raise ValueError("Customer name is required")
        if not self.phone or not self.phone.strip():
            raise ValueError("Customer phone is required")
        if not self.address or not self.address.strip():
            raise ValueError("Customer address is required")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "lat": self.location.lat,
            "lng": self.location.lng,
        }
