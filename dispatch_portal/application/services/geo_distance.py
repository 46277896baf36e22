"""
Great-circle distance helpers.
"""

import math

from dispatch_portal.domain.value_objects.geo_point import GeoPoint

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(origin: GeoPoint, destination: GeoPoint) -> float:
    """Distance in kilometers, rounded to one decimal place."""
    return round(haversine_km(origin.lat, origin.lng, destination.lat, destination.lng), 1)
