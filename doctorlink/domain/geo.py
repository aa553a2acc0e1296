"""
Great-circle distance helpers for hospital search.
"""

import math
from dataclasses import dataclass

from .exceptions import InvalidArgumentError

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidArgumentError(f"Latitude must be between -90 and 90, got {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidArgumentError(f"Longitude must be between -180 and 180, got {self.longitude}")


@dataclass(frozen=True)
class BoundingBox:
    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the great-circle distance between two points in kilometres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(center: GeoPoint, radius_km: float) -> BoundingBox:
    """
    Compute a latitude/longitude box enclosing the circle around ``center``.

    The box is a cheap SQL prefilter; exact filtering uses ``haversine_km``.
    """
    if radius_km <= 0:
        raise InvalidArgumentError(f"Radius must be greater than zero, got {radius_km}")

    angular_radius = radius_km / EARTH_RADIUS_KM
    lat_delta = math.degrees(angular_radius)
    cos_lat = math.cos(math.radians(center.latitude))
    if math.sin(angular_radius) >= cos_lat:
        # The circle reaches a pole, every longitude is inside
        lon_delta = 180.0
    else:
        lon_delta = math.degrees(math.asin(math.sin(angular_radius) / cos_lat))

    return BoundingBox(
        min_latitude=max(-90.0, center.latitude - lat_delta),
        max_latitude=min(90.0, center.latitude + lat_delta),
        min_longitude=max(-180.0, center.longitude - lon_delta),
        max_longitude=min(180.0, center.longitude + lon_delta),
    )
