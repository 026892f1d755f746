"""Coordinate validation, great-circle distance and bounding boxes.

Distances use the haversine formula on a spherical Earth with the IUGG mean
radius. Bounding boxes are conservative: they always contain every point
whose haversine distance is within the radius, so they are safe as a
prefilter in front of the exact check.
"""

import math
from dataclasses import dataclass
from typing import Any

from shapely.errors import ShapelyError
from shapely.geometry import shape

from territory_api.lib.territory.errors import InvalidArgument

EARTH_RADIUS_KM = 6371.0088

# Slack added to prefilter boxes so float rounding never drops a boundary point
_BOX_PADDING_DEG = 1e-6


@dataclass(frozen=True)
class BoundingBox:
    """Lat/lng box; ``min_lng > max_lng`` never occurs, wrapping widens to the full range."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


def validate_coordinates(lat: float, lng: float) -> None:
    """Validate WGS84 coordinates.

    Args:
        lat: Latitude in degrees.
        lng: Longitude in degrees.

    Raises:
        InvalidArgument: If either value is NaN or out of range.
    """
    if math.isnan(lat) or not (-90 <= lat <= 90):
        msg = f"Latitude must be between -90 and 90, got {lat}"
        raise InvalidArgument(msg, field="lat")
    if math.isnan(lng) or not (-180 <= lng <= 180):
        msg = f"Longitude must be between -180 and 180, got {lng}"
        raise InvalidArgument(msg, field="lng")


def validate_radius(radius_km: float) -> None:
    """Raise InvalidArgument unless the radius is a positive finite number."""
    if math.isnan(radius_km) or math.isinf(radius_km) or radius_km <= 0:
        msg = f"Radius must be a positive number of kilometers, got {radius_km}"
        raise InvalidArgument(msg, field="radius_km")


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two WGS84 points in kilometers."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    # Clamp: rounding can push ``a`` a hair above 1 for antipodal points
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


def km_to_degrees(radius_km: float, latitude: float) -> tuple[float, float]:
    """Convert a radius to the latitude and longitude half-spans of its bounding box.

    The longitude span is the exact maximum longitude reached by the circle,
    ``asin(sin(d/R) / cos(lat))``, not the cheaper ``d / (R cos lat)`` estimate,
    which undershoots away from the equator.

    Args:
        radius_km: Search radius in kilometers.
        latitude: Latitude of the circle's center.

    Returns:
        ``(lat_degrees, lng_degrees)``; ``lng_degrees`` is 180 when the circle
        reaches a pole.
    """
    if radius_km <= 0:
        return 0.0, 0.0

    angular = radius_km / EARTH_RADIUS_KM
    lat_deg = math.degrees(angular)
    cos_lat = math.cos(math.radians(latitude))
    sin_angular = math.sin(min(angular, math.pi / 2))
    if abs(latitude) + lat_deg >= 90 or sin_angular >= cos_lat:
        return lat_deg, 180.0
    return lat_deg, math.degrees(math.asin(sin_angular / cos_lat))


def bounding_box(lat: float, lng: float, radius_km: float) -> BoundingBox:
    """Conservative lat/lng box around a circle, padded against rounding.

    A box that would wrap across the antimeridian is widened to the full
    longitude range rather than split in two.
    """
    lat_deg, lng_deg = km_to_degrees(radius_km, lat)
    lat_deg += _BOX_PADDING_DEG
    lng_deg += _BOX_PADDING_DEG

    min_lat = max(-90.0, lat - lat_deg)
    max_lat = min(90.0, lat + lat_deg)
    min_lng = lng - lng_deg
    max_lng = lng + lng_deg
    if min_lng < -180 or max_lng > 180:
        min_lng, max_lng = -180.0, 180.0
    return BoundingBox(min_lat=min_lat, max_lat=max_lat, min_lng=min_lng, max_lng=max_lng)


def polygon_centroid(polygon: dict[str, Any] | None) -> tuple[float, float] | None:
    """Centroid of a GeoJSON polygon as ``(lat, lng)``.

    Polygons are opaque catalog metadata; this is only used to place a
    quadrant on the map when no explicit center was recorded.

    Returns:
        ``(latitude, longitude)`` or None for missing, empty or unreadable geometry.
    """
    if not polygon:
        return None
    try:
        geom = shape(polygon)
    except (ShapelyError, ValueError, TypeError, KeyError, AttributeError):
        return None
    if geom.is_empty:
        return None
    centroid = geom.centroid
    return centroid.y, centroid.x
