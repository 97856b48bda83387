from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = 111.0
MIN_COS_LAT = 1e-6
COORD_QUANTUM = Decimal("0.000001")


@dataclass(frozen=True)
class BBox:
    """Latitude/longitude rectangle. ``west > east`` means the box crosses the antimeridian."""

    west: float
    south: float
    east: float
    north: float


def to_radians(degrees: float) -> float:
    return degrees * (math.pi / 180.0)


def radius_to_bbox(lat: float, lon: float, radius_km: float) -> BBox:
    """Approximate box around a circle.

    The box is a loose superset of the circle and may extend past +/-180 or
    +/-90; pass it through ``normalize_bbox`` before querying and always refine
    candidates with ``distance_km``.
    """
    d_lat = radius_km / KM_PER_DEGREE_LAT
    cos_lat = max(math.cos(to_radians(lat)), MIN_COS_LAT)
    d_lon = radius_km / (KM_PER_DEGREE_LAT * cos_lat)
    return BBox(west=lon - d_lon, south=lat - d_lat, east=lon + d_lon, north=lat + d_lat)


def normalize_bbox(bbox: BBox) -> BBox:
    """Bring a box derived from ``radius_to_bbox`` back into coordinate space.

    Longitudes past +/-180 wrap around, producing a ``west > east`` box.
    """
    south = max(-90.0, bbox.south)
    north = min(90.0, bbox.north)
    # A box that reaches a pole, or spans the whole globe, covers every longitude.
    if bbox.east - bbox.west >= 360.0 or bbox.north >= 90.0 or bbox.south <= -90.0:
        return BBox(west=-180.0, south=south, east=180.0, north=north)
    west = _wrap_longitude(bbox.west)
    east = _wrap_longitude(bbox.east)
    return BBox(west=west, south=south, east=east, north=north)


def _wrap_longitude(lon: float) -> float:
    if -180.0 <= lon <= 180.0:
        return lon
    return ((lon + 180.0) % 360.0) - 180.0


def crosses_antimeridian(bbox: BBox) -> bool:
    return bbox.west > bbox.east


def bbox_contains(bbox: BBox, lat: float, lon: float) -> bool:
    in_lat = bbox.south <= lat <= bbox.north
    if bbox.west <= bbox.east:
        in_lon = bbox.west <= lon <= bbox.east
    else:
        in_lon = lon >= bbox.west or lon <= bbox.east
    return in_lat and in_lon


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine great-circle distance on a sphere of radius 6371 km."""
    if lat1 == lat2 and lon1 == lon2:
        return 0.0
    d_lat = to_radians(lat2 - lat1)
    d_lon = to_radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(to_radians(lat1)) * math.cos(to_radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    # Rounding can push a a hair outside [0, 1] for antipodal points.
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def to_decimal6(value: float | None) -> Decimal | None:
    """Quantize a coordinate for a NUMERIC(9,6) column."""
    if value is None:
        return None
    return Decimal(repr(float(value))).quantize(COORD_QUANTUM, rounding=ROUND_HALF_UP)


def to_decimal(value: float) -> Decimal:
    return Decimal(repr(float(value)))


def decimal_to_float(value: Decimal | float | None) -> float | None:
    if value is None:
        return None
    return float(value)
