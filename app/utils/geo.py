"""
Geolocation helpers for nearby discovery.

Distances are great-circle distances on a spherical Earth (haversine).
"""

import math
from dataclasses import dataclass
from typing import Optional

import pygeohash

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = 111.0  # 1 degree latitude is roughly 111km
GEOHASH_PRECISION = 6  # 6 characters is roughly 1.2km precision


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    # None when the box crosses the antimeridian or reaches a pole
    min_lng: Optional[float]
    max_lng: Optional[float]


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance in kilometers between two points."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def is_within_radius(lat1: float, lng1: float, lat2: float, lng2: float, radius_km: float) -> bool:
    return calculate_distance(lat1, lng1, lat2, lng2) <= radius_km


def format_distance(distance_km: float) -> str:
    """850m below one kilometer, 1.2km above."""
    if distance_km < 1:
        return f"{math.floor(distance_km * 1000 + 0.5)}m"
    return f"{distance_km:.1f}km"


def bounding_box(lat: float, lng: float, radius_km: float) -> BoundingBox:
    """Coarse lat/lng box around a point, used to prefilter in SQL."""
    lat_range = radius_km / KM_PER_DEGREE_LAT
    min_lat = max(lat - lat_range, -90.0)
    max_lat = min(lat + lat_range, 90.0)

    cos_lat = math.cos(math.radians(lat))
    if min_lat <= -90.0 or max_lat >= 90.0 or cos_lat < 1e-6:
        return BoundingBox(min_lat, max_lat, None, None)

    lng_range = radius_km / (KM_PER_DEGREE_LAT * cos_lat)
    min_lng = lng - lng_range
    max_lng = lng + lng_range
    if min_lng < -180 or max_lng > 180:
        return BoundingBox(min_lat, max_lat, None, None)

    return BoundingBox(min_lat, max_lat, min_lng, max_lng)


def encode_geohash(lat: float, lng: float, precision: int = GEOHASH_PRECISION) -> str:
    return pygeohash.encode(lat, lng, precision=precision)
