"""
Distance and bounding-box helpers for geofence matching.

The bounding box uses a flat degree-delta approximation; it is only a
coarse prefilter and degrades near the poles.
"""

import math
from typing import Tuple

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE = 111.0
KM_PER_MILE = 1.60934


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometers."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def degree_deltas(latitude: float, radius_km: float) -> Tuple[float, float]:
    """Return (lat_delta, lon_delta) in degrees covering radius_km around latitude."""
    lat_delta = radius_km / KM_PER_DEGREE
    cos_lat = math.cos(math.radians(latitude))
    if abs(cos_lat) < 1e-12:
        # At a pole every longitude is within range
        return lat_delta, 180.0
    lon_delta = radius_km / (KM_PER_DEGREE * abs(cos_lat))
    return lat_delta, lon_delta


def bounding_box(latitude: float, longitude: float, radius_km: float) -> Tuple[float, float, float, float]:
    """Return (min_lat, max_lat, min_lon, max_lon) around a center point."""
    lat_delta, lon_delta = degree_deltas(latitude, radius_km)
    return latitude - lat_delta, latitude + lat_delta, longitude - lon_delta, longitude + lon_delta


def miles_to_km(miles: float) -> float:
    return miles * KM_PER_MILE
