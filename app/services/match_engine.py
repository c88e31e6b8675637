"""
Geofence matching between a report location and standing alerts.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.geo import bounding_box, degree_deltas, haversine_km
from app.crud import alert as alert_crud
from app.models.alert import Alert

logger = logging.getLogger(__name__)


def point_in_alert_box(alert: Alert, latitude: float, longitude: float) -> bool:
    """True if the point lies inside the alert's degree-delta bounding box."""
    lat_delta, lon_delta = degree_deltas(alert.latitude, alert.radius_km)
    return (
        abs(latitude - alert.latitude) <= lat_delta
        and abs(longitude - alert.longitude) <= lon_delta
    )


def find_matching_alerts(
    db: Session,
    latitude: float,
    longitude: float,
    max_radius_km: Optional[float] = None
) -> List[Alert]:
    """
    Return verified, non-deleted alerts whose circle contains the point.

    Candidates are first narrowed in the database with a box around the
    point sized for the largest permitted radius, then each candidate is
    checked against its own bounding box and finally its exact Haversine
    distance.

    Args:
        db: Database session
        latitude: Report latitude
        longitude: Report longitude
        max_radius_km: Largest alert radius to consider (defaults to the configured cap)

    Returns:
        Matching alerts
    """
    max_radius_km = max_radius_km if max_radius_km is not None else settings.ALERT_MAX_RADIUS_KM
    min_lat, max_lat, min_lon, max_lon = bounding_box(latitude, longitude, max_radius_km)

    candidates = alert_crud.get_verified_in_box(db, min_lat, max_lat, min_lon, max_lon)

    matches = [
        alert for alert in candidates
        if point_in_alert_box(alert, latitude, longitude)
        and haversine_km(alert.latitude, alert.longitude, latitude, longitude) <= alert.radius_km
    ]

    logger.debug(f"Match at ({latitude}, {longitude}): {len(candidates)} candidates, {len(matches)} matches")
    return matches
