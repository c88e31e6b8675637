"""
Map thumbnail proxy.

Notification emails embed this URL instead of a Mapbox URL so the access
token never leaves the server.
"""

import logging
from uuid import UUID
import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from app.core.api_rate_limiter import check_map_proxy_rate_limit, get_client_ip
from app.core.config import settings
from app.core.database import get_db
from app.core.settings_cache import settings_cache
from app.services import report_service

router = APIRouter(prefix="/map", tags=["Map"])
logger = logging.getLogger(__name__)

MAPBOX_STATIC_URL = (
    "https://api.mapbox.com/styles/v1/mapbox/streets-v11/static/"
    "pin-s-l+f44336({lon},{lat})/{lon},{lat},14,0/450x300"
)


@router.get("/proxy")
def map_proxy(report_id: UUID, request: Request, db: Session = Depends(get_db)):
    """
    Return a static map image centred on a report.

    Raises:
        HTTPException 404: Unknown report or no map token configured
        HTTPException 429: Rate limit exceeded
        HTTPException 502: Map provider unreachable
    """
    check_map_proxy_rate_limit(get_client_ip(request))

    report = report_service.get_report(db, report_id)

    token = settings_cache.get().mapbox_token
    if not token:
        raise HTTPException(status_code=404, detail="Map images are not enabled")

    url = MAPBOX_STATIC_URL.format(lat=report.latitude, lon=report.longitude)
    try:
        with httpx.Client(timeout=10.0) as client:
            upstream = client.get(url, params={"access_token": token}, headers={"Referer": settings.BASE_URL})
    except httpx.HTTPError as e:
        logger.error(f"Map provider request failed: {e}")
        raise HTTPException(status_code=502, detail="Map provider unavailable")

    if upstream.status_code != 200:
        raise HTTPException(status_code=upstream.status_code, detail="Map provider error")

    return Response(
        content=upstream.content,
        media_type=upstream.headers.get("content-type", "image/png"),
        headers={"Cache-Control": "public, max-age=86400"}
    )
