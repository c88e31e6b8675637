"""
Health check and monitoring endpoints.

Provides detailed health status for the database and email delivery configuration.
"""

import logging
from typing import Dict, Any
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from sqlalchemy import text
from datetime import datetime, timezone

from app.core.database import get_db
from app.core.settings_cache import settings_cache
from app.schemas.settings import PublicSettingsResponse
from app.services.email_providers import default_providers

router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> Dict[str, str]:
    """
    Basic health check endpoint.

    Returns 200 OK if the service is running.
    Use this for simple uptime monitoring and load balancer health checks.
    """
    return {
        "status": "healthy",
        "timestamp": _timestamp()
    }


@router.get("/health/detailed", status_code=status.HTTP_200_OK)
def detailed_health_check(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Detailed health check with dependency status.

    Checks:
    - Database connectivity
    - Which email providers are configured (the fallback chain order)
    """
    health_status = {
        "status": "healthy",
        "timestamp": _timestamp(),
        "checks": {}
    }

    # Check database connectivity
    try:
        db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = {
            "status": "unhealthy",
            "message": f"Database error: {str(e)}"
        }

    configured = [provider.name for provider in default_providers() if provider.is_configured()]
    health_status["checks"]["email"] = {
        "status": "healthy" if configured else "degraded",
        "providers": configured
    }
    if not configured:
        health_status["status"] = "degraded"

    return health_status


@router.get("/settings", response_model=PublicSettingsResponse)
def public_settings():
    """Thresholds and the VAPID public key clients need (no secrets)."""
    return settings_cache.get()
