"""
Email verification endpoint.

The link in the verification email lands here. One confirmation unlocks
every alert registered under the same address.
"""

import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.api_rate_limiter import get_client_ip
from app.core.database import get_db
from app.core.rate_limiter import check_verify_token_limit
from app.schemas.verification import VerificationResponse
from app.services.alert_service import alert_manager

router = APIRouter(tags=["Email Verification"])
logger = logging.getLogger(__name__)


@router.get("/verify-email", response_model=VerificationResponse)
def verify_email(token: str, request: Request, db: Session = Depends(get_db)):
    """
    Confirm an alert email address.

    Idempotent: clicking the link again succeeds without changing anything.
    Rate limit: 10 attempts per 10 minutes per IP.

    Raises:
        HTTPException 404: Unknown token
        HTTPException 429: Rate limit exceeded
    """
    check_verify_token_limit(get_client_ip(request))

    alerts = alert_manager.verify_email(db, token)

    return VerificationResponse(
        success=True,
        message="Email verified. Your alerts are now active.",
        alerts_verified=len(alerts)
    )
