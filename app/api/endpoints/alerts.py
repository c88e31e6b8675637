"""
Alert subscription endpoints.

Creating or updating an alert may queue a verification email; the job is
dispatched only after the alert has been committed.
"""

import logging
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.core.api_rate_limiter import check_submission_rate_limit, get_client_ip
from app.core.celery_utils import dispatch_pending
from app.core.database import get_db
from app.core.deps import get_is_admin
from app.core.exceptions import ValidationError
from app.schemas.alert import AlertCreateRequest, AlertResponse, AlertUpdateRequest
from app.services.alert_service import alert_manager

router = APIRouter(prefix="/alerts", tags=["Alerts"])
logger = logging.getLogger(__name__)


@router.post("", response_model=AlertResponse, status_code=status.HTTP_201_CREATED)
def create_alert(
    alert_in: AlertCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    is_admin: bool = Depends(get_is_admin)
):
    """
    Create an alert.

    The response's is_verified tells the client whether a confirmation
    email is on its way (False) or notifications are already active (True).

    Raises:
        HTTPException 400: Rejected by the anti-spam gate or missing email
    """
    check_submission_rate_limit(get_client_ip(request))

    change = alert_manager.create_alert(db, alert_in, is_admin=is_admin)
    dispatch_pending(change.side_effects)
    return change.alert


@router.put("/{external_id}", response_model=AlertResponse)
def update_alert(
    external_id: UUID,
    alert_in: AlertUpdateRequest,
    db: Session = Depends(get_db),
    is_admin: bool = Depends(get_is_admin)
):
    """
    Update an alert in place.

    Non-admin callers must send the owner's user_identifier.

    Raises:
        HTTPException 404: Alert not found or not owned by the caller
    """
    if not is_admin and not alert_in.user_identifier:
        raise ValidationError("A device identifier is required.")

    change = alert_manager.update_alert(db, external_id, alert_in, is_admin=is_admin)
    dispatch_pending(change.side_effects)
    return change.alert


@router.get("", response_model=List[AlertResponse])
def list_alerts(user_identifier: str, db: Session = Depends(get_db)):
    """Alerts owned by a device identifier."""
    return alert_manager.list_alerts(db, user_identifier)


@router.delete("/{external_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_alert(
    external_id: UUID,
    user_identifier: Optional[str] = None,
    db: Session = Depends(get_db),
    is_admin: bool = Depends(get_is_admin)
):
    """
    Soft-delete an alert.

    Owners pass their user_identifier; admins may delete any alert.
    """
    if not is_admin and not user_identifier:
        raise ValidationError("A device identifier is required.")

    alert_manager.soft_delete(db, external_id, user_identifier=None if is_admin else user_identifier)
