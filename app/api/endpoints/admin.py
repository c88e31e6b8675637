"""
Admin API endpoints for settings and moderation.

All routes require the ADMIN_API_TOKEN bearer token.
"""

import logging
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import require_admin
from app.core.settings_cache import settings_cache
from app.crud import alert as alert_crud
from app.crud import feedback as feedback_crud
from app.crud import report as report_crud
from app.schemas.alert import AlertAdminResponse
from app.schemas.feedback import FeedbackResponse
from app.schemas.report import ReportAdminResponse
from app.schemas.settings import SystemSettingsSchema, SystemSettingsUpdate

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


@router.get("/settings", response_model=SystemSettingsSchema)
def get_settings():
    return settings_cache.get()


@router.put("/settings", response_model=SystemSettingsSchema)
def update_settings(settings_in: SystemSettingsUpdate):
    """
    Change runtime settings. Omitted fields keep their value.

    The cache is replaced immediately and listeners are notified, so the
    new thresholds apply to the next request.
    """
    values = settings_in.model_dump(exclude_unset=True)
    return settings_cache.update(values)


@router.get("/reports", response_model=List[ReportAdminResponse])
def list_reports(skip: int = 0, limit: int = 100, include_deleted: bool = False, db: Session = Depends(get_db)):
    """List reports newest first, optionally including soft-deleted ones."""
    return report_crud.get_multi(db, skip=skip, limit=limit, include_deleted=include_deleted)


@router.get("/alerts", response_model=List[AlertAdminResponse])
def list_alerts(skip: int = 0, limit: int = 100, include_deleted: bool = False, db: Session = Depends(get_db)):
    return alert_crud.get_multi(db, skip=skip, limit=limit, include_deleted=include_deleted)


@router.get("/feedback", response_model=List[FeedbackResponse])
def list_feedback(skip: int = 0, limit: int = 100, include_deleted: bool = False, db: Session = Depends(get_db)):
    return feedback_crud.get_multi(db, skip=skip, limit=limit, include_deleted=include_deleted)
