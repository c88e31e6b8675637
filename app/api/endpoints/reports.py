"""
Report endpoints.

Submitting a report runs the anti-spam gate, persists the report and queues
the alert notification job.
"""

import logging
from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.core.api_rate_limiter import check_submission_rate_limit, get_client_ip
from app.core.celery_utils import dispatch_pending
from app.core.database import get_db
from app.core.deps import get_is_admin, require_admin
from app.schemas.report import ReportCreateRequest, ReportResponse
from app.services import report_service

router = APIRouter(prefix="/reports", tags=["Reports"])
logger = logging.getLogger(__name__)


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
def create_report(
    report_in: ReportCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    is_admin: bool = Depends(get_is_admin)
):
    """
    Submit a new report.

    Returns immediately; matching alerts are notified in the background.

    Raises:
        HTTPException 400: Rejected by the anti-spam gate
        HTTPException 429: Too many submissions from this IP
    """
    check_submission_rate_limit(get_client_ip(request))

    submission = report_service.submit_report(db, report_in, is_admin=is_admin)

    if dispatch_pending(submission.side_effects) < len(submission.side_effects):
        logger.error(f"Notification job for report {submission.report.external_id} could not be queued")

    return submission.report


@router.get("", response_model=List[ReportResponse])
def list_reports(limit: int = 1000, db: Session = Depends(get_db)):
    """Reports submitted within the display window, newest first."""
    return report_service.get_active_reports(db, limit=min(limit, 1000))


@router.get("/{external_id}", response_model=ReportResponse)
def get_report(external_id: UUID, db: Session = Depends(get_db)):
    return report_service.get_report(db, external_id)


@router.delete("/{external_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
def delete_report(external_id: UUID, db: Session = Depends(get_db)):
    """Soft-delete a report (moderation). The row stays until the retention sweep."""
    report_service.soft_delete_report(db, external_id)
