"""
Report submission and moderation.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.core.exceptions import NotFoundError
from app.core.settings_cache import settings_cache
from app.crud import report as report_crud
from app.models.report import Report
from app.schemas.report import ReportCreateRequest
from app.services.alert_service import PendingTask
from app.services.submission_gate import submission_gate

logger = logging.getLogger(__name__)

PROCESS_REPORT_TASK = "process_report_notifications"


@dataclass
class ReportSubmission:
    report: Report
    side_effects: List[PendingTask] = field(default_factory=list)


def submit_report(db: Session, request: ReportCreateRequest, is_admin: bool = False, gate=submission_gate) -> ReportSubmission:
    """
    Validate and persist a report, returning the notification job to enqueue.

    Raises:
        ValidationError: If the submission gate rejects the report
    """
    gate.validate_report(
        db,
        reporter_identifier=request.reporter_identifier,
        latitude=request.latitude,
        longitude=request.longitude,
        message=request.message,
        reporter_latitude=request.reporter_latitude,
        reporter_longitude=request.reporter_longitude,
        is_admin=is_admin
    )

    report = report_crud.add(db, Report(
        latitude=request.latitude,
        longitude=request.longitude,
        message=request.message,
        is_emergency=request.is_emergency,
        reporter_identifier=request.reporter_identifier,
        reporter_latitude=request.reporter_latitude,
        reporter_longitude=request.reporter_longitude,
    ))

    logger.info(f"Report {report.external_id} created (emergency={report.is_emergency})")
    return ReportSubmission(
        report=report,
        side_effects=[PendingTask(name=PROCESS_REPORT_TASK, kwargs={"report_id": report.id})]
    )


def get_active_reports(db: Session, limit: int = 1000) -> List[Report]:
    """Non-deleted reports still inside the display window (report_expiry_hours)."""
    since = utcnow() - timedelta(hours=settings_cache.get().report_expiry_hours)
    return report_crud.get_recent(db, since, limit=limit)


def get_report(db: Session, external_id: UUID, include_deleted: bool = False) -> Report:
    report = report_crud.get_by_external_id(db, external_id, include_deleted=include_deleted)
    if not report:
        raise NotFoundError("Report not found.")
    return report


def soft_delete_report(db: Session, external_id: UUID) -> Report:
    """
    Raises:
        NotFoundError: If the report does not exist or is already deleted
    """
    report = report_crud.soft_delete(db, get_report(db, external_id))
    logger.info(f"Report {report.external_id} soft-deleted")
    return report
