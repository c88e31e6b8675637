"""
Periodic purge of expired data.

Retention windows come from the runtime settings, except for unconfirmed
email verifications (24 hours) and feedback (one year).
"""

import logging
from datetime import timedelta
from typing import Dict

from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.core.verification import UNVERIFIED_RETENTION_HOURS, cleanup_unverified
from app.crud import alert as alert_crud
from app.crud import feedback as feedback_crud
from app.crud import report as report_crud
from app.models.alert import Alert
from app.models.feedback import Feedback
from app.models.report import Report
from app.schemas.settings import SystemSettingsSchema

logger = logging.getLogger(__name__)

FEEDBACK_RETENTION_DAYS = 365


def purge_expired_data(db: Session, current: SystemSettingsSchema) -> Dict[str, int]:
    """
    Hard-delete expired rows, including soft-deleted ones.

    - reports created before the retention cutoff (deleted or not)
    - alerts soft-deleted before the retention cutoff
    - email verifications never confirmed within 24 hours
    - feedback older than one year

    Returns:
        Dict mapping table to the number of rows deleted
    """
    now = utcnow()
    retention_cutoff = now - timedelta(days=current.data_retention_days)

    counts = {
        "reports": report_crud.hard_delete_where(db, Report.created_at < retention_cutoff),
        "alerts": alert_crud.hard_delete_where(
            db,
            Alert.deleted_at.isnot(None),
            Alert.deleted_at < retention_cutoff
        ),
        "email_verifications": cleanup_unverified(db, UNVERIFIED_RETENTION_HOURS),
        "feedback": feedback_crud.hard_delete_where(
            db,
            Feedback.created_at < now - timedelta(days=FEEDBACK_RETENTION_DAYS)
        ),
    }

    for table, count in counts.items():
        if count:
            logger.info(f"Cleaned up {count} expired rows from {table}")

    return counts
