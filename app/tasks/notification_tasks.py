"""
Celery task that notifies alert subscribers about a new report.
"""

import logging
from app.core.celery_app import celery_app
from app.core.database import SessionLocal
from app.services.notification_pipeline import notification_pipeline

logger = logging.getLogger(__name__)


@celery_app.task(name="process_report_notifications", bind=True)
def process_report_notifications(self, report_id: int):
    """
    Run the notification pipeline for one report.

    Not retried: deliveries already made would be repeated. Errors are
    logged here and re-raised so the worker records the failure.

    Args:
        self: Celery task instance (when bind=True)
        report_id: Internal id of the new report

    Returns:
        dict: Delivery counts, or an error status if the report was not found
    """
    logger.info(f"[Task {self.request.id}] Processing notifications for report {report_id}")

    db = SessionLocal()
    try:
        summary = notification_pipeline.process_report(db, report_id)
        if summary is None:
            return {"status": "error", "message": "Report not found"}

        return {
            "status": "success",
            "report_id": report_id,
            "matched_alerts": summary.matched_alerts,
            "emails_sent": summary.emails_sent,
            "emails_skipped": summary.emails_skipped,
            "push_delivered": summary.push_delivered,
            "email_failed": summary.email_failed,
        }
    except Exception as e:
        logger.error(f"[Task {self.request.id}] Error processing alerts for report {report_id}: {e}", exc_info=True)
        raise
    finally:
        db.close()
