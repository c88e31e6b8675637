"""
Periodic maintenance tasks run by celery beat.
"""

import logging
from celery import shared_task
from app.core.database import SessionLocal
from app.core.settings_cache import settings_cache
from app.services.retention import purge_expired_data as purge

logger = logging.getLogger(__name__)


@shared_task(name="purge_expired_data")
def purge_expired_data():
    """
    Delete data past its retention window.

    Scheduled every 12 hours (see beat_schedule in celery_app).
    """
    logger.info("Starting database cleanup task...")

    db = SessionLocal()
    try:
        counts = purge(db, settings_cache.get())
        logger.info(f"Database cleanup finished: {counts}")
        return {"status": "success", "deleted": counts}
    except Exception as e:
        logger.error(f"Error occurred during database cleanup: {e}")
        raise
    finally:
        db.close()
