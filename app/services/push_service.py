"""
Web push delivery with automatic cleanup of dead subscriptions.
"""

import json
import logging
from typing import Iterable, Optional

from pywebpush import WebPushException, webpush
from sqlalchemy.orm import Session

from app.core.config import settings
from app.crud import push_subscription as push_crud
from app.models.push_subscription import WebPushSubscription
from app.schemas.settings import SystemSettingsSchema

logger = logging.getLogger(__name__)

# Push services answer with these when the browser unsubscribed
GONE_STATUS_CODES = (404, 410)
PUSH_TIMEOUT_SECONDS = 10


def vapid_subject(current: SystemSettingsSchema) -> str:
    if current.vapid_subject:
        return current.vapid_subject
    if settings.EMAIL_FROM_ADDRESS:
        return f"mailto:{settings.EMAIL_FROM_ADDRESS}"
    return settings.BASE_URL


class PushService:
    def __init__(self, sender=webpush):
        self._send = sender

    def send_notifications(
        self,
        db: Session,
        subscriptions: Iterable[WebPushSubscription],
        title: str,
        message: str,
        current: SystemSettingsSchema,
        url: Optional[str] = None
    ) -> int:
        """
        Deliver one notification to every subscription.

        A failure for one subscription never stops delivery to the others.
        Subscriptions whose endpoint is gone (404/410) are deleted.

        Returns:
            int: Number of successful deliveries
        """
        if not current.vapid_public_key or not current.vapid_private_key:
            logger.warning("VAPID keys are not configured. Web Push notifications skipped.")
            return 0

        subscriptions = list(subscriptions)
        payload = json.dumps({"title": title, "message": message, "url": url})
        claims_subject = vapid_subject(current)

        logger.info(f"Sending web push notifications to {len(subscriptions)} subscriptions. Title: {title}")

        delivered = 0
        for subscription in subscriptions:
            try:
                self._send(
                    subscription_info=subscription.to_subscription_info(),
                    data=payload,
                    vapid_private_key=current.vapid_private_key,
                    vapid_claims={"sub": claims_subject},
                    timeout=PUSH_TIMEOUT_SECONDS,
                )
                delivered += 1
            except WebPushException as e:
                status = getattr(getattr(e, "response", None), "status_code", None)
                if status in GONE_STATUS_CODES:
                    logger.info(f"Push subscription {subscription.id} is no longer valid (Status: {status}). Deleting.")
                    self._delete(db, subscription.id)
                else:
                    logger.error(f"Error sending push notification to subscription {subscription.id}. Status: {status}: {e}")
            except Exception as e:
                logger.error(f"Unexpected error sending push notification to subscription {subscription.id}: {e}", exc_info=True)

        return delivered

    @staticmethod
    def _delete(db: Session, subscription_id: int) -> None:
        try:
            push_crud.delete_by_id(db, subscription_id)
        except Exception as e:
            db.rollback()
            logger.error(f"Error deleting invalid push subscription {subscription_id}: {e}")


# Singleton instance
push_service = PushService()
