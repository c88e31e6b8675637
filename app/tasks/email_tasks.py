"""
Celery tasks for email operations.

Handles asynchronous verification emails with retry logic.
"""

import logging
from celery import shared_task
from app.core.exceptions import EmailDeliveryError
from app.services.email_service import email_service
from app.services.email_templates import VERIFICATION_SUBJECT, render_verification_email

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    name="send_verification_email",
    max_retries=3,
    default_retry_delay=60,  # Retry after 60 seconds
    autoretry_for=(EmailDeliveryError,),
    retry_backoff=True,
    retry_backoff_max=600,  # Max 10 minutes between retries
    retry_jitter=True
)
def send_verification_email(self, email: str, token: str):
    """
    Send the alert verification link through the fallback email chain.

    Retried with exponential backoff when every configured provider fails.

    Args:
        email: Plaintext subscriber address
        token: Verification token for the link
    """
    logger.info(f"Sending verification email (attempt {self.request.retries + 1})")

    try:
        email_service.send_email(email, VERIFICATION_SUBJECT, render_verification_email(token))
    except EmailDeliveryError:
        if self.request.retries >= self.max_retries:
            logger.error("All retry attempts exhausted for verification email")
        raise

    return {"status": "success"}
