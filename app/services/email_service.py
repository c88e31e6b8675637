"""
Fallback email service.

Tries each configured provider in order until one accepts the message(s).
Unconfigured providers are skipped quietly; failing providers are logged
and the next one is tried.
"""

import logging
from typing import List, Optional

from app.core.exceptions import BatchDeliveryError, ConfigurationMissingError, EmailDeliveryError
from app.services.email_providers import EmailMessage, EmailProvider, default_providers

logger = logging.getLogger(__name__)


class FallbackEmailService:
    """
    Send email through an ordered chain of interchangeable providers.

    Outcome of a send:
    - first provider that succeeds wins, later providers are not called
    - ConfigurationMissingError: provider skipped (debug log only)
    - any other error: warning, error recorded, next provider tried
    - nothing succeeded and at least one provider errored: EmailDeliveryError
    - no provider configured at all: warning, nothing raised
    """

    def __init__(self, providers: Optional[List[EmailProvider]] = None):
        self.providers = providers if providers is not None else default_providers()

    def send_email(self, to: str, subject: str, html: str) -> None:
        self._run(lambda provider: provider.send(EmailMessage(to=to, subject=subject, html=html)), f"email to {to}")

    def send_batch(self, messages: List[EmailMessage]) -> None:
        """
        Send a batch through the chain.

        When a provider fails partway, only the messages it had not yet
        delivered are handed to the next provider.
        """
        if not messages:
            return

        pending = list(messages)

        def attempt(provider: EmailProvider) -> None:
            try:
                provider.send_batch(pending)
            except BatchDeliveryError as e:
                logger.warning(f"{provider.name} delivered {e.delivered_count} of {len(pending)} emails before failing")
                del pending[:e.delivered_count]
                raise

        self._run(attempt, f"batch of {len(messages)} emails")

    def _run(self, attempt, description: str) -> None:
        if not self.providers:
            logger.error("No email providers registered for fallback")
            return

        errors: List[Exception] = []

        for provider in self.providers:
            try:
                logger.debug(f"Attempting to send {description} via {provider.name}")
                attempt(provider)
                return
            except ConfigurationMissingError as e:
                logger.debug(f"Skipping {provider.name} as it is not fully configured: {e}")
            except Exception as e:
                logger.warning(f"Failed to send {description} via {provider.name}: {e}. Trying next provider...")
                errors.append(e)

        if errors:
            logger.critical(f"All configured email providers failed. Total attempts: {len(errors)}")
            raise EmailDeliveryError(errors)

        logger.warning(f"None of the email providers were configured. The {description} was NOT sent.")


# Singleton instance
email_service = FallbackEmailService()
