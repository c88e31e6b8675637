"""
Domain exceptions for the alert matching and notification pipeline.

Submission and lookup errors are raised to the direct caller. Delivery
errors are raised inside background jobs and logged by the task wrapper.
"""

from typing import Iterable, List


class ValidationError(Exception):
    """A submission was rejected by the anti-spam gate. Never partially persisted."""

    def __init__(self, messages: Iterable[str]):
        if isinstance(messages, str):
            messages = [messages]
        self.messages: List[str] = list(messages)
        super().__init__(", ".join(self.messages))


class NotFoundError(Exception):
    """A lookup by id or token found nothing."""


class ConfigurationMissingError(Exception):
    """A delivery provider lacks the credentials it needs. Treated as "skip"."""


class DeliveryError(Exception):
    """A single provider call failed (network error, non-2xx response)."""


class BatchDeliveryError(DeliveryError):
    """
    A provider failed partway through a batch.

    delivered_count leading messages of the batch were accepted before the
    failure and must not be sent again.
    """

    def __init__(self, delivered_count: int, cause: Exception):
        self.delivered_count = delivered_count
        self.cause = cause
        super().__init__(f"Batch failed after {delivered_count} delivered: {type(cause).__name__}: {cause}")


class EmailDeliveryError(Exception):
    """
    Every configured email provider failed.

    Carries the underlying provider errors in the order they were attempted.
    """

    def __init__(self, errors: List[Exception]):
        self.errors = list(errors)
        details = "; ".join(f"{type(e).__name__}: {e}" for e in self.errors)
        super().__init__(f"All configured email providers failed ({len(self.errors)} attempts): {details}")
