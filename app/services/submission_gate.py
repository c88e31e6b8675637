"""
Anti-spam gate applied before reports, alerts and feedback are persisted.

Each validate_* method collects every failing rule and raises a single
ValidationError, so the submitter sees all problems at once. Nothing is
written by the gate itself.

The cooldown and quota checks read then the caller writes; two concurrent
submissions from the same identifier can both pass.
"""

import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import utcnow
from app.core.exceptions import ValidationError
from app.core.geo import haversine_km, miles_to_km
from app.core.settings_cache import settings_cache
from app.crud import alert as alert_crud
from app.crud import feedback as feedback_crud
from app.crud import report as report_crud
from app.models.feedback import AUTO_REPORTED_PREFIX

logger = logging.getLogger(__name__)

LINK_MARKERS = ("http://", "https://", "www.")


def contains_link(message: Optional[str]) -> bool:
    """Case-sensitive substring check for obvious links."""
    if not message:
        return False
    return any(marker in message for marker in LINK_MARKERS)


class SubmissionGate:
    def __init__(self, settings_provider=settings_cache, identifier_min_length: Optional[int] = None):
        self.settings_provider = settings_provider
        self.identifier_min_length = (
            identifier_min_length if identifier_min_length is not None else settings.IDENTIFIER_MIN_LENGTH
        )

    def _check_identifier(self, identifier: Optional[str], is_admin: bool, errors: List[str]) -> bool:
        """Append identifier errors; return True if the identifier is usable for lookups."""
        if is_admin:
            return bool(identifier)

        if not identifier:
            errors.append("A device identifier is required.")
            return False

        if len(identifier) < self.identifier_min_length:
            errors.append(f"Identifier must be at least {self.identifier_min_length} characters long.")
        return True

    @staticmethod
    def _check_links(message: Optional[str], is_admin: bool, errors: List[str]) -> None:
        if not is_admin and contains_link(message):
            errors.append("Links are not allowed in messages.")

    def validate_report(
        self,
        db: Session,
        reporter_identifier: Optional[str],
        latitude: float,
        longitude: float,
        message: Optional[str] = None,
        reporter_latitude: Optional[float] = None,
        reporter_longitude: Optional[float] = None,
        is_admin: bool = False
    ) -> None:
        """
        Validate a report submission.

        Raises:
            ValidationError: With every failed rule's message
        """
        current = self.settings_provider.get()
        errors: List[str] = []

        has_identifier = self._check_identifier(reporter_identifier, is_admin, errors)
        self._check_links(message, is_admin, errors)

        cooldown = current.report_cooldown_minutes
        if has_identifier and cooldown > 0:
            since = utcnow() - timedelta(minutes=cooldown)
            if report_crud.has_recent_from(db, reporter_identifier, since):
                errors.append(f"You can only submit one report every {cooldown} minutes.")

        if not is_admin:
            if reporter_latitude is None or reporter_longitude is None:
                errors.append("Your current location is required to verify the report.")
            else:
                distance_km = haversine_km(latitude, longitude, reporter_latitude, reporter_longitude)
                max_km = miles_to_km(current.max_report_distance_miles)
                if distance_km > max_km:
                    errors.append(
                        f"You must be within {current.max_report_distance_miles:g} miles of the reported location."
                    )

        if errors:
            logger.info(f"Report rejected by submission gate: {errors}")
            raise ValidationError(errors)

    def validate_alert(
        self,
        db: Session,
        user_identifier: Optional[str],
        message: Optional[str] = None,
        is_admin: bool = False,
        is_new: bool = True
    ) -> None:
        """
        Validate an alert creation or update.

        The per-owner quota only applies to creation.

        Raises:
            ValidationError: With every failed rule's message
        """
        current = self.settings_provider.get()
        errors: List[str] = []

        has_identifier = self._check_identifier(user_identifier, is_admin, errors)
        self._check_links(message, is_admin, errors)

        if is_new and has_identifier and not is_admin:
            cooldown = current.report_cooldown_minutes
            since = utcnow() - timedelta(minutes=cooldown)
            recent = alert_crud.count_recent_for_owner(db, user_identifier, since)
            if recent >= current.alert_limit_count:
                errors.append(
                    f"You can only create {current.alert_limit_count} alerts every {cooldown} minutes."
                )

        if errors:
            logger.info(f"Alert rejected by submission gate: {errors}")
            raise ValidationError(errors)

    def validate_feedback(
        self,
        db: Session,
        user_identifier: Optional[str],
        message: Optional[str],
        is_admin: bool = False
    ) -> None:
        """
        Validate a feedback submission.

        Automatically generated reports (prefixed with [AUTO-REPORTED]) skip
        the link filter and the cooldown.

        Raises:
            ValidationError: With every failed rule's message
        """
        current = self.settings_provider.get()
        errors: List[str] = []
        auto_reported = (message or "").startswith(AUTO_REPORTED_PREFIX)

        has_identifier = self._check_identifier(user_identifier, is_admin, errors)
        if not auto_reported:
            self._check_links(message, is_admin, errors)

        cooldown = current.report_cooldown_minutes
        if has_identifier and not auto_reported and cooldown > 0:
            since = utcnow() - timedelta(minutes=cooldown)
            if feedback_crud.has_recent_from(db, user_identifier, since):
                errors.append(f"You can only submit feedback once every {cooldown} minutes.")

        if errors:
            raise ValidationError(errors)


# Singleton instance
submission_gate = SubmissionGate()
