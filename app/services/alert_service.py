"""
Alert lifecycle: create, update, verify and soft-delete alerts.

Subscriber emails are encrypted at rest and hashed for verification lookups.
Methods never enqueue background jobs themselves; instead they return the
jobs that should run as PendingTask side effects, and the HTTP layer
dispatches them after the transaction has committed.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.encryption import email_encryption
from app.core.exceptions import NotFoundError, ValidationError
from app.core.hashing import hash_email
from app.core import verification as verification_core
from app.crud import alert as alert_crud
from app.models.alert import Alert
from app.schemas.alert import AlertCreateRequest, AlertUpdateRequest
from app.services.submission_gate import submission_gate

logger = logging.getLogger(__name__)

SEND_VERIFICATION_EMAIL_TASK = "send_verification_email"


@dataclass
class PendingTask:
    """A background job to enqueue once the current request has committed."""
    name: str
    kwargs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AlertChange:
    alert: Alert
    side_effects: List[PendingTask] = field(default_factory=list)


class AlertLifecycleManager:
    def __init__(self, gate=submission_gate, encryption=email_encryption, max_radius_km: Optional[float] = None):
        self.gate = gate
        self.encryption = encryption
        self.max_radius_km = max_radius_km if max_radius_km is not None else settings.ALERT_MAX_RADIUS_KM

    def clamp_radius(self, radius_km: float) -> float:
        return min(radius_km, self.max_radius_km)

    @staticmethod
    def _check_channels(use_email: bool, use_push: bool, email: Optional[str]) -> None:
        if not use_email and not use_push:
            raise ValidationError("At least one notification channel must be enabled.")
        if use_email and not (email or "").strip():
            raise ValidationError("An email address is required for email alerts.")

    def _apply_email(self, db: Session, alert: Alert, email: Optional[str]) -> List[PendingTask]:
        """
        Store the encrypted email and hash on the alert and work out its
        verification state.

        Returns:
            The verification email job, or an empty list when no email has to be sent
        """
        email = (email or "").strip()
        if email:
            alert.encrypted_email = self.encryption.encrypt(email)
            alert.email_hash = hash_email(email)
        else:
            alert.encrypted_email = None
            alert.email_hash = None

        if alert.is_push_only:
            alert.is_verified = True
            return []

        if verification_core.is_email_verified(db, alert.email_hash):
            alert.is_verified = True
            return []

        alert.is_verified = False
        return self._verification_task(db, alert.email_hash, email)

    @staticmethod
    def _verification_task(db: Session, email_hash: str, email: str) -> List[PendingTask]:
        verification = verification_core.get_or_create_verification(db, email_hash)
        return [PendingTask(
            name=SEND_VERIFICATION_EMAIL_TASK,
            kwargs={"email": email, "token": verification.token}
        )]

    def _request_verification(self, db: Session, alert: Alert) -> List[PendingTask]:
        """
        Queue a verification email for the address already stored on the alert.

        Used when the email channel is switched on for an address that was
        never confirmed, e.g. a push-only alert that kept its email.
        """
        email = self.decrypt_email(alert.encrypted_email)
        if not email:
            logger.warning(f"Alert {alert.external_id} has no readable email; verification email not sent")
            return []
        return self._verification_task(db, alert.email_hash, email)

    def create_alert(self, db: Session, request: AlertCreateRequest, is_admin: bool = False) -> AlertChange:
        """
        Validate and persist a new alert.

        Push-only alerts are verified immediately. Email alerts are verified
        immediately only if the address was confirmed before; otherwise a
        verification email job is returned as a side effect.

        Raises:
            ValidationError: If the submission gate or channel checks reject the alert
        """
        self.gate.validate_alert(db, request.user_identifier, request.message, is_admin=is_admin)
        self._check_channels(request.use_email, request.use_push, request.email)

        alert = Alert(
            latitude=request.latitude,
            longitude=request.longitude,
            radius_km=self.clamp_radius(request.radius_km),
            message=request.message,
            user_identifier=request.user_identifier,
            use_email=request.use_email,
            use_push=request.use_push,
        )
        side_effects = self._apply_email(db, alert, request.email)
        alert = alert_crud.add(db, alert)

        logger.info(
            f"Alert {alert.external_id} created (verified={alert.is_verified}, "
            f"email={alert.use_email}, push={alert.use_push})"
        )
        return AlertChange(alert=alert, side_effects=side_effects)

    def update_alert(
        self,
        db: Session,
        external_id: UUID,
        request: AlertUpdateRequest,
        is_admin: bool = False
    ) -> AlertChange:
        """
        Update an alert in place.

        Changing the email to one with a different hash resets verification
        and re-runs the verification step. Switching to push-only marks the
        alert verified regardless of email state; switching email back on
        re-derives it from the stored address and sends a verification email
        if that address was never confirmed.

        Raises:
            NotFoundError: If the alert does not exist or is soft-deleted
            ValidationError: If the update is rejected
        """
        alert = self.get_alert(db, external_id)

        if not is_admin and request.user_identifier is not None and request.user_identifier != alert.user_identifier:
            raise NotFoundError("Alert not found.")

        message = request.message if request.message is not None else alert.message
        self.gate.validate_alert(db, alert.user_identifier, message, is_admin=is_admin, is_new=False)

        use_email = request.use_email if request.use_email is not None else alert.use_email
        use_push = request.use_push if request.use_push is not None else alert.use_push

        # Without a new email the stored one stands in for the channel check
        effective_email = request.email if request.email is not None else (alert.email_hash or "")
        self._check_channels(use_email, use_push, effective_email)

        if request.latitude is not None:
            alert.latitude = request.latitude
        if request.longitude is not None:
            alert.longitude = request.longitude
        if request.radius_km is not None:
            alert.radius_km = self.clamp_radius(request.radius_km)
        if request.message is not None:
            alert.message = request.message
        alert.use_email = use_email
        alert.use_push = use_push

        side_effects: List[PendingTask] = []
        email_changed = request.email is not None and hash_email(request.email) != (alert.email_hash or "")

        if email_changed:
            side_effects = self._apply_email(db, alert, request.email)
        elif alert.is_push_only:
            alert.is_verified = True
        elif alert.email_hash:
            # Channel flags changed back to email: re-derive from verification state
            was_verified = alert.is_verified
            alert.is_verified = verification_core.is_email_verified(db, alert.email_hash)
            if not alert.is_verified and (
                was_verified or verification_core.get_verification(db, alert.email_hash) is None
            ):
                side_effects = self._request_verification(db, alert)

        db.commit()
        db.refresh(alert)

        logger.info(f"Alert {alert.external_id} updated (verified={alert.is_verified}, email_changed={email_changed})")
        return AlertChange(alert=alert, side_effects=side_effects)

    def verify_email(self, db: Session, token: str) -> List[Alert]:
        """
        Confirm a verification token and return the alerts it unlocked.

        Raises:
            NotFoundError: If the token is unknown
        """
        _, alerts = verification_core.verify_token(db, token)
        return alerts

    def get_alert(self, db: Session, external_id: UUID, include_deleted: bool = False) -> Alert:
        alert = alert_crud.get_by_external_id(db, external_id, include_deleted=include_deleted)
        if not alert:
            raise NotFoundError("Alert not found.")
        return alert

    def list_alerts(self, db: Session, user_identifier: str, include_deleted: bool = False) -> List[Alert]:
        return alert_crud.get_for_owner(db, user_identifier, include_deleted=include_deleted)

    def soft_delete(self, db: Session, external_id: UUID, user_identifier: Optional[str] = None) -> Alert:
        """
        Soft-delete an alert. Non-admin callers must pass the owner identifier.

        Raises:
            NotFoundError: If the alert is missing, already deleted, or owned by someone else
        """
        alert = self.get_alert(db, external_id)
        if user_identifier is not None and alert.user_identifier != user_identifier:
            raise NotFoundError("Alert not found.")

        alert = alert_crud.soft_delete(db, alert)
        logger.info(f"Alert {alert.external_id} soft-deleted")
        return alert

    def decrypt_email(self, encrypted_email: Optional[str]) -> Optional[str]:
        """Plaintext email, or None if the blob is missing or cannot be decrypted."""
        return self.encryption.decrypt(encrypted_email)


# Singleton instance
alert_manager = AlertLifecycleManager()
