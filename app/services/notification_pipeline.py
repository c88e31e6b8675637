"""
Notification pipeline run once per new report in a background job.

Matches the report against verified alerts, then notifies subscribers by
email (one batched send through the fallback chain) and by web push (one
delivery per subscription of each distinct alert owner).
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import EmailDeliveryError
from app.core.settings_cache import settings_cache
from app.crud import push_subscription as push_crud
from app.crud import report as report_crud
from app.models.alert import Alert
from app.models.report import Report
from app.schemas.settings import SystemSettingsSchema
from app.services import email_templates
from app.services.alert_service import alert_manager
from app.services.email_providers import EmailMessage
from app.services.email_service import email_service
from app.services.geocoding_service import geocoding_service
from app.services.match_engine import find_matching_alerts
from app.services.push_service import push_service

logger = logging.getLogger(__name__)

EMERGENCY_PUSH_TITLE = "EMERGENCY: New Report in your area"
STANDARD_PUSH_TITLE = "New Report in your area"
DEFAULT_PUSH_MESSAGE = "A new report was submitted near your alert area."


@dataclass
class NotificationSummary:
    report_id: int
    matched_alerts: int = 0
    emails_sent: int = 0
    emails_skipped: int = 0
    push_delivered: int = 0
    email_failed: bool = False


def push_title(is_emergency: bool) -> str:
    return EMERGENCY_PUSH_TITLE if is_emergency else STANDARD_PUSH_TITLE


class NotificationPipeline:
    def __init__(
        self,
        settings_provider=settings_cache,
        matcher=find_matching_alerts,
        alerts=alert_manager,
        geocoder=geocoding_service,
        mailer=email_service,
        pusher=push_service
    ):
        self.settings_provider = settings_provider
        self.matcher = matcher
        self.alerts = alerts
        self.geocoder = geocoder
        self.mailer = mailer
        self.pusher = pusher

    def process_report(self, db: Session, report_id: int) -> Optional[NotificationSummary]:
        """
        Notify every subscriber whose alert contains the report.

        Deliveries already made are not rolled back if a later step fails.
        An exhausted email fallback chain only fails the job when no push
        notification was delivered either.

        Returns:
            A summary, or None if the report is missing or was soft-deleted
            before the job ran
        """
        report = report_crud.get(db, report_id)
        if report is None:
            logger.error(f"Report {report_id} not found or deleted, skipping notifications")
            return None

        current = self.settings_provider.get()
        summary = NotificationSummary(report_id=report.id)

        matches = self.matcher(db, report.latitude, report.longitude)
        summary.matched_alerts = len(matches)
        if not matches:
            logger.info(f"Report {report.external_id}: no matching alerts")
            return summary

        email_error: Optional[EmailDeliveryError] = None
        email_alerts = [a for a in matches if a.use_email]
        if email_alerts and current.email_notifications_enabled:
            try:
                self._send_emails(report, email_alerts, current, summary)
            except EmailDeliveryError as e:
                logger.error(f"Email delivery failed for report {report.external_id}: {e}")
                summary.email_failed = True
                email_error = e

        push_alerts = [a for a in matches if a.use_push]
        if push_alerts and current.push_notifications_enabled:
            self._send_pushes(db, report, push_alerts, current, summary)

        logger.info(
            f"Report {report.external_id}: {summary.matched_alerts} matches, {summary.emails_sent} emails, "
            f"{summary.emails_skipped} skipped, {summary.push_delivered} pushes"
        )

        if email_error is not None and summary.push_delivered == 0:
            raise email_error
        return summary

    def _send_emails(
        self,
        report: Report,
        alerts: List[Alert],
        current: SystemSettingsSchema,
        summary: NotificationSummary
    ) -> None:
        address = self._lookup_address(report, current)
        subject = email_templates.alert_subject(report.is_emergency)
        show_map = bool(current.mapbox_token)

        messages: List[EmailMessage] = []
        for alert in alerts:
            email = self.alerts.decrypt_email(alert.encrypted_email)
            if not email:
                if alert.encrypted_email:
                    logger.warning(
                        f"Failed to decrypt email for alert {alert.id}. The encryption keys may have changed."
                    )
                summary.emails_skipped += 1
                continue

            body = email_templates.render_alert_email(report, alert, address=address, show_map=show_map)
            messages.append(EmailMessage(to=email, subject=subject, html=body))

        if messages:
            self.mailer.send_batch(messages)
            summary.emails_sent = len(messages)

    def _lookup_address(self, report: Report, current: SystemSettingsSchema) -> Optional[str]:
        # Address is optional in the email body
        try:
            return self.geocoder.reverse_geocode(report.latitude, report.longitude, current.mapbox_token)
        except Exception as e:
            logger.warning(f"Reverse geocoding failed for report {report.external_id}: {e}")
            return None

    def _send_pushes(
        self,
        db: Session,
        report: Report,
        alerts: List[Alert],
        current: SystemSettingsSchema,
        summary: NotificationSummary
    ) -> None:
        owners = sorted({a.user_identifier for a in alerts if a.user_identifier})
        subscriptions = push_crud.get_for_owners(db, owners)
        if not subscriptions:
            return

        summary.push_delivered = self.pusher.send_notifications(
            db,
            subscriptions,
            title=push_title(report.is_emergency),
            message=report.message or DEFAULT_PUSH_MESSAGE,
            current=current,
            url=email_templates.heat_map_url(report, settings.BASE_URL),
        )


# Singleton instance
notification_pipeline = NotificationPipeline()
