"""
Tests for the Celery task wrappers, called directly (no broker).
"""

import pytest

from conftest import TestingSessionLocal, make_report
from app.core.celery_utils import dispatch_pending
from app.core.database import utcnow
from app.core.exceptions import DeliveryError, EmailDeliveryError
from app.services.alert_service import PendingTask
from app.services.email_templates import VERIFICATION_SUBJECT
from app.services.notification_pipeline import NotificationSummary
from app.tasks import email_tasks, maintenance_tasks, notification_tasks


class RecordingEmailService:
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    def send_email(self, to, subject, html):
        if self.error:
            raise self.error
        self.sent.append((to, subject, html))


def test_verification_email_contains_link(monkeypatch):
    mailer = RecordingEmailService()
    monkeypatch.setattr(email_tasks, "email_service", mailer)

    result = email_tasks.send_verification_email("a@example.com", "abc123")

    assert result == {"status": "success"}
    to, subject, html = mailer.sent[0]
    assert to == "a@example.com"
    assert subject == VERIFICATION_SUBJECT
    assert "/verify-email?token=abc123" in html


def test_verification_email_failure_propagates(monkeypatch):
    monkeypatch.setattr(email_tasks, "email_service", RecordingEmailService(
        error=EmailDeliveryError([DeliveryError("smtp down")])
    ))

    with pytest.raises(EmailDeliveryError):
        email_tasks.send_verification_email("a@example.com", "abc123")


def test_notification_task_returns_counts(monkeypatch, db_session):
    report = make_report(db_session)

    class FakePipeline:
        def process_report(self, db, report_id):
            return NotificationSummary(report_id=report_id, matched_alerts=2, push_delivered=1)

    monkeypatch.setattr(notification_tasks, "SessionLocal", TestingSessionLocal)
    monkeypatch.setattr(notification_tasks, "notification_pipeline", FakePipeline())

    result = notification_tasks.process_report_notifications(report.id)

    assert result["status"] == "success"
    assert result["matched_alerts"] == 2
    assert result["push_delivered"] == 1


def test_notification_task_missing_report(monkeypatch, db_session):
    class EmptyPipeline:
        def process_report(self, db, report_id):
            return None

    monkeypatch.setattr(notification_tasks, "SessionLocal", TestingSessionLocal)
    monkeypatch.setattr(notification_tasks, "notification_pipeline", EmptyPipeline())

    assert notification_tasks.process_report_notifications(42)["status"] == "error"


def test_purge_task_uses_runtime_retention(monkeypatch, db_session):
    make_report(db_session, created_at=utcnow().replace(year=2000))
    monkeypatch.setattr(maintenance_tasks, "SessionLocal", TestingSessionLocal)

    result = maintenance_tasks.purge_expired_data()

    assert result["status"] == "success"
    assert result["deleted"]["reports"] == 1


def test_dispatch_pending_queues_known_tasks(queued_tasks):
    queued = dispatch_pending([
        PendingTask(name="send_verification_email", kwargs={"email": "a@example.com", "token": "t"}),
        PendingTask(name="no_such_task", kwargs={}),
    ])

    assert queued == 1
    assert queued_tasks == [("send_verification_email", {"email": "a@example.com", "token": "t"})]
