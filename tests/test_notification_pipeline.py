"""
Tests for the per-report notification pipeline.

Matching, decryption, templating and the push service run for real; only
the outbound transports (email chain, webpush sender, geocoder) are faked.
"""

import pytest

from conftest import StaticSettings, make_alert, make_report, make_subscription
from app.core.database import utcnow
from app.core.exceptions import DeliveryError, EmailDeliveryError
from app.services.alert_service import AlertLifecycleManager
from app.services.email_templates import EMERGENCY_SUBJECT, STANDARD_SUBJECT
from app.services.notification_pipeline import (
    DEFAULT_PUSH_MESSAGE,
    EMERGENCY_PUSH_TITLE,
    NotificationPipeline,
    STANDARD_PUSH_TITLE,
)
from app.services.push_service import PushService

VAPID = {"vapid_public_key": "public-key", "vapid_private_key": "private-key"}


class RecordingMailer:
    def __init__(self, error=None):
        self.error = error
        self.batches = []

    def send_batch(self, messages):
        if self.error:
            raise self.error
        self.batches.append(list(messages))


class RecordingSender:
    def __init__(self):
        self.calls = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)


class FailingGeocoder:
    def reverse_geocode(self, latitude, longitude, mapbox_token=None):
        raise RuntimeError("geocoder exploded")


class FixedGeocoder:
    def __init__(self, address):
        self.address = address
        self.calls = 0

    def reverse_geocode(self, latitude, longitude, mapbox_token=None):
        self.calls += 1
        return self.address


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def geocoder():
    return FixedGeocoder("12 <Elm> Street")


@pytest.fixture
def build_pipeline(encryption, sender, mailer, geocoder):
    def build(mailer=mailer, geocoder=geocoder, **settings_overrides):
        values = dict(VAPID)
        values.update(settings_overrides)
        return NotificationPipeline(
            settings_provider=StaticSettings(**values),
            alerts=AlertLifecycleManager(encryption=encryption),
            geocoder=geocoder,
            mailer=mailer,
            pusher=PushService(sender=sender),
        )
    return build


def test_emergency_report_pushes_to_owner_once(db_session, build_pipeline, sender, mailer):
    make_alert(db_session, 40.0, -74.0, radius_km=10.0, use_email=False, use_push=True)
    make_subscription(db_session)
    report = make_report(db_session, 40.01, -74.0, is_emergency=True, message="Checkpoint on Main St")

    summary = build_pipeline().process_report(db_session, report.id)

    assert summary.matched_alerts == 1
    assert summary.push_delivered == 1
    assert len(sender.calls) == 1
    assert EMERGENCY_PUSH_TITLE in sender.calls[0]["data"]
    assert "Checkpoint on Main St" in sender.calls[0]["data"]
    assert mailer.batches == []


def test_owner_with_two_matching_alerts_is_pushed_once(db_session, build_pipeline, sender):
    make_alert(db_session, 40.0, -74.0, radius_km=10.0)
    make_alert(db_session, 40.005, -74.0, radius_km=10.0)
    make_subscription(db_session)
    report = make_report(db_session, 40.01, -74.0)

    summary = build_pipeline().process_report(db_session, report.id)

    assert summary.matched_alerts == 2
    assert len(sender.calls) == 1
    assert STANDARD_PUSH_TITLE in sender.calls[0]["data"]
    assert DEFAULT_PUSH_MESSAGE in sender.calls[0]["data"]


def test_email_alerts_are_sent_as_one_batch(db_session, build_pipeline, encryption, mailer, geocoder):
    for address in ("a@example.com", "b@example.com"):
        make_alert(
            db_session, 40.0, -74.0,
            use_email=True, use_push=False,
            encrypted_email=encryption.encrypt(address),
            message="<b>home</b>"
        )
    report = make_report(db_session, 40.01, -74.0)

    summary = build_pipeline().process_report(db_session, report.id)

    assert summary.emails_sent == 2
    assert geocoder.calls == 1
    assert len(mailer.batches) == 1
    batch = mailer.batches[0]
    assert sorted(m.to for m in batch) == ["a@example.com", "b@example.com"]
    assert all(m.subject == STANDARD_SUBJECT for m in batch)
    assert "12 &lt;Elm&gt; Street" in batch[0].html
    assert "&lt;b&gt;home&lt;/b&gt;" in batch[0].html


def test_emergency_email_subject(db_session, build_pipeline, encryption, mailer):
    make_alert(db_session, use_email=True, use_push=False, encrypted_email=encryption.encrypt("a@example.com"))
    report = make_report(db_session, is_emergency=True)

    build_pipeline().process_report(db_session, report.id)

    assert mailer.batches[0][0].subject == EMERGENCY_SUBJECT
    assert "THIS IS MARKED AS AN EMERGENCY" in mailer.batches[0][0].html


def test_undecryptable_email_is_skipped(db_session, build_pipeline, encryption, mailer):
    make_alert(db_session, use_email=True, use_push=False, encrypted_email="corrupted-data")
    make_alert(db_session, use_email=True, use_push=False, encrypted_email=encryption.encrypt("ok@example.com"))
    report = make_report(db_session)

    summary = build_pipeline().process_report(db_session, report.id)

    assert summary.emails_skipped == 1
    assert [m.to for m in mailer.batches[0]] == ["ok@example.com"]


def test_disabled_email_channel_sends_nothing(db_session, build_pipeline, encryption, mailer):
    make_alert(db_session, use_email=True, use_push=False, encrypted_email=encryption.encrypt("a@example.com"))
    report = make_report(db_session)

    summary = build_pipeline(email_notifications_enabled=False).process_report(db_session, report.id)

    assert summary.matched_alerts == 1
    assert summary.emails_sent == 0
    assert mailer.batches == []


def test_disabled_push_channel_sends_nothing(db_session, build_pipeline, sender):
    make_alert(db_session)
    make_subscription(db_session)
    report = make_report(db_session)

    summary = build_pipeline(push_notifications_enabled=False).process_report(db_session, report.id)

    assert summary.push_delivered == 0
    assert sender.calls == []


def test_email_failure_without_push_fails_the_job(db_session, build_pipeline, encryption):
    make_alert(db_session, use_email=True, use_push=False, encrypted_email=encryption.encrypt("a@example.com"))
    report = make_report(db_session)
    failing = RecordingMailer(error=EmailDeliveryError([DeliveryError("smtp down")]))

    with pytest.raises(EmailDeliveryError):
        build_pipeline(mailer=failing).process_report(db_session, report.id)


def test_email_failure_with_push_delivered_succeeds(db_session, build_pipeline, encryption, sender):
    make_alert(db_session, use_email=True, use_push=True, encrypted_email=encryption.encrypt("a@example.com"))
    make_subscription(db_session)
    report = make_report(db_session)
    failing = RecordingMailer(error=EmailDeliveryError([DeliveryError("smtp down")]))

    summary = build_pipeline(mailer=failing).process_report(db_session, report.id)

    assert summary.email_failed is True
    assert summary.push_delivered == 1


def test_report_without_matches(db_session, build_pipeline, sender, mailer):
    make_alert(db_session, 10.0, 10.0, radius_km=5.0)
    report = make_report(db_session, 40.0, -74.0)

    summary = build_pipeline().process_report(db_session, report.id)

    assert summary.matched_alerts == 0
    assert sender.calls == []
    assert mailer.batches == []


def test_missing_report_returns_none(db_session, build_pipeline):
    assert build_pipeline().process_report(db_session, 9999) is None


def test_soft_deleted_report_is_not_notified(db_session, build_pipeline, encryption, sender, mailer):
    make_alert(db_session, use_email=True, use_push=True, encrypted_email=encryption.encrypt("a@example.com"))
    make_subscription(db_session)
    report = make_report(db_session, deleted_at=utcnow())

    assert build_pipeline().process_report(db_session, report.id) is None
    assert sender.calls == []
    assert mailer.batches == []


def test_geocoder_error_does_not_block_delivery(db_session, build_pipeline, encryption, sender, mailer):
    make_alert(db_session, use_email=True, use_push=True, encrypted_email=encryption.encrypt("a@example.com"))
    make_subscription(db_session)
    report = make_report(db_session)

    summary = build_pipeline(geocoder=FailingGeocoder()).process_report(db_session, report.id)

    assert summary.emails_sent == 1
    assert summary.push_delivered == 1
    assert len(sender.calls) == 1
    assert "Approx. Address" not in mailer.batches[0][0].html


def test_email_time_uses_report_location_timezone(db_session, build_pipeline, encryption, mailer):
    make_alert(db_session, 48.85, 2.35, use_email=True, use_push=False, encrypted_email=encryption.encrypt("a@example.com"))
    report = make_report(db_session, 48.85, 2.35)

    build_pipeline().process_report(db_session, report.id)

    assert "(Europe/Paris)" in mailer.batches[0][0].html
