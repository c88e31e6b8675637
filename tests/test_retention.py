"""
Unit tests for the expired data purge.
"""

from datetime import timedelta

from conftest import StaticSettings, make_alert, make_report
from app.core.database import utcnow
from app.models.alert import Alert
from app.models.email_verification import EmailVerification
from app.models.feedback import Feedback
from app.models.report import Report
from app.services.retention import purge_expired_data


def test_purges_only_expired_rows(db_session):
    now = utcnow()
    old = now - timedelta(days=31)

    make_report(db_session, created_at=old)
    make_report(db_session, created_at=old, deleted_at=old)
    fresh_report = make_report(db_session)

    make_alert(db_session, created_at=old, deleted_at=old)
    recently_deleted = make_alert(db_session, created_at=old, deleted_at=now - timedelta(days=1))
    old_active = make_alert(db_session, created_at=old)

    db_session.add_all([
        EmailVerification(email_hash="A" * 64, token="stale", created_at=now - timedelta(hours=25)),
        EmailVerification(email_hash="B" * 64, token="pending", created_at=now - timedelta(hours=1)),
        EmailVerification(
            email_hash="C" * 64, token="confirmed",
            created_at=now - timedelta(days=60), verified_at=now - timedelta(days=59)
        ),
        Feedback(message="old", created_at=now - timedelta(days=400)),
        Feedback(message="recent", created_at=now - timedelta(days=10)),
    ])
    db_session.commit()

    counts = purge_expired_data(db_session, StaticSettings(data_retention_days=30).get())

    assert counts == {"reports": 2, "alerts": 1, "email_verifications": 1, "feedback": 1}
    assert [r.id for r in db_session.query(Report).all()] == [fresh_report.id]
    assert sorted(a.id for a in db_session.query(Alert).all()) == sorted([recently_deleted.id, old_active.id])
    assert sorted(v.token for v in db_session.query(EmailVerification).all()) == ["confirmed", "pending"]
    assert [f.message for f in db_session.query(Feedback).all()] == ["recent"]


def test_nothing_to_purge(db_session):
    make_report(db_session)

    counts = purge_expired_data(db_session, StaticSettings().get())

    assert counts == {"reports": 0, "alerts": 0, "email_verifications": 0, "feedback": 0}
