"""
Unit tests for alert creation, update, verification and deletion.
"""

import pytest

from app.core import verification as verification_core
from app.core.exceptions import NotFoundError, ValidationError
from app.core.hashing import hash_email
from app.crud import alert as alert_crud
from app.models.email_verification import EmailVerification
from app.schemas.alert import AlertCreateRequest, AlertUpdateRequest
from app.services.alert_service import AlertLifecycleManager, SEND_VERIFICATION_EMAIL_TASK
from app.services.match_engine import find_matching_alerts
from app.services.submission_gate import SubmissionGate

OWNER = "owner-device-1"


@pytest.fixture
def manager(static_settings, encryption):
    gate = SubmissionGate(settings_provider=static_settings(alert_limit_count=10), identifier_min_length=8)
    return AlertLifecycleManager(gate=gate, encryption=encryption, max_radius_km=160.9)


def alert_request(**overrides) -> AlertCreateRequest:
    data = {
        "latitude": 40.0,
        "longitude": -74.0,
        "radius_km": 5.0,
        "message": "My street",
        "email": "user@example.com",
        "use_email": True,
        "use_push": False,
        "user_identifier": OWNER,
    }
    data.update(overrides)
    return AlertCreateRequest(**data)


class TestCreateAlert:
    def test_email_alert_starts_unverified_and_queues_email(self, manager, encryption, db_session):
        change = manager.create_alert(db_session, alert_request())
        alert = change.alert

        assert alert.is_verified is False
        assert alert.email_hash == hash_email("user@example.com")
        assert encryption.decrypt(alert.encrypted_email) == "user@example.com"

        verification = db_session.query(EmailVerification).filter_by(email_hash=alert.email_hash).one()
        assert len(change.side_effects) == 1
        task = change.side_effects[0]
        assert task.name == SEND_VERIFICATION_EMAIL_TASK
        assert task.kwargs == {"email": "user@example.com", "token": verification.token}

    def test_radius_is_clamped(self, manager, db_session):
        change = manager.create_alert(db_session, alert_request(radius_km=500.0))
        assert change.alert.radius_km == 160.9

    def test_push_only_alert_is_verified_immediately(self, manager, db_session):
        change = manager.create_alert(db_session, alert_request(email=None, use_email=False, use_push=True))

        assert change.alert.is_verified is True
        assert change.alert.encrypted_email is None
        assert change.side_effects == []
        assert db_session.query(EmailVerification).count() == 0

    def test_already_verified_email_skips_verification(self, manager, db_session):
        first = manager.create_alert(db_session, alert_request())
        manager.verify_email(db_session, first.side_effects[0].kwargs["token"])

        second = manager.create_alert(db_session, alert_request(email="  USER@example.com "))

        assert second.alert.is_verified is True
        assert second.side_effects == []

    def test_unverified_email_reuses_verification_row(self, manager, db_session):
        first = manager.create_alert(db_session, alert_request())
        second = manager.create_alert(db_session, alert_request())

        assert db_session.query(EmailVerification).count() == 1
        assert first.side_effects[0].kwargs["token"] == second.side_effects[0].kwargs["token"]

    def test_email_required_for_email_channel(self, manager, db_session):
        with pytest.raises(ValidationError):
            manager.create_alert(db_session, alert_request(email=""))

    def test_some_channel_required(self, manager, db_session):
        with pytest.raises(ValidationError):
            manager.create_alert(db_session, alert_request(use_email=False, use_push=False))

    def test_gate_rejection_persists_nothing(self, manager, db_session):
        with pytest.raises(ValidationError):
            manager.create_alert(db_session, alert_request(message="www.evil.com"))
        assert alert_crud.get_multi(db_session, include_deleted=True) == []


class TestVerifyEmail:
    def test_unknown_token_raises_not_found(self, manager, db_session):
        with pytest.raises(NotFoundError):
            manager.verify_email(db_session, "deadbeef")

    def test_verification_is_idempotent(self, manager, db_session):
        change = manager.create_alert(db_session, alert_request())
        token = change.side_effects[0].kwargs["token"]

        first = manager.verify_email(db_session, token)
        verification = db_session.query(EmailVerification).one()
        verified_at = verification.verified_at

        second = manager.verify_email(db_session, token)
        db_session.refresh(verification)

        assert len(first) == 1
        assert second == []
        assert verification.verified_at == verified_at

    def test_one_confirmation_unlocks_all_alerts_for_address(self, manager, db_session):
        a = manager.create_alert(db_session, alert_request())
        b = manager.create_alert(db_session, alert_request(latitude=41.0, email="User@Example.com"))

        manager.verify_email(db_session, a.side_effects[0].kwargs["token"])

        db_session.refresh(a.alert)
        db_session.refresh(b.alert)
        assert a.alert.is_verified is True
        assert b.alert.is_verified is True


class TestUpdateAlert:
    def test_changing_email_resets_verification(self, manager, db_session):
        created = manager.create_alert(db_session, alert_request())
        manager.verify_email(db_session, created.side_effects[0].kwargs["token"])

        change = manager.update_alert(
            db_session,
            created.alert.external_id,
            AlertUpdateRequest(email="new@example.com", user_identifier=OWNER)
        )

        assert change.alert.is_verified is False
        assert change.alert.email_hash == hash_email("new@example.com")
        assert change.side_effects[0].kwargs["email"] == "new@example.com"

    def test_same_email_keeps_verification(self, manager, db_session):
        created = manager.create_alert(db_session, alert_request())
        manager.verify_email(db_session, created.side_effects[0].kwargs["token"])

        change = manager.update_alert(
            db_session,
            created.alert.external_id,
            AlertUpdateRequest(email=" user@EXAMPLE.com", radius_km=8.0, user_identifier=OWNER)
        )

        assert change.alert.is_verified is True
        assert change.alert.radius_km == 8.0
        assert change.side_effects == []

    def test_switching_to_push_only_verifies(self, manager, db_session):
        created = manager.create_alert(db_session, alert_request())
        assert created.alert.is_verified is False

        change = manager.update_alert(
            db_session,
            created.alert.external_id,
            AlertUpdateRequest(use_email=False, use_push=True, user_identifier=OWNER)
        )

        assert change.alert.is_verified is True
        assert change.side_effects == []

    def test_enabling_email_on_push_only_alert_sends_verification(self, manager, db_session):
        created = manager.create_alert(db_session, alert_request(use_email=False, use_push=True))
        assert created.alert.is_verified is True
        assert created.side_effects == []

        change = manager.update_alert(
            db_session,
            created.alert.external_id,
            AlertUpdateRequest(use_email=True, user_identifier=OWNER)
        )

        assert change.alert.is_verified is False
        verification = db_session.query(EmailVerification).filter_by(email_hash=hash_email("user@example.com")).one()
        assert len(change.side_effects) == 1
        assert change.side_effects[0].name == SEND_VERIFICATION_EMAIL_TASK
        assert change.side_effects[0].kwargs == {"email": "user@example.com", "token": verification.token}

        manager.verify_email(db_session, verification.token)
        db_session.refresh(change.alert)

        assert change.alert.is_verified is True
        assert [a.id for a in find_matching_alerts(db_session, 40.0, -74.0)] == [change.alert.id]

    def test_enabling_email_with_pending_verification_does_not_resend(self, manager, db_session):
        pending = manager.create_alert(db_session, alert_request(message="Other alert"))
        created = manager.create_alert(db_session, alert_request(use_email=False, use_push=True))

        change = manager.update_alert(
            db_session,
            created.alert.external_id,
            AlertUpdateRequest(use_email=True, use_push=False, user_identifier=OWNER)
        )

        second = manager.update_alert(
            db_session,
            created.alert.external_id,
            AlertUpdateRequest(radius_km=7.0, user_identifier=OWNER)
        )

        assert change.alert.is_verified is False
        assert change.side_effects[0].kwargs["token"] == pending.side_effects[0].kwargs["token"]
        assert second.side_effects == []
        assert db_session.query(EmailVerification).count() == 1

    def test_lost_verification_race_keeps_update_and_uses_existing_row(self, manager, db_session, monkeypatch):
        created = manager.create_alert(db_session, alert_request(use_email=False, use_push=True))
        new_hash = hash_email("new@example.com")
        db_session.add(EmailVerification(email_hash=new_hash, token="winner"))
        db_session.commit()

        real_get_verification = verification_core.get_verification
        calls = []

        def stale_first_read(db, email_hash):
            calls.append(email_hash)
            if len(calls) == 1:
                return None
            return real_get_verification(db, email_hash)

        monkeypatch.setattr(verification_core, "get_verification", stale_first_read)

        change = manager.update_alert(
            db_session,
            created.alert.external_id,
            AlertUpdateRequest(email="new@example.com", use_email=True, radius_km=7.0, user_identifier=OWNER)
        )

        db_session.refresh(change.alert)
        assert change.alert.radius_km == 7.0
        assert change.alert.email_hash == new_hash
        assert change.side_effects[0].kwargs["token"] == "winner"
        assert db_session.query(EmailVerification).count() == 1

    def test_other_owner_cannot_update(self, manager, db_session):
        created = manager.create_alert(db_session, alert_request())

        with pytest.raises(NotFoundError):
            manager.update_alert(
                db_session,
                created.alert.external_id,
                AlertUpdateRequest(radius_km=1.0, user_identifier="someone-else-42")
            )


class TestSoftDelete:
    def test_soft_deleted_alert_hidden_from_default_reads(self, manager, db_session):
        created = manager.create_alert(db_session, alert_request())
        external_id = created.alert.external_id

        manager.soft_delete(db_session, external_id, user_identifier=OWNER)

        with pytest.raises(NotFoundError):
            manager.get_alert(db_session, external_id)
        assert manager.get_alert(db_session, external_id, include_deleted=True).deleted_at is not None
        assert manager.list_alerts(db_session, OWNER) == []
        assert len(manager.list_alerts(db_session, OWNER, include_deleted=True)) == 1

    def test_wrong_owner_cannot_delete(self, manager, db_session):
        created = manager.create_alert(db_session, alert_request())

        with pytest.raises(NotFoundError):
            manager.soft_delete(db_session, created.alert.external_id, user_identifier="someone-else-42")


class TestDecryptEmail:
    def test_corrupted_blob_returns_none(self, manager):
        assert manager.decrypt_email("corrupted-data") is None
