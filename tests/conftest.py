"""
Pytest configuration and fixtures for testing.

This file provides reusable test fixtures for:
- Database setup/teardown
- FastAPI test client
- Settings cache bound to the test database
- Recorded (not queued) Celery tasks
"""

import os

# Must be set before app modules create the engine
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite://")
os.environ.setdefault("ADMIN_API_TOKEN", "test-admin-token")

import pytest
from cryptography.fernet import Fernet
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.core.encryption import EmailEncryption
from app.core.rate_limiter import rate_limiter
from app.core.settings_cache import settings_cache
from app.models.alert import Alert
from app.models.push_subscription import WebPushSubscription
from app.models.report import Report
from app.schemas.settings import SystemSettingsSchema
from main import app


# Use in-memory SQLite for testing (fast, isolated)
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_HEADERS = {"Authorization": "Bearer test-admin-token"}


@pytest.fixture(autouse=True)
def isolate_infrastructure(monkeypatch):
    """
    Point the settings cache at the test database and disable Redis rate limiting.
    """
    monkeypatch.setattr(settings_cache, "_session_factory", TestingSessionLocal)
    settings_cache.invalidate()
    monkeypatch.setattr(rate_limiter, "check_rate_limit", lambda *args, **kwargs: None)
    yield
    settings_cache.invalidate()


@pytest.fixture
def db_session():
    """
    Create a fresh database session for each test.
    Tables are dropped after the test completes.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def queued_tasks(monkeypatch):
    """
    Record tasks instead of sending them to the broker.

    Each entry is (task_name, kwargs).
    """
    calls = []

    def fake_queue(task, *args, **kwargs):
        calls.append((task.name, kwargs))
        return True

    monkeypatch.setattr("app.core.celery_utils.queue_task_safely", fake_queue)
    return calls


@pytest.fixture
def client(db_session, queued_tasks):
    """
    FastAPI test client with overridden database dependency.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def encryption():
    return EmailEncryption(keys=[Fernet.generate_key().decode()])


class StaticSettings:
    """Settings provider returning a fixed snapshot (stands in for the cache)."""

    def __init__(self, **overrides):
        self.value = SystemSettingsSchema(**overrides)

    def get(self):
        return self.value


@pytest.fixture
def static_settings():
    return StaticSettings


def make_report(db, latitude=40.0, longitude=-74.0, **kwargs) -> Report:
    report = Report(latitude=latitude, longitude=longitude, **kwargs)
    db.add(report)
    db.commit()
    db.refresh(report)
    return report


def make_alert(db, latitude=40.0, longitude=-74.0, radius_km=10.0, **kwargs) -> Alert:
    kwargs.setdefault("is_verified", True)
    kwargs.setdefault("use_email", False)
    kwargs.setdefault("use_push", True)
    kwargs.setdefault("user_identifier", "owner-device-1")
    alert = Alert(latitude=latitude, longitude=longitude, radius_km=radius_km, **kwargs)
    db.add(alert)
    db.commit()
    db.refresh(alert)
    return alert


def make_subscription(db, user_identifier="owner-device-1", endpoint="https://push.example.com/sub/1") -> WebPushSubscription:
    subscription = WebPushSubscription(
        user_identifier=user_identifier,
        endpoint=endpoint,
        p256dh="p256dh-key",
        auth="auth-secret"
    )
    db.add(subscription)
    db.commit()
    db.refresh(subscription)
    return subscription
