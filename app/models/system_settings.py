"""
SystemSettings singleton model.

Runtime-tunable thresholds and provider tokens. Read through the settings
cache, never queried directly on hot paths.
"""

from sqlalchemy import Column, Integer, Float, Boolean, String
from app.core.database import Base


class SystemSettings(Base):
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, default=1)

    # Anti-spam
    report_cooldown_minutes = Column(Integer, nullable=False, default=5)
    max_report_distance_miles = Column(Float, nullable=False, default=5.0)
    alert_limit_count = Column(Integer, nullable=False, default=3)

    # Data lifetime
    report_expiry_hours = Column(Integer, nullable=False, default=6)
    data_retention_days = Column(Integer, nullable=False, default=30)

    # Global notification kill switches
    email_notifications_enabled = Column(Boolean, nullable=False, default=True)
    push_notifications_enabled = Column(Boolean, nullable=False, default=True)

    # Provider tokens
    mapbox_token = Column(String, nullable=True)
    vapid_public_key = Column(String, nullable=True)
    vapid_private_key = Column(String, nullable=True)
    vapid_subject = Column(String, nullable=True)
