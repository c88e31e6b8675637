"""
Pydantic schemas for runtime system settings.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class SystemSettingsSchema(BaseModel):
    """
    Immutable snapshot of the SystemSettings row.

    This is the value held by the settings cache; defaults apply when the
    row has not been created yet.
    """
    model_config = ConfigDict(from_attributes=True, frozen=True)

    report_cooldown_minutes: int = 5
    max_report_distance_miles: float = 5.0
    alert_limit_count: int = 3
    report_expiry_hours: int = 6
    data_retention_days: int = 30
    email_notifications_enabled: bool = True
    push_notifications_enabled: bool = True
    mapbox_token: Optional[str] = None
    vapid_public_key: Optional[str] = None
    vapid_private_key: Optional[str] = None
    vapid_subject: Optional[str] = None


class SystemSettingsUpdate(BaseModel):
    """Admin update of system settings. Omitted fields keep their value."""
    report_cooldown_minutes: Optional[int] = Field(None, ge=0)
    max_report_distance_miles: Optional[float] = Field(None, gt=0)
    alert_limit_count: Optional[int] = Field(None, ge=1)
    report_expiry_hours: Optional[int] = Field(None, ge=1)
    data_retention_days: Optional[int] = Field(None, ge=1)
    email_notifications_enabled: Optional[bool] = None
    push_notifications_enabled: Optional[bool] = None
    mapbox_token: Optional[str] = None
    vapid_public_key: Optional[str] = None
    vapid_private_key: Optional[str] = None
    vapid_subject: Optional[str] = None


class PublicSettingsResponse(BaseModel):
    """Settings that clients may read (no secrets)"""
    report_cooldown_minutes: int
    max_report_distance_miles: float
    alert_limit_count: int
    report_expiry_hours: int
    vapid_public_key: Optional[str] = None
