from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from uuid import UUID


class AlertCreateRequest(BaseModel):
    """Schema for creating a new alert"""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    radius_km: float = Field(..., gt=0)
    message: Optional[str] = Field(None, max_length=500)
    email: Optional[str] = Field(None, max_length=320)
    use_email: bool = True
    use_push: bool = True
    user_identifier: Optional[str] = Field(None, max_length=200)


class AlertUpdateRequest(BaseModel):
    """
    Schema for updating an alert in place.

    Omitted fields keep their value. Sending a new email re-triggers
    verification unless that address is already verified.
    """
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius_km: Optional[float] = Field(None, gt=0)
    message: Optional[str] = Field(None, max_length=500)
    email: Optional[str] = Field(None, max_length=320)
    use_email: Optional[bool] = None
    use_push: Optional[bool] = None
    user_identifier: Optional[str] = Field(None, max_length=200)


class AlertResponse(BaseModel):
    """Public view of an alert. Email data is never returned."""
    model_config = ConfigDict(from_attributes=True)

    external_id: UUID
    latitude: float
    longitude: float
    radius_km: float
    message: Optional[str] = None
    is_verified: bool
    use_email: bool
    use_push: bool
    created_at: datetime


class AlertAdminResponse(AlertResponse):
    user_identifier: Optional[str] = None
    deleted_at: Optional[datetime] = None
