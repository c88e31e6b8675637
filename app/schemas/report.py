from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from uuid import UUID


class ReportCreateRequest(BaseModel):
    """Schema for submitting a new report"""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    message: Optional[str] = Field(None, max_length=1000)
    is_emergency: bool = False
    reporter_identifier: Optional[str] = Field(None, max_length=200)
    reporter_latitude: Optional[float] = Field(None, ge=-90, le=90)
    reporter_longitude: Optional[float] = Field(None, ge=-180, le=180)


class ReportResponse(BaseModel):
    """Public view of a report. The internal numeric id is never exposed."""
    model_config = ConfigDict(from_attributes=True)

    external_id: UUID
    latitude: float
    longitude: float
    message: Optional[str] = None
    is_emergency: bool
    created_at: datetime


class ReportAdminResponse(ReportResponse):
    """Admin view including moderation fields"""
    reporter_identifier: Optional[str] = None
    reporter_latitude: Optional[float] = None
    reporter_longitude: Optional[float] = None
    deleted_at: Optional[datetime] = None
