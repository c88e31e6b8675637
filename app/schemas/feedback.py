from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from uuid import UUID


class FeedbackCreateRequest(BaseModel):
    type: str = Field("Bug", max_length=32)
    message: str = Field(..., min_length=1, max_length=4000)
    user_identifier: Optional[str] = Field(None, max_length=200)


class FeedbackResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    external_id: UUID
    type: str
    message: str
    created_at: datetime
    deleted_at: Optional[datetime] = None
