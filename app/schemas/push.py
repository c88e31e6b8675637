"""
Pydantic schemas for web push subscription endpoints.
"""

from pydantic import BaseModel, Field


class PushSubscribeRequest(BaseModel):
    """Browser PushSubscription flattened together with the owner identifier"""
    user_identifier: str = Field(..., min_length=1, max_length=200)
    endpoint: str = Field(..., min_length=1)
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class PushUnsubscribeRequest(BaseModel):
    user_identifier: str = Field(..., min_length=1, max_length=200)
    endpoint: str = Field(..., min_length=1)
