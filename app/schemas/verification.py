"""
Pydantic schemas for email verification endpoints.
"""

from pydantic import BaseModel


class VerificationResponse(BaseModel):
    """Response after verification attempt"""
    success: bool
    message: str
    alerts_verified: int = 0
