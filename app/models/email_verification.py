"""
Email verification model for alert subscriber addresses.

One row per distinct email hash. The token is single-use in the sense that
confirming it sets verified_at once; later confirmations are no-ops.
"""

from sqlalchemy import Column, Integer, String, DateTime
from app.core.database import Base, utcnow


class EmailVerification(Base):
    __tablename__ = "email_verifications"

    id = Column(Integer, primary_key=True, index=True)

    email_hash = Column(String(64), unique=True, nullable=False, index=True)
    token = Column(String(64), unique=True, nullable=False, index=True)

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    verified_at = Column(DateTime, nullable=True)

    @property
    def is_verified(self) -> bool:
        return self.verified_at is not None

    def __repr__(self):
        return f"<EmailVerification(email_hash={self.email_hash[:12]}..., verified_at={self.verified_at})>"
