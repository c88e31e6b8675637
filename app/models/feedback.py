"""
Feedback database model.

User bug reports and feature requests. Goes through the same anti-spam
gate as reports and alerts.
"""

from sqlalchemy import Column, Integer, String, Text
from app.core.database import Base
from app.models.mixins import SoftDeleteMixin

AUTO_REPORTED_PREFIX = "[AUTO-REPORTED]"


class Feedback(SoftDeleteMixin, Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(32), nullable=False, default="Bug")
    message = Column(Text, nullable=False, default="")
    user_identifier = Column(String, nullable=True, index=True)

    @property
    def is_auto_reported(self) -> bool:
        return (self.message or "").startswith(AUTO_REPORTED_PREFIX)
