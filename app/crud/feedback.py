"""
CRUD operations for Feedback model.
"""

from datetime import datetime

from sqlalchemy.orm import Session
from app.crud.base import CRUDBase
from app.models.feedback import Feedback


class CRUDFeedback(CRUDBase[Feedback]):
    def has_recent_from(self, db: Session, user_identifier: str, since: datetime) -> bool:
        return self.exists_since(db, Feedback.user_identifier, user_identifier, since)


feedback = CRUDFeedback(Feedback)
