"""
CRUD operations for Report model.
"""

from datetime import datetime
from typing import List

from sqlalchemy.orm import Session
from app.crud.base import CRUDBase
from app.models.report import Report


class CRUDReport(CRUDBase[Report]):
    def has_recent_from(self, db: Session, reporter_identifier: str, since: datetime) -> bool:
        return self.exists_since(db, Report.reporter_identifier, reporter_identifier, since)

    def get_recent(self, db: Session, since: datetime, limit: int = 1000) -> List[Report]:
        """Non-deleted reports created at or after since, newest first."""
        return (
            self._query(db)
            .filter(Report.created_at >= since)
            .order_by(Report.created_at.desc())
            .limit(limit)
            .all()
        )


report = CRUDReport(Report)
