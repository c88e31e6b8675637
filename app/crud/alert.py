"""
CRUD operations for Alert model.
"""

from datetime import datetime
from typing import List

from sqlalchemy.orm import Session
from app.crud.base import CRUDBase
from app.models.alert import Alert


class CRUDAlert(CRUDBase[Alert]):
    def count_recent_for_owner(self, db: Session, user_identifier: str, since: datetime) -> int:
        return self.count_since(db, Alert.user_identifier, user_identifier, since)

    def get_for_owner(self, db: Session, user_identifier: str, include_deleted: bool = False) -> List[Alert]:
        return (
            self._query(db, include_deleted)
            .filter(Alert.user_identifier == user_identifier)
            .order_by(Alert.created_at.desc())
            .all()
        )

    def get_verified_in_box(
        self,
        db: Session,
        min_lat: float,
        max_lat: float,
        min_lon: float,
        max_lon: float
    ) -> List[Alert]:
        """Verified, non-deleted alerts whose center lies inside the box."""
        return self._query(db).filter(
            Alert.is_verified.is_(True),
            Alert.latitude >= min_lat,
            Alert.latitude <= max_lat,
            Alert.longitude >= min_lon,
            Alert.longitude <= max_lon,
        ).all()


alert = CRUDAlert(Alert)
