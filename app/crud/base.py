"""
Generic repository for soft-deletable entities.

Every read goes through _query(), which hides soft-deleted rows unless the
caller explicitly passes include_deleted=True. Reports, alerts and feedback
all share this one filter.
"""

from datetime import datetime
from typing import Generic, List, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy.orm import Query, Session
from app.core.database import utcnow

ModelType = TypeVar("ModelType")


class CRUDBase(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        self.model = model

    def _query(self, db: Session, include_deleted: bool = False) -> Query:
        query = db.query(self.model)
        if not include_deleted:
            query = query.filter(self.model.deleted_at.is_(None))
        return query

    def add(self, db: Session, obj: ModelType) -> ModelType:
        """Persist a new entity and return it refreshed."""
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def get(self, db: Session, obj_id: int, include_deleted: bool = False) -> Optional[ModelType]:
        return self._query(db, include_deleted).filter(self.model.id == obj_id).first()

    def get_by_external_id(self, db: Session, external_id: UUID, include_deleted: bool = False) -> Optional[ModelType]:
        return self._query(db, include_deleted).filter(self.model.external_id == external_id).first()

    def get_multi(
        self,
        db: Session,
        skip: int = 0,
        limit: int = 100,
        include_deleted: bool = False
    ) -> List[ModelType]:
        """
        Retrieve entities newest first with pagination.

        Args:
            db: Database session
            skip: Number of records to skip (offset)
            limit: Maximum number of records to return
            include_deleted: Also return soft-deleted rows (admin/audit views)

        Returns:
            List of entities
        """
        return (
            self._query(db, include_deleted)
            .order_by(self.model.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def exists_since(self, db: Session, identifier_column, identifier: str, since: datetime) -> bool:
        """True if a non-deleted row owned by identifier was created at or after since."""
        return self._query(db).filter(
            identifier_column == identifier,
            self.model.created_at >= since
        ).first() is not None

    def count_since(self, db: Session, identifier_column, identifier: str, since: datetime) -> int:
        return self._query(db).filter(
            identifier_column == identifier,
            self.model.created_at >= since
        ).count()

    def soft_delete(self, db: Session, obj: ModelType) -> ModelType:
        """Mark an entity deleted. Already-deleted entities keep their original timestamp."""
        if obj.deleted_at is None:
            obj.deleted_at = utcnow()
            db.commit()
            db.refresh(obj)
        return obj

    def hard_delete_where(self, db: Session, *criteria) -> int:
        """Permanently delete every row (deleted or not) matching criteria."""
        deleted = db.query(self.model).filter(*criteria).delete(synchronize_session=False)
        db.commit()
        return deleted
