"""
Shared columns for entities that are soft-deleted instead of removed.

Reports, alerts and feedback are hidden by setting deleted_at; only the
retention sweep removes the rows for good.
"""

import uuid
from sqlalchemy import Column, DateTime, Uuid
from app.core.database import utcnow


class SoftDeleteMixin:
    # Public identifier; the numeric primary key is never exposed to clients
    external_id = Column(Uuid, unique=True, index=True, nullable=False, default=uuid.uuid4)

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    deleted_at = Column(DateTime, nullable=True, index=True)
