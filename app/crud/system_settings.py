"""
CRUD operations for the SystemSettings singleton row.
"""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session
from app.models.system_settings import SystemSettings

SETTINGS_ROW_ID = 1


def get(db: Session) -> Optional[SystemSettings]:
    return db.query(SystemSettings).order_by(SystemSettings.id).first()


def save(db: Session, values: Dict[str, Any]) -> SystemSettings:
    """
    Write settings through to the singleton row, creating it if missing.

    Args:
        db: Database session
        values: Column name -> new value

    Returns:
        The stored row
    """
    row = get(db)
    if row is None:
        row = SystemSettings(id=SETTINGS_ROW_ID)
        db.add(row)

    for key, value in values.items():
        if hasattr(SystemSettings, key) and key != "id":
            setattr(row, key, value)

    db.commit()
    db.refresh(row)
    return row
