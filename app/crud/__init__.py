"""
CRUD operations (Create, Read, Update, Delete) for database models.

This layer provides a clean separation between API routes and database operations,
following the Repository pattern.
"""

from app.crud.report import report
from app.crud.alert import alert
from app.crud.feedback import feedback
from app.crud import push_subscription, system_settings

__all__ = ["report", "alert", "feedback", "push_subscription", "system_settings"]
