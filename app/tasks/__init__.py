"""
Celery tasks package.

Tasks are organized by domain:
- notification_tasks: Alert notifications for new reports
- email_tasks: Verification emails
- maintenance_tasks: Retention sweep
"""

from app.tasks import notification_tasks, email_tasks, maintenance_tasks

__all__ = ["notification_tasks", "email_tasks", "maintenance_tasks"]
