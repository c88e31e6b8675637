"""
Database models package.
"""

from app.models.report import Report
from app.models.alert import Alert
from app.models.email_verification import EmailVerification
from app.models.feedback import Feedback
from app.models.push_subscription import WebPushSubscription
from app.models.system_settings import SystemSettings

__all__ = ["Report", "Alert", "EmailVerification", "Feedback", "WebPushSubscription", "SystemSettings"]
