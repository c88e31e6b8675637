"""
Web push subscription model.

Rows are removed as soon as the push service reports the endpoint gone.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime
from app.core.database import Base, utcnow


class WebPushSubscription(Base):
    __tablename__ = "web_push_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_identifier = Column(String, nullable=False, index=True)
    endpoint = Column(Text, nullable=False)

    # Subscription secrets from the browser's PushSubscription.keys
    p256dh = Column(String, nullable=False)
    auth = Column(String, nullable=False)

    created_at = Column(DateTime, nullable=False, default=utcnow)

    def to_subscription_info(self) -> dict:
        """Shape expected by pywebpush."""
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}
