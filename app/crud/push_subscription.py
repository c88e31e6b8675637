"""
CRUD operations for WebPushSubscription model.

Push subscriptions are not soft-deleted: a dead endpoint is useless history.
"""

from typing import Iterable, List, Optional

from sqlalchemy.orm import Session
from app.models.push_subscription import WebPushSubscription


def upsert(db: Session, user_identifier: str, endpoint: str, p256dh: str, auth: str) -> WebPushSubscription:
    """
    Register a browser subscription, replacing the keys if the endpoint is known.

    Returns:
        The stored subscription
    """
    existing = db.query(WebPushSubscription).filter(
        WebPushSubscription.user_identifier == user_identifier,
        WebPushSubscription.endpoint == endpoint
    ).first()

    if existing:
        existing.p256dh = p256dh
        existing.auth = auth
        db.commit()
        db.refresh(existing)
        return existing

    subscription = WebPushSubscription(
        user_identifier=user_identifier,
        endpoint=endpoint,
        p256dh=p256dh,
        auth=auth
    )
    db.add(subscription)
    db.commit()
    db.refresh(subscription)
    return subscription


def get_for_owners(db: Session, user_identifiers: Iterable[str]) -> List[WebPushSubscription]:
    identifiers = list(user_identifiers)
    if not identifiers:
        return []
    return db.query(WebPushSubscription).filter(
        WebPushSubscription.user_identifier.in_(identifiers)
    ).all()


def delete_by_id(db: Session, subscription_id: int) -> bool:
    """
    Delete a subscription by ID.

    Returns:
        True if deleted, False if not found
    """
    subscription: Optional[WebPushSubscription] = db.query(WebPushSubscription).filter(
        WebPushSubscription.id == subscription_id
    ).first()
    if not subscription:
        return False

    db.delete(subscription)
    db.commit()
    return True


def delete_by_endpoint(db: Session, user_identifier: str, endpoint: str) -> int:
    deleted = db.query(WebPushSubscription).filter(
        WebPushSubscription.user_identifier == user_identifier,
        WebPushSubscription.endpoint == endpoint
    ).delete(synchronize_session=False)
    db.commit()
    return deleted
