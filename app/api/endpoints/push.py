"""
Web push subscription endpoints.
"""

import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.crud import push_subscription as push_crud
from app.schemas.push import PushSubscribeRequest, PushUnsubscribeRequest

router = APIRouter(prefix="/push", tags=["Push"])
logger = logging.getLogger(__name__)


@router.post("/subscribe", status_code=status.HTTP_201_CREATED)
def subscribe(subscription_in: PushSubscribeRequest, db: Session = Depends(get_db)):
    """Register (or refresh the keys of) a browser push subscription."""
    subscription = push_crud.upsert(
        db,
        user_identifier=subscription_in.user_identifier,
        endpoint=subscription_in.endpoint,
        p256dh=subscription_in.p256dh,
        auth=subscription_in.auth
    )
    logger.info(f"Push subscription {subscription.id} registered")
    return {"success": True}


@router.post("/unsubscribe")
def unsubscribe(subscription_in: PushUnsubscribeRequest, db: Session = Depends(get_db)):
    deleted = push_crud.delete_by_endpoint(db, subscription_in.user_identifier, subscription_in.endpoint)
    return {"success": True, "deleted": deleted}
