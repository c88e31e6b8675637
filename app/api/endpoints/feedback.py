"""
Feedback endpoint (bug reports and feature requests).
"""

import logging
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.core.api_rate_limiter import check_submission_rate_limit, get_client_ip
from app.core.database import get_db
from app.core.deps import get_is_admin
from app.crud import feedback as feedback_crud
from app.models.feedback import Feedback
from app.schemas.feedback import FeedbackCreateRequest, FeedbackResponse
from app.services.submission_gate import submission_gate

router = APIRouter(prefix="/feedback", tags=["Feedback"])
logger = logging.getLogger(__name__)


@router.post("", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
def create_feedback(
    feedback_in: FeedbackCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    is_admin: bool = Depends(get_is_admin)
):
    """
    Submit feedback.

    Messages starting with [AUTO-REPORTED] (client error reports) skip the
    link filter and cooldown.
    """
    check_submission_rate_limit(get_client_ip(request))

    submission_gate.validate_feedback(db, feedback_in.user_identifier, feedback_in.message, is_admin=is_admin)

    feedback = feedback_crud.add(db, Feedback(
        type=feedback_in.type,
        message=feedback_in.message,
        user_identifier=feedback_in.user_identifier
    ))
    logger.info(f"Feedback {feedback.external_id} received (type={feedback.type})")
    return feedback
