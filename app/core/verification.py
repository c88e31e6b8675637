"""
Core email verification logic for alert subscribers.

Verification is keyed by email hash, not by alert: one confirmation unlocks
every alert registered under the same address.
"""

import logging
import secrets
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.core.exceptions import NotFoundError
from app.models.alert import Alert
from app.models.email_verification import EmailVerification

logger = logging.getLogger(__name__)

# Unconfirmed verification rows are purged after this many hours
UNVERIFIED_RETENTION_HOURS = 24
TOKEN_BYTES = 16


def generate_verification_token() -> str:
    """
    Generate a secure, URL-safe verification token.

    Returns:
        str: 32-character hex token
    """
    return secrets.token_hex(TOKEN_BYTES)


def get_verification(db: Session, email_hash: str) -> Optional[EmailVerification]:
    return db.query(EmailVerification).filter(EmailVerification.email_hash == email_hash).first()


def is_email_verified(db: Session, email_hash: str) -> bool:
    """True if this email hash has been confirmed before."""
    if not email_hash:
        return False
    return db.query(EmailVerification).filter(
        EmailVerification.email_hash == email_hash,
        EmailVerification.verified_at.isnot(None)
    ).first() is not None


def get_or_create_verification(db: Session, email_hash: str) -> EmailVerification:
    """
    Find the verification row for an email hash, creating it if missing.

    There is exactly one row per hash. The insert runs inside a SAVEPOINT:
    if two requests race to create it, only the loser's insert is rolled
    back and it re-reads the winner's row. The caller's pending changes are
    flushed but not committed; committing is left to the caller.

    Args:
        db: Database session
        email_hash: Hash of the subscriber email

    Returns:
        EmailVerification: Existing or newly created row
    """
    verification = get_verification(db, email_hash)
    if verification:
        return verification

    verification = EmailVerification(
        email_hash=email_hash,
        token=generate_verification_token(),
        created_at=utcnow()
    )
    try:
        with db.begin_nested():
            db.add(verification)
    except IntegrityError:
        existing = get_verification(db, email_hash)
        if existing is None:
            raise
        logger.info(f"Verification row for {email_hash[:12]}... created concurrently, reusing it")
        return existing

    return verification


def verify_token(db: Session, token: str) -> Tuple[EmailVerification, List[Alert]]:
    """
    Confirm a verification token.

    Idempotent: confirming an already-confirmed token succeeds and changes
    nothing. On first confirmation every alert sharing the email hash is
    marked verified.

    Args:
        db: Database session
        token: Token from the verification link

    Returns:
        Tuple of the verification row and the alerts flipped to verified

    Raises:
        NotFoundError: If no verification row has this token
    """
    verification = None
    if token:
        verification = db.query(EmailVerification).filter(EmailVerification.token == token).first()

    if not verification:
        raise NotFoundError("Invalid verification token.")

    if verification.verified_at is not None:
        return verification, []

    verification.verified_at = utcnow()

    alerts = db.query(Alert).filter(
        Alert.email_hash == verification.email_hash,
        Alert.deleted_at.is_(None)
    ).all()
    for alert in alerts:
        alert.is_verified = True

    db.commit()
    db.refresh(verification)

    logger.info(f"Email hash {verification.email_hash[:12]}... verified, {len(alerts)} alert(s) unlocked")
    return verification, alerts


def cleanup_unverified(db: Session, older_than_hours: int = UNVERIFIED_RETENTION_HOURS) -> int:
    """
    Delete verification rows that were never confirmed.

    Args:
        db: Database session
        older_than_hours: Minimum age of a row before it is purged

    Returns:
        int: Number of rows deleted
    """
    cutoff = utcnow() - timedelta(hours=older_than_hours)

    deleted = db.query(EmailVerification).filter(
        EmailVerification.verified_at.is_(None),
        EmailVerification.created_at < cutoff
    ).delete(synchronize_session=False)

    db.commit()
    return deleted
