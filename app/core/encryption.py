"""
Email encryption utilities for alert subscribers.

Uses Fernet (symmetric encryption) to encrypt subscriber emails at rest.
Emails are encrypted before storage and decrypted only when a notification
is about to be sent.
"""

import logging
from typing import List, Optional

from cryptography.fernet import Fernet, InvalidToken, MultiFernet
from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailEncryption:
    """
    Encrypt/decrypt subscriber emails using Fernet symmetric encryption.

    Several keys may be configured (newest first). Encryption always uses
    the first key; decryption tries every key, so old rows stay readable
    while keys are being rotated.
    """

    def __init__(self, keys: Optional[List[str]] = None):
        """Initialize encryption with keys from settings."""
        keys = keys if keys is not None else settings.encryption_key_list
        if not keys:
            logger.warning(
                "ENCRYPTION_KEYS not set. Using an ephemeral key; stored emails will not "
                "be readable after a restart. Generate a key with: "
                "python -c \"from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())\""
            )
            keys = [Fernet.generate_key().decode()]

        self.cipher = MultiFernet([Fernet(key.encode()) for key in keys])

    def encrypt(self, email: str) -> str:
        """
        Encrypt email for storage.

        Args:
            email: Plain text email address

        Returns:
            Encrypted email (base64 encoded)
        """
        return self.cipher.encrypt(email.encode()).decode()

    def decrypt(self, encrypted_email: Optional[str]) -> Optional[str]:
        """
        Decrypt email for use.

        Args:
            encrypted_email: Encrypted email (base64 encoded)

        Returns:
            Plain text email, or None if the blob is empty, corrupt, or was
            encrypted with a key that is no longer configured
        """
        if not encrypted_email:
            return None

        try:
            return self.cipher.decrypt(encrypted_email.encode()).decode()
        except (InvalidToken, ValueError, TypeError) as e:
            logger.warning(f"Email decryption failed: {type(e).__name__}")
            return None


# Singleton instance
email_encryption = EmailEncryption()
