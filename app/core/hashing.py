"""
Privacy-preserving email hashing.

Verification state is keyed by a one-way digest of the normalized address,
so a confirmation can be looked up without storing the plaintext.
"""

import hashlib


def hash_email(email: str) -> str:
    """
    Compute the SHA-256 hex digest of a trimmed, lowercased email address.

    Args:
        email: Raw email address as entered by the user

    Returns:
        str: Uppercase hex digest, or "" for empty/whitespace input
    """
    if not email or not email.strip():
        return ""

    normalized = email.strip().lower()
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest().upper()
