"""
FastAPI dependencies for admin access and request throttling.

Public endpoints are anonymous (identified only by an opaque per-device
identifier in the request body). Admin endpoints require the static
ADMIN_API_TOKEN as a bearer token.
"""

import hmac

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from app.core.api_rate_limiter import check_ip_rate_limit, get_client_ip
from app.core.config import settings

# HTTP Bearer token scheme (Authorization: Bearer <token>)
# auto_error=False so anonymous callers reach public endpoints
security = HTTPBearer(auto_error=False)


def _token_matches(credentials: Optional[HTTPAuthorizationCredentials]) -> bool:
    if credentials is None or not settings.ADMIN_API_TOKEN:
        return False
    return hmac.compare_digest(credentials.credentials, settings.ADMIN_API_TOKEN)


async def get_is_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> bool:
    """
    True if the request carries a valid admin token.

    Admin callers bypass the identifier, link, distance and quota checks on
    submissions. An invalid token is treated as anonymous, not rejected.
    """
    return _token_matches(credentials)


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> None:
    """
    Require a valid admin token.

    Raises:
        HTTPException 401: If the token is missing or wrong
    """
    if not _token_matches(credentials):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin credentials required",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def ip_rate_limit(request: Request) -> None:
    """Router-level dependency applying the general per-IP limit."""
    check_ip_rate_limit(get_client_ip(request), endpoint=request.url.path)
