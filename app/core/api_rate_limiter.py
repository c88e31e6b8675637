"""
Per-IP rate limiting for public API endpoints.

Implements per-IP limits on submissions and the map proxy to prevent API abuse.
"""

import logging
from fastapi import Request
from app.core.rate_limiter import rate_limiter

logger = logging.getLogger(__name__)


def check_ip_rate_limit(ip_address: str, endpoint: str = "api") -> None:
    """
    Check rate limit for a specific IP address.

    Limit: 300 requests per minute per IP.
    This prevents DDoS attacks and API abuse from a single source.

    Args:
        ip_address: Client IP address
        endpoint: Optional endpoint identifier for more granular limits

    Raises:
        HTTPException: 429 if rate limit exceeded
    """
    rate_limiter.check_rate_limit(
        key=f"ip:{ip_address}:{endpoint}",
        max_requests=300,
        window_seconds=60,
        error_message="IP rate limit exceeded. Too many requests from your IP address"
    )


def check_submission_rate_limit(ip_address: str) -> None:
    """
    Check rate limit for report, alert and feedback submissions.

    Limit: 20 submissions per minute per IP. The per-identifier cooldown
    still applies; this catches clients rotating identifiers.

    Raises:
        HTTPException: 429 if rate limit exceeded
    """
    rate_limiter.check_rate_limit(
        key=f"submit:{ip_address}",
        max_requests=20,
        window_seconds=60,
        error_message="Too many submissions. Please wait before submitting again"
    )


def check_map_proxy_rate_limit(ip_address: str) -> None:
    """
    Check rate limit for the map thumbnail proxy.

    Limit: 60 images per minute per IP.
    Every image is a paid call to the map provider.

    Raises:
        HTTPException: 429 if rate limit exceeded
    """
    rate_limiter.check_rate_limit(
        key=f"map_proxy:{ip_address}",
        max_requests=60,
        window_seconds=60,
        error_message="Map image rate limit exceeded"
    )


def get_client_ip(request: Request) -> str:
    """
    Extract the client's IP address from the request.

    Handles X-Forwarded-For header for proxied requests.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address as string
    """
    # Check for X-Forwarded-For header (when behind proxy/load balancer)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first (client IP)
        return forwarded_for.split(",")[0].strip()

    # Fall back to direct connection IP
    return request.client.host if request.client else "unknown"
