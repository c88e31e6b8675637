"""
Redis-based rate limiting for public endpoints.

Fixed-window counters with automatic expiration. If Redis is unreachable the
limiter fails open: requests are allowed and the error is logged.
"""

import logging

import redis
from fastapi import HTTPException, status
from app.core.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Redis-based rate limiter for protecting endpoints.

    The connection is created on first use so importing this module never
    touches the network.
    """

    def __init__(self, url: str = None):
        self._url = url or settings.REDIS_URL
        self._client = None

    @property
    def redis_client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis.from_url(
                self._url,
                decode_responses=True,
                socket_connect_timeout=1,
                socket_timeout=1
            )
        return self._client

    def check_rate_limit(
        self,
        key: str,
        max_requests: int,
        window_seconds: int,
        error_message: str = "Rate limit exceeded"
    ) -> None:
        """
        Check if a request is within rate limits.

        Args:
            key: Unique identifier for this rate limit (e.g., "map_proxy:1.2.3.4")
            max_requests: Maximum number of requests allowed
            window_seconds: Time window in seconds
            error_message: Custom error message if rate limit exceeded

        Raises:
            HTTPException: 429 Too Many Requests if rate limit exceeded
        """
        try:
            # INCR creates the key at 1; the first hit in a window sets its expiry
            count = self.redis_client.incr(key)
            if count == 1:
                self.redis_client.expire(key, window_seconds)

            if count > max_requests:
                ttl = self.redis_client.ttl(key)
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail=f"{error_message}. Try again in {ttl} seconds."
                )

        except redis.RedisError as e:
            # Fail open for better user experience
            logger.error(f"Redis rate limiter error: {e}")

    def reset_limit(self, key: str) -> None:
        """
        Reset the rate limit for a key.

        Useful for testing or manual intervention.
        """
        try:
            self.redis_client.delete(key)
        except redis.RedisError as e:
            logger.error(f"Redis reset error: {e}")


# Singleton instance
rate_limiter = RateLimiter()


def check_verify_token_limit(client_ip: str) -> None:
    """
    Rate limit for verification link attempts.

    Limit: 10 attempts per 10 minutes per IP. Prevents token guessing.
    """
    rate_limiter.check_rate_limit(
        key=f"verify_token:{client_ip}",
        max_requests=10,
        window_seconds=600,
        error_message="Too many verification attempts. Please wait before trying again"
    )
