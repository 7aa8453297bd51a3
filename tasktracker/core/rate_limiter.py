"""Fixed-window rate limiting backed by Redis."""

import logging
from datetime import UTC, datetime

from fastapi import HTTPException, status

from tasktracker.core.config import Constants
from tasktracker.core.redis_client import RedisClient, redis_client


logger = logging.getLogger(__name__)


class RateLimiter:
    """Rate limiter counting requests per fixed time window in Redis."""

    def __init__(self, client: RedisClient | None = None) -> None:
        self._client = client

    @property
    def client(self) -> RedisClient:
        return self._client or redis_client

    async def check_rate_limit(
        self,
        scope: str,
        identifier: str,
        limit: int,
        window_seconds: int,
        detail: str = "Too many requests",
    ) -> None:
        """Check if request is within rate limit.

        Increments the counter for the current window, sets its expiry on the
        first hit, and raises 429 once the limit is exceeded. Skipped entirely
        when Redis is unavailable.

        Args:
            scope: Rate limit scope (e.g., 'login')
            identifier: Unique identifier (e.g., client IP)
            limit: Maximum requests allowed
            window_seconds: Time window in seconds
            detail: Message returned with the 429 response

        Raises:
            HTTPException: 429 if rate limit is exceeded
        """
        client = self.client
        if not client.is_available:
            logger.debug("rate_limit_check_skipped", extra={"reason": "redis_unavailable"})
            return

        now = datetime.now(UTC)
        window_start = int(now.timestamp()) // window_seconds
        key = f"ratelimit:{scope}:{identifier}:{window_start}"

        count = await client.increment(key)
        if count is None:
            logger.warning("rate_limit_check_failed", extra={"reason": "redis_increment_failed"})
            return

        if count == 1:
            await client.expire(key, window_seconds)

        if count > limit:
            retry_after = window_seconds - (int(now.timestamp()) % window_seconds)
            logger.warning(
                "rate_limit_exceeded",
                extra={"scope": scope, "identifier": identifier, "count": count, "limit": limit},
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=detail,
                headers={"Retry-After": str(retry_after), "X-RateLimit-Limit": str(limit)},
            )

    async def check_login_rate_limit(self, client_ip: str) -> None:
        """Limit login attempts per client IP."""
        await self.check_rate_limit(
            scope="login",
            identifier=client_ip,
            limit=Constants.LOGIN_ATTEMPTS_PER_WINDOW,
            window_seconds=Constants.LOGIN_WINDOW_SECONDS,
            detail="Too many login attempts. Please try again later.",
        )


# Global rate limiter instance
rate_limiter = RateLimiter()
