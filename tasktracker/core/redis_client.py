"""Optional Redis client backing the rate limiter."""

import logging
from datetime import UTC, datetime
from typing import Any

from redis.asyncio import Redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError

from tasktracker.core.config import Constants, settings


logger = logging.getLogger(__name__)


class RedisClient:
    """Async Redis client wrapper with connection pooling.

    When no ``redis_url`` is configured every operation is a no-op and
    ``is_available`` is False, so callers can fail open.
    """

    def __init__(self, url: str | None = None) -> None:
        """Initialize Redis client."""
        self._url = url if url is not None else settings.redis_url
        self._client: Redis | None = None
        self._pool: ConnectionPool | None = None
        self._enabled = bool(self._url)

        self._last_successful_operation: datetime | None = None
        self._failure_count = 0

        if self._enabled and self._url:
            try:
                self._pool = ConnectionPool.from_url(
                    self._url,
                    decode_responses=True,
                    max_connections=Constants.REDIS_MAX_CONNECTIONS,
                )
                self._client = Redis(connection_pool=self._pool)
                logger.info("Redis client initialized")
            except (RedisError, ValueError) as e:
                logger.warning("Failed to initialize Redis client: %s. Running without rate limiting.", e)
                self._enabled = False
                self._client = None
                self._pool = None
        else:
            logger.info("Redis URL not configured. Running without rate limiting.")

    @property
    def is_available(self) -> bool:
        """Check if Redis is available."""
        return self._enabled and self._client is not None

    def get_health_status(self) -> dict[str, Any]:
        """Get Redis health status."""
        return {
            "enabled": self._enabled,
            "connected": self.is_available,
            "last_successful_operation": self._last_successful_operation.isoformat()
            if self._last_successful_operation
            else None,
            "failure_count": self._failure_count,
        }

    async def increment(self, key: str) -> int | None:
        """Increment key value atomically.

        Returns:
            New value after increment, or None on error
        """
        if not self.is_available or not self._client:
            return None

        try:
            value = await self._client.incr(key)
        except RedisError as e:
            self._failure_count += 1
            logger.warning("Redis INCR error for key %s: %s", key, e)
            return None
        self._last_successful_operation = datetime.now(UTC)
        return value

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        """Set TTL on existing key."""
        if not self.is_available or not self._client:
            return False

        try:
            await self._client.expire(key, ttl_seconds)
            return True
        except RedisError as e:
            self._failure_count += 1
            logger.warning("Redis EXPIRE error for key %s: %s", key, e)
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            logger.info("Redis client closed")


# Global Redis client instance
redis_client = RedisClient()
