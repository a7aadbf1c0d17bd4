"""Redis connection pool + Redis-backed message cache.

Learn: One pool per process, created in the app lifespan and shared by
the cache, the task queue, the rate limiter and the health checks.
If Redis isn't reachable at startup the app still runs: the cache
falls back to NullCache and the queue to NullTaskQueue.
"""

from typing import Optional

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from chatdash.cache.base import MessageCache
from chatdash.config import settings

logger = structlog.get_logger()

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis(url: Optional[str] = None) -> aioredis.Redis:
    """Initialize the Redis connection pool and verify it answers."""
    global _redis
    client = aioredis.from_url(
        url or settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise
    _redis = client
    return _redis


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Get the Redis connection (must be initialized first)."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


class RedisCache(MessageCache):
    """MessageCache over GET / SETEX / DEL.

    Every Redis error is logged and turned into a miss or a no-op.
    """

    def __init__(self, client: aioredis.Redis):
        self._redis = client

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._redis.get(key)
        except RedisError as e:
            logger.warning("cache.get_failed", key=key, error=str(e))
            return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._redis.setex(key, ttl_seconds, value)
        except RedisError as e:
            logger.warning("cache.set_failed", key=key, error=str(e))

    async def invalidate(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except RedisError as e:
            logger.warning("cache.invalidate_failed", key=key, error=str(e))

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError:
            return False
