"""
Redis cache client with connection pooling and JSON serialization.

Used for token revocation and for caching public catalog reads. Capacity
counts and account status are never cached here.
"""
import json
from typing import Optional, Any
import redis.asyncio as aioredis
from redis.exceptions import RedisError
from app.core.config import settings
from app.core.logging import logger


class RedisCache:
    """Async Redis cache client with connection pooling."""

    def __init__(self, url: str):
        self._url = url
        self._pool: Optional[aioredis.ConnectionPool] = None
        self._client: Optional[aioredis.Redis] = None

    def _get_client(self) -> aioredis.Redis:
        if self._client is None:
            self._pool = aioredis.ConnectionPool.from_url(
                self._url,
                decode_responses=True,
                max_connections=20,
                socket_connect_timeout=1,
                socket_timeout=1,
            )
            self._client = aioredis.Redis(connection_pool=self._pool)
            logger.info("Redis connection pool created")
        return self._client

    async def get(self, key: str) -> Optional[Any]:
        """Return the decoded value stored under ``key`` or None."""
        try:
            value = await self._get_client().get(key)
        except RedisError as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None
        return json.loads(value) if value else None

    async def set(self, key: str, value: Any, expire: int = 300) -> bool:
        """
        Set value in cache with expiration.

        Args:
            key: Cache key
            value: Value to cache (JSON serialized)
            expire: Expiration time in seconds

        Returns:
            True if successful, False otherwise
        """
        try:
            await self._get_client().setex(key, expire, json.dumps(value, default=str))
            return True
        except RedisError as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            await self._get_client().delete(key)
            return True
        except RedisError as e:
            logger.error(f"Redis DELETE error for key {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching ``pattern``; returns how many were removed."""
        try:
            client = self._get_client()
            keys = [key async for key in client.scan_iter(match=pattern)]
            if keys:
                return await client.delete(*keys)
            return 0
        except RedisError as e:
            logger.error(f"Redis DELETE_PATTERN error for pattern {pattern}: {e}")
            return 0

    async def exists(self, key: str) -> bool:
        try:
            return await self._get_client().exists(key) > 0
        except RedisError as e:
            logger.error(f"Redis EXISTS error for key {key}: {e}")
            return False

    async def close(self):
        if self._client:
            await self._client.aclose()
            await self._pool.disconnect()
            self._client = None
            self._pool = None
            logger.info("Redis connection pool closed")


cache = RedisCache(settings.REDIS_URL)
