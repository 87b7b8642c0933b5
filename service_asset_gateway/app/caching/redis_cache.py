"""
Redis-backed cache store.
"""

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.errors import StoreError
from shared.logging import get_logger

from ..domain.models import CacheEntry
from .cache_store import CacheStore

BODY_FIELD = b"body"
CONTENT_TYPE_FIELD = b"content_type"


class RedisCacheStore(CacheStore):
    """Stores each entry as a hash of body and content type.

    A write replaces the whole hash inside one MULTI/EXEC transaction so
    readers never see a body from one write paired with metadata from another.
    """

    def __init__(self, redis_url: str, key_prefix: str = "gateway:blob:"):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.logger = get_logger("asset-gateway.cache.redis")
        self._redis: Optional[redis.Redis] = None

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30,
            )
        return self._redis

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Optional[CacheEntry]:
        try:
            redis_client = await self._get_redis()
            fields = await redis_client.hgetall(self._make_key(key))
        except RedisError as exc:
            raise StoreError(self.name, "cache read failed", {"key": key, "error": str(exc)}) from exc

        if not fields or BODY_FIELD not in fields:
            return None

        content_type = fields.get(CONTENT_TYPE_FIELD) or b""
        return CacheEntry(
            data=fields[BODY_FIELD],
            content_type=content_type.decode("utf-8") or None,
        )

    async def set(self, key: str, entry: CacheEntry) -> None:
        cache_key = self._make_key(key)
        try:
            redis_client = await self._get_redis()
            async with redis_client.pipeline(transaction=True) as pipeline:
                pipeline.delete(cache_key)
                pipeline.hset(
                    cache_key,
                    mapping={
                        BODY_FIELD: entry.data,
                        CONTENT_TYPE_FIELD: (entry.content_type or "").encode("utf-8"),
                    },
                )
                await pipeline.execute()
        except RedisError as exc:
            raise StoreError(self.name, "cache write failed", {"key": key, "error": str(exc)}) from exc

        self.logger.debug("Cached object", key=key, size=len(entry.data))

    async def delete(self, key: str) -> None:
        try:
            redis_client = await self._get_redis()
            await redis_client.delete(self._make_key(key))
        except RedisError as exc:
            raise StoreError(self.name, "cache delete failed", {"key": key, "error": str(exc)}) from exc

    async def ping(self) -> bool:
        try:
            redis_client = await self._get_redis()
            return bool(await redis_client.ping())
        except RedisError as exc:
            self.logger.warning("Cache ping failed", error=str(exc))
            return False

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("Redis cache closed")
