"""
Unit tests for the Redis cache store.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from service_asset_gateway.app.caching.redis_cache import (
    BODY_FIELD,
    CONTENT_TYPE_FIELD,
    RedisCacheStore,
)
from service_asset_gateway.app.domain.models import CacheEntry
from shared.errors import StoreError


class TestRedisCacheStore:
    """Test cases for RedisCacheStore."""

    @pytest.fixture
    def pipeline(self):
        pipeline = MagicMock()
        pipeline.execute = AsyncMock(return_value=[1, 2])
        pipeline.__aenter__ = AsyncMock(return_value=pipeline)
        pipeline.__aexit__ = AsyncMock(return_value=False)
        return pipeline

    @pytest.fixture
    def redis_client(self, pipeline):
        client = MagicMock()
        client.hgetall = AsyncMock(return_value={})
        client.delete = AsyncMock(return_value=1)
        client.ping = AsyncMock(return_value=True)
        client.aclose = AsyncMock()
        client.pipeline = MagicMock(return_value=pipeline)
        return client

    @pytest.fixture
    def cache_store(self, redis_client):
        store = RedisCacheStore("redis://localhost:6379/0", key_prefix="test:")
        store._redis = redis_client
        return store

    @pytest.mark.asyncio
    async def test_get_hit(self, cache_store, redis_client):
        """Test reading a cached hash."""
        redis_client.hgetall.return_value = {
            BODY_FIELD: b"\x00\x01bytes",
            CONTENT_TYPE_FIELD: b"image/png",
        }

        entry = await cache_store.get("assets/logo.png")

        assert entry == CacheEntry(b"\x00\x01bytes", "image/png")
        redis_client.hgetall.assert_called_once_with("test:assets/logo.png")

    @pytest.mark.asyncio
    async def test_get_miss(self, cache_store):
        """Test an absent key returns None."""
        assert await cache_store.get("missing") is None

    @pytest.mark.asyncio
    async def test_get_empty_content_type(self, cache_store, redis_client):
        """Test an entry stored without a content type."""
        redis_client.hgetall.return_value = {BODY_FIELD: b"", CONTENT_TYPE_FIELD: b""}

        entry = await cache_store.get("empty")

        assert entry == CacheEntry(b"", None)

    @pytest.mark.asyncio
    async def test_set_replaces_hash_in_transaction(self, cache_store, redis_client, pipeline):
        """Test set deletes and rewrites the hash inside one transaction."""
        await cache_store.set("doc.txt", CacheEntry(b"hello", "text/plain"))

        redis_client.pipeline.assert_called_once_with(transaction=True)
        pipeline.delete.assert_called_once_with("test:doc.txt")
        pipeline.hset.assert_called_once_with(
            "test:doc.txt",
            mapping={BODY_FIELD: b"hello", CONTENT_TYPE_FIELD: b"text/plain"},
        )
        pipeline.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete(self, cache_store, redis_client):
        """Test deleting an entry."""
        await cache_store.delete("doc.txt")
        redis_client.delete.assert_called_once_with("test:doc.txt")

    @pytest.mark.asyncio
    async def test_redis_errors_become_store_errors(self, cache_store, redis_client, pipeline):
        """Test connection failures are mapped to StoreError."""
        redis_client.hgetall.side_effect = RedisConnectionError("refused")
        redis_client.delete.side_effect = RedisConnectionError("refused")
        pipeline.execute.side_effect = RedisConnectionError("refused")

        with pytest.raises(StoreError):
            await cache_store.get("k")
        with pytest.raises(StoreError):
            await cache_store.set("k", CacheEntry(b"v"))
        with pytest.raises(StoreError):
            await cache_store.delete("k")

    @pytest.mark.asyncio
    async def test_ping(self, cache_store, redis_client):
        """Test ping reports connectivity."""
        assert await cache_store.ping() is True

        redis_client.ping.side_effect = RedisConnectionError("refused")
        assert await cache_store.ping() is False

    @pytest.mark.asyncio
    async def test_close(self, cache_store, redis_client):
        """Test close releases the connection."""
        await cache_store.close()

        redis_client.aclose.assert_awaited_once()
        assert cache_store._redis is None

    @pytest.mark.asyncio
    async def test_connection_is_lazy(self):
        """Test the client is created on first use only."""
        store = RedisCacheStore("redis://cache:6379/1")

        with patch("service_asset_gateway.app.caching.redis_cache.redis.from_url") as mock_from_url:
            mock_from_url.return_value = MagicMock()
            first = await store._get_redis()
            second = await store._get_redis()

        assert first is second
        mock_from_url.assert_called_once()
        assert mock_from_url.call_args.args == ("redis://cache:6379/1",)
