"""
End-to-end cache-aside behaviour through the HTTP surface.

These tests share the event loop with the gateway so they can wait for the
background cache jobs before inspecting the cache store.
"""

import asyncio

import pytest

from service_asset_gateway.app.domain.models import Blob, CacheEntry
from service_asset_gateway.app.domain.payload import RawPayload
from service_asset_gateway.app.main import AssetGatewayService

from .fakes import FailingCacheStore


@pytest.mark.asyncio
async def test_round_trip(gateway_client, auth_headers):
    """PUT bytes then GET returns exactly those bytes."""
    payload = bytes(range(256)) * 4

    response = await gateway_client.put("/blobs/bin", content=payload, headers=auth_headers)
    assert response.status_code == 200

    response = await gateway_client.get("/blobs/bin")
    assert response.status_code == 200
    assert response.content == payload


@pytest.mark.asyncio
async def test_miss_populates_cache(gateway_client, service, object_store, cache_store):
    """After a miss, the next GET is served without the object store."""
    object_store.blobs["assets/logo.png"] = Blob(b"logo", "image/png")

    first = await gateway_client.get("/assets/logo.png")
    await service.cache_jobs.join()
    second = await gateway_client.get("/assets/logo.png")

    assert first.headers["x-cache"] == "MISS"
    assert second.headers["x-cache"] == "HIT"
    assert second.content == b"logo"
    assert second.headers["content-type"] == "image/png"
    assert second.headers["etag"] == first.headers["etag"]
    assert object_store.calls["get"] == 1
    assert await cache_store.get("assets/logo.png") == CacheEntry(b"logo", "image/png")


@pytest.mark.asyncio
async def test_delete_removes_cache_entry(gateway_client, service, cache_store, auth_headers):
    """DELETE leaves neither the object nor a cache entry behind."""
    await gateway_client.put("/assets/logo.png", content=b"logo", headers=auth_headers)
    await gateway_client.get("/assets/logo.png")
    await service.cache_jobs.join()
    assert "assets/logo.png" in cache_store

    response = await gateway_client.delete("/assets/logo.png", headers=auth_headers)
    await service.cache_jobs.join()

    assert response.status_code == 200
    assert (await gateway_client.get("/assets/logo.png")).status_code == 404
    assert await cache_store.get("assets/logo.png") is None


@pytest.mark.asyncio
async def test_put_invalidates_stale_entry(gateway_client, service, object_store, auth_headers):
    """Overwriting a key never leaves the old bytes in the cache."""
    await gateway_client.put("/doc.txt", content=b"v1", headers=auth_headers)
    await gateway_client.get("/doc.txt")
    await service.cache_jobs.join()

    await gateway_client.put("/doc.txt", content=b"v2", headers=auth_headers)
    await service.cache_jobs.join()
    response = await gateway_client.get("/doc.txt")

    assert response.content == b"v2"
    assert response.headers["x-cache"] == "MISS"


@pytest.mark.asyncio
async def test_populate_write_policy(config, object_store, cache_store):
    """With the populate policy a PUT refreshes the cache itself."""
    config.cache_write_policy = "populate"
    service = AssetGatewayService(config=config, object_store=object_store, cache_store=cache_store)
    await service.startup()
    try:
        await service.accessor.write("doc.txt", RawPayload(data=b"fresh"))
        await service.cache_jobs.join()
    finally:
        await service.shutdown()

    assert await cache_store.get("doc.txt") == CacheEntry(b"fresh", None)


@pytest.mark.asyncio
async def test_concurrent_cold_reads(gateway_client, service, object_store, cache_store):
    """Two concurrent misses both succeed and leave one consistent entry."""
    object_store.delay = 0.05
    object_store.blobs["hero.jpg"] = Blob(b"hero-image", "image/jpeg")

    first, second = await asyncio.gather(
        gateway_client.get("/hero.jpg"),
        gateway_client.get("/hero.jpg"),
    )
    await service.cache_jobs.join()

    assert first.status_code == second.status_code == 200
    assert first.content == second.content == b"hero-image"
    assert object_store.calls["get"] == 2
    assert len(cache_store) == 1
    assert await cache_store.get("hero.jpg") == CacheEntry(b"hero-image", "image/jpeg")


@pytest.mark.asyncio
async def test_cache_outage_never_fails_reads(config, object_store):
    """Reads and writes keep working when every cache operation fails."""
    cache_store = FailingCacheStore()
    service = AssetGatewayService(config=config, object_store=object_store, cache_store=cache_store)
    object_store.blobs["a.txt"] = Blob(b"a")

    await service.startup()
    try:
        result = await service.accessor.read("a.txt")
        await service.accessor.delete("a.txt")
        await service.cache_jobs.join()
    finally:
        await service.shutdown()

    assert result.data == b"a"
    assert not result.from_cache
    assert cache_store.calls["set"] == 1
    assert cache_store.calls["delete"] == 1
    assert service.metrics.sample("cache_jobs_total", kind="populate", outcome="error") == 1
    assert service.metrics.sample("cache_lookups_total", result="error") == 1

