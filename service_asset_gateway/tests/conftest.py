"""
Shared fixtures for asset gateway tests.
"""

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from service_asset_gateway.app.caching.cache_store import InMemoryCacheStore
from service_asset_gateway.app.main import AssetGatewayService
from shared.config import ServiceConfig

from .fakes import CountingObjectStore

AUTH_SECRET = "test-secret"
AUTH_HEADERS = {"X-Custom-Auth-Key": AUTH_SECRET}


@pytest.fixture
def config(tmp_path):
    """Service configuration isolated from the environment's stores."""
    return ServiceConfig(
        service_name="asset-gateway",
        port=8000,
        auth_secret=AUTH_SECRET,
        object_store_backend="local",
        object_store_path=str(tmp_path / "objects"),
        cache_backend="memory",
        cache_workers=2,
    )


@pytest.fixture
def auth_headers():
    return dict(AUTH_HEADERS)


@pytest.fixture
def object_store():
    return CountingObjectStore()


@pytest.fixture
def cache_store():
    return InMemoryCacheStore()


@pytest.fixture
def service(config, object_store, cache_store):
    return AssetGatewayService(config=config, object_store=object_store, cache_store=cache_store)


@pytest.fixture
def client(service):
    """Synchronous client; the context manager runs startup/shutdown."""
    with TestClient(service.app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def gateway_client(service):
    """Async client sharing the test's event loop, so background jobs can be awaited."""
    await service.startup()
    transport = httpx.ASGITransport(app=service.app)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://gateway") as async_client:
            yield async_client
    finally:
        await service.shutdown()
