"""
In-memory store doubles for asset gateway tests.
"""

import asyncio
from collections import Counter
from typing import Dict, Optional

from service_asset_gateway.app.adapters.object_store import ObjectStore
from service_asset_gateway.app.caching.cache_store import CacheStore
from service_asset_gateway.app.domain.models import Blob, CacheEntry
from shared.errors import StoreError


class CountingObjectStore(ObjectStore):
    """In-memory object store that records calls and can be told to fail."""

    def __init__(self, delay: float = 0.0):
        self.blobs: Dict[str, Blob] = {}
        self.calls: Counter = Counter()
        self.delay = delay
        self.fail_with: Optional[Exception] = None
        self.healthy = True

    async def _enter(self, operation: str) -> None:
        self.calls[operation] += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with

    async def get(self, key: str) -> Optional[Blob]:
        await self._enter("get")
        return self.blobs.get(key)

    async def put(self, key: str, blob: Blob) -> None:
        await self._enter("put")
        self.blobs[key] = blob

    async def delete(self, key: str) -> None:
        await self._enter("delete")
        self.blobs.pop(key, None)

    async def ping(self) -> bool:
        return self.healthy


class SnapshotObjectStore(CountingObjectStore):
    """Object store whose reads capture the blob first and return it after ``read_delay``."""

    def __init__(self, read_delay: float = 0.05):
        super().__init__()
        self.read_delay = read_delay

    async def get(self, key: str) -> Optional[Blob]:
        self.calls["get"] += 1
        blob = self.blobs.get(key)
        await asyncio.sleep(self.read_delay)
        return blob


class FailingCacheStore(CacheStore):
    """Cache store whose every operation fails."""

    def __init__(self):
        self.calls: Counter = Counter()

    async def get(self, key: str) -> Optional[CacheEntry]:
        self.calls["get"] += 1
        raise StoreError(self.name, "cache unavailable")

    async def set(self, key: str, entry: CacheEntry) -> None:
        self.calls["set"] += 1
        raise StoreError(self.name, "cache unavailable")

    async def delete(self, key: str) -> None:
        self.calls["delete"] += 1
        raise StoreError(self.name, "cache unavailable")

    async def ping(self) -> bool:
        return False

