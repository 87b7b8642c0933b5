"""
Cache-aside access to the object store.

Reads try the cache first and fall back to the object store, repopulating the
cache in the background. Writes and deletes go to the object store and then
schedule cache maintenance in the background. The object store result is
always the authoritative outcome; cache failures are logged and dropped.

A read that fetched bytes before a concurrent write or delete finished must
not put those bytes back after the mutation's eviction. Mutations bump a
per-key generation while reads of that key are in flight, and a read only
schedules population if the generation it started under is still current.
"""

import time
from collections import Counter
from typing import Any, Awaitable, Callable, Dict, Literal, Optional

from shared.errors import NotFoundError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..adapters.object_store import ObjectStore
from ..domain.models import Blob, CacheEntry, ReadResult
from ..domain.payload import MultipartPayload, Payload
from .background import CacheJobQueue
from .cache_store import CacheStore

WritePolicy = Literal["invalidate", "populate"]


class CacheAsideAccessor:
    """Read, write and delete objects through the cache-aside protocol."""

    def __init__(
        self,
        object_store: ObjectStore,
        cache_store: CacheStore,
        jobs: CacheJobQueue,
        *,
        write_policy: WritePolicy = "invalidate",
        metrics: Optional[MetricsCollector] = None,
    ):
        self.object_store = object_store
        self.cache_store = cache_store
        self.jobs = jobs
        self.write_policy = write_policy
        self.metrics = metrics
        self.logger = get_logger("asset-gateway.cache_aside")
        self._reads_in_flight: Counter = Counter()
        self._generations: Dict[str, int] = {}

    async def read(self, key: str) -> ReadResult:
        """Return the bytes for ``key`` or raise NotFoundError."""
        entry = await self._cache_lookup(key)
        if entry is not None:
            return ReadResult(data=entry.data, content_type=entry.content_type, from_cache=True)

        generation = self._begin_read(key)
        try:
            blob = await self._object_store_call("get", self.object_store.get, key)
            if blob is None:
                raise NotFoundError(f"Object not found: {key}", {"key": key})

            if self._generations.get(key, 0) == generation:
                self._schedule_populate(key, blob)
            else:
                self.logger.debug("Object changed during read, skipping cache population", key=key)
        finally:
            self._end_read(key)
        return ReadResult(data=blob.data, content_type=blob.content_type, from_cache=False)

    async def write(self, key: str, payload: Payload) -> Blob:
        """Store ``payload`` under ``key`` and schedule cache maintenance."""
        blob = payload.to_blob()
        await self._object_store_call("put", self.object_store.put, key, blob)
        self._bump_generation(key)

        if self.write_policy == "populate":
            self._schedule_populate(key, blob)
        else:
            self._schedule_evict(key)

        self.logger.info(
            "Stored object",
            key=key,
            size=len(blob.data),
            content_type=blob.content_type,
            filename=payload.filename if isinstance(payload, MultipartPayload) else None,
        )
        return blob

    async def delete(self, key: str) -> None:
        """Delete ``key`` from the object store and schedule cache eviction."""
        await self._object_store_call("delete", self.object_store.delete, key)
        self._bump_generation(key)
        self._schedule_evict(key)
        self.logger.info("Deleted object", key=key)

    def _begin_read(self, key: str) -> int:
        self._reads_in_flight[key] += 1
        return self._generations.get(key, 0)

    def _end_read(self, key: str) -> None:
        self._reads_in_flight[key] -= 1
        if self._reads_in_flight[key] <= 0:
            del self._reads_in_flight[key]
            self._generations.pop(key, None)

    def _bump_generation(self, key: str) -> None:
        # Only keys with reads in flight need tracking
        if key in self._reads_in_flight:
            self._generations[key] = self._generations.get(key, 0) + 1

    async def _cache_lookup(self, key: str) -> Optional[CacheEntry]:
        """Look up the cache, treating any cache failure as a miss."""
        try:
            entry = await self.cache_store.get(key)
        except Exception as exc:
            self.logger.warning("Cache lookup failed, falling back to object store", key=key, error=str(exc))
            self._record_lookup("error")
            return None

        self._record_lookup("hit" if entry is not None else "miss")
        return entry

    async def _object_store_call(self, operation: str, func: Callable[..., Awaitable[Any]], *args) -> Any:
        start = time.perf_counter()
        outcome = "ok"
        try:
            return await func(*args)
        except Exception:
            outcome = "error"
            raise
        finally:
            if self.metrics:
                self.metrics.increment_counter(
                    "store_operations_total",
                    store=self.object_store.name,
                    operation=operation,
                    outcome=outcome,
                )
                self.metrics.observe_histogram(
                    "store_operation_duration_seconds",
                    time.perf_counter() - start,
                    store=self.object_store.name,
                    operation=operation,
                )

    def _schedule_populate(self, key: str, blob: Blob) -> None:
        entry = CacheEntry.from_blob(blob)
        self.jobs.submit("populate", key, lambda: self.cache_store.set(key, entry))

    def _schedule_evict(self, key: str) -> None:
        self.jobs.submit("evict", key, lambda: self.cache_store.delete(key), required=True)

    def _record_lookup(self, result: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("cache_lookups_total", result=result)
