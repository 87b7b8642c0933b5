"""
Background queue for opportunistic cache maintenance.

Cache population and eviction must never delay or fail a response, and a
client disconnect must not abort them. Jobs therefore run on long-lived
worker tasks instead of the request task. Each key is pinned to one worker
(``crc32(key) % workers``) so jobs for the same key execute in the order
they were submitted, e.g. a populate followed by an evict never ends with
the evicted bytes back in the cache. Only optional jobs are subject to the
queue bound; required jobs (evictions) are always accepted.
"""

import asyncio
import zlib
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector


@dataclass
class CacheJob:
    """A unit of background cache work."""
    kind: str
    key: str
    run: Callable[[], Awaitable[Any]]


class CacheJobQueue:
    """Bounded, key-sharded worker pool for fire-and-forget cache jobs."""

    def __init__(
        self,
        workers: int = 4,
        max_queue_size: int = 1000,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.workers = max(1, workers)
        self.max_queue_size = max_queue_size
        self.metrics = metrics
        self.logger = get_logger("asset-gateway.cache_jobs")
        self._queues: List[asyncio.Queue] = [asyncio.Queue() for _ in range(self.workers)]
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        """Start the worker tasks."""
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._worker(queue), name=f"cache-job-worker-{index}")
            for index, queue in enumerate(self._queues)
        ]
        self.logger.info("Cache job workers started", workers=self.workers)

    async def stop(self, timeout: float = 5.0) -> None:
        """Drain pending jobs (bounded by ``timeout``) and stop the workers."""
        if not self.running:
            return

        try:
            await asyncio.wait_for(self.join(), timeout)
        except asyncio.TimeoutError:
            self.logger.warning("Cache job queue not drained before shutdown", pending=self.pending())

        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self.logger.info("Cache job workers stopped")

    async def join(self) -> None:
        """Wait until every submitted job has finished."""
        await asyncio.gather(*(queue.join() for queue in self._queues))

    def pending(self) -> int:
        return sum(queue.qsize() for queue in self._queues)

    def submit(
        self,
        kind: str,
        key: str,
        run: Callable[[], Awaitable[Any]],
        required: bool = False,
    ) -> bool:
        """Queue a job without waiting. Returns False when the job was dropped.

        Optional jobs are dropped once the key's shard holds ``max_queue_size``
        jobs. Required jobs are queued regardless.
        """
        queue = self._queues[zlib.crc32(key.encode("utf-8")) % self.workers]
        if not required and queue.qsize() >= self.max_queue_size:
            self.logger.warning("Cache job queue full, dropping job", kind=kind, key=key)
            if self.metrics:
                self.metrics.increment_counter("cache_jobs_dropped_total", kind=kind)
            return False

        queue.put_nowait(CacheJob(kind=kind, key=key, run=run))
        return True

    async def _worker(self, queue: asyncio.Queue) -> None:
        while True:
            job: CacheJob = await queue.get()
            outcome = "ok"
            try:
                await job.run()
            except Exception as exc:
                outcome = "error"
                self.logger.warning(
                    "Background cache job failed",
                    kind=job.kind,
                    key=job.key,
                    error=str(exc),
                )
            finally:
                queue.task_done()
                if self.metrics:
                    self.metrics.increment_counter("cache_jobs_total", kind=job.kind, outcome=outcome)
