"""
Cache store interface and in-process implementation.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..domain.models import CacheEntry


class CacheStore(ABC):
    """Fast, disposable key to bytes storage. Entries are written atomically."""

    name = "cache_store"

    @abstractmethod
    async def get(self, key: str) -> Optional[CacheEntry]: ...

    @abstractmethod
    async def set(self, key: str, entry: CacheEntry) -> None: ...

    @abstractmethod
    async def delete(self, key: str) -> None: ...

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        """Release connections."""


class InMemoryCacheStore(CacheStore):
    """Single-process cache for local development and tests.

    Entries are immutable and replaced with one dict assignment, so no lock is
    needed under a single event loop.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, CacheEntry] = {}

    async def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    async def set(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
