"""
Object store interface. The object store is the source of truth.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..domain.models import Blob


class ObjectStore(ABC):
    """Durable key to blob storage, safe for concurrent use.

    Implementations raise ``shared.errors.StoreError`` for I/O faults and
    return ``None`` from ``get`` for absent keys.
    """

    name = "object_store"

    @abstractmethod
    async def get(self, key: str) -> Optional[Blob]: ...

    @abstractmethod
    async def put(self, key: str, blob: Blob) -> None: ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``. Deleting an absent key is not an error."""
        ...

    async def ping(self) -> bool:
        """Return True when the store is reachable."""
        return True

    async def close(self) -> None:
        """Release connections."""
