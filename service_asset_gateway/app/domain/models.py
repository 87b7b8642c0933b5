"""
Stored object models.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Blob:
    """Durable record held by the object store."""
    data: bytes
    content_type: Optional[str] = None


@dataclass(frozen=True)
class CacheEntry:
    """Derived copy of a blob held by the cache store. Never authoritative."""
    data: bytes
    content_type: Optional[str] = None

    @classmethod
    def from_blob(cls, blob: Blob) -> "CacheEntry":
        return cls(data=blob.data, content_type=blob.content_type)


@dataclass(frozen=True)
class ReadResult:
    """Bytes returned by the read path together with where they came from."""
    data: bytes
    content_type: Optional[str]
    from_cache: bool
