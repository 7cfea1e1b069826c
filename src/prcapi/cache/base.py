"""The cache backend protocol and the entry record shared by backends.

Every backend exposes the same coroutine interface so that the request
pipeline never needs to know whether it is talking to process memory, a
Redis server or a directory on disk.  Ages are in milliseconds throughout,
matching :attr:`~prcapi.models.ClientOptions.cache_max_age`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol


@dataclass(frozen=True)
class CacheEntry:
    """One cached value with the time it was stored and its lifetime.

    ``stored_at`` is a monotonic clock reading in seconds; ``max_age`` is
    in milliseconds.
    """

    value: Any
    stored_at: float
    max_age: int

    def is_expired(self, now: float) -> bool:
        return (now - self.stored_at) * 1000 > self.max_age


class CacheBackend(Protocol):
    """Protocol implemented by every cache backend."""

    backend_id: str

    async def set(self, key: str, value: Any, max_age: Optional[int] = None) -> None: ...

    async def get(self, key: str) -> Any: ...

    async def has(self, key: str) -> bool: ...

    async def delete(self, key: str) -> bool: ...

    async def clear(self) -> None: ...

    async def size(self) -> int: ...

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    def get_raw_entry(self, key: str) -> Optional[CacheEntry]: ...

    def get_all_keys(self) -> list[str]: ...


def namespaced(prefix: Optional[str], key: str) -> str:
    """Return ``prefix:key``, or *key* unchanged when there is no prefix."""
    return f"{prefix}:{key}" if prefix else key
