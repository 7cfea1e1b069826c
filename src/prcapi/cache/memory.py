"""Process-local cache backend.

Entries live in a dict.  Expiry is checked on every read against the
entry's timestamp, so an entry older than its ``max_age`` is never
returned.  Each write also schedules a removal on the running event loop
so entries nobody reads again do not accumulate; that timer is only an
optimisation and correctness never depends on it firing.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Optional

from prcapi.cache.base import CacheEntry, namespaced
from prcapi.models import DEFAULT_CACHE_MAX_AGE_MS


class MemoryCache:
    """In-memory cache backend with lazy and timer-driven expiry.

    Args:
        default_max_age: Lifetime in milliseconds for entries written
            without an explicit ``max_age``.
        prefix: Optional key namespace (``prefix:key``).
        clock: Monotonic clock in seconds.  Tests substitute a fake.

    Example::

        cache = MemoryCache(default_max_age=5_000)
        await cache.set("/server/players", [...])
        players = await cache.get("/server/players")
    """

    backend_id = "memory"

    def __init__(
        self,
        default_max_age: int = DEFAULT_CACHE_MAX_AGE_MS,
        prefix: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_max_age = default_max_age
        self._prefix = prefix
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}

    async def set(self, key: str, value: Any, max_age: Optional[int] = None) -> None:
        full_key = namespaced(self._prefix, key)
        age = self._default_max_age if max_age is None else max_age
        entry = CacheEntry(value=value, stored_at=self._clock(), max_age=age)

        self._cancel_timer(full_key)
        self._entries[full_key] = entry
        loop = asyncio.get_running_loop()
        self._timers[full_key] = loop.call_later(age / 1000, self._expire, full_key, entry)

    async def get(self, key: str) -> Any:
        entry = self._live_entry(namespaced(self._prefix, key))
        return entry.value if entry is not None else None

    async def has(self, key: str) -> bool:
        return self._live_entry(namespaced(self._prefix, key)) is not None

    async def delete(self, key: str) -> bool:
        full_key = namespaced(self._prefix, key)
        self._cancel_timer(full_key)
        return self._entries.pop(full_key, None) is not None

    async def clear(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        self._entries.clear()

    async def size(self) -> int:
        now = self._clock()
        for full_key in [k for k, e in self._entries.items() if e.is_expired(now)]:
            self._remove(full_key)
        return len(self._entries)

    async def connect(self) -> None:
        return None

    async def disconnect(self) -> None:
        await self.clear()

    # ------------------------------------------------------------------ #
    # Debug accessors
    # ------------------------------------------------------------------ #

    def get_raw_entry(self, key: str) -> Optional[CacheEntry]:
        """Return the stored :class:`CacheEntry` for *key*, expired or not."""
        return self._entries.get(namespaced(self._prefix, key))

    def get_all_keys(self) -> list[str]:
        """Return every stored key, including the prefix."""
        return list(self._entries)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _live_entry(self, full_key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(full_key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._remove(full_key)
            return None
        return entry

    def _expire(self, full_key: str, entry: CacheEntry) -> None:
        # A newer write may have replaced the entry this timer was armed for.
        if self._entries.get(full_key) is entry:
            del self._entries[full_key]
        self._timers.pop(full_key, None)

    def _remove(self, full_key: str) -> None:
        self._cancel_timer(full_key)
        self._entries.pop(full_key, None)

    def _cancel_timer(self, full_key: str) -> None:
        handle = self._timers.pop(full_key, None)
        if handle is not None:
            handle.cancel()
