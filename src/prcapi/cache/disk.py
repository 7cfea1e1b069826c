"""Disk-backed cache backend built on :mod:`diskcache`.

Short-lived processes such as the ``prc`` command line cannot benefit from
an in-memory cache, so the CLI stores responses in a directory under the
user's cache dir instead.  Expiry uses diskcache's native ``expire``
argument; values are pickled by diskcache.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import diskcache

from prcapi.cache.base import CacheEntry, namespaced
from prcapi.exceptions import CacheDebugUnsupportedError
from prcapi.models import DEFAULT_CACHE_MAX_AGE_MS

_MISSING = object()


class DiskCache:
    """Persistent cache stored in ``<cache_dir>/responses``.

    Args:
        cache_dir: Root directory for the cache.
        default_max_age: Lifetime in milliseconds for entries written
            without an explicit ``max_age``.
        prefix: Optional key namespace.
    """

    backend_id = "disk"

    def __init__(
        self,
        cache_dir: str | Path,
        default_max_age: int = DEFAULT_CACHE_MAX_AGE_MS,
        prefix: Optional[str] = None,
    ) -> None:
        self._default_max_age = default_max_age
        self._prefix = prefix
        self._cache_dir = Path(cache_dir) / "responses"
        self._cache: Optional[diskcache.Cache] = None

    @property
    def directory(self) -> Path:
        return self._cache_dir

    async def connect(self) -> None:
        self._open()

    async def disconnect(self) -> None:
        if self._cache is not None:
            self._cache.close()
            self._cache = None

    async def set(self, key: str, value: Any, max_age: Optional[int] = None) -> None:
        age = self._default_max_age if max_age is None else max_age
        self._open().set(namespaced(self._prefix, key), value, expire=age / 1000)

    async def get(self, key: str) -> Any:
        return self._open().get(namespaced(self._prefix, key))

    async def has(self, key: str) -> bool:
        return self._open().get(namespaced(self._prefix, key), default=_MISSING) is not _MISSING

    async def delete(self, key: str) -> bool:
        return self._open().delete(namespaced(self._prefix, key))

    async def clear(self) -> None:
        cache = self._open()
        if not self._prefix:
            cache.clear()
            return
        for key in self._prefixed_keys(cache):
            cache.delete(key)

    async def size(self) -> int:
        cache = self._open()
        cache.expire()
        if not self._prefix:
            return len(cache)
        return len(self._prefixed_keys(cache))

    def get_raw_entry(self, key: str) -> Optional[CacheEntry]:
        raise CacheDebugUnsupportedError("Cannot get raw entry from disk cache")

    def get_all_keys(self) -> list[str]:
        raise CacheDebugUnsupportedError("Cannot get all keys from disk cache")

    def _open(self) -> diskcache.Cache:
        if self._cache is None:
            self._cache = diskcache.Cache(str(self._cache_dir))
        return self._cache

    def _prefixed_keys(self, cache: diskcache.Cache) -> list[str]:
        marker = f"{self._prefix}:"
        return [key for key in cache.iterkeys() if isinstance(key, str) and key.startswith(marker)]
