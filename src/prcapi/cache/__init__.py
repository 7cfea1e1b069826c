"""Response caching for prcapi.

Three interchangeable backends implement the
:class:`~prcapi.cache.base.CacheBackend` protocol:

* :class:`MemoryCache` -- process memory (the default).
* :class:`RedisCache` -- a Redis server, for several processes sharing one
  cache.
* :class:`DiskCache` -- a directory on disk, used by the ``prc`` CLI.

:func:`create_cache` picks one from a
:class:`~prcapi.models.ClientOptions`.
"""

from __future__ import annotations

from typing import Optional

from prcapi.cache.base import CacheBackend, CacheEntry
from prcapi.cache.disk import DiskCache
from prcapi.cache.memory import MemoryCache
from prcapi.cache.redis import ConnectionStatus, RedisCache
from prcapi.models import ClientOptions


def create_cache(options: ClientOptions) -> Optional[CacheBackend]:
    """Build the cache backend selected by *options*.

    Returns ``None`` when caching is disabled.  A ``redis_url`` wins over a
    ``cache_dir``; with neither, entries are kept in memory.
    """
    if not options.cache:
        return None
    if options.redis_url:
        return RedisCache(options.redis_url, options.cache_max_age, options.cache_prefix)
    if options.cache_dir:
        return DiskCache(options.cache_dir, options.cache_max_age, options.cache_prefix)
    return MemoryCache(options.cache_max_age, options.cache_prefix)


__all__ = [
    "CacheBackend",
    "CacheEntry",
    "ConnectionStatus",
    "DiskCache",
    "MemoryCache",
    "RedisCache",
    "create_cache",
]
