"""Redis-backed cache backend for sharing cached responses between processes.

Entries are stored as JSON with ``SETEX``; Redis' native TTL enforces
expiry, so reads never compare timestamps.  TTLs are whole seconds,
rounded up from the millisecond ``max_age``.

The backend connects once.  The outcome is kept as a
:class:`ConnectionStatus`: when the connection failed, every operation
degrades to a no-op (reads miss, writes are dropped, ``size()`` is 0) and
a warning is printed instead of raising.  Errors from individual commands
are handled the same way for that one call, so a flaky Redis can slow the
client down but never fail an API call.

Requires ``redis.asyncio`` (``pip install redis``).
"""

from __future__ import annotations

import asyncio
import enum
import json
import math
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from prcapi.cache.base import CacheEntry, namespaced
from prcapi.exceptions import CacheDebugUnsupportedError
from prcapi.models import DEFAULT_CACHE_MAX_AGE_MS
from prcapi.output import debug, warning


class ConnectionStatus(str, enum.Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class RedisCache:
    """Cache backend on a Redis server.

    Args:
        url: Connection string, e.g. ``redis://localhost:6379/0``.
        default_max_age: Lifetime in milliseconds for entries written
            without an explicit ``max_age``.
        prefix: Optional key namespace.  When set, :meth:`clear` and
            :meth:`size` only touch keys under it.
        client: An existing ``redis.asyncio.Redis`` to use instead of
            building one from *url*.
    """

    backend_id = "redis"

    def __init__(
        self,
        url: Optional[str] = None,
        default_max_age: int = DEFAULT_CACHE_MAX_AGE_MS,
        prefix: Optional[str] = None,
        client: Any = None,
    ) -> None:
        if client is None and url is None:
            raise ValueError("RedisCache needs either a url or a client")
        self._default_max_age = default_max_age
        self._prefix = prefix
        self._status = ConnectionStatus.PENDING
        self._failure: Optional[BaseException] = None
        self._connect_lock = asyncio.Lock()
        if client is not None:
            self._redis = client
            return
        try:
            self._redis = redis.Redis.from_url(url)
        except ValueError as exc:
            self._redis = None
            self._status = ConnectionStatus.FAILED
            self._failure = exc
            warning(f"Invalid Redis URL, continuing without cache: {exc}")

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def failure(self) -> Optional[BaseException]:
        """The error that left the backend inert, if the connection failed."""
        return self._failure

    async def connect(self) -> None:
        """Open the connection once; record a failure instead of raising it."""
        async with self._connect_lock:
            if self._status is not ConnectionStatus.PENDING:
                return
            try:
                await self._redis.ping()
            except (RedisError, OSError) as exc:
                self._status = ConnectionStatus.FAILED
                self._failure = exc
                warning(f"Redis cache unavailable, continuing without cache: {exc}")
            else:
                self._status = ConnectionStatus.READY
                debug("Redis cache connected")

    async def disconnect(self) -> None:
        if self._status is ConnectionStatus.READY:
            await self._redis.aclose()
        self._status = ConnectionStatus.FAILED if self._failure else ConnectionStatus.PENDING

    async def set(self, key: str, value: Any, max_age: Optional[int] = None) -> None:
        if not await self._usable():
            return
        age = self._default_max_age if max_age is None else max_age
        ttl = max(1, math.ceil(age / 1000))
        try:
            await self._redis.setex(namespaced(self._prefix, key), ttl, json.dumps(value))
        except RedisError as exc:
            warning(f"Redis cache write failed for {key}: {exc}")

    async def get(self, key: str) -> Any:
        if not await self._usable():
            return None
        try:
            blob = await self._redis.get(namespaced(self._prefix, key))
        except RedisError as exc:
            warning(f"Redis cache read failed for {key}: {exc}")
            return None
        if blob is None:
            return None
        try:
            return json.loads(blob)
        except ValueError:
            return None

    async def has(self, key: str) -> bool:
        if not await self._usable():
            return False
        try:
            return bool(await self._redis.exists(namespaced(self._prefix, key)))
        except RedisError as exc:
            warning(f"Redis cache lookup failed for {key}: {exc}")
            return False

    async def delete(self, key: str) -> bool:
        if not await self._usable():
            return False
        try:
            return await self._redis.delete(namespaced(self._prefix, key)) > 0
        except RedisError as exc:
            warning(f"Redis cache delete failed for {key}: {exc}")
            return False

    async def clear(self) -> None:
        if not await self._usable():
            return
        try:
            if self._prefix:
                keys = await self._keys()
                if keys:
                    await self._redis.delete(*keys)
            else:
                await self._redis.flushall()
        except RedisError as exc:
            warning(f"Redis cache clear failed: {exc}")

    async def size(self) -> int:
        if not await self._usable():
            return 0
        try:
            return len(await self._keys())
        except RedisError as exc:
            warning(f"Redis cache size lookup failed: {exc}")
            return 0

    def get_raw_entry(self, key: str) -> Optional[CacheEntry]:
        raise CacheDebugUnsupportedError("Cannot get raw entry from Redis cache")

    def get_all_keys(self) -> list[str]:
        raise CacheDebugUnsupportedError("Cannot get all keys from Redis cache")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _usable(self) -> bool:
        if self._status is ConnectionStatus.PENDING:
            await self.connect()
        return self._status is ConnectionStatus.READY

    async def _keys(self) -> list[Any]:
        pattern = f"{self._prefix}:*" if self._prefix else "*"
        return [key async for key in self._redis.scan_iter(match=pattern)]
