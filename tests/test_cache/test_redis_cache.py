"""Tests for the Redis cache backend against an in-memory fake client.

Covers:
- Lazy connect and connection status
- SETEX with whole-second TTLs rounded up
- JSON encoding of values
- Prefix-scoped clear() and size(), FLUSHALL without a prefix
- Graceful degradation when the connection or a command fails
- Debug accessors raising
"""

from __future__ import annotations

import fnmatch
import json
from typing import Any, Optional

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError

from prcapi.cache import ConnectionStatus, RedisCache
from prcapi.exceptions import CacheDebugUnsupportedError
from prcapi.output import OutputFormat, OutputManager, set_output


class FakeRedis:
    """Implements the subset of ``redis.asyncio.Redis`` the backend uses."""

    def __init__(self, fail_ping: bool = False) -> None:
        self.store: dict[str, bytes] = {}
        self.ttls: dict[str, int] = {}
        self.fail_ping = fail_ping
        self.fail_commands = False
        self.pings = 0
        self.flushed = False
        self.closed = False

    def _check(self) -> None:
        if self.fail_commands:
            raise RedisError("boom")

    async def ping(self) -> bool:
        self.pings += 1
        if self.fail_ping:
            raise RedisConnectionError("Connection refused")
        return True

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self._check()
        self.store[key] = value.encode()
        self.ttls[key] = ttl

    async def get(self, key: str) -> Optional[bytes]:
        self._check()
        return self.store.get(key)

    async def exists(self, key: str) -> int:
        self._check()
        return int(key in self.store)

    async def delete(self, *keys: Any) -> int:
        self._check()
        removed = 0
        for key in keys:
            name = key.decode() if isinstance(key, bytes) else key
            if self.store.pop(name, None) is not None:
                removed += 1
        return removed

    async def flushall(self) -> None:
        self._check()
        self.flushed = True
        self.store.clear()

    async def scan_iter(self, match: str = "*"):  # noqa: ANN201
        self._check()
        for key in list(self.store):
            if fnmatch.fnmatchcase(key, match):
                yield key.encode()

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _quiet_output() -> None:
    set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True))


@pytest.fixture
def fake() -> FakeRedis:
    return FakeRedis()


# ---------------------------------------------------------------------------
# Connection status
# ---------------------------------------------------------------------------


class TestConnection:
    def test_requires_url_or_client(self) -> None:
        with pytest.raises(ValueError):
            RedisCache()

    async def test_connects_lazily_once(self, fake: FakeRedis) -> None:
        cache = RedisCache(client=fake)
        assert cache.status is ConnectionStatus.PENDING
        await cache.get("a")
        await cache.get("b")
        assert cache.status is ConnectionStatus.READY
        assert fake.pings == 1

    async def test_failed_connect_leaves_cache_inert(self, capsys: pytest.CaptureFixture[str]) -> None:
        fake = FakeRedis(fail_ping=True)
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        cache = RedisCache(client=fake)

        await cache.connect()
        assert cache.status is ConnectionStatus.FAILED
        assert isinstance(cache.failure, RedisConnectionError)
        assert "Redis cache unavailable" in capsys.readouterr().err

        await cache.set("k", {"a": 1})
        assert fake.store == {}
        assert await cache.get("k") is None
        assert await cache.has("k") is False
        assert await cache.delete("k") is False
        assert await cache.size() == 0
        await cache.clear()
        assert fake.flushed is False
        assert fake.pings == 1

    async def test_malformed_url_leaves_cache_inert(self, capsys: pytest.CaptureFixture[str]) -> None:
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        cache = RedisCache("localhost:6379")

        assert cache.status is ConnectionStatus.FAILED
        assert isinstance(cache.failure, ValueError)
        assert "Invalid Redis URL" in capsys.readouterr().err

        await cache.connect()
        await cache.set("k", 1)
        assert await cache.get("k") is None
        assert await cache.size() == 0
        await cache.disconnect()
        assert cache.status is ConnectionStatus.FAILED

    async def test_disconnect_closes_ready_client(self, fake: FakeRedis) -> None:
        cache = RedisCache(client=fake)
        await cache.connect()
        await cache.disconnect()
        assert fake.closed is True


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


class TestOperations:
    async def test_set_uses_setex_with_json(self, fake: FakeRedis) -> None:
        cache = RedisCache(client=fake)
        await cache.set("/server", {"Name": "x"}, max_age=30_000)
        assert fake.ttls["/server"] == 30
        assert json.loads(fake.store["/server"]) == {"Name": "x"}
        assert await cache.get("/server") == {"Name": "x"}

    @pytest.mark.parametrize(
        ("max_age", "ttl"),
        [(1, 1), (999, 1), (1000, 1), (1001, 2), (300_000, 300), (0, 1)],
    )
    async def test_ttl_rounds_up_to_whole_seconds(self, fake: FakeRedis, max_age: int, ttl: int) -> None:
        cache = RedisCache(client=fake)
        await cache.set("k", 1, max_age=max_age)
        assert fake.ttls["k"] == ttl

    async def test_default_max_age(self, fake: FakeRedis) -> None:
        cache = RedisCache(client=fake, default_max_age=5_500)
        await cache.set("k", 1)
        assert fake.ttls["k"] == 6

    async def test_has_and_delete(self, fake: FakeRedis) -> None:
        cache = RedisCache(client=fake)
        await cache.set("k", 1)
        assert await cache.has("k") is True
        assert await cache.delete("k") is True
        assert await cache.has("k") is False

    async def test_prefix_scopes_keys_clear_and_size(self, fake: FakeRedis) -> None:
        fake.store["other:/server"] = b"1"
        cache = RedisCache(client=fake, prefix="bot1")
        await cache.set("/server", 1)
        await cache.set("/server/players", [])
        assert "bot1:/server" in fake.store
        assert await cache.size() == 2

        await cache.clear()
        assert list(fake.store) == ["other:/server"]
        assert fake.flushed is False

    async def test_clear_without_prefix_flushes(self, fake: FakeRedis) -> None:
        cache = RedisCache(client=fake)
        await cache.set("k", 1)
        await cache.clear()
        assert fake.flushed is True
        assert await cache.size() == 0

    async def test_command_error_degrades_for_that_call(self, fake: FakeRedis) -> None:
        cache = RedisCache(client=fake)
        await cache.set("k", 1)
        fake.fail_commands = True
        assert await cache.get("k") is None
        await cache.set("k2", 2)
        assert await cache.size() == 0
        fake.fail_commands = False
        assert await cache.get("k") == 1
        assert cache.status is ConnectionStatus.READY


class TestDebugAccessors:
    def test_raw_entry_unsupported(self, fake: FakeRedis) -> None:
        with pytest.raises(CacheDebugUnsupportedError):
            RedisCache(client=fake).get_raw_entry("k")

    def test_all_keys_unsupported(self, fake: FakeRedis) -> None:
        with pytest.raises(CacheDebugUnsupportedError):
            RedisCache(client=fake).get_all_keys()
