"""Shared test fixtures for prcapi.

Provides sample API payloads, an isolated config environment, output
state management, and a small ``httpx.MockTransport`` router used by the
client, helper and CLI tests.  These fixtures are discovered by pytest
and available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from prcapi.output import reset_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _clear_prc_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's own PRC_* variables out of the tests."""
    for name in (
        "PRC_SERVER_KEY",
        "PRC_GLOBAL_KEY",
        "PRC_BASE_URL",
        "PRC_CACHE",
        "PRC_CACHE_MAX_AGE",
        "PRC_REDIS_URL",
        "PRC_CACHE_PREFIX",
    ):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Isolated config environment
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the XDG config and cache dirs into *tmp_path*.

    Returns:
        The temporary directory acting as the user's home.
    """
    monkeypatch.setattr("prcapi.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    return tmp_path


# ---------------------------------------------------------------------------
# Sample payloads (PascalCase, as the API sends them)
# ---------------------------------------------------------------------------


@pytest.fixture
def server_payload() -> dict[str, Any]:
    return {
        "Name": "Liberty County RP",
        "OwnerId": 1001,
        "CoOwnerIds": [1002],
        "CurrentPlayers": 2,
        "MaxPlayers": 40,
        "JoinKey": "abc",
        "AccVerifiedReq": "Disabled",
        "TeamBalance": True,
    }


@pytest.fixture
def players_payload() -> list[dict[str, Any]]:
    return [
        {"Player": "Alice:11", "Permission": "Server Administrator", "Team": "Police", "Callsign": "1A-01"},
        {"Player": "Bob:22", "Permission": "Normal", "Team": "Civilian"},
    ]


@pytest.fixture
def now() -> int:
    return int(time.time())


@pytest.fixture
def log_payloads(now: int) -> dict[str, list[dict[str, Any]]]:
    """One recent entry per log endpoint plus one entry well outside any window."""
    old = now - 10 * 86400
    return {
        "/server/joinlogs": [
            {"Join": True, "Timestamp": now - 60, "Player": "Alice:11"},
            {"Join": False, "Timestamp": now - 30, "Player": "Bob:22"},
            {"Join": True, "Timestamp": old, "Player": "Carol:33"},
        ],
        "/server/killlogs": [
            {"Killed": "Bob:22", "Timestamp": now - 60, "Killer": "Alice:11"},
            {"Killed": "Alice:11", "Timestamp": old, "Killer": "Bob:22"},
        ],
        "/server/commandlogs": [
            {"Player": "Alice:11", "Timestamp": now - 60, "Command": ":h hi"},
            {"Player": "Alice:11", "Timestamp": old, "Command": ":h old"},
        ],
        "/server/modcalls": [
            {"Caller": "Bob:22", "Timestamp": now - 60},
            {"Caller": "Bob:22", "Moderator": "Alice:11", "Timestamp": old},
        ],
    }


# ---------------------------------------------------------------------------
# HTTP mocking
# ---------------------------------------------------------------------------


def json_response(status: int, payload: Any, headers: Optional[dict[str, str]] = None) -> httpx.Response:
    """Build a response with a JSON body and content type."""
    return httpx.Response(status, json=payload, headers=headers)


class FakeAPI:
    """A tiny router for ``httpx.MockTransport``.

    Routes map a path to a payload or to a callable that receives the
    request.  Every request is recorded in :attr:`calls`.
    """

    def __init__(self, routes: Optional[dict[str, Any]] = None) -> None:
        self.routes: dict[str, Any] = dict(routes or {})
        self.calls: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path.removeprefix("/v1")
        route = self.routes.get(path)
        if route is None:
            return json_response(404, {"code": 0, "message": f"No route for {path}"})
        if callable(route):
            return route(request)
        return json_response(200, route)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def paths(self) -> list[str]:
        return [call.url.path.removeprefix("/v1") for call in self.calls]

    def bodies(self) -> list[Any]:
        return [json.loads(call.content) if call.content else None for call in self.calls]


@pytest.fixture
def fake_api() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
def make_client(fake_api: FakeAPI) -> Callable[..., Any]:
    """Factory building a :class:`~prcapi.client.PRCClient` on the fake transport."""
    from prcapi.client import PRCClient

    def _factory(**fields: Any) -> PRCClient:
        fields.setdefault("server_key", "server-key")
        return PRCClient(transport=fake_api.transport, **fields)

    return _factory
