"""Tests for PRCHelpers: players, commands, logs, polling, formatting, stats."""

from __future__ import annotations

import time
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from prcapi.helpers import PRCHelpers, ServerStats
from prcapi.models import Player
from conftest import FakeAPI


@pytest.fixture
def api(fake_api: FakeAPI, server_payload, players_payload, log_payloads) -> FakeAPI:
    fake_api.routes.update(log_payloads)
    fake_api.routes["/server"] = server_payload
    fake_api.routes["/server/players"] = players_payload
    fake_api.routes["/server/command"] = {"message": "Success"}
    return fake_api


@pytest.fixture
async def helpers(api: FakeAPI, make_client):  # noqa: ANN201
    client = make_client()
    async with client:
        yield PRCHelpers(client)


def _commands(api: FakeAPI) -> list[str]:
    return [body["command"] for body in api.bodies() if body]


# ---------------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------------


class TestPlayers:
    async def test_find_player_case_insensitive(self, helpers: PRCHelpers) -> None:
        player = await helpers.find_player("bob")
        assert player is not None
        assert player.player == "Bob:22"

    async def test_find_player_by_id(self, helpers: PRCHelpers) -> None:
        player = await helpers.find_player("11")
        assert player.name == "Alice"

    async def test_find_player_missing(self, helpers: PRCHelpers) -> None:
        assert await helpers.find_player("zzz") is None

    async def test_players_by_team(self, helpers: PRCHelpers) -> None:
        police = await helpers.get_players_by_team("police")
        assert [p.name for p in police] == ["Alice"]

    async def test_staff(self, helpers: PRCHelpers) -> None:
        staff = await helpers.get_staff()
        assert [p.name for p in staff] == ["Alice"]

    async def test_online_count_and_full(self, helpers: PRCHelpers) -> None:
        assert await helpers.get_online_count() == 2
        assert await helpers.is_server_full() is False


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestCommands:
    async def test_simple_commands(self, helpers: PRCHelpers, api: FakeAPI) -> None:
        await helpers.send_message("Restart soon")
        await helpers.send_pm("Bob", "hi")
        await helpers.kick_player("Bob")
        await helpers.ban_player("Bob", "RDM")
        await helpers.teleport_player("Bob", "Alice")
        await helpers.set_team("Bob", "Police")

        assert _commands(api) == [
            ":h Restart soon",
            ":pm Bob hi",
            ":kick Bob",
            ":ban Bob RDM",
            ":tp Bob Alice",
            ":team Bob Police",
        ]

    async def test_kick_all_from_team(self, helpers: PRCHelpers, api: FakeAPI) -> None:
        kicked = await helpers.kick_all_from_team("Civilian", "Restart")
        assert kicked == ["Bob:22"]
        assert _commands(api) == [":kick Bob Restart"]

    async def test_kick_all_from_empty_team_sends_nothing(self, helpers: PRCHelpers, api: FakeAPI) -> None:
        assert await helpers.kick_all_from_team("Sheriff") == []
        assert _commands(api) == []

    async def test_message_all_staff(self, helpers: PRCHelpers, api: FakeAPI) -> None:
        await helpers.message_all_staff("Meeting")
        assert _commands(api) == [":pm Alice Meeting"]


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------


class TestLogs:
    async def test_recent_joins_and_leaves(self, helpers: PRCHelpers) -> None:
        joins = await helpers.get_recent_joins(minutes=10)
        leaves = await helpers.get_recent_leaves(minutes=10)
        assert [log.player for log in joins] == ["Alice:11"]
        assert [log.player for log in leaves] == ["Bob:22"]

    async def test_player_kills_and_deaths(self, helpers: PRCHelpers) -> None:
        assert len(await helpers.get_player_kills("alice")) == 1
        assert len(await helpers.get_player_deaths("bob")) == 1
        assert await helpers.get_player_deaths("alice") == []

    async def test_player_commands(self, helpers: PRCHelpers) -> None:
        commands = await helpers.get_player_commands("Alice", hours=1)
        assert [log.command for log in commands] == [":h hi"]

    async def test_unanswered_mod_calls(self, helpers: PRCHelpers) -> None:
        calls = await helpers.get_unanswered_mod_calls(hours=1)
        assert len(calls) == 1
        assert calls[0].moderator is None


# ---------------------------------------------------------------------------
# Polling
# ---------------------------------------------------------------------------


class TestPolling:
    async def test_wait_for_player_found(self, helpers: PRCHelpers) -> None:
        player = await helpers.wait_for_player("alice", timeout=1, poll_interval=0.01)
        assert player.name == "Alice"

    async def test_wait_for_player_times_out(self, helpers: PRCHelpers) -> None:
        with pytest.raises(TimeoutError, match="zzz"):
            await helpers.wait_for_player("zzz", timeout=0.05, poll_interval=0.01)

    async def test_wait_for_player_count(self, helpers: PRCHelpers) -> None:
        await helpers.wait_for_player_count(2, timeout=1, poll_interval=0.01)

    async def test_wait_for_player_count_times_out(self, helpers: PRCHelpers) -> None:
        with pytest.raises(TimeoutError):
            await helpers.wait_for_player_count(10, timeout=0.05, poll_interval=0.01)

    async def test_wait_polls_until_present(self) -> None:
        client = AsyncMock()
        empty = SimpleNamespace(data=[])
        present = SimpleNamespace(data=[Player(Player="Late:9")])
        client.get_players.side_effect = [empty, empty, present]

        player = await PRCHelpers(client).wait_for_player("late", timeout=1, poll_interval=0)
        assert player.player == "Late:9"
        assert client.get_players.await_count == 3


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormatting:
    def test_player_name_with_callsign(self) -> None:
        player = Player(Player="Alice:11", Callsign="1A-01")
        assert PRCHelpers.format_player_name(player) == "[1A-01]Alice"

    def test_player_name_without_callsign(self) -> None:
        assert PRCHelpers.format_player_name(Player(Player="Bob:22")) == "Bob"

    def test_format_timestamp(self) -> None:
        assert PRCHelpers.format_timestamp(0).count(":") == 2

    def test_format_uptime(self) -> None:
        start = time.time() - (2 * 3600 + 5 * 60 + 10)
        assert PRCHelpers.format_uptime(start) == "2h 5m"


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


class TestServerStats:
    async def test_stats_counts_recent_activity(self, helpers: PRCHelpers) -> None:
        stats = await helpers.get_server_stats(hours=1)
        assert isinstance(stats, ServerStats)
        assert stats.current.players == 2
        assert stats.current.max_players == 40
        assert stats.current.name == "Liberty County RP"
        assert stats.current.owner == 1001
        assert stats.recent.joins == 1
        assert stats.recent.kills == 1
        assert stats.recent.commands == 1
        assert stats.recent.mod_calls == 1
        assert stats.recent.unique_players == 1

    async def test_stats_reads_every_source(self, helpers: PRCHelpers, api: FakeAPI) -> None:
        await helpers.get_server_stats()
        assert sorted(api.paths()) == [
            "/server",
            "/server/commandlogs",
            "/server/joinlogs",
            "/server/killlogs",
            "/server/modcalls",
        ]

    async def test_wide_window_includes_old_entries(self, helpers: PRCHelpers) -> None:
        stats = await helpers.get_server_stats(hours=24 * 30)
        assert stats.recent.joins == 2
        assert stats.recent.unique_players == 2
        assert stats.recent.kills == 2
