"""Convenience helpers built on top of :class:`~prcapi.client.PRCClient`.

:class:`PRCHelpers` covers the chores bots and dashboards repeat: finding
players, sending moderation commands, filtering logs to a time window,
polling until a player shows up, and summarising server activity.  It only
uses the client's public endpoint methods, so caching and rate-limit
retries apply exactly as they do for direct calls.

Log timestamps are unix seconds; time windows keep entries strictly newer
than the cutoff.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from prcapi.client import PRCClient
from prcapi.models import CommandLog, JoinLog, KillLog, ModCall, Player


class CurrentStats(BaseModel):
    players: int
    max_players: int
    name: str
    owner: int


class RecentStats(BaseModel):
    joins: int
    kills: int
    commands: int
    mod_calls: int
    unique_players: int


class ServerStats(BaseModel):
    """Snapshot returned by :meth:`PRCHelpers.get_server_stats`."""

    current: CurrentStats
    recent: RecentStats


def _cutoff(seconds: float) -> float:
    return time.time() - seconds


class PRCHelpers:
    """Player, moderation and log helpers for one client.

    Args:
        client: The client every helper calls through.
    """

    def __init__(self, client: PRCClient) -> None:
        self.client = client

    # ------------------------------------------------------------------ #
    # Players
    # ------------------------------------------------------------------ #

    async def find_player(self, name_or_id: str) -> Optional[Player]:
        """Return the first player whose ``Name:Id`` contains *name_or_id*, ignoring case."""
        players = (await self.client.get_players()).data
        needle = name_or_id.lower()
        return next((p for p in players if needle in p.player.lower()), None)

    async def get_players_by_team(self, team: str) -> list[Player]:
        players = (await self.client.get_players()).data
        return [p for p in players if p.team.lower() == team.lower()]

    async def get_staff(self) -> list[Player]:
        """Players in the server with any permission above ``Normal``."""
        players = (await self.client.get_players()).data
        return [p for p in players if p.permission != "Normal"]

    async def get_online_count(self) -> int:
        return (await self.client.get_server_status()).data.current_players

    async def is_server_full(self) -> bool:
        status = (await self.client.get_server_status()).data
        return status.current_players >= status.max_players

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    async def send_message(self, message: str) -> None:
        """Broadcast a hint message to everyone in the server."""
        await self.client.execute_command(f":h {message}")

    async def send_pm(self, player: str, message: str) -> None:
        await self.client.execute_command(f":pm {player} {message}")

    async def kick_player(self, player: str, reason: Optional[str] = None) -> None:
        await self.client.execute_command(_with_reason(f":kick {player}", reason))

    async def ban_player(self, player: str, reason: Optional[str] = None) -> None:
        await self.client.execute_command(_with_reason(f":ban {player}", reason))

    async def teleport_player(self, player: str, target: str) -> None:
        await self.client.execute_command(f":tp {player} {target}")

    async def set_team(self, player: str, team: str) -> None:
        await self.client.execute_command(f":team {player} {team}")

    async def kick_all_from_team(self, team: str, reason: Optional[str] = None) -> list[str]:
        """Kick every player on *team* with a single command.

        Returns:
            The ``Name:Id`` strings of the kicked players.
        """
        players = await self.get_players_by_team(team)
        names = [p.name for p in players if p.name]
        if names:
            await self.client.execute_command(_with_reason(f":kick {','.join(names)}", reason))
        return [p.player for p in players]

    async def message_all_staff(self, message: str) -> None:
        staff = await self.get_staff()
        names = [p.name for p in staff if p.name]
        if names:
            await self.client.execute_command(f":pm {','.join(names)} {message}")

    # ------------------------------------------------------------------ #
    # Logs
    # ------------------------------------------------------------------ #

    async def get_recent_joins(self, minutes: float = 10) -> list[JoinLog]:
        logs = (await self.client.get_join_logs()).data
        cutoff = _cutoff(minutes * 60)
        return [log for log in logs if log.join and log.timestamp > cutoff]

    async def get_recent_leaves(self, minutes: float = 10) -> list[JoinLog]:
        logs = (await self.client.get_join_logs()).data
        cutoff = _cutoff(minutes * 60)
        return [log for log in logs if not log.join and log.timestamp > cutoff]

    async def get_player_kills(self, player: str, hours: float = 1) -> list[KillLog]:
        logs = (await self.client.get_kill_logs()).data
        cutoff = _cutoff(hours * 3600)
        needle = player.lower()
        return [log for log in logs if needle in log.killer.lower() and log.timestamp > cutoff]

    async def get_player_deaths(self, player: str, hours: float = 1) -> list[KillLog]:
        logs = (await self.client.get_kill_logs()).data
        cutoff = _cutoff(hours * 3600)
        needle = player.lower()
        return [log for log in logs if needle in log.killed.lower() and log.timestamp > cutoff]

    async def get_player_commands(self, player: str, hours: float = 1) -> list[CommandLog]:
        logs = (await self.client.get_command_logs()).data
        cutoff = _cutoff(hours * 3600)
        needle = player.lower()
        return [log for log in logs if needle in log.player.lower() and log.timestamp > cutoff]

    async def get_unanswered_mod_calls(self, hours: float = 1) -> list[ModCall]:
        logs = (await self.client.get_mod_calls()).data
        cutoff = _cutoff(hours * 3600)
        return [log for log in logs if not log.moderator and log.timestamp > cutoff]

    # ------------------------------------------------------------------ #
    # Polling
    # ------------------------------------------------------------------ #

    async def wait_for_player(
        self, name_or_id: str, timeout: float = 30.0, poll_interval: float = 1.0
    ) -> Player:
        """Poll the player list until *name_or_id* shows up.

        Raises:
            TimeoutError: If the player is not found within *timeout* seconds.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while loop.time() < deadline:
            player = await self.find_player(name_or_id)
            if player is not None:
                return player
            await asyncio.sleep(poll_interval)
        raise TimeoutError(f"Player {name_or_id} not found within timeout")

    async def wait_for_player_count(
        self, count: int, timeout: float = 60.0, poll_interval: float = 2.0
    ) -> None:
        """Poll the server status until at least *count* players are online.

        Raises:
            TimeoutError: If the count is not reached within *timeout* seconds.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while loop.time() < deadline:
            if await self.get_online_count() >= count:
                return
            await asyncio.sleep(poll_interval)
        raise TimeoutError(f"Server did not reach {count} players within timeout")

    # ------------------------------------------------------------------ #
    # Formatting
    # ------------------------------------------------------------------ #

    @staticmethod
    def format_player_name(player: Player) -> str:
        """``[callsign]Name``, or just ``Name`` without a callsign."""
        callsign = f"[{player.callsign}]" if player.callsign else ""
        return f"{callsign}{player.name}".strip()

    @staticmethod
    def format_timestamp(timestamp: float) -> str:
        return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")

    @staticmethod
    def format_uptime(start_timestamp: float) -> str:
        """Time since *start_timestamp* as ``"<hours>h <minutes>m"``."""
        elapsed = max(0, int(time.time() - start_timestamp))
        hours, remainder = divmod(elapsed, 3600)
        return f"{hours}h {remainder // 60}m"

    # ------------------------------------------------------------------ #
    # Stats
    # ------------------------------------------------------------------ #

    async def get_server_stats(self, hours: float = 24) -> ServerStats:
        """Summarise the server's current state and its activity over *hours*.

        The five reads run concurrently.
        """
        cutoff = _cutoff(hours * 3600)
        status, joins, kills, commands, mod_calls = await asyncio.gather(
            self.client.get_server_status(),
            self.client.get_join_logs(),
            self.client.get_kill_logs(),
            self.client.get_command_logs(),
            self.client.get_mod_calls(),
        )

        recent_joins = [log for log in joins.data if log.join and log.timestamp > cutoff]
        return ServerStats(
            current=CurrentStats(
                players=status.data.current_players,
                max_players=status.data.max_players,
                name=status.data.name,
                owner=status.data.owner_id,
            ),
            recent=RecentStats(
                joins=len(recent_joins),
                kills=sum(1 for log in kills.data if log.timestamp > cutoff),
                commands=sum(1 for log in commands.data if log.timestamp > cutoff),
                mod_calls=sum(1 for log in mod_calls.data if log.timestamp > cutoff),
                unique_players=len({log.player for log in recent_joins}),
            ),
        )


def _with_reason(command: str, reason: Optional[str]) -> str:
    return f"{command} {reason}" if reason else command
