"""Server commands -- read server state and run in-game commands.

Single commands registered directly on the root ``prc`` app:
``status``, ``players``, ``find``, ``queue``, ``vehicles``, ``bans``,
``staff``, ``command`` and ``stats``.  Reads go through the client's
cache; ``command`` never does.
"""

from __future__ import annotations

from typing import Optional

import typer

from prcapi.commands.shared import with_client
from prcapi.exit_codes import EXIT_GENERIC_FAILURE
from prcapi.helpers import PRCHelpers
from prcapi.models import Player
from prcapi.output import error, format_response, print_table, success

_PLAYER_HEADERS = ["Player", "Team", "Permission", "Callsign"]


def _player_rows(players: list[Player]) -> list[list[str]]:
    return [[p.player, p.team, p.permission, p.callsign or ""] for p in players]


def status_command(ctx: typer.Context) -> None:
    """Show the server status.

    Example::

        prc status
        prc --json status
    """

    async def _action(client):  # noqa: ANN001, ANN202
        return (await client.get_server_status()).data

    status = with_client(ctx, _action)
    format_response(status.model_dump(mode="json"))


def players_command(
    ctx: typer.Context,
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Only players on this team."),
) -> None:
    """List the players in the server.

    Example::

        prc players
        prc players --team Police
    """

    async def _action(client):  # noqa: ANN001, ANN202
        if team:
            return await PRCHelpers(client).get_players_by_team(team)
        return (await client.get_players()).data

    players = with_client(ctx, _action)
    print_table(_PLAYER_HEADERS, _player_rows(players), title="Players")


def find_command(
    ctx: typer.Context,
    query: str = typer.Argument(help="Part of a player's name or user id."),
) -> None:
    """Find a player by name or user id (case-insensitive)."""

    async def _action(client):  # noqa: ANN001, ANN202
        return await PRCHelpers(client).find_player(query)

    player = with_client(ctx, _action)
    if player is None:
        error(f"No player matching '{query}'")
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
    print_table(_PLAYER_HEADERS, _player_rows([player]))


def queue_command(ctx: typer.Context) -> None:
    """List the user ids waiting in the join queue."""

    async def _action(client):  # noqa: ANN001, ANN202
        return (await client.get_queue()).data

    format_response(with_client(ctx, _action))


def vehicles_command(ctx: typer.Context) -> None:
    """List the vehicles spawned in the server."""

    async def _action(client):  # noqa: ANN001, ANN202
        return (await client.get_vehicles()).data

    vehicles = with_client(ctx, _action)
    rows = [[v.name, v.owner, v.texture or ""] for v in vehicles]
    print_table(["Vehicle", "Owner", "Texture"], rows, title="Vehicles")


def bans_command(ctx: typer.Context) -> None:
    """List the server bans."""

    async def _action(client):  # noqa: ANN001, ANN202
        return (await client.get_bans()).data

    bans = with_client(ctx, _action)
    rows = [[user_id, name] for user_id, name in bans.items()]
    print_table(["User ID", "Name"], rows, title="Bans")


def staff_command(ctx: typer.Context) -> None:
    """Show the server's co-owners, admins and mods."""

    async def _action(client):  # noqa: ANN001, ANN202
        return (await client.get_staff()).data

    staff = with_client(ctx, _action)
    format_response(staff.model_dump(mode="json"))


def command_command(
    ctx: typer.Context,
    text: str = typer.Argument(help="The in-game command, e.g. ':h Hello'."),
) -> None:
    """Run an in-game command on the server.

    Example::

        prc command ":h Server restart in 5 minutes"
    """

    async def _action(client):  # noqa: ANN001, ANN202
        return await client.execute_command(text)

    with_client(ctx, _action)
    success(f"Sent: {text}")


def stats_command(
    ctx: typer.Context,
    hours: float = typer.Option(24.0, "--hours", help="Size of the activity window in hours."),
) -> None:
    """Summarise the server's current state and recent activity."""

    async def _action(client):  # noqa: ANN001, ANN202
        return await PRCHelpers(client).get_server_stats(hours)

    stats = with_client(ctx, _action)
    format_response(stats.model_dump(mode="json"))


def register(app: typer.Typer) -> None:
    """Attach the server commands to the root *app*."""
    app.command("status")(status_command)
    app.command("players")(players_command)
    app.command("find")(find_command)
    app.command("queue")(queue_command)
    app.command("vehicles")(vehicles_command)
    app.command("bans")(bans_command)
    app.command("staff")(staff_command)
    app.command("command")(command_command)
    app.command("stats")(stats_command)
