"""Log commands -- read the server's join, kill, command and mod call logs.

Logs are fetched fresh unless ``--cache-max-age`` is given, in which case
the response is cached for that many milliseconds.
"""

from __future__ import annotations

from typing import Optional

import typer

from prcapi.commands.shared import with_client
from prcapi.helpers import PRCHelpers
from prcapi.output import print_table

logs_app = typer.Typer(no_args_is_help=True)


def _cache_max_age_option():  # noqa: ANN202
    return typer.Option(
        None,
        "--cache-max-age",
        min=1,
        help="Cache the logs for this many milliseconds.",
    )


def _cache_kwargs(cache_max_age: Optional[int]) -> dict:
    if cache_max_age is None:
        return {}
    return {"cache": True, "cache_max_age": cache_max_age}


def _when(timestamp: int) -> str:
    return PRCHelpers.format_timestamp(timestamp)


@logs_app.command("joins")
def logs_joins(
    ctx: typer.Context,
    cache_max_age: Optional[int] = _cache_max_age_option(),
) -> None:
    """Show the join and leave log."""

    async def _action(client):  # noqa: ANN001, ANN202
        return (await client.get_join_logs(**_cache_kwargs(cache_max_age))).data

    logs = with_client(ctx, _action)
    rows = [[_when(log.timestamp), log.player, "join" if log.join else "leave"] for log in logs]
    print_table(["Time", "Player", "Event"], rows, title="Joins")


@logs_app.command("kills")
def logs_kills(
    ctx: typer.Context,
    cache_max_age: Optional[int] = _cache_max_age_option(),
) -> None:
    """Show the kill log."""

    async def _action(client):  # noqa: ANN001, ANN202
        return (await client.get_kill_logs(**_cache_kwargs(cache_max_age))).data

    logs = with_client(ctx, _action)
    rows = [[_when(log.timestamp), log.killer, log.killed] for log in logs]
    print_table(["Time", "Killer", "Killed"], rows, title="Kills")


@logs_app.command("commands")
def logs_commands(
    ctx: typer.Context,
    cache_max_age: Optional[int] = _cache_max_age_option(),
) -> None:
    """Show the command log."""

    async def _action(client):  # noqa: ANN001, ANN202
        return (await client.get_command_logs(**_cache_kwargs(cache_max_age))).data

    logs = with_client(ctx, _action)
    rows = [[_when(log.timestamp), log.player, log.command] for log in logs]
    print_table(["Time", "Player", "Command"], rows, title="Commands")


@logs_app.command("modcalls")
def logs_modcalls(
    ctx: typer.Context,
    cache_max_age: Optional[int] = _cache_max_age_option(),
) -> None:
    """Show the mod calls, with the responding moderator if any."""

    async def _action(client):  # noqa: ANN001, ANN202
        return (await client.get_mod_calls(**_cache_kwargs(cache_max_age))).data

    logs = with_client(ctx, _action)
    rows = [[_when(log.timestamp), log.caller, log.moderator or ""] for log in logs]
    print_table(["Time", "Caller", "Moderator"], rows, title="Mod calls")
