"""Cache commands -- inspect and clear the response cache.

Operates on the backend the current configuration selects (disk by
default for the CLI, or Redis when ``redis_url`` is set) without needing
API credentials.
"""

from __future__ import annotations

import typer

from prcapi.cache import create_cache
from prcapi.commands.shared import options_from_context, run_async
from prcapi.exceptions import PRCError
from prcapi.output import error, format_response, info, success

cache_app = typer.Typer(no_args_is_help=True)


def _backend(ctx: typer.Context):  # noqa: ANN202
    try:
        options = options_from_context(ctx, credentials=False)
    except PRCError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    backend = create_cache(options)
    if backend is None:
        info("Caching is disabled.")
        raise typer.Exit()
    return backend


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Remove every cached response.

    With a ``cache_prefix`` configured only that namespace is cleared.
    """
    backend = _backend(ctx)

    async def _run() -> None:
        await backend.connect()
        try:
            await backend.clear()
        finally:
            await backend.disconnect()

    run_async(_run())
    success("Cache cleared.")


@cache_app.command("size")
def cache_size(ctx: typer.Context) -> None:
    """Print the number of live cache entries."""
    backend = _backend(ctx)

    async def _run() -> int:
        await backend.connect()
        try:
            return await backend.size()
        finally:
            await backend.disconnect()

    format_response(run_async(_run()))
