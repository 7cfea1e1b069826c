"""Plumbing shared by the command modules.

Every API command resolves its :class:`~prcapi.models.ClientOptions` from
the global flags stored in ``ctx.obj`` (see :func:`prcapi.app.main_callback`),
opens a :class:`~prcapi.client.PRCClient` for the duration of one
``asyncio.run`` and converts :class:`~prcapi.exceptions.PRCError` into a
clean exit with the error's exit code.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Coroutine, TypeVar

import typer

from prcapi.client import PRCClient
from prcapi.config import resolve_client_options
from prcapi.exceptions import PRCError
from prcapi.models import ClientOptions
from prcapi.output import debug, error

T = TypeVar("T")


def _obj(ctx: typer.Context) -> dict[str, Any]:
    root = ctx.find_root()
    return root.obj if isinstance(root.obj, dict) else {}


def options_from_context(ctx: typer.Context, credentials: bool = True) -> ClientOptions:
    """Resolve client options from the global flags on the root context.

    With *credentials* false the settings file's key sources are not read.

    Raises:
        ConfigError: If the settings file or a credential source is invalid.
    """
    obj = _obj(ctx)
    return resolve_client_options(
        server_key=obj.get("server_key"),
        global_key=obj.get("global_key"),
        base_url=obj.get("base_url"),
        cache=False if obj.get("no_cache") else None,
        credentials=credentials,
    )


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Drive *coro* to completion, mapping library errors to an exit code."""
    try:
        return asyncio.run(coro)
    except PRCError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def with_client(ctx: typer.Context, action: Callable[[PRCClient], Awaitable[T]]) -> T:
    """Run *action* against a client built from the global flags.

    The client (and its cache backend) is closed before this returns.
    Tests inject an httpx transport through ``ctx.obj["transport"]``.
    """
    obj = _obj(ctx)

    async def _run() -> T:
        options = options_from_context(ctx)
        debug(f"Using {options.base_url} (cache={'on' if options.cache else 'off'})")
        async with PRCClient(options, transport=obj.get("transport")) as client:
            return await action(client)

    return run_async(_run())
