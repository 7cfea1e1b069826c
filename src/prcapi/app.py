"""Typer application and CLI entry point for prc.

This module wires together the top-level Typer application, registers the
built-in commands (server reads, ``logs``, ``command``, ``stats``,
``cache``, ``config``) and installs the global flags that select the
output format and override credentials.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs a SIGINT handler and maps
:class:`~prcapi.exceptions.PRCError` to the error's exit code.

See Also:
    :mod:`prcapi.config`: Option resolution used by every API command.
    :mod:`prcapi.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
from typing import Any, Optional

import typer

from prcapi import __version__
from prcapi.commands import server
from prcapi.commands.cache import cache_app
from prcapi.commands.config import config_app
from prcapi.commands.logs import logs_app
from prcapi.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="prc",
    help="Query and manage a Police Roleplay Community private server.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

server.register(app)
app.add_typer(logs_app, name="logs", help="Server logs.")
app.add_typer(cache_app, name="cache", help="Response cache management.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"prc {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    server_key: Optional[str] = typer.Option(
        None, "--server-key", help="Server key (overrides PRC_SERVER_KEY and config)."
    ),
    global_key: Optional[str] = typer.Option(
        None, "--global-key", help="Global API key (overrides PRC_GLOBAL_KEY and config)."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="API root URL."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Bypass the response cache."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~prcapi.output.OutputManager` from the
    CLI flags and stores the connection overrides in ``ctx.obj`` so that
    commands can resolve their client options.  Entries already present
    in ``ctx.obj`` (for example an injected ``transport``) are kept.
    """
    from prcapi.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["server_key"] = server_key
    ctx.obj["global_key"] = global_key
    ctx.obj["base_url"] = base_url
    ctx.obj["no_cache"] = no_cache


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``prc`` console script.

    Unhandled :class:`~prcapi.exceptions.PRCError` instances cause a clean
    exit with the error's ``exit_code``; anything else is reported and
    exits with a generic failure.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from prcapi.exceptions import PRCError
        from prcapi.output import error

        if isinstance(exc, PRCError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
