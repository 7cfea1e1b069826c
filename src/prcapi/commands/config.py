"""Config commands -- view and modify the settings file.

Provides the ``prc config`` sub-command group for reading, updating and
resetting fields of :class:`~prcapi.models.Settings`, persisted as
``config.json`` in the prcapi config directory.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError

from prcapi.exit_codes import EXIT_INVALID_USAGE
from prcapi.output import error, format_response, get_output, info, success

config_app = typer.Typer(no_args_is_help=True)

_CREDENTIAL_KEYS = ("server_key", "global_key")
_SOURCE_PREFIXES = ("env:", "file:", "value:")


def _check_key(key: str) -> None:
    from prcapi.models import Settings

    if key not in Settings.model_fields:
        error(f"Unknown config key: {key}")
        info(f"Valid keys: {', '.join(Settings.model_fields)}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)


@config_app.command("show")
def config_show() -> None:
    """Show the current settings.

    Example::

        prc config show
        prc --json config show
    """
    from prcapi.config import load_settings, settings_path

    settings = load_settings()
    info(f"Config file: {settings_path()}")
    format_response(settings.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Settings field, e.g. 'cache_max_age'."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a settings value.

    Values are coerced to the field's type (``true``/``false`` for
    booleans, milliseconds for ``cache_max_age``).  Keys are stored as
    source descriptors: ``env:VAR``, ``file:/path`` or ``value:LITERAL``.

    Example::

        prc config set server_key env:PRC_SERVER_KEY
        prc config set cache_max_age 60000
        prc config set disk_cache false
    """
    from prcapi.config import load_settings, save_settings
    from prcapi.models import Settings

    _check_key(key)
    if key in _CREDENTIAL_KEYS and not value.startswith(_SOURCE_PREFIXES):
        error(f"{key} must be a source descriptor: env:VAR, file:/path or value:LITERAL")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    data = load_settings().model_dump(mode="json")
    data[key] = value
    try:
        settings = Settings.model_validate(data)
    except ValidationError as exc:
        error(f"Invalid value for {key}: {exc.errors()[0]['msg']}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_settings(settings)
    success(f"Set {key} = {getattr(settings, key)}")


@config_app.command("unset")
def config_unset(
    key: str = typer.Argument(help="Settings field to reset to its default."),
) -> None:
    """Reset one settings value to its default."""
    from prcapi.config import load_settings, save_settings
    from prcapi.models import Settings

    _check_key(key)
    default = Settings.model_fields[key].get_default(call_default_factory=True)
    settings = load_settings().model_copy(update={key: default})
    save_settings(settings)
    success(f"Unset {key}")


@config_app.command("path")
def config_path() -> None:
    """Print the path of the settings file."""
    from prcapi.config import settings_path

    get_output().print_data(str(settings_path()))
