"""Configuration management: XDG paths, the settings file, and precedence.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.prcapi/`` on macOS and Windows.  See :func:`get_config_dir` and
  :func:`get_cache_dir`.
* **Settings file** -- a single :class:`~prcapi.models.Settings` JSON file
  (``config.json``) holding defaults for the ``prc`` CLI.
* **Precedence resolution** -- :func:`resolve_client_options` merges
  explicit arguments, ``PRC_*`` environment variables, the settings file
  and model defaults into a :class:`~prcapi.models.ClientOptions`.
* **Credential resolution** -- :func:`resolve_credential` reads keys from
  env vars, files or literal values so the settings file never has to
  contain a bare key.

Writes use a temp-file-then-rename strategy (:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import ValidationError

from prcapi.exceptions import ConfigError
from prcapi.models import ClientOptions, Settings

_APP_NAME = "prcapi"
_CONFIG_FILENAME = "config.json"

_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/prcapi/`` (default ``~/.config/prcapi/``).
    On macOS/Windows: ``~/.prcapi/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the response cache directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CACHE_HOME/prcapi/`` (default ``~/.cache/prcapi/``).
    On macOS/Windows: ``~/.prcapi/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* via a temp file in the same directory and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


# --- Settings file ---


def settings_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_settings() -> Settings:
    """Load the settings file, or return defaults when it does not exist.

    Raises:
        ConfigError: If the file exists but is not valid JSON or fails
            validation.
    """
    path = settings_path()
    if not path.is_file():
        return Settings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Settings.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_settings(settings: Settings) -> None:
    data = settings.model_dump(mode="json")
    _atomic_write(settings_path(), json.dumps(data, indent=2) + "\n")


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"value:LITERAL"`` -- the literal text after the prefix

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(f"Environment variable '{var_name}' is not set (source: {source})")
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source.startswith("value:"):
        return source[6:]

    raise ConfigError(f"Unknown credential source format: {source}")


# --- Precedence resolution ---


def _env_bool(name: str) -> Optional[bool]:
    value = os.environ.get(name)
    if value is None or value == "":
        return None
    return value.strip().lower() not in _FALSE_VALUES


def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer number of milliseconds, got {value!r}") from exc


def resolve_client_options(
    server_key: Optional[str] = None,
    global_key: Optional[str] = None,
    base_url: Optional[str] = None,
    cache: Optional[bool] = None,
    cache_max_age: Optional[int] = None,
    redis_url: Optional[str] = None,
    cache_prefix: Optional[str] = None,
    use_disk_cache: Optional[bool] = None,
    settings: Optional[Settings] = None,
    credentials: bool = True,
) -> ClientOptions:
    """Build :class:`~prcapi.models.ClientOptions` from every config layer.

    Precedence (high to low):
        1. Explicit arguments (CLI flags)
        2. Environment variables (``PRC_SERVER_KEY``, ``PRC_GLOBAL_KEY``,
           ``PRC_BASE_URL``, ``PRC_CACHE``, ``PRC_CACHE_MAX_AGE``,
           ``PRC_REDIS_URL``, ``PRC_CACHE_PREFIX``)
        3. The settings file (``config.json``)
        4. Model defaults

    Args:
        use_disk_cache: Store the cache under :func:`get_cache_dir`.
            Defaults to the settings file's ``disk_cache``.  Ignored when a
            Redis URL is configured.
        settings: Settings to use instead of loading the file.
        credentials: Resolve the settings file's key sources.  They are
            only read when neither an argument nor an environment variable
            supplies the key.

    Raises:
        ConfigError: If the settings file or a credential source is invalid.
    """
    if settings is None:
        settings = load_settings()

    def pick(explicit: Any, env_name: str, from_settings: Any) -> Any:
        if explicit is not None:
            return explicit
        env_value = os.environ.get(env_name)
        if env_value:
            return env_value
        return from_settings() if callable(from_settings) else from_settings

    def credential(source: Optional[str]) -> Callable[[], Optional[str]]:
        return lambda: resolve_credential(source) if source and credentials else None

    fields: dict[str, Any] = {
        "server_key": pick(
            server_key,
            "PRC_SERVER_KEY",
            credential(settings.server_key),
        ),
        "global_key": pick(
            global_key,
            "PRC_GLOBAL_KEY",
            credential(settings.global_key),
        ),
        "redis_url": pick(redis_url, "PRC_REDIS_URL", settings.redis_url),
        "cache_prefix": pick(cache_prefix, "PRC_CACHE_PREFIX", settings.cache_prefix),
    }

    resolved_base_url = pick(base_url, "PRC_BASE_URL", settings.base_url)
    if resolved_base_url:
        fields["base_url"] = resolved_base_url

    env_cache = _env_bool("PRC_CACHE")
    fields["cache"] = cache if cache is not None else (env_cache if env_cache is not None else settings.cache)

    env_max_age = _env_int("PRC_CACHE_MAX_AGE")
    if cache_max_age is not None:
        fields["cache_max_age"] = cache_max_age
    elif env_max_age is not None:
        fields["cache_max_age"] = env_max_age
    else:
        fields["cache_max_age"] = settings.cache_max_age

    disk = use_disk_cache if use_disk_cache is not None else settings.disk_cache
    if disk and not fields["redis_url"]:
        fields["cache_dir"] = str(get_cache_dir())

    try:
        return ClientOptions(**fields)
    except ValidationError as exc:
        raise ConfigError(f"Invalid client configuration: {exc}") from exc
