"""prcapi -- asynchronous client for the Police Roleplay Community server API.

The package wraps the PRC private server API in a single request pipeline
that handles response caching (memory, Redis or disk), automatic retries
on rate limits, and structured errors.  A small ``prc`` command-line tool
exposes the same operations from a terminal.

Typical usage::

    from prcapi import PRCClient, PRCHelpers

    async with PRCClient(server_key="...") as client:
        status = (await client.get_server_status()).data
        helpers = PRCHelpers(client)
        await helpers.send_message("Restart in 5 minutes")

Modules:
    client: The asynchronous client and its request pipeline.
    cache: Memory, Redis and disk cache backends.
    helpers: Player, moderation, log and stats helpers.
    models: Pydantic models shared across the package.
    config: XDG-aware settings and option resolution for the CLI.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
    app: Typer application and the ``prc`` entry point.
"""

__version__ = "1.0.0"

from prcapi.cache import DiskCache, MemoryCache, RedisCache, create_cache
from prcapi.client import PRCClient
from prcapi.exceptions import (
    CacheDebugUnsupportedError,
    CacheError,
    ConfigError,
    ConnectionError_,
    PRCAPIError,
    PRCError,
    ResponseFormatError,
)
from prcapi.helpers import PRCHelpers, ServerStats
from prcapi.models import (
    APIResponse,
    ClientOptions,
    CommandLog,
    ErrorCode,
    JoinLog,
    KillLog,
    ModCall,
    Player,
    RateLimitInfo,
    ServerStaff,
    ServerStatus,
    Vehicle,
)

__all__ = [
    "APIResponse",
    "CacheDebugUnsupportedError",
    "CacheError",
    "ClientOptions",
    "CommandLog",
    "ConfigError",
    "ConnectionError_",
    "DiskCache",
    "ErrorCode",
    "JoinLog",
    "KillLog",
    "MemoryCache",
    "ModCall",
    "PRCAPIError",
    "PRCClient",
    "PRCError",
    "PRCHelpers",
    "Player",
    "RateLimitInfo",
    "RedisCache",
    "ResponseFormatError",
    "ServerStaff",
    "ServerStats",
    "ServerStatus",
    "Vehicle",
    "__version__",
    "create_cache",
]
