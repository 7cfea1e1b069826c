"""Canonical data models shared across all prcapi modules.

The models fall into three groups:

**Configuration models** -- :class:`ClientOptions` (the immutable runtime
configuration owned by one :class:`~prcapi.client.PRCClient`) and
:class:`Settings` (the user config file persisted by :mod:`prcapi.config`).

**Pipeline models** -- :class:`APIResponse` (the envelope returned by every
request), :class:`RateLimitInfo` and the :class:`ErrorCode` enumeration.

**API records** -- :class:`ServerStatus`, :class:`Player`,
:class:`JoinLog`, :class:`KillLog`, :class:`CommandLog`, :class:`ModCall`,
:class:`Vehicle` and :class:`ServerStaff`.  The API sends PascalCase keys;
the models expose snake_case attributes and keep the API names as aliases,
so ``model_dump(by_alias=True)`` reproduces the wire shape.  Unknown keys
are preserved in ``model_extra``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_URL = "https://api.policeroleplay.community/v1"
DEFAULT_CACHE_MAX_AGE_MS = 30_000

T = TypeVar("T")


class ErrorCode(enum.IntEnum):
    """Error codes returned in the ``code`` field of failed API responses."""

    UNKNOWN = 0
    ROBLOX_ERROR = 1001
    INTERNAL_ERROR = 1002
    NO_SERVER_KEY = 2000
    INVALID_SERVER_KEY_FORMAT = 2001
    INVALID_SERVER_KEY = 2002
    INVALID_GLOBAL_KEY = 2003
    BANNED_SERVER_KEY = 2004
    INVALID_COMMAND = 3001
    SERVER_OFFLINE = 3002
    RATE_LIMITED = 4001
    RESTRICTED_COMMAND = 4002
    PROHIBITED_MESSAGE = 4003
    RESTRICTED_RESOURCE = 9998
    OUTDATED_MODULE = 9999


# --- Configuration ---


class ClientOptions(BaseModel):
    """Runtime configuration for :class:`~prcapi.client.PRCClient`.

    Frozen: a client takes ownership of its options at construction and
    nothing may change them afterwards.  At least one of ``server_key`` or
    ``global_key`` must be set; the client checks this when it is built.

    Example::

        ClientOptions(server_key="abc123", cache_max_age=60_000)
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(default=DEFAULT_BASE_URL, description="API root URL")
    server_key: Optional[str] = Field(default=None, description="Sent as the Server-Key header")
    global_key: Optional[str] = Field(default=None, description="Sent as the Authorization header")
    cache: bool = Field(default=True, description="Enable the response cache")
    cache_max_age: int = Field(
        default=DEFAULT_CACHE_MAX_AGE_MS, ge=0, description="Default entry lifetime in milliseconds"
    )
    redis_url: Optional[str] = Field(
        default=None, description="redis://host:port -- selects the Redis cache backend"
    )
    cache_prefix: Optional[str] = Field(
        default=None, description="Key namespace so several clients can share one backend"
    )
    cache_dir: Optional[str] = Field(
        default=None, description="Directory for the on-disk cache backend"
    )
    timeout: Optional[float] = Field(
        default=None, description="Transport timeout in seconds; None disables it"
    )


class Settings(BaseModel):
    """The persisted user configuration file (``config.json``).

    Credential fields hold source descriptors (``env:VAR``, ``file:/path``
    or ``value:LITERAL``) resolved by
    :func:`~prcapi.config.resolve_credential`, never bare keys.
    """

    base_url: Optional[str] = None
    server_key: Optional[str] = Field(default=None, description="Server key source")
    global_key: Optional[str] = Field(default=None, description="Global key source")
    cache: bool = True
    cache_max_age: int = Field(default=DEFAULT_CACHE_MAX_AGE_MS, ge=0)
    redis_url: Optional[str] = None
    cache_prefix: Optional[str] = None
    disk_cache: bool = Field(
        default=True, description="Persist the cache on disk between CLI invocations"
    )


# --- Pipeline ---


class RateLimitInfo(BaseModel):
    """Rate limit state reported by the ``X-RateLimit-*`` response headers."""

    bucket: str
    limit: int
    remaining: int
    reset: float


@dataclass(frozen=True)
class APIResponse(Generic[T]):
    """The uniform envelope returned by every API call.

    Attributes:
        data: The decoded body, or ``None`` when the server returned no
            JSON (command acknowledgements).
        rate_limit: Rate limit headers of the response that produced the
            data; ``None`` for cache hits and when the headers are absent.
    """

    data: T
    rate_limit: Optional[RateLimitInfo] = None


# --- API records ---


class _APIRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class ServerStatus(_APIRecord):
    name: str = Field(alias="Name")
    owner_id: int = Field(alias="OwnerId")
    co_owner_ids: list[int] = Field(default_factory=list, alias="CoOwnerIds")
    current_players: int = Field(alias="CurrentPlayers")
    max_players: int = Field(alias="MaxPlayers")
    join_key: str = Field(default="", alias="JoinKey")
    acc_verified_req: Optional[str] = Field(default=None, alias="AccVerifiedReq")
    team_balance: bool = Field(default=False, alias="TeamBalance")


class Player(_APIRecord):
    """A player currently in the server.

    ``player`` is formatted ``Name:UserId``.  ``callsign`` is only present
    for players on a non-civilian team.
    """

    player: str = Field(alias="Player")
    permission: str = Field(default="Normal", alias="Permission")
    callsign: Optional[str] = Field(default=None, alias="Callsign")
    team: str = Field(default="Civilian", alias="Team")

    @property
    def name(self) -> str:
        return self.player.split(":")[0]

    @property
    def user_id(self) -> Optional[str]:
        _, sep, user_id = self.player.partition(":")
        return user_id if sep else None


class JoinLog(_APIRecord):
    join: bool = Field(alias="Join")
    timestamp: int = Field(alias="Timestamp")
    player: str = Field(alias="Player")


class KillLog(_APIRecord):
    killed: str = Field(alias="Killed")
    timestamp: int = Field(alias="Timestamp")
    killer: str = Field(alias="Killer")


class CommandLog(_APIRecord):
    player: str = Field(alias="Player")
    timestamp: int = Field(alias="Timestamp")
    command: str = Field(alias="Command")


class ModCall(_APIRecord):
    """A mod call; ``moderator`` is only set once a moderator responded."""

    caller: str = Field(alias="Caller")
    moderator: Optional[str] = Field(default=None, alias="Moderator")
    timestamp: int = Field(alias="Timestamp")


class Vehicle(_APIRecord):
    texture: Optional[str] = Field(default=None, alias="Texture")
    name: str = Field(alias="Name")
    owner: str = Field(alias="Owner")


class ServerStaff(_APIRecord):
    co_owners: list[int] = Field(default_factory=list, alias="CoOwners")
    admins: dict[str, str] = Field(default_factory=dict, alias="Admins")
    mods: dict[str, str] = Field(default_factory=dict, alias="Mods")
