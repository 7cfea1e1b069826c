"""Asynchronous PRC API client and its request pipeline.

:class:`PRCClient` wraps :class:`httpx.AsyncClient`.  Every endpoint
method is a thin declaration (verb, path, cache policy) routed through
:meth:`PRCClient.request`, the single request path that:

1. resolves whether this call may use the cache,
2. serves a cache hit without touching the network,
3. sends the request with the credential headers,
4. retries rate-limited responses after the server's ``retry_after``
   (at most :data:`~prcapi.client.ratelimit.MAX_ATTEMPTS` attempts in total),
5. raises :class:`~prcapi.exceptions.PRCAPIError` for any other failure,
6. decodes the body and writes it through to the cache.

The client owns one cache backend (see :func:`prcapi.cache.create_cache`)
and one lazily created HTTP connection pool.  Both are released by
:meth:`PRCClient.disconnect`, which ``async with`` calls on exit.

Example::

    async with PRCClient(server_key="...") as client:
        players = (await client.get_players()).data
        await client.execute_command(":h Server restart in 5 minutes")
"""

from __future__ import annotations

from typing import Any, Optional, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from prcapi.cache import CacheBackend, CacheEntry, create_cache
from prcapi.client.ratelimit import (
    MAX_ATTEMPTS,
    command_bucket,
    extract_rate_limit_info,
    wait_for_retry_after,
)
from prcapi.client.response import decode_response_data, parse_error_body
from prcapi.exceptions import ConfigError, ConnectionError_, PRCAPIError, ResponseFormatError
from prcapi.models import (
    APIResponse,
    ClientOptions,
    CommandLog,
    JoinLog,
    KillLog,
    ModCall,
    Player,
    ServerStaff,
    ServerStatus,
    Vehicle,
)
from prcapi.output import debug

T = TypeVar("T")

_SERVER_STATUS = TypeAdapter(ServerStatus)
_PLAYERS = TypeAdapter(list[Player])
_QUEUE = TypeAdapter(list[int])
_VEHICLES = TypeAdapter(list[Vehicle])
_BANS = TypeAdapter(dict[str, str])
_STAFF = TypeAdapter(ServerStaff)
_JOIN_LOGS = TypeAdapter(list[JoinLog])
_KILL_LOGS = TypeAdapter(list[KillLog])
_COMMAND_LOGS = TypeAdapter(list[CommandLog])
_MOD_CALLS = TypeAdapter(list[ModCall])


class PRCClient:
    """Client for the Police Roleplay Community server API.

    Args:
        options: Complete client configuration.  When omitted, one is built
            from the keyword arguments (``server_key``, ``global_key``,
            ``base_url``, ``cache``, ``cache_max_age``, ``redis_url``,
            ``cache_prefix``, ``cache_dir``, ``timeout``).  When both are
            given, the keyword arguments override fields of *options*.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`.
        cache_backend: Use this backend instead of the one *options* selects.
            Ignored when caching is disabled.

    Raises:
        ConfigError: If neither ``server_key`` nor ``global_key`` is set.
    """

    def __init__(
        self,
        options: Optional[ClientOptions] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache_backend: Optional[CacheBackend] = None,
        **fields: Any,
    ) -> None:
        if options is None:
            options = ClientOptions(**fields)
        elif fields:
            options = options.model_copy(update=fields)

        if not options.server_key and not options.global_key:
            raise ConfigError("Either server_key or global_key must be provided")

        self._options = options
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._cache: Optional[CacheBackend] = None
        if options.cache:
            self._cache = cache_backend if cache_backend is not None else create_cache(options)

    @property
    def options(self) -> ClientOptions:
        return self._options

    @property
    def cache(self) -> Optional[CacheBackend]:
        return self._cache

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> PRCClient:
        if self._cache is not None:
            await self._cache.connect()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.disconnect()

    async def disconnect(self) -> None:
        """Close the HTTP connection pool and release the cache backend."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._cache is not None:
            await self._cache.disconnect()

    aclose = disconnect

    # ------------------------------------------------------------------ #
    # Request pipeline
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[Any] = None,
        *,
        cacheable: bool = False,
        cache_max_age: Optional[int] = None,
        cache_override: Optional[bool] = None,
    ) -> APIResponse[Any]:
        """Send one API call through the cache, retry and error handling.

        Args:
            method: ``GET`` or ``POST``.  Only ``GET`` is ever cached.
            path: Endpoint path appended to the base URL; also the cache key.
            body: JSON body, sent for non-GET methods only.
            cacheable: The endpoint's default cache policy.
            cache_max_age: Lifetime in milliseconds for the entry this call
                writes; defaults to the configured ``cache_max_age``.
            cache_override: Per-call policy that replaces *cacheable* when
                not ``None``.

        Returns:
            An :class:`~prcapi.models.APIResponse` with the decoded body.

        Raises:
            PRCAPIError: On any non-2xx response other than a rate limit
                that a later attempt recovered from.
            ConnectionError_: On transport failures.
        """
        method = method.upper()
        wants_cache = cache_override if cache_override is not None else cacheable
        use_cache = self._cache is not None and method == "GET" and wants_cache

        if use_cache and await self._cache.has(path):
            debug(f"{method} {path} served from cache")
            return APIResponse(data=await self._cache.get(path))

        headers = self._headers()
        for attempt in range(1, MAX_ATTEMPTS + 1):
            response = await self._send(method, path, headers, body)
            if response.is_success:
                break

            error = PRCAPIError.from_response(response, parse_error_body(response))
            if error.is_rate_limit and attempt < MAX_ATTEMPTS:
                debug(
                    f"{method} {path} rate limited, retrying after {error.retry_after}s "
                    f"(attempt {attempt}/{MAX_ATTEMPTS})"
                )
                await wait_for_retry_after(error.retry_after)
                continue

            debug(f"{method} {path} failed: {error.code} {error.message}")
            raise error

        data = decode_response_data(response)

        if use_cache:
            max_age = cache_max_age if cache_max_age is not None else self._options.cache_max_age
            await self._cache.set(path, data, max_age)

        return APIResponse(data=data, rate_limit=extract_rate_limit_info(response))

    # ------------------------------------------------------------------ #
    # Endpoints
    # ------------------------------------------------------------------ #

    async def get_server_status(
        self, *, cache: Optional[bool] = None, cache_max_age: Optional[int] = None
    ) -> APIResponse[ServerStatus]:
        """Get the current server status."""
        return await self._cached_read("/server", _SERVER_STATUS, cache, cache_max_age)

    async def get_players(
        self, *, cache: Optional[bool] = None, cache_max_age: Optional[int] = None
    ) -> APIResponse[list[Player]]:
        """Get the players currently in the server."""
        return await self._cached_read("/server/players", _PLAYERS, cache, cache_max_age)

    async def get_queue(
        self, *, cache: Optional[bool] = None, cache_max_age: Optional[int] = None
    ) -> APIResponse[list[int]]:
        """Get the user ids waiting in the join queue."""
        return await self._cached_read("/server/queue", _QUEUE, cache, cache_max_age)

    async def get_vehicles(
        self, *, cache: Optional[bool] = None, cache_max_age: Optional[int] = None
    ) -> APIResponse[list[Vehicle]]:
        """Get the vehicles spawned in the server."""
        return await self._cached_read("/server/vehicles", _VEHICLES, cache, cache_max_age)

    async def get_bans(
        self, *, cache: Optional[bool] = None, cache_max_age: Optional[int] = None
    ) -> APIResponse[dict[str, str]]:
        """Get the server bans, keyed by user id."""
        return await self._cached_read("/server/bans", _BANS, cache, cache_max_age)

    async def get_staff(
        self, *, cache: Optional[bool] = None, cache_max_age: Optional[int] = None
    ) -> APIResponse[ServerStaff]:
        """Get the server's co-owners, admins and mods."""
        return await self._cached_read("/server/staff", _STAFF, cache, cache_max_age)

    async def get_join_logs(
        self, *, cache: Optional[bool] = None, cache_max_age: Optional[int] = None
    ) -> APIResponse[list[JoinLog]]:
        """Get the join and leave logs.

        Logs are only cached when the call passes ``cache=True`` together
        with an explicit ``cache_max_age``.
        """
        return await self._opt_in_read("/server/joinlogs", _JOIN_LOGS, cache, cache_max_age)

    async def get_kill_logs(
        self, *, cache: Optional[bool] = None, cache_max_age: Optional[int] = None
    ) -> APIResponse[list[KillLog]]:
        """Get the kill logs. Cached only on explicit opt-in, see :meth:`get_join_logs`."""
        return await self._opt_in_read("/server/killlogs", _KILL_LOGS, cache, cache_max_age)

    async def get_command_logs(
        self, *, cache: Optional[bool] = None, cache_max_age: Optional[int] = None
    ) -> APIResponse[list[CommandLog]]:
        """Get the command logs. Cached only on explicit opt-in, see :meth:`get_join_logs`."""
        return await self._opt_in_read("/server/commandlogs", _COMMAND_LOGS, cache, cache_max_age)

    async def get_mod_calls(
        self, *, cache: Optional[bool] = None, cache_max_age: Optional[int] = None
    ) -> APIResponse[list[ModCall]]:
        """Get the mod calls. Cached only on explicit opt-in, see :meth:`get_join_logs`."""
        return await self._opt_in_read("/server/modcalls", _MOD_CALLS, cache, cache_max_age)

    async def execute_command(self, command: str) -> APIResponse[None]:
        """Run an in-game command such as ``:h hello`` on the server. Never cached."""
        debug(f"Executing command in bucket {self.command_bucket()}")
        response = await self.request("POST", "/server/command", {"command": command})
        return APIResponse(data=None, rate_limit=response.rate_limit)

    def command_bucket(self) -> str:
        """The rate limit bucket commands count against (informational)."""
        return command_bucket(self._options.server_key)

    # ------------------------------------------------------------------ #
    # Cache management
    # ------------------------------------------------------------------ #

    async def clear_cache(self) -> None:
        if self._cache is not None:
            await self._cache.clear()

    async def get_cache_size(self) -> int:
        if self._cache is None:
            return 0
        return await self._cache.size()

    def get_raw_cache_entry(self, key: str) -> Optional[CacheEntry]:
        """Debug accessor: the stored entry for *key* (memory backend only).

        Raises:
            CacheDebugUnsupportedError: On the Redis and disk backends.
        """
        if self._cache is None:
            return None
        return self._cache.get_raw_entry(key)

    def get_cache_keys(self) -> list[str]:
        """Debug accessor: every stored key (memory backend only).

        Raises:
            CacheDebugUnsupportedError: On the Redis and disk backends.
        """
        if self._cache is None:
            return []
        return self._cache.get_all_keys()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _cached_read(
        self,
        path: str,
        adapter: TypeAdapter[T],
        cache: Optional[bool],
        cache_max_age: Optional[int],
    ) -> APIResponse[T]:
        response = await self.request(
            "GET", path, cacheable=True, cache_max_age=cache_max_age, cache_override=cache
        )
        return _validated(path, response, adapter)

    async def _opt_in_read(
        self,
        path: str,
        adapter: TypeAdapter[T],
        cache: Optional[bool],
        cache_max_age: Optional[int],
    ) -> APIResponse[T]:
        # High-volume logs: an unbounded default lifetime would keep growing the cache.
        opted_in = cache is True and cache_max_age is not None
        response = await self.request("GET", path, cacheable=opted_in, cache_max_age=cache_max_age)
        return _validated(path, response, adapter)

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "*/*",
        }
        if self._options.global_key:
            headers["Authorization"] = self._options.global_key
        if self._options.server_key:
            headers["Server-Key"] = self._options.server_key
        return headers

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._options.base_url,
                timeout=self._options.timeout,
                transport=self._transport,
            )
        return self._client

    async def _send(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        body: Optional[Any],
    ) -> httpx.Response:
        kwargs: dict[str, Any] = {"headers": headers}
        if method != "GET" and body is not None:
            kwargs["json"] = body
        try:
            return await self._http().request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise ConnectionError_(f"Request to {path} failed: {exc}") from exc


def _validated(path: str, response: APIResponse[Any], adapter: TypeAdapter[T]) -> APIResponse[T]:
    try:
        data = adapter.validate_python(response.data)
    except ValidationError as exc:
        raise ResponseFormatError(f"Unexpected response from {path}: {exc}") from exc
    return APIResponse(data=data, rate_limit=response.rate_limit)
