"""Exception hierarchy for prcapi.

All exceptions inherit from :class:`PRCError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`prcapi.exit_codes`.
Library callers catch the specific subclasses; the ``prc`` entry point in
:func:`prcapi.app.main` catches ``PRCError`` and exits with the
appropriate code.

Subclass hierarchy::

    PRCError (exit 1)
    +-- ConfigError                  (exit 2)
    +-- PRCAPIError                  (exit 3/4/5/7, from the error code)
    +-- ConnectionError_             (exit 6)
    +-- ResponseFormatError          (exit 7)
    +-- CacheError                   (exit 1)
        +-- CacheDebugUnsupportedError
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from prcapi.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_RATE_LIMITED,
    EXIT_SERVER_OFFLINE,
)
from prcapi.models import ErrorCode

AUTH_ERROR_CODES = frozenset(
    {
        ErrorCode.NO_SERVER_KEY,
        ErrorCode.INVALID_SERVER_KEY_FORMAT,
        ErrorCode.INVALID_SERVER_KEY,
        ErrorCode.INVALID_GLOBAL_KEY,
        ErrorCode.BANNED_SERVER_KEY,
    }
)

RETRYABLE_ERROR_CODES = frozenset(
    {
        ErrorCode.ROBLOX_ERROR,
        ErrorCode.INTERNAL_ERROR,
        ErrorCode.RATE_LIMITED,
        ErrorCode.SERVER_OFFLINE,
    }
)


def _coerce_code(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class PRCError(Exception):
    """Base exception for all prcapi errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`prcapi.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(PRCError):
    """Raised for configuration problems (no credentials, invalid config file, bad credential sources)."""

    exit_code = EXIT_INVALID_USAGE


class ConnectionError_(PRCError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class CacheError(PRCError):
    """Raised when a cache backend is asked for something it cannot do."""


class CacheDebugUnsupportedError(CacheError):
    """Raised when a memory-only debug accessor is called on another backend."""


class PRCAPIError(PRCError):
    """A failed API call, built from the error body the server returned.

    Instances are created by :meth:`from_response` at the moment a
    request fails and are never mutated afterwards.  The classification
    properties are pure functions of :attr:`code`.

    Attributes:
        code: The API error code, ``0`` when the body carried none.
        message: The API's message, or ``"HTTP <status>: <reason>"``.
        retry_after: Seconds the server asked the caller to wait, if any.
        status: The HTTP status code of the failed response, if known.
    """

    def __init__(
        self,
        code: int,
        message: str,
        retry_after: Optional[float] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.retry_after = retry_after
        self.status = status

    @classmethod
    def from_response(cls, response: httpx.Response, body: Optional[dict[str, Any]] = None) -> PRCAPIError:
        """Build an error from a failed response and its parsed JSON body.

        Missing fields fall back to code ``0`` and a message synthesised
        from the HTTP status line.  A non-numeric code is treated as ``0``.
        """
        body = body or {}
        code = _coerce_code(body.get("code") or body.get("errorCode"))
        message = body.get("message") or f"HTTP {response.status_code}: {response.reason_phrase}"
        retry_after = body.get("retry_after")
        return cls(code=code, message=message, retry_after=retry_after, status=response.status_code)

    @property
    def is_rate_limit(self) -> bool:
        return self.code == ErrorCode.RATE_LIMITED

    @property
    def is_server_offline(self) -> bool:
        return self.code == ErrorCode.SERVER_OFFLINE

    @property
    def is_auth_error(self) -> bool:
        return self.code in AUTH_ERROR_CODES

    @property
    def is_retryable(self) -> bool:
        """Whether the failure is transient (upstream, internal, rate limit, offline)."""
        return self.code in RETRYABLE_ERROR_CODES

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        if self.is_auth_error:
            return EXIT_AUTH_FAILURE
        if self.is_server_offline:
            return EXIT_SERVER_OFFLINE
        if self.is_rate_limit:
            return EXIT_RATE_LIMITED
        return EXIT_API_ERROR

    def __repr__(self) -> str:
        return f"PRCAPIError(code={self.code!r}, message={self.message!r}, retry_after={self.retry_after!r})"


class ResponseFormatError(PRCError):
    """Raised when a successful response does not have the shape its endpoint promises."""

    exit_code = EXIT_API_ERROR
