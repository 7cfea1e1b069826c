"""Numeric process exit codes for the ``prc`` command-line front end.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~prcapi.exceptions.PRCError` subclass (or, for
:class:`~prcapi.exceptions.PRCAPIError`, by its error-code
classification). Shell scripts can inspect the exit code to tell a
rejected key from an offline server without parsing stderr.

Example::

    $ prc players
    $ echo $?
    4   # EXIT_SERVER_OFFLINE -- the private server has no players in it
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or configuration."""

EXIT_AUTH_FAILURE = 3
"""The server key or global key was missing, malformed, invalid or banned."""

EXIT_SERVER_OFFLINE = 4
"""The private server is offline (no players in it)."""

EXIT_RATE_LIMITED = 5
"""The API kept rate limiting the request after all retries."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_API_ERROR = 7
"""The API rejected the request for any other reason."""
