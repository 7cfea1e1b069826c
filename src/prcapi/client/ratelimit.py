"""Rate limit helpers.

The API is authoritative for rate limiting: the client never throttles
itself.  It only honours the ``retry_after`` hint of a rate-limited
response and reads the informational ``X-RateLimit-*`` headers.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import httpx

from prcapi.models import RateLimitInfo

MAX_ATTEMPTS = 3
"""Total attempts for one call, including the first, when rate limited."""


async def wait_for_retry_after(retry_after: object) -> None:
    """Sleep for *retry_after* seconds when it is a positive number."""
    if isinstance(retry_after, (int, float)) and not isinstance(retry_after, bool) and retry_after > 0:
        await asyncio.sleep(retry_after)


def extract_rate_limit_info(response: httpx.Response) -> Optional[RateLimitInfo]:
    """Read the rate limit headers, or ``None`` unless all four are present and numeric."""
    headers = response.headers
    bucket = headers.get("x-ratelimit-bucket")
    limit = headers.get("x-ratelimit-limit")
    remaining = headers.get("x-ratelimit-remaining")
    reset = headers.get("x-ratelimit-reset")
    if bucket is None or limit is None or remaining is None or reset is None:
        return None
    try:
        return RateLimitInfo(bucket=bucket, limit=int(limit), remaining=int(remaining), reset=float(reset))
    except ValueError:
        return None


def command_bucket(server_key: Optional[str]) -> str:
    """Name of the conceptual bucket command executions are counted against."""
    return f"command-{server_key}" if server_key else "command-global"
