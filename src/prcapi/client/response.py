"""Response decoding for the request pipeline.

Successful bodies are JSON only when the server says so; command
acknowledgements come back as plain text and decode to ``None``.  Error
bodies are parsed leniently: anything that is not a JSON object counts as
an empty body so the error model falls back to the HTTP status line.
"""

from __future__ import annotations

from typing import Any

import httpx


def decode_response_data(response: httpx.Response) -> Any:
    """Return the decoded JSON body, or ``None`` for non-JSON responses."""
    content_type = response.headers.get("content-type", "")
    if "application/json" not in content_type or not response.content:
        return None
    return response.json()


def parse_error_body(response: httpx.Response) -> dict[str, Any]:
    """Parse an error response body, tolerating empty or malformed content."""
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}

