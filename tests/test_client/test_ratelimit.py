"""Tests for the rate limit helpers and response decoding."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from prcapi.client.ratelimit import (
    MAX_ATTEMPTS,
    command_bucket,
    extract_rate_limit_info,
    wait_for_retry_after,
)
from prcapi.client.response import decode_response_data, parse_error_body


# ---------------------------------------------------------------------------
# wait_for_retry_after
# ---------------------------------------------------------------------------


class TestWaitForRetryAfter:
    @pytest.mark.parametrize("value", [0.1, 1, 2])
    async def test_sleeps_for_positive_values(self, value: float) -> None:
        with patch("prcapi.client.ratelimit.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await wait_for_retry_after(value)
        sleep.assert_awaited_once_with(value)

    @pytest.mark.parametrize("value", [None, 0, -1, "3", True])
    async def test_ignores_missing_or_invalid_values(self, value: object) -> None:
        with patch("prcapi.client.ratelimit.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await wait_for_retry_after(value)
        sleep.assert_not_awaited()

    def test_three_attempts(self) -> None:
        assert MAX_ATTEMPTS == 3


# ---------------------------------------------------------------------------
# Headers and buckets
# ---------------------------------------------------------------------------


class TestRateLimitInfo:
    def test_all_headers_present(self) -> None:
        response = httpx.Response(
            200,
            headers={
                "X-RateLimit-Bucket": "command-abc",
                "X-RateLimit-Limit": "1",
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": "1700000000.5",
            },
        )
        info = extract_rate_limit_info(response)
        assert info is not None
        assert info.bucket == "command-abc"
        assert info.limit == 1
        assert info.remaining == 0
        assert info.reset == 1700000000.5

    def test_missing_header_gives_none(self) -> None:
        response = httpx.Response(200, headers={"X-RateLimit-Bucket": "global"})
        assert extract_rate_limit_info(response) is None

    def test_non_numeric_header_gives_none(self) -> None:
        response = httpx.Response(
            200,
            headers={
                "X-RateLimit-Bucket": "global",
                "X-RateLimit-Limit": "lots",
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": "0",
            },
        )
        assert extract_rate_limit_info(response) is None

    def test_command_bucket(self) -> None:
        assert command_bucket("abc") == "command-abc"
        assert command_bucket(None) == "command-global"


# ---------------------------------------------------------------------------
# Response decoding
# ---------------------------------------------------------------------------


class TestDecoding:
    def test_json_body(self) -> None:
        assert decode_response_data(httpx.Response(200, json={"a": 1})) == {"a": 1}

    def test_text_body_is_none(self) -> None:
        assert decode_response_data(httpx.Response(200, text="OK")) is None

    def test_empty_json_body_is_none(self) -> None:
        response = httpx.Response(200, content=b"", headers={"content-type": "application/json"})
        assert decode_response_data(response) is None

    def test_json_with_charset(self) -> None:
        response = httpx.Response(
            200, content=b"[1]", headers={"content-type": "application/json; charset=utf-8"}
        )
        assert decode_response_data(response) == [1]

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500, text="<html>"),
            httpx.Response(500, json=[1, 2]),
            httpx.Response(500, content=b""),
        ],
    )
    def test_error_body_falls_back_to_empty(self, response: httpx.Response) -> None:
        assert parse_error_body(response) == {}

    def test_error_body_object(self) -> None:
        body = parse_error_body(httpx.Response(429, json={"code": 4001, "retry_after": 2}))
        assert body == {"code": 4001, "retry_after": 2}
