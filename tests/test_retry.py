"""Tests for rate-limit retry with exponential backoff."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest
from pydantic import ValidationError

from config import RetryConfig
from hunter_client import HunterAPIError, HunterRateLimitError
from retry import ResilientInvoker, is_rate_limited


class TestIsRateLimited:

    def test_rate_limit_error(self):
        assert is_rate_limited(HunterRateLimitError("slow down", 429))

    def test_status_code_attribute(self):
        assert is_rate_limited(HunterAPIError("Too many requests", status_code=429))

    def test_http_status_error(self):
        request = httpx.Request("GET", "https://api.hunter.test/v2/account")
        response = httpx.Response(429, request=request)
        error = httpx.HTTPStatusError("throttled", request=request, response=response)
        assert is_rate_limited(error)

    @pytest.mark.parametrize("message", ["Rate limit exceeded", "got status 429", "daily RATE LIMIT reached"])
    def test_message_markers(self, message):
        assert is_rate_limited(RuntimeError(message))

    def test_server_error_is_not_rate_limit(self):
        assert not is_rate_limited(HunterAPIError("Server error: 500", status_code=500))

    def test_cancellation_is_not_rate_limit(self):
        assert not is_rate_limited(asyncio.CancelledError("rate limit"))


class TestResilientInvoker:

    @pytest.mark.asyncio
    async def test_returns_first_success_without_sleeping(self, retry_config, sink, sleep):
        operation = AsyncMock(return_value={"ok": True})
        invoker = ResilientInvoker(retry_config, sink, sleep=sleep)

        assert await invoker.call(operation, "account info") == {"ok": True}
        assert operation.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_rate_limits_with_exponential_backoff(self, retry_config, sink, sleep):
        operation = AsyncMock(side_effect=[
            HunterRateLimitError("Rate limit exceeded", 429),
            HunterRateLimitError("Rate limit exceeded", 429),
            {"data": {}},
        ])
        invoker = ResilientInvoker(retry_config, sink, sleep=sleep)

        assert await invoker.call(operation, "verify email") == {"data": {}}
        assert operation.await_count == 3
        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0]
        assert sink.messages("warning") == [
            "Rate limit hit for verify email. Attempt 1/3. Retrying in 1000ms",
            "Rate limit hit for verify email. Attempt 2/3. Retrying in 2000ms",
        ]

    @pytest.mark.asyncio
    async def test_reraises_original_error_after_exhausting_attempts(self, retry_config, sink, sleep):
        last_error = HunterRateLimitError("still throttled", 429)
        operation = AsyncMock(side_effect=[
            HunterRateLimitError("throttled", 429),
            HunterRateLimitError("throttled", 429),
            last_error,
        ])
        invoker = ResilientInvoker(retry_config, sink, sleep=sleep)

        with pytest.raises(HunterRateLimitError) as exc_info:
            await invoker.call(operation, "domain search")

        assert exc_info.value is last_error
        assert operation.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_non_rate_limit_errors_are_not_retried(self, retry_config, sink, sleep):
        error = HunterAPIError("Server error: 500", status_code=500)
        operation = AsyncMock(side_effect=error)
        invoker = ResilientInvoker(retry_config, sink, sleep=sleep)

        with pytest.raises(HunterAPIError) as exc_info:
            await invoker.call(operation, "account info")

        assert exc_info.value is error
        assert operation.await_count == 1
        sleep.assert_not_awaited()
        assert sink.messages("warning") == []

    @pytest.mark.asyncio
    async def test_delay_is_capped_at_max_delay(self, sink, sleep):
        config = RetryConfig(max_attempts=5, initial_delay=1000, max_delay=3000, backoff_factor=3)
        operation = AsyncMock(side_effect=[HunterRateLimitError("429", 429)] * 4 + ["done"])
        invoker = ResilientInvoker(config, sink, sleep=sleep)

        assert await invoker.call(operation, "email count") == "done"
        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 3.0, 3.0, 3.0]

    @pytest.mark.asyncio
    async def test_single_attempt_never_retries(self, sink, sleep):
        config = RetryConfig(max_attempts=1)
        operation = AsyncMock(side_effect=HunterRateLimitError("Rate limit exceeded", 429))
        invoker = ResilientInvoker(config, sink, sleep=sleep)

        with pytest.raises(HunterRateLimitError):
            await invoker.call(operation, "find email")

        assert operation.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancellation_during_backoff_propagates(self, retry_config, sink):
        operation = AsyncMock(side_effect=HunterRateLimitError("Rate limit exceeded", 429))
        sleep = AsyncMock(side_effect=asyncio.CancelledError())
        invoker = ResilientInvoker(retry_config, sink, sleep=sleep)

        with pytest.raises(asyncio.CancelledError):
            await invoker.call(operation, "find email")

        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_awaits_coroutine_returned_by_plain_callable(self, retry_config, sink, sleep):
        calls = []

        async def remote():
            calls.append(1)
            if len(calls) == 1:
                raise HunterRateLimitError("Rate limit exceeded", 429)
            return {"data": {}}

        invoker = ResilientInvoker(retry_config, sink, sleep=sleep)

        assert await invoker.call(lambda: remote(), "verify email") == {"data": {}}
        assert len(calls) == 2
        assert [call.args[0] for call in sleep.await_args_list] == [1.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failures", [1, 2, 3, 4])
    async def test_sleeps_follow_delay_for(self, sink, sleep, failures):
        config = RetryConfig(max_attempts=5, initial_delay=500, max_delay=3000, backoff_factor=3)
        operation = AsyncMock(side_effect=[HunterRateLimitError("429", 429)] * failures + ["done"])
        invoker = ResilientInvoker(config, sink, sleep=sleep)

        await invoker.call(operation, "email count")

        expected = [invoker.delay_for(attempt) / 1000 for attempt in range(1, failures + 1)]
        assert [call.args[0] for call in sleep.await_args_list] == expected

    @pytest.mark.parametrize("attempt,expected", [(1, 1000), (2, 2000), (3, 4000), (4, 8000), (5, 10000)])
    def test_delay_for(self, retry_config, sink, attempt, expected):
        invoker = ResilientInvoker(retry_config, sink)
        assert invoker.delay_for(attempt) == expected


class TestRetryConfig:

    def test_defaults(self):
        config = RetryConfig()
        assert (config.max_attempts, config.initial_delay, config.max_delay, config.backoff_factor) == (3, 1000, 10000, 2)

    @pytest.mark.parametrize("kwargs", [
        {"max_attempts": 0},
        {"initial_delay": -1},
        {"backoff_factor": 0.5},
        {"initial_delay": 5000, "max_delay": 1000},
    ])
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValidationError):
            RetryConfig(**kwargs)

    def test_is_frozen(self):
        config = RetryConfig()
        with pytest.raises(ValidationError):
            config.max_attempts = 10
