"""
Retry with exponential backoff for rate-limited Hunter.io calls
"""
import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import httpx
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from config import RetryConfig
from diagnostics import DiagnosticsSink
from hunter_client import HunterRateLimitError

T = TypeVar("T")

RATE_LIMIT_MARKERS = ("rate limit", "429")


def is_rate_limited(error: BaseException) -> bool:
    """
    Check whether a failure signals that Hunter.io is throttling requests

    Only Exception subclasses qualify, so cancellation is never retried.
    """
    if not isinstance(error, Exception):
        return False

    if isinstance(error, HunterRateLimitError):
        return True

    if getattr(error, "status_code", None) == 429:
        return True

    if isinstance(error, httpx.HTTPStatusError) and error.response.status_code == 429:
        return True

    message = str(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


class ResilientInvoker:
    """Runs remote calls, retrying only on rate-limit signals"""

    def __init__(
        self,
        config: RetryConfig,
        sink: DiagnosticsSink,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config
        self.sink = sink
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Backoff delay in milliseconds after the given failed attempt"""
        return min(
            self.config.initial_delay * self.config.backoff_factor ** (attempt - 1),
            self.config.max_delay,
        )

    def _wait(self, retry_state: RetryCallState) -> float:
        # tenacity sleeps in seconds
        return self.delay_for(retry_state.attempt_number) / 1000

    def _retrying(self, context: str) -> AsyncRetrying:
        async def warn_before_sleep(retry_state: RetryCallState) -> None:
            delay_ms = round(retry_state.next_action.sleep * 1000)
            await self.sink.warning(
                f"Rate limit hit for {context}. "
                f"Attempt {retry_state.attempt_number}/{self.config.max_attempts}. "
                f"Retrying in {delay_ms}ms"
            )

        return AsyncRetrying(
            stop=stop_after_attempt(self.config.max_attempts),
            wait=self._wait,
            retry=retry_if_exception(is_rate_limited),
            before_sleep=warn_before_sleep,
            sleep=self._sleep,
            reraise=True,
        )

    async def call(self, operation: Callable[[], Awaitable[T]], context: str) -> T:
        """
        Run an operation, retrying it while it fails with a rate-limit signal

        Args:
            operation: Zero-argument callable returning an awaitable remote call
            context: Label used in diagnostics (e.g. "find email")

        Returns:
            The operation's result

        Raises:
            The operation's last exception, unchanged
        """
        # tenacity only awaits coroutine functions, not callables returning awaitables
        async def attempt() -> T:
            return await operation()

        return await self._retrying(context)(attempt)
