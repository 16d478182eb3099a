import json
from typing import Any, Callable, List, Tuple
from unittest.mock import AsyncMock

import httpx
import pytest

import config
from config import RetryConfig, Settings
from diagnostics import DiagnosticsSink, Transport
from dispatcher import ToolDispatcher
from hunter_client import HunterClient
from retry import ResilientInvoker

API_KEY = "test-key"
BASE_URL = "https://api.hunter.test/v2"


class RecordingSink(DiagnosticsSink):
    """Diagnostics sink that keeps every event for assertions"""

    def __init__(self):
        super().__init__(Transport.STDIO)
        self.events: List[Tuple[str, Any]] = []

    async def log(self, level: str, data: Any) -> None:
        self.events.append((level, data))

    def messages(self, level: str) -> List[Any]:
        return [data for event_level, data in self.events if event_level == level]

    def completions(self) -> List[str]:
        return [
            data for data in self.messages("info")
            if isinstance(data, str) and data.startswith("Request completed in ")
        ]


class FakeHunterAPI:
    """Scripted Hunter.io responses served through httpx.MockTransport"""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request to {request.url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def json_response(status: int, body: Any) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(body).encode(), headers={"Content-Type": "application/json"})


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Keep the cached settings and HUNTER_* environment out of each test"""
    monkeypatch.setattr(config, "_settings", None)
    for name in (
        "HUNTER_API_KEY",
        "HUNTER_API_URL",
        "HUNTER_RETRY_MAX_ATTEMPTS",
        "HUNTER_RETRY_INITIAL_DELAY",
        "HUNTER_RETRY_MAX_DELAY",
        "HUNTER_RETRY_BACKOFF_FACTOR",
        "MCP_TRANSPORT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, hunter_api_key=API_KEY, hunter_api_url=BASE_URL)


@pytest.fixture
def retry_config() -> RetryConfig:
    return RetryConfig(max_attempts=3, initial_delay=1000, max_delay=10000, backoff_factor=2)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def sleep() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def make_dispatcher(retry_config, sink, sleep) -> Callable[..., Tuple[ToolDispatcher, FakeHunterAPI]]:
    """Build a dispatcher wired to a scripted Hunter.io API"""
    def factory(*responses, config: RetryConfig = retry_config):
        api = FakeHunterAPI(*responses)
        client = HunterClient(API_KEY, base_url=BASE_URL, transport=api.transport)
        invoker = ResilientInvoker(config, sink, sleep=sleep)
        return ToolDispatcher(client, invoker, sink), api

    return factory
