import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from typer.testing import CliRunner

from notion_gateway.domain.interfaces.request_executor import RequestExecutor
from notion_gateway.domain.models.http import RequestDescriptor, ResponseOutcome, Success
from notion_gateway.infrastructure.config.settings import clear_test_config
from notion_gateway.infrastructure.http.executor import HttpRequestExecutor, build_async_client
from notion_gateway.infrastructure.notion.client import NotionClient
from notion_gateway.infrastructure.pagination.walker import PaginationWalker
from notion_gateway.infrastructure.resilience.api_retry import RetryingExecutor
from notion_gateway.infrastructure.resilience.backoff import BackoffPolicy


class ScriptedExecutor(RequestExecutor):
    """Returns pre-scripted outcomes in order and records every request sent."""

    def __init__(self, outcomes: List[ResponseOutcome]):
        self.outcomes = list(outcomes)
        self.requests: List[RequestDescriptor] = []
        self.tokens: List[str] = []

    async def execute(self, descriptor: RequestDescriptor, token: str) -> ResponseOutcome:
        self.requests.append(descriptor)
        self.tokens.append(token)
        if not self.outcomes:
            raise AssertionError(f"Unexpected extra request: {descriptor}")
        return self.outcomes.pop(0)


class SleepRecorder:
    """Stands in for asyncio.sleep; records requested delays in seconds."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def page(results: List[Any], has_more: bool = False, next_cursor: Optional[str] = None) -> Success:
    """A successful list response as the walker sees it."""
    return Success(payload={"object": "list", "results": results, "has_more": has_more, "next_cursor": next_cursor})


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def no_jitter_policy():
    """Backoff with deterministic delays (no jitter)."""
    return BackoffPolicy(max_attempts=4, jitter_fraction=0.0)


@pytest.fixture
def make_retrying(sleep_recorder, no_jitter_policy) -> Callable[..., RetryingExecutor]:
    """Builds a RetryingExecutor over a ScriptedExecutor."""
    def _make(outcomes: List[ResponseOutcome], policy: Optional[BackoffPolicy] = None, **kwargs: Any) -> RetryingExecutor:
        return RetryingExecutor(
            executor=ScriptedExecutor(outcomes),
            token="secret-test-token",
            policy=policy or no_jitter_policy,
            sleep=sleep_recorder,
            **kwargs,
        )
    return _make


@pytest.fixture
def notion_api():
    """Routes httpx requests to a scripted handler and records them.

    Usage: `api = notion_api(handler)`; `api.requests` lists what was sent and
    `api.client` is a NotionClient wired to the mock transport.
    """

    class _Api:
        def __init__(self, handler: Callable[[httpx.Request], httpx.Response], max_attempts: int = 4):
            self.requests: List[httpx.Request] = []

            def _record(request: httpx.Request) -> httpx.Response:
                self.requests.append(request)
                return handler(request)

            self.executor = HttpRequestExecutor(
                client=build_async_client(5.0, transport=httpx.MockTransport(_record)),
                base_url="https://api.notion.com/v1",
            )
            self.sleep = SleepRecorder()
            self.retrying = RetryingExecutor(
                executor=self.executor,
                token="secret-test-token",
                policy=BackoffPolicy(max_attempts=max_attempts, jitter_fraction=0.0),
                sleep=self.sleep,
            )
            self.client = NotionClient(self.retrying, walker=PaginationWalker(self.retrying))

        def body(self, index: int) -> Dict[str, Any]:
            return json.loads(self.requests[index].content)

    return _Api


@pytest.fixture(autouse=True)
def isolate_config(monkeypatch, tmp_path):
    """Keep tests independent of the developer's environment and config files."""
    for var in (
        "NOTION_API_TOKEN",
        "NOTION_BASE_URL",
        "NOTION_VERSION",
        "NOTION_MAX_ATTEMPTS",
        "NOTION_JITTER_FRACTION",
        "NOTION_PAGE_SIZE",
        "NOTION_MAX_PAGES",
        "NOTION_RATE_LIMIT_PER_SECOND",
        "NOTION_ENABLED_TOOLS",
        "NOTION_REQUEST_TIMEOUT",
    ):
        # set-then-delete registers the variable so values loaded from .env are undone too
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("notion_gateway.infrastructure.config.settings.DEFAULT_CONFIG_FILE", tmp_path / "missing.yaml")
    monkeypatch.setattr("notion_gateway.infrastructure.config.settings._loaded", False)
    monkeypatch.setattr("notion_gateway.infrastructure.config.settings._config", {})
    yield
    clear_test_config()


@pytest.fixture
def runner():
    return CliRunner()
