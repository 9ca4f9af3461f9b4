import asyncio

import pytest

from conftest import ScriptedExecutor
from notion_gateway.domain.errors import ClientRequestError, RetriesExhaustedError
from notion_gateway.domain.models.http import (
    ClientError,
    RateLimited,
    RequestDescriptor,
    ServerError,
    Success,
    TransportError,
)
from notion_gateway.infrastructure.resilience.api_retry import RetryingExecutor
from notion_gateway.infrastructure.resilience.backoff import BackoffPolicy
from notion_gateway.infrastructure.resilience.rate_limiter import RateLimiter

DESCRIPTOR = RequestDescriptor.build("GET", "pages/p1")


@pytest.mark.asyncio
async def test_recovers_after_two_rate_limits(make_retrying, sleep_recorder):
    """429, 429, 200 with max_attempts=4 sends exactly three requests."""
    retrying = make_retrying([
        RateLimited(retry_after_seconds=1),
        RateLimited(retry_after_seconds=2),
        Success(payload={"id": "p1"}),
    ])

    payload = await retrying.execute(DESCRIPTOR)

    assert payload == {"id": "p1"}
    assert len(retrying.executor.requests) == 3
    assert sleep_recorder.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_client_error_is_sent_once(make_retrying, sleep_recorder):
    retrying = make_retrying([ClientError(status_code=404, message="Could not find page", code="object_not_found")])

    with pytest.raises(ClientRequestError) as exc_info:
        await retrying.execute(DESCRIPTOR)

    assert exc_info.value.status_code == 404
    assert exc_info.value.code == "object_not_found"
    assert len(retrying.executor.requests) == 1
    assert sleep_recorder.delays == []


@pytest.mark.asyncio
async def test_exhausts_on_persistent_server_errors(make_retrying, sleep_recorder):
    retrying = make_retrying([ServerError(status_code=503, message="unavailable")] * 4)

    with pytest.raises(RetriesExhaustedError) as exc_info:
        await retrying.execute(DESCRIPTOR)

    error = exc_info.value
    assert error.attempts == 4
    assert error.last_kind == "ServerError"
    assert error.status_code == 503
    assert error.retryable is True
    assert len(retrying.executor.requests) == 4
    # 2s, 4s, 8s between the four attempts
    assert sleep_recorder.delays == [2.0, 4.0, 8.0]


@pytest.mark.asyncio
async def test_exhausted_rate_limit_reports_429(make_retrying):
    retrying = make_retrying([RateLimited(retry_after_seconds=0)] * 4)

    with pytest.raises(RetriesExhaustedError) as exc_info:
        await retrying.execute(DESCRIPTOR)

    assert exc_info.value.status_code == 429
    assert "RateLimited" in exc_info.value.message


@pytest.mark.asyncio
async def test_transport_error_then_success(make_retrying):
    retrying = make_retrying([TransportError(cause=TimeoutError("read timeout")), Success(payload={"ok": True})])
    assert await retrying.execute(DESCRIPTOR) == {"ok": True}


@pytest.mark.asyncio
async def test_each_call_has_its_own_retry_state(make_retrying):
    """Back-to-back calls on a shared pipeline do not share attempt counts."""
    retrying = make_retrying([
        ServerError(status_code=500, message="a"),
        ServerError(status_code=500, message="b"),
        ServerError(status_code=500, message="c"),
        Success(payload=1),
        ServerError(status_code=500, message="d"),
        ServerError(status_code=500, message="e"),
        ServerError(status_code=500, message="f"),
        Success(payload=2),
    ])
    assert await retrying.execute(DESCRIPTOR) == 1
    assert await retrying.execute(DESCRIPTOR) == 2


@pytest.mark.asyncio
async def test_passes_token_to_executor(sleep_recorder):
    executor = ScriptedExecutor([Success(payload={})])
    retrying = RetryingExecutor(executor, token="secret_abc", sleep=sleep_recorder)
    await retrying.execute(DESCRIPTOR)
    assert executor.tokens == ["secret_abc"]


@pytest.mark.asyncio
async def test_shared_rate_limiter_is_consulted_per_attempt(sleep_recorder, mocker):
    limiter = RateLimiter(max_requests=10, time_window=1.0)
    acquire = mocker.spy(limiter, "acquire")
    executor = ScriptedExecutor([ServerError(status_code=500, message="x"), Success(payload={})])
    retrying = RetryingExecutor(
        executor,
        token="t",
        policy=BackoffPolicy(jitter_fraction=0.0),
        rate_limiter=limiter,
        sleep=sleep_recorder,
    )

    await retrying.execute(DESCRIPTOR)

    assert acquire.call_count == 2


@pytest.mark.asyncio
async def test_rate_limits_without_retry_after_back_off_exponentially(make_retrying, sleep_recorder):
    """429, 429, 200 with no Retry-After waits 2s then 4s and sends three requests."""
    retrying = make_retrying([RateLimited(), RateLimited(), Success(payload={"id": "p1"})])

    assert await retrying.execute(DESCRIPTOR) == {"id": "p1"}

    assert len(retrying.executor.requests) == 3
    assert sleep_recorder.delays == [2.0, 4.0]


@pytest.mark.asyncio
async def test_cancelling_during_backoff_sends_nothing_more():
    """A pending backoff sleep is a cancellation point; no further attempt is made."""
    executor = ScriptedExecutor([RateLimited(retry_after_seconds=30), Success(payload={})])
    retrying = RetryingExecutor(executor, token="t", policy=BackoffPolicy(jitter_fraction=0.0))

    task = asyncio.create_task(retrying.execute(DESCRIPTOR))
    while not executor.requests:
        await asyncio.sleep(0)
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert len(executor.requests) == 1
