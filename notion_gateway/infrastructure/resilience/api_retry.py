"""Service for executing Notion API requests with automatic retries.

Composes a single-attempt RequestExecutor with a BackoffPolicy (and an
optional shared RateLimiter). Rate limits (429), server faults (5xx) and
transport failures are retried locally; client errors surface at once.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from notion_gateway.domain.errors import ClientRequestError, RetriesExhaustedError
from notion_gateway.domain.events.api_events import (
    ApiCallDeferred,
    ApiCallFailed,
    ApiCallInitiated,
    ApiCallSucceeded,
    RetryScheduled,
)
from notion_gateway.domain.interfaces.request_executor import RequestExecutor
from notion_gateway.domain.models.http import (
    ClientError,
    GiveUp,
    RequestDescriptor,
    ResponseOutcome,
    Success,
)
from notion_gateway.infrastructure.resilience.backoff import BackoffPolicy
from notion_gateway.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def dispatch_event(event: Any) -> None:
    """Publishes a domain event to the debug log."""
    logger.debug(f"EVENT: {event}")


class RetryingExecutor:
    """Handles request execution with optional throttling and backoff retries."""

    def __init__(
        self,
        executor: RequestExecutor,
        token: str,
        policy: Optional[BackoffPolicy] = None,
        rate_limiter: Optional[RateLimiter] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initializes the RetryingExecutor.

        Args:
            executor: Single-attempt executor; shared, holds no call state.
            token: Bearer credential, read-only.
            policy: Backoff policy (defaults to BackoffPolicy()).
            rate_limiter: Optional shared throttle for bulk work.
            sleep: Awaitable sleep taking seconds; cancellable.
        """
        self.executor = executor
        self._token = token
        self.policy = policy or BackoffPolicy()
        self.rate_limiter = rate_limiter
        self._sleep = sleep

        logger.info(
            f"RetryingExecutor initialized: max_attempts={self.policy.max_attempts}, "
            f"jitter={self.policy.jitter_fraction}, throttle={'on' if rate_limiter else 'off'}"
        )

    async def _attempt(self, descriptor: RequestDescriptor, attempt_number: int) -> ResponseOutcome:
        if self.rate_limiter is not None:
            wait_duration = await self.rate_limiter.get_wait_time()
            if wait_duration > 0:
                dispatch_event(ApiCallDeferred(
                    method=descriptor.method, path=descriptor.path, wait_time_seconds=wait_duration,
                ))
            await self.rate_limiter.acquire()

        dispatch_event(ApiCallInitiated(
            method=descriptor.method, path=descriptor.path, attempt_number=attempt_number,
        ))
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        outcome = await self.executor.execute(descriptor, self._token)
        if isinstance(outcome, Success):
            dispatch_event(ApiCallSucceeded(
                method=descriptor.method,
                path=descriptor.path,
                latency_ms=(loop.time() - start_time) * 1000,
                attempt_number=attempt_number,
            ))
        return outcome

    async def execute(self, descriptor: RequestDescriptor) -> Any:
        """Runs the request until it succeeds or the policy gives up.

        Args:
            descriptor: The request to send.

        Returns:
            The parsed JSON payload of the successful response.

        Raises:
            ClientRequestError: On a non-retryable 4xx (sent exactly once).
            RetriesExhaustedError: When retryable failures outlast max_attempts.
        """
        state = self.policy.new_state()
        while True:
            outcome = await self._attempt(descriptor, state.attempt_count + 1)

            if isinstance(outcome, Success):
                return outcome.payload

            if isinstance(outcome, ClientError):
                logger.error(
                    f"Non-retryable error on {descriptor.method} {descriptor.path}: "
                    f"{outcome.status_code} {outcome.code or ''} {outcome.message}"
                )
                dispatch_event(ApiCallFailed(
                    method=descriptor.method, path=descriptor.path, error_kind=outcome.kind,
                    error_message=outcome.message, status_code=outcome.status_code,
                ))
                raise ClientRequestError(outcome.message, status_code=outcome.status_code, code=outcome.code)

            decision = self.policy.decide(outcome, state)
            if isinstance(decision, GiveUp):
                status_code = getattr(outcome, "status_code", 429 if outcome.kind == "RateLimited" else None)
                logger.error(
                    f"Giving up on {descriptor.method} {descriptor.path} after "
                    f"{state.attempt_count + 1} attempt(s): {decision.reason}. Last error: {outcome.message}"
                )
                dispatch_event(ApiCallFailed(
                    method=descriptor.method, path=descriptor.path, error_kind=outcome.kind,
                    error_message=outcome.message, status_code=status_code,
                ))
                raise RetriesExhaustedError(
                    last_kind=outcome.kind,
                    message=outcome.message,
                    attempts=state.attempt_count + 1,
                    status_code=status_code,
                    code=getattr(outcome, "code", None),
                )

            logger.warning(
                f"Retryable {outcome.kind} on {descriptor.method} {descriptor.path} "
                f"(attempt {state.attempt_count + 1}/{state.max_attempts}). "
                f"Waiting {decision.duration_ms / 1000:.2f}s..."
            )
            dispatch_event(RetryScheduled(
                method=descriptor.method, path=descriptor.path, attempt_number=state.attempt_count + 1,
                delay_ms=decision.duration_ms, reason=outcome.kind,
            ))
            state.last_delay_ms = decision.duration_ms
            state.attempt_count += 1
            await self._sleep(decision.duration_ms / 1000)
