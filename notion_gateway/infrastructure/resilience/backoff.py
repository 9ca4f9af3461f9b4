"""Backoff policy for retryable Notion API outcomes.

Decides, from one ResponseOutcome and the caller's RetryState, whether to
retry and how long to wait first. Honors `Retry-After` on 429s and falls
back to an exponential schedule with jitter otherwise.
"""

import logging
import random
from typing import Optional

from notion_gateway.domain.models.http import (
    BackoffDecision,
    ClientError,
    GiveUp,
    RateLimited,
    ResponseOutcome,
    RetryState,
    Success,
    Wait,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 4
DEFAULT_BASE_DELAY_MS = 1000.0
DEFAULT_JITTER_FRACTION = 0.2


class BackoffPolicy:
    """Pure retry decision function; holds configuration only, never call state."""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay_ms: float = DEFAULT_BASE_DELAY_MS,
        jitter_fraction: float = DEFAULT_JITTER_FRACTION,
        rng: Optional[random.Random] = None,
    ):
        """Initializes the policy.

        Args:
            max_attempts: Total attempts allowed per call, first attempt included.
            base_delay_ms: Unit of the exponential schedule (2^(n+1) x base).
            jitter_fraction: Relative jitter bound, applied as +/- fraction of the delay.
            rng: Random source, injectable for deterministic tests.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if not 0.0 <= jitter_fraction <= 1.0:
            raise ValueError("jitter_fraction must be between 0 and 1")
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.jitter_fraction = jitter_fraction
        self._rng = rng or random.Random()

    def new_state(self) -> RetryState:
        """Creates the RetryState owned by one call."""
        return RetryState(max_attempts=self.max_attempts)

    def base_delay_for(self, outcome: ResponseOutcome, attempt_count: int) -> float:
        """Delay before jitter, in milliseconds."""
        if isinstance(outcome, RateLimited) and outcome.retry_after_seconds is not None:
            return outcome.retry_after_seconds * 1000.0
        return (2 ** (attempt_count + 1)) * self.base_delay_ms

    def apply_jitter(self, delay_ms: float) -> float:
        jitter = delay_ms * self.jitter_fraction * self._rng.uniform(-1.0, 1.0)
        return max(0.0, delay_ms + jitter)

    def decide(self, outcome: ResponseOutcome, state: RetryState) -> BackoffDecision:
        """Returns Wait(duration_ms) to retry, or GiveUp.

        Args:
            outcome: The classified result of the attempt that just finished.
            state: The call's retry bookkeeping; `attempt_count` is zero-based.
        """
        if isinstance(outcome, Success):
            return GiveUp(reason="success is never retried")
        if isinstance(outcome, ClientError):
            return GiveUp(reason=f"client error {outcome.status_code} is not retryable")
        if state.attempt_count + 1 >= state.max_attempts:
            return GiveUp(reason=f"max attempts ({state.max_attempts}) reached")

        delay_ms = self.apply_jitter(self.base_delay_for(outcome, state.attempt_count))
        logger.debug(
            f"Backoff for {outcome.kind} after attempt {state.attempt_count + 1}/{state.max_attempts}: "
            f"{delay_ms:.0f}ms"
        )
        return Wait(duration_ms=delay_ms)
