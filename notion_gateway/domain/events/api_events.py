"""Domain Events related to Notion API calls and resilience.

Examples include events for when calls are deferred, retried, fail, or succeed,
and when a pagination walk fetches a page.
"""

from dataclasses import dataclass, field
import time
from typing import Optional

# Base Event Class
@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Specific API Events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when a request is about to be sent."""
    method: str
    path: str
    attempt_number: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when a request returns a 2xx response."""
    method: str
    path: str
    latency_ms: float
    attempt_number: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when a call fails definitively (non-retryable or after retries)."""
    method: str
    path: str
    error_kind: str
    error_message: str
    status_code: Optional[int] = None
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallDeferred(DomainEvent):
    """Event triggered when a call waits on the shared rate limiter."""
    method: str
    path: str
    wait_time_seconds: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed attempt."""
    method: str
    path: str
    attempt_number: int
    delay_ms: float
    reason: str # outcome kind, e.g. 'RateLimited'
    timestamp: float = field(default_factory=time.time)

@dataclass
class PageFetched(DomainEvent):
    """Event triggered when a pagination walk appends one page."""
    path: str
    page_number: int
    item_count: int
    has_more: bool
    timestamp: float = field(default_factory=time.time)
