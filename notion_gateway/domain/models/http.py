"""Domain models for one trip through the request pipeline.

Includes the immutable request descriptor, the per-attempt response outcome
variants, the retry bookkeeping owned by a single call, the backoff
decisions, and the accumulated result of a pagination walk.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from notion_gateway.domain.errors import DescriptorValidationError, GatewayError
from notion_gateway.domain.models.common import JSONValue

ALLOWED_METHODS = frozenset({"GET", "POST", "PATCH", "DELETE"})

QueryParams = Tuple[Tuple[str, str], ...]
HeaderPairs = Tuple[Tuple[str, str], ...]


# --- Request Descriptor ---

@dataclass(frozen=True)
class RequestDescriptor:
    """One HTTP request against the Notion API, relative to the base URL."""
    method: str
    path: str
    query: QueryParams = ()
    body: Optional[JSONValue] = None
    headers: HeaderPairs = ()

    def __post_init__(self) -> None:
        if self.method not in ALLOWED_METHODS:
            raise DescriptorValidationError(f"Unsupported HTTP method: {self.method!r}")
        if not self.path or not self.path.strip("/"):
            raise DescriptorValidationError("Request path must not be empty")
        # A blank identifier produces `blocks//children` or a trailing slash
        if any(not segment for segment in self.path.strip("/").split("/")) or self.path.endswith("/"):
            raise DescriptorValidationError(f"Request path has an empty segment: {self.path!r}")
        if any(segment in (".", "..") for segment in self.path.split("/")):
            raise DescriptorValidationError(f"Request path has a relative segment: {self.path!r}")
        if "?" in self.path or "#" in self.path:
            raise DescriptorValidationError(f"Query and fragment belong in `query`, not the path: {self.path!r}")

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        query: Optional[Dict[str, Any]] = None,
        body: Optional[JSONValue] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> "RequestDescriptor":
        """Builds a descriptor, dropping `None` query values and stringifying the rest."""
        query_pairs = tuple(
            (key, str(value)) for key, value in (query or {}).items() if value is not None
        )
        header_pairs = tuple((headers or {}).items())
        return cls(method=method, path=path.lstrip("/"), query=query_pairs, body=body, headers=header_pairs)


# --- Response Outcome variants ---

@dataclass(frozen=True)
class Success:
    payload: JSONValue
    kind: str = field(default="Success", init=False)
    retryable: bool = field(default=False, init=False)


@dataclass(frozen=True)
class RateLimited:
    retry_after_seconds: Optional[int] = None
    message: str = "Rate limited"
    kind: str = field(default="RateLimited", init=False)
    retryable: bool = field(default=True, init=False)


@dataclass(frozen=True)
class ClientError:
    status_code: int
    message: str
    code: Optional[str] = None
    kind: str = field(default="ClientError", init=False)
    retryable: bool = field(default=False, init=False)


@dataclass(frozen=True)
class ServerError:
    status_code: int
    message: str
    code: Optional[str] = None
    kind: str = field(default="ServerError", init=False)
    retryable: bool = field(default=True, init=False)


@dataclass(frozen=True)
class TransportError:
    cause: BaseException
    kind: str = field(default="TransportError", init=False)
    retryable: bool = field(default=True, init=False)

    @property
    def message(self) -> str:
        return f"{type(self.cause).__name__}: {self.cause}"


ResponseOutcome = Union[Success, RateLimited, ClientError, ServerError, TransportError]


# --- Retry bookkeeping ---

@dataclass
class RetryState:
    """Retry bookkeeping for one in-flight call.

    `attempt_count` is the zero-based index of the attempt that just failed,
    so the first retry is decided with `attempt_count == 0`.
    """
    max_attempts: int
    attempt_count: int = 0
    last_delay_ms: Optional[float] = None


@dataclass(frozen=True)
class Wait:
    duration_ms: float


@dataclass(frozen=True)
class GiveUp:
    reason: str


BackoffDecision = Union[Wait, GiveUp]


# --- Accumulated Result Set ---

@dataclass
class PageWalkResult:
    """Items collected by one pagination walk, in server order."""
    results: List[Any] = field(default_factory=list)
    has_more: bool = False
    next_cursor: Optional[str] = None
    pages_fetched: int = 0
    truncated: bool = False
    error: Optional[GatewayError] = None

    @property
    def partial(self) -> bool:
        return self.truncated or self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "object": "list",
            "results": self.results,
            "has_more": self.has_more,
            "next_cursor": self.next_cursor,
            "pages_fetched": self.pages_fetched,
            "partial": self.partial,
            "truncated": self.truncated,
            "error": self.error.to_dict() if self.error else None,
        }
