"""Concrete implementation of the RequestExecutor interface using httpx.

Hides the specifics of the HTTP client library and translates one
RequestDescriptor into one ResponseOutcome. No retries happen here.
"""

import logging
import time
from typing import Any, Dict, Optional, Tuple

import httpx

from notion_gateway.domain.interfaces.request_executor import RequestExecutor
from notion_gateway.domain.models.http import (
    ClientError,
    RateLimited,
    RequestDescriptor,
    ResponseOutcome,
    ServerError,
    Success,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.notion.com/v1"
DEFAULT_NOTION_VERSION = "2022-06-28"
DEFAULT_TIMEOUT_SECONDS = 30.0


def build_async_client(
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Creates an `httpx.AsyncClient` shared read-only by every call.

    Args:
        timeout_seconds: Per-attempt timeout; expiry becomes a TransportError.
        transport: Optional transport override (e.g. `httpx.MockTransport` in tests).
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds),
        transport=transport,
        headers={"Accept": "application/json"},
    )


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Returns the `Retry-After` header as whole seconds, or None if absent or unparseable."""
    if value is None:
        return None
    value = value.strip()
    if not value.isdigit():
        # HTTP-date and fractional forms are not used by Notion
        return None
    return int(value)


def _error_details(response: httpx.Response) -> Tuple[str, Optional[str]]:
    """Extracts `(message, code)` from a Notion error body `{message, code}`."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message")
        code = body.get("code")
        if isinstance(message, str) and message:
            return message, code if isinstance(code, str) else None
    text = response.text.strip()
    return text or response.reason_phrase or f"HTTP {response.status_code}", None


class HttpRequestExecutor(RequestExecutor):
    """httpx implementation of the RequestExecutor interface."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = DEFAULT_BASE_URL,
        notion_version: str = DEFAULT_NOTION_VERSION,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """Initializes the executor.

        Args:
            client: Shared httpx client. One is built if not supplied.
            base_url: Notion API root, without trailing slash.
            notion_version: Value for the `Notion-Version` header.
            timeout_seconds: Per-attempt timeout used when building a client.
        """
        self.client = client or build_async_client(timeout_seconds)
        self.base_url = base_url.rstrip("/")
        self.notion_version = notion_version
        logger.info(f"HttpRequestExecutor initialized: base_url={self.base_url}, Notion-Version={notion_version}")

    def _headers(self, descriptor: RequestDescriptor, token: str) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Notion-Version": self.notion_version,
        }
        headers.update(dict(descriptor.headers))
        return headers

    def _classify(self, response: httpx.Response) -> ResponseOutcome:
        status = response.status_code
        if 200 <= status < 300:
            if not response.content:
                return Success(payload={})
            try:
                payload: Any = response.json()
            except ValueError as e:
                return ServerError(status_code=status, message=f"Invalid JSON in response body: {e}")
            return Success(payload=payload)

        message, code = _error_details(response)
        if status == 429:
            return RateLimited(
                retry_after_seconds=parse_retry_after(response.headers.get("Retry-After")),
                message=message,
            )
        if 400 <= status < 500:
            return ClientError(status_code=status, message=message, code=code)
        if status >= 500:
            return ServerError(status_code=status, message=message, code=code)
        # 1xx/3xx are not expected from the JSON API
        return ServerError(status_code=status, message=f"Unexpected status {status}: {message}", code=code)

    async def execute(self, descriptor: RequestDescriptor, token: str) -> ResponseOutcome:
        """Sends the request once and returns its classified outcome."""
        url = f"{self.base_url}/{descriptor.path.lstrip('/')}"
        logger.debug(f"Sending {descriptor.method} {descriptor.path} (query={dict(descriptor.query)})")
        start_time = time.perf_counter()
        try:
            response = await self.client.request(
                descriptor.method,
                url,
                params=list(descriptor.query),
                json=descriptor.body,
                headers=self._headers(descriptor, token),
            )
        except httpx.RequestError as e:
            # DNS failures, resets and timeouts all land here
            logger.warning(f"Transport error on {descriptor.method} {descriptor.path}: {type(e).__name__}: {e}")
            return TransportError(cause=e)

        latency_ms = (time.perf_counter() - start_time) * 1000
        outcome = self._classify(response)
        logger.debug(
            f"{descriptor.method} {descriptor.path} -> {response.status_code} "
            f"({outcome.kind}) in {latency_ms:.2f}ms"
        )
        return outcome

    async def aclose(self) -> None:
        await self.client.aclose()
