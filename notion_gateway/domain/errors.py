"""Error taxonomy for the gateway.

Only terminal failures are raised as exceptions. Transient upstream faults
(rate limiting, 5xx, transport) live as outcome values inside the retry loop
and surface here only as `RetriesExhaustedError`.
"""

from typing import Optional

from notion_gateway.domain.models.common import ErrorPayload


class GatewayError(Exception):
    """Base class for all errors surfaced to the tool layer."""

    kind: str = "GatewayError"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)

    def to_dict(self) -> ErrorPayload:
        """Serializes the error as `{kind, message, retryable, status_code, code}`."""
        return ErrorPayload(
            kind=self.kind,
            message=self.message,
            retryable=self.retryable,
            status_code=self.status_code,
            code=self.code,
        )


class ClientRequestError(GatewayError):
    """A 4xx (other than 429) from Notion. The caller must fix the input or permissions."""

    kind = "ClientError"
    retryable = False


class DescriptorValidationError(GatewayError):
    """A malformed request or missing required argument, raised before any network call."""

    kind = "ValidationError"
    retryable = False


class UnexpectedResponseError(GatewayError):
    """A successful response whose shape cannot be walked (e.g. `results` is not a list)."""

    kind = "ServerError"
    retryable = False


class RetriesExhaustedError(GatewayError):
    """Raised when the last retryable outcome persists after `max_attempts` attempts."""

    kind = "RetriesExhausted"
    retryable = True

    def __init__(
        self,
        last_kind: str,
        message: str,
        attempts: int,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        self.last_kind = last_kind
        self.attempts = attempts
        super().__init__(
            f"Max attempts ({attempts}) exceeded. Last error ({last_kind}): {message}",
            status_code=status_code,
            code=code,
        )
