"""Interface for the single-attempt request executor.

Defines the contract for turning one RequestDescriptor into one
ResponseOutcome, so the retry loop and the pagination walker can run
against a real HTTP client or an in-memory fake.
"""

import abc

from ..models.http import RequestDescriptor, ResponseOutcome


class RequestExecutor(abc.ABC):
    """Abstract Base Class for issuing exactly one HTTP request."""

    @abc.abstractmethod
    async def execute(self, descriptor: RequestDescriptor, token: str) -> ResponseOutcome:
        """Performs one network call and classifies the response.

        Args:
            descriptor: The request to send.
            token: Bearer credential. Implementations must never log it.

        Returns:
            Exactly one ResponseOutcome variant. Classified failures
            (429, 4xx, 5xx, transport) are returned, not raised.
        """
        pass

    async def aclose(self) -> None:
        """Releases any underlying connection pool."""
        return None
