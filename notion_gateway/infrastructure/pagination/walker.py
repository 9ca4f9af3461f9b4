"""Cursor-based pagination over Notion list endpoints.

Drives a RetryingExecutor page by page, concatenating each page's `results`
in arrival order until the server reports no more pages, the cursor is
unusable, or the page ceiling is reached.
"""

import logging
from typing import Any, Callable, Optional

from notion_gateway.domain.errors import GatewayError, UnexpectedResponseError
from notion_gateway.domain.events.api_events import PageFetched
from notion_gateway.domain.models.common import DEFAULT_MAX_PAGES, MAX_PAGE_SIZE, PageEnvelope
from notion_gateway.domain.models.http import PageWalkResult, RequestDescriptor
from notion_gateway.infrastructure.resilience.api_retry import RetryingExecutor, dispatch_event

logger = logging.getLogger(__name__)

# (cursor, page_size) -> descriptor for that page
RequestFactory = Callable[[Optional[str], int], RequestDescriptor]


def clamp_page_size(page_size: Optional[int]) -> int:
    """Clamps a requested page size into [1, 100]; None means 100."""
    if page_size is None:
        return MAX_PAGE_SIZE
    return max(1, min(int(page_size), MAX_PAGE_SIZE))


def usable_cursor(has_more: Any, next_cursor: Any) -> Optional[str]:
    """Returns the cursor only if another page can really be requested.

    Notion sometimes sends the literal string "null" instead of omitting the
    field; that, an empty string, or `has_more` not being true all mean the
    walk is over.
    """
    if has_more is not True:
        return None
    if not isinstance(next_cursor, str) or not next_cursor or next_cursor == "null":
        return None
    return next_cursor


class PaginationWalker:
    """Collects every item of a list-shaped operation, sequentially."""

    def __init__(self, retrying_executor: RetryingExecutor, default_max_pages: int = DEFAULT_MAX_PAGES):
        self.retrying_executor = retrying_executor
        self.default_max_pages = default_max_pages

    def _absorb(self, result: PageWalkResult, page: Any, path: str) -> Optional[str]:
        """Appends one page to the accumulator and returns the next usable cursor."""
        if not isinstance(page, dict):
            raise UnexpectedResponseError(f"Expected a JSON object page from {path}, got {type(page).__name__}")
        envelope: PageEnvelope = page  # type: ignore[assignment]
        items = envelope.get("results", [])
        if not isinstance(items, list):
            raise UnexpectedResponseError(f"`results` from {path} is not a list")

        result.results.extend(items)
        result.pages_fetched += 1
        has_more = envelope.get("has_more")
        raw_cursor = envelope.get("next_cursor")
        cursor = usable_cursor(has_more, raw_cursor)
        if has_more is True and cursor is None:
            logger.info(f"Stopping walk of {path}: has_more=true but next_cursor={raw_cursor!r} is unusable")

        result.has_more = cursor is not None
        result.next_cursor = cursor
        dispatch_event(PageFetched(
            path=path, page_number=result.pages_fetched, item_count=len(items), has_more=result.has_more,
        ))
        return cursor

    async def walk(
        self,
        build_request: RequestFactory,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
        start_cursor: Optional[str] = None,
        first_page: Optional[Any] = None,
    ) -> PageWalkResult:
        """Walks pages until exhausted, truncated, or failed.

        Args:
            build_request: Builds the descriptor for a given cursor and page size.
            page_size: Items per request; clamped into [1, 100].
            max_pages: Page-count ceiling (defaults to the walker's ceiling).
            start_cursor: Cursor of the first page to request, if resuming.
            first_page: An already-fetched first page payload to seed the walk.

        Returns:
            The accumulated results. `truncated` is set when the ceiling stopped
            a walk that had more pages; `error` is set when a failure after at
            least one page ended it early.

        Raises:
            GatewayError: If the very first page cannot be fetched.
        """
        size = clamp_page_size(page_size)
        ceiling = max(1, max_pages if max_pages is not None else self.default_max_pages)
        result = PageWalkResult()
        cursor: Optional[str] = start_cursor

        if first_page is not None:
            probe = build_request(cursor, size)
            cursor = self._absorb(result, first_page, probe.path)
            if cursor is None:
                return result

        while True:
            if result.pages_fetched >= ceiling:
                result.truncated = True
                logger.warning(
                    f"Pagination ceiling ({ceiling} pages) reached with more pages available; "
                    f"returning {len(result.results)} items as partial"
                )
                return result

            descriptor = build_request(cursor, size)
            try:
                page = await self.retrying_executor.execute(descriptor)
                cursor = self._absorb(result, page, descriptor.path)
            except GatewayError as e:
                if result.pages_fetched == 0:
                    raise
                logger.error(
                    f"Walk of {descriptor.path} failed after {result.pages_fetched} page(s): {e}. "
                    f"Returning {len(result.results)} items as partial"
                )
                result.error = e
                return result

            if cursor is None:
                logger.debug(f"Walk of {descriptor.path} complete: {len(result.results)} items in {result.pages_fetched} page(s)")
                return result
