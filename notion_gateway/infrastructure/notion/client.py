"""Notion API operations on top of the retrying request pipeline.

One coroutine per logical operation. Single-object operations return the
parsed JSON verbatim; list operations walk every page from `start_cursor`
and return a PageWalkResult dict (`results`, `has_more`, `next_cursor`,
`partial`, `truncated`, `error`).
"""

import logging
from typing import Any, Dict, List, Optional

from notion_gateway.domain.errors import DescriptorValidationError
from notion_gateway.domain.models.common import (
    BlockID,
    DatabaseID,
    DiscussionID,
    JSONObject,
    PageID,
    PropertyID,
    UserID,
)
from notion_gateway.domain.models.http import RequestDescriptor
from notion_gateway.infrastructure.pagination.walker import PaginationWalker, RequestFactory, clamp_page_size
from notion_gateway.infrastructure.resilience.api_retry import RetryingExecutor

logger = logging.getLogger(__name__)

# Characters that would change which endpoint an identifier addresses
_UNSAFE_ID_CHARS = "/\\?#%"


def _require(name: str, value: Any) -> str:
    """Rejects a missing, blank or path-altering identifier before it reaches a URL path."""
    if not isinstance(value, str) or not value.strip():
        raise DescriptorValidationError(f"Missing required argument: {name}")
    value = value.strip()
    if any(ch in value for ch in _UNSAFE_ID_CHARS) or value in (".", ".."):
        raise DescriptorValidationError(f"Invalid {name}: {value!r}")
    return value


def _resume_cursor(start_cursor: Optional[str]) -> Optional[str]:
    """A caller-supplied cursor, ignoring blanks and the literal "null"."""
    if not start_cursor or start_cursor == "null":
        return None
    return start_cursor


def _get_list(path: str, extra_query: Optional[Dict[str, Any]] = None) -> RequestFactory:
    """Factory for GET listings that paginate through the query string."""
    def build(cursor: Optional[str], page_size: int) -> RequestDescriptor:
        query: Dict[str, Any] = dict(extra_query or {})
        query["start_cursor"] = cursor
        query["page_size"] = page_size
        return RequestDescriptor.build("GET", path, query=query)
    return build


def _post_list(path: str, body: JSONObject) -> RequestFactory:
    """Factory for POST listings that paginate through the JSON body."""
    def build(cursor: Optional[str], page_size: int) -> RequestDescriptor:
        page_body = dict(body)
        page_body["page_size"] = page_size
        if cursor is not None:
            page_body["start_cursor"] = cursor
        return RequestDescriptor.build("POST", path, body=page_body)
    return build


class NotionClient:
    """Notion REST operations exposed to the tool layer."""

    def __init__(self, retrying_executor: RetryingExecutor, walker: Optional[PaginationWalker] = None, page_size: int = 100):
        """Initializes the client.

        Args:
            retrying_executor: Pipeline used for every request.
            walker: Pagination walker (built over the same pipeline if omitted).
            page_size: Default items per request for list operations.
        """
        self.retrying_executor = retrying_executor
        self.walker = walker or PaginationWalker(retrying_executor)
        self.page_size = page_size

    async def _send(self, method: str, path: str, body: Optional[JSONObject] = None, query: Optional[Dict[str, Any]] = None) -> Any:
        return await self.retrying_executor.execute(RequestDescriptor.build(method, path, query=query, body=body))

    async def _walk(self, build: RequestFactory, start_cursor: Optional[str], page_size: Optional[int], max_pages: Optional[int]) -> Dict[str, Any]:
        result = await self.walker.walk(
            build,
            page_size=self.page_size if page_size is None else page_size,
            max_pages=max_pages,
            start_cursor=_resume_cursor(start_cursor),
        )
        return result.to_dict()

    # --- Blocks ---

    async def append_block_children(self, block_id: BlockID, children: List[JSONObject], after: Optional[BlockID] = None) -> Any:
        body: JSONObject = {"children": children}
        if after:
            body["after"] = after
        return await self._send("PATCH", f"blocks/{_require('block_id', block_id)}/children", body=body)

    async def retrieve_block(self, block_id: BlockID) -> Any:
        return await self._send("GET", f"blocks/{_require('block_id', block_id)}")

    async def retrieve_block_children(
        self,
        block_id: BlockID,
        start_cursor: Optional[str] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> Dict[str, Any]:
        path = f"blocks/{_require('block_id', block_id)}/children"
        return await self._walk(_get_list(path), start_cursor, page_size, max_pages)

    async def delete_block(self, block_id: BlockID) -> Any:
        return await self._send("DELETE", f"blocks/{_require('block_id', block_id)}")

    async def update_block(self, block_id: BlockID, block: JSONObject) -> Any:
        return await self._send("PATCH", f"blocks/{_require('block_id', block_id)}", body=block)

    # --- Pages ---

    async def create_page(self, parent: JSONObject, properties: JSONObject, children: Optional[List[JSONObject]] = None) -> Any:
        body: JSONObject = {"parent": parent, "properties": properties}
        if children:
            body["children"] = children
        return await self._send("POST", "pages", body=body)

    async def retrieve_page(self, page_id: PageID) -> Any:
        return await self._send("GET", f"pages/{_require('page_id', page_id)}")

    async def update_page_properties(
        self,
        page_id: PageID,
        properties: Optional[JSONObject] = None,
        archived: Optional[bool] = None,
    ) -> Any:
        """Updates properties and/or moves the page to or from the trash."""
        body: JSONObject = {}
        if properties is not None:
            body["properties"] = properties
        if archived is not None:
            body["archived"] = archived
        if not body:
            raise DescriptorValidationError("Provide properties and/or archived to update a page")
        return await self._send("PATCH", f"pages/{_require('page_id', page_id)}", body=body)

    async def retrieve_page_property_item(
        self,
        page_id: PageID,
        property_id: PropertyID,
        start_cursor: Optional[str] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> Any:
        """Retrieves one property value in full.

        Page objects truncate relation, rollup, rich text and people values at
        25 entries. This endpoint returns a single `property_item` for simple
        properties and a paginated list for those, which is walked to the end.
        """
        path = f"pages/{_require('page_id', page_id)}/properties/{_require('property_id', property_id)}"
        build = _get_list(path)
        first_page = await self.retrying_executor.execute(build(_resume_cursor(start_cursor), clamp_page_size(self.page_size if page_size is None else page_size)))
        if not isinstance(first_page, dict) or first_page.get("object") != "list":
            return first_page

        result = await self.walker.walk(
            build,
            page_size=self.page_size if page_size is None else page_size,
            max_pages=max_pages,
            first_page=first_page,
        )
        walked = result.to_dict()
        # Describes the property the items belong to (type, id, next_url)
        walked["property_item"] = first_page.get("property_item")
        return walked

    # --- Users ---

    async def list_all_users(
        self,
        start_cursor: Optional[str] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> Dict[str, Any]:
        return await self._walk(_get_list("users"), start_cursor, page_size, max_pages)

    async def retrieve_user(self, user_id: UserID) -> Any:
        return await self._send("GET", f"users/{_require('user_id', user_id)}")

    async def retrieve_bot_user(self) -> Any:
        return await self._send("GET", "users/me")

    # --- Databases ---

    async def create_database(
        self,
        parent: JSONObject,
        properties: JSONObject,
        title: Optional[List[JSONObject]] = None,
        is_inline: Optional[bool] = None,
    ) -> Any:
        body: JSONObject = {"parent": parent, "properties": properties}
        if title is not None:
            body["title"] = title
        if is_inline is not None:
            body["is_inline"] = is_inline
        return await self._send("POST", "databases", body=body)

    async def query_database(
        self,
        database_id: DatabaseID,
        filter: Optional[JSONObject] = None,
        sorts: Optional[List[JSONObject]] = None,
        start_cursor: Optional[str] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> Dict[str, Any]:
        body: JSONObject = {}
        if filter:
            body["filter"] = filter
        if sorts:
            body["sorts"] = sorts
        path = f"databases/{_require('database_id', database_id)}/query"
        return await self._walk(_post_list(path, body), start_cursor, page_size, max_pages)

    async def retrieve_database(self, database_id: DatabaseID) -> Any:
        return await self._send("GET", f"databases/{_require('database_id', database_id)}")

    async def update_database(
        self,
        database_id: DatabaseID,
        title: Optional[List[JSONObject]] = None,
        description: Optional[List[JSONObject]] = None,
        properties: Optional[JSONObject] = None,
    ) -> Any:
        body: JSONObject = {}
        if title is not None:
            body["title"] = title
        if description is not None:
            body["description"] = description
        if properties is not None:
            body["properties"] = properties
        return await self._send("PATCH", f"databases/{_require('database_id', database_id)}", body=body)

    async def create_database_item(self, database_id: DatabaseID, properties: JSONObject) -> Any:
        parent = {"database_id": _require("database_id", database_id)}
        return await self._send("POST", "pages", body={"parent": parent, "properties": properties})

    # --- Comments ---

    async def create_comment(
        self,
        rich_text: List[JSONObject],
        parent: Optional[JSONObject] = None,
        discussion_id: Optional[DiscussionID] = None,
    ) -> Any:
        """Adds a comment to a page (`parent`) or replies in a thread (`discussion_id`)."""
        if bool(parent) == bool(discussion_id):
            raise DescriptorValidationError("Provide exactly one of parent or discussion_id")
        body: JSONObject = {"rich_text": rich_text}
        if parent:
            body["parent"] = parent
        else:
            body["discussion_id"] = discussion_id
        return await self._send("POST", "comments", body=body)

    async def retrieve_comments(
        self,
        block_id: BlockID,
        start_cursor: Optional[str] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> Dict[str, Any]:
        build = _get_list("comments", {"block_id": _require("block_id", block_id)})
        return await self._walk(build, start_cursor, page_size, max_pages)

    # --- Search ---

    async def search(
        self,
        query: Optional[str] = None,
        filter: Optional[JSONObject] = None,
        sort: Optional[JSONObject] = None,
        start_cursor: Optional[str] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> Dict[str, Any]:
        body: JSONObject = {}
        if query:
            body["query"] = query
        if filter:
            body["filter"] = filter
        if sort:
            body["sort"] = sort
        return await self._walk(_post_list("search", body), start_cursor, page_size, max_pages)

    async def aclose(self) -> None:
        await self.retrying_executor.executor.aclose()
