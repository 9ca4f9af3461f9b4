"""Tool catalogue exposed over MCP.

Each ToolDefinition pairs a tool name with its JSON input schema and the
NotionClient coroutine it routes to.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple

_RICH_TEXT = {
    "type": "array",
    "description": "Array of Notion rich text objects.",
    "items": {"type": "object"},
}

# Shared by every list operation
_PAGINATION: Dict[str, Any] = {
    "start_cursor": {
        "type": "string",
        "description": "Resume from this cursor (next_cursor of an earlier partial result).",
    },
    "page_size": {
        "type": "integer",
        "minimum": 1,
        "maximum": 100,
        "description": "Items per request (max 100, default 100).",
    },
    "max_pages": {
        "type": "integer",
        "minimum": 1,
        "description": "Stop after this many pages; the result is flagged truncated.",
    },
}


def _id(description: str) -> Dict[str, Any]:
    return {"type": "string", "description": description}


@dataclass(frozen=True)
class ToolDefinition:
    """One callable tool: name, schema, and the client method it invokes."""
    name: str
    description: str
    method: str
    properties: Dict[str, Any] = field(default_factory=dict)
    required: Tuple[str, ...] = ()

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": self.properties,
            "required": list(self.required),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "required": list(self.required),
            "inputSchema": self.input_schema,
        }


ALL_TOOLS: List[ToolDefinition] = [
    ToolDefinition(
        name="notion_append_block_children",
        description="Append new children blocks to a parent block or page.",
        method="append_block_children",
        properties={
            "block_id": _id("The ID of the parent block or page."),
            "children": {"type": "array", "items": {"type": "object"}, "description": "Block objects to append."},
            "after": _id("Append after this existing child block."),
        },
        required=("block_id", "children"),
    ),
    ToolDefinition(
        name="notion_retrieve_block",
        description="Retrieve a block by ID.",
        method="retrieve_block",
        properties={"block_id": _id("The ID of the block.")},
        required=("block_id",),
    ),
    ToolDefinition(
        name="notion_retrieve_block_children",
        description="Retrieve all children of a block, following pagination.",
        method="retrieve_block_children",
        properties={"block_id": _id("The ID of the block or page."), **_PAGINATION},
        required=("block_id",),
    ),
    ToolDefinition(
        name="notion_delete_block",
        description="Delete (archive) a block.",
        method="delete_block",
        properties={"block_id": _id("The ID of the block.")},
        required=("block_id",),
    ),
    ToolDefinition(
        name="notion_update_block",
        description="Update the content of a block for its type.",
        method="update_block",
        properties={
            "block_id": _id("The ID of the block."),
            "block": {"type": "object", "description": "Partial block object with the fields to update."},
        },
        required=("block_id", "block"),
    ),
    ToolDefinition(
        name="notion_create_page",
        description="Create a page in a database, under a page, or in the workspace.",
        method="create_page",
        properties={
            "parent": {"type": "object", "description": "database_id, page_id, or workspace parent."},
            "properties": {"type": "object", "description": "Page property values."},
            "children": {"type": "array", "items": {"type": "object"}, "description": "Initial content blocks."},
        },
        required=("parent", "properties"),
    ),
    ToolDefinition(
        name="notion_retrieve_page",
        description="Retrieve a page's properties.",
        method="retrieve_page",
        properties={"page_id": _id("The ID of the page.")},
        required=("page_id",),
    ),
    ToolDefinition(
        name="notion_update_page_properties",
        description="Update page properties, or move the page to/from the trash with 'archived'.",
        method="update_page_properties",
        properties={
            "page_id": _id("The ID of the page."),
            "properties": {"type": "object", "description": "Property values to change."},
            "archived": {"type": "boolean", "description": "True to trash the page, false to restore it."},
        },
        required=("page_id",),
    ),
    ToolDefinition(
        name="notion_retrieve_page_property_item",
        description="Retrieve a full page property value, paginating relations and rollups past 25 items.",
        method="retrieve_page_property_item",
        properties={
            "page_id": _id("The ID of the page."),
            "property_id": _id("The ID of the property."),
            **_PAGINATION,
        },
        required=("page_id", "property_id"),
    ),
    ToolDefinition(
        name="notion_list_all_users",
        description="List all users in the workspace, following pagination.",
        method="list_all_users",
        properties=dict(_PAGINATION),
    ),
    ToolDefinition(
        name="notion_retrieve_user",
        description="Retrieve a user by ID.",
        method="retrieve_user",
        properties={"user_id": _id("The ID of the user.")},
        required=("user_id",),
    ),
    ToolDefinition(
        name="notion_retrieve_bot_user",
        description="Retrieve the bot user associated with the integration token.",
        method="retrieve_bot_user",
    ),
    ToolDefinition(
        name="notion_create_database",
        description="Create a database as a child of a page.",
        method="create_database",
        properties={
            "parent": {"type": "object", "description": "Parent page reference."},
            "properties": {"type": "object", "description": "Database property schema."},
            "title": _RICH_TEXT,
            "is_inline": {"type": "boolean", "description": "Create the database inline in the parent page."},
        },
        required=("parent", "properties"),
    ),
    ToolDefinition(
        name="notion_query_database",
        description="Query a database with optional filter and sorts, following pagination.",
        method="query_database",
        properties={
            "database_id": _id("The ID of the database."),
            "filter": {"type": "object", "description": "Notion filter object."},
            "sorts": {"type": "array", "items": {"type": "object"}, "description": "Notion sort objects."},
            **_PAGINATION,
        },
        required=("database_id",),
    ),
    ToolDefinition(
        name="notion_retrieve_database",
        description="Retrieve a database's schema and metadata.",
        method="retrieve_database",
        properties={"database_id": _id("The ID of the database.")},
        required=("database_id",),
    ),
    ToolDefinition(
        name="notion_update_database",
        description="Update a database's title, description, or property schema.",
        method="update_database",
        properties={
            "database_id": _id("The ID of the database."),
            "title": _RICH_TEXT,
            "description": _RICH_TEXT,
            "properties": {"type": "object", "description": "Property schema changes."},
        },
        required=("database_id",),
    ),
    ToolDefinition(
        name="notion_create_database_item",
        description="Create a new page (row) in a database.",
        method="create_database_item",
        properties={
            "database_id": _id("The ID of the database."),
            "properties": {"type": "object", "description": "Property values of the new item."},
        },
        required=("database_id", "properties"),
    ),
    ToolDefinition(
        name="notion_create_comment",
        description="Add a comment to a page, or reply in an existing discussion.",
        method="create_comment",
        properties={
            "rich_text": _RICH_TEXT,
            "parent": {"type": "object", "description": "Page parent, e.g. {\"page_id\": \"...\"}."},
            "discussion_id": _id("An existing discussion thread to reply in."),
        },
        required=("rich_text",),
    ),
    ToolDefinition(
        name="notion_retrieve_comments",
        description="Retrieve unresolved comments on a page or block, following pagination.",
        method="retrieve_comments",
        properties={"block_id": _id("The ID of the page or block."), **_PAGINATION},
        required=("block_id",),
    ),
    ToolDefinition(
        name="notion_search",
        description="Search pages and databases shared with the integration, following pagination.",
        method="search",
        properties={
            "query": {"type": "string", "description": "Text to match against titles."},
            "filter": {"type": "object", "description": "e.g. {\"property\": \"object\", \"value\": \"page\"}."},
            "sort": {"type": "object", "description": "Sort by last_edited_time."},
            **_PAGINATION,
        },
    ),
]

TOOLS_BY_NAME: Dict[str, ToolDefinition] = {tool.name: tool for tool in ALL_TOOLS}


def filter_tools(enabled: Iterable[str]) -> List[ToolDefinition]:
    """Returns the enabled tools in catalogue order; an empty set enables all."""
    enabled_set = set(enabled)
    if not enabled_set:
        return list(ALL_TOOLS)
    return [tool for tool in ALL_TOOLS if tool.name in enabled_set]
