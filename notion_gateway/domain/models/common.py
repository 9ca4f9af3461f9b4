"""Defines common Value Objects used across the gateway.

These are simple values (identifiers, cursors, JSON payloads) that give
semantic names to plain strings and dicts flowing between layers.
"""

from typing import NewType, Any, Dict, List, TypedDict, Optional

# === Notion Identifiers ===

# NewType for semantic clarity; these are plain strings at runtime.
BlockID = NewType("BlockID", str)
PageID = NewType("PageID", str)
DatabaseID = NewType("DatabaseID", str)
UserID = NewType("UserID", str)
PropertyID = NewType("PropertyID", str)
DiscussionID = NewType("DiscussionID", str)

# === Wire Payloads ===
JSONValue = Any                                 # Opaque upstream JSON body
JSONObject = Dict[str, Any]

# === Tool Invocation Context ===
ToolName = NewType("ToolName", str)             # e.g., 'notion_retrieve_page'
ToolArguments = NewType("ToolArguments", Dict[str, Any])

# Upstream pagination limits
MAX_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 100

# --- Structured Data ---
class ErrorPayload(TypedDict):
    """Structured error handed to the tool layer."""
    kind: str
    message: str
    retryable: bool
    status_code: Optional[int]
    code: Optional[str]

class PageEnvelope(TypedDict, total=False):
    """The fields of a list response the walker inspects."""
    object: str
    results: List[Any]
    has_more: bool
    next_cursor: Optional[str]
