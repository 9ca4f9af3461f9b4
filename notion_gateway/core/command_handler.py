"""Command Handler: routes tool invocations to Notion operations.

Receives a tool name and its arguments (from the MCP server or the CLI),
checks the required arguments, calls the matching NotionClient coroutine,
and turns the outcome into a JSON-serializable result or a structured error.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from notion_gateway.core.tools import TOOLS_BY_NAME, ToolDefinition, filter_tools
from notion_gateway.domain.errors import DescriptorValidationError, GatewayError
from notion_gateway.domain.models.common import ToolArguments, ToolName
from notion_gateway.infrastructure.notion.client import NotionClient

logger = logging.getLogger(__name__)

# JSON schema "type" -> accepted Python types
_SCHEMA_TYPES: Dict[str, Tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "object": (dict,),
    "array": (list,),
}


class CommandHandler:
    """Handles incoming tool calls and delegates to the NotionClient."""

    def __init__(self, notion_client: NotionClient, enabled_tools: Optional[Iterable[str]] = None):
        """Initializes the CommandHandler.

        Args:
            notion_client: Client whose coroutines back each tool.
            enabled_tools: Tool names to expose; empty or None exposes all.
        """
        self.notion_client = notion_client
        self.tools: List[ToolDefinition] = filter_tools(enabled_tools or ())
        self._enabled = {tool.name: tool for tool in self.tools}

    def list_tools(self) -> List[ToolDefinition]:
        return list(self.tools)

    def _resolve(self, name: ToolName) -> ToolDefinition:
        tool = self._enabled.get(name)
        if tool is None:
            if name in TOOLS_BY_NAME:
                raise DescriptorValidationError(f"Tool is disabled: {name}")
            raise DescriptorValidationError(f"Unknown tool: {name}")
        return tool

    @staticmethod
    def _check_arguments(tool: ToolDefinition, arguments: Dict[str, Any]) -> Dict[str, Any]:
        missing = [key for key in tool.required if arguments.get(key) in (None, "")]
        if missing:
            raise DescriptorValidationError(f"Missing required argument(s): {', '.join(missing)}")
        unknown = sorted(set(arguments) - set(tool.properties))
        if unknown:
            # Extra keys from the model are dropped rather than forwarded as kwargs
            logger.warning(f"Ignoring unknown argument(s) for {tool.name}: {unknown}")
        kwargs = {key: value for key, value in arguments.items() if key in tool.properties}
        for key, value in kwargs.items():
            expected = tool.properties[key].get("type")
            if value is None or expected not in _SCHEMA_TYPES:
                continue
            # bool is an int subclass but never a valid integer here
            wrong_bool = isinstance(value, bool) and expected in ("integer", "number")
            if wrong_bool or not isinstance(value, _SCHEMA_TYPES[expected]):
                raise DescriptorValidationError(
                    f"Argument {key} must be of type {expected}, got {type(value).__name__}"
                )
        return kwargs

    async def call_tool(self, name: ToolName, arguments: Optional[ToolArguments] = None) -> Any:
        """Invokes one tool and returns its raw result.

        Raises:
            GatewayError: For validation, client and exhausted-retry failures.
        """
        tool = self._resolve(name)
        if arguments is not None and not isinstance(arguments, dict):
            raise DescriptorValidationError("Tool arguments must be a JSON object")
        kwargs = self._check_arguments(tool, dict(arguments or {}))
        logger.info(f"Calling tool {tool.name} with arguments: {sorted(kwargs)}")
        operation = getattr(self.notion_client, tool.method)
        return await operation(**kwargs)

    async def handle_tool_call(self, name: ToolName, arguments: Optional[ToolArguments] = None) -> Any:
        """Invokes one tool; failures come back as `{"error": {...}}` instead of raising."""
        try:
            return await self.call_tool(name, arguments)
        except GatewayError as e:
            logger.error(f"Tool {name} failed ({e.kind}): {e.message}")
            return {"error": e.to_dict()}
        except Exception as e:
            logger.error(f"Unexpected error in tool {name}: {e}", exc_info=True)
            return {
                "error": {
                    "kind": "InternalError",
                    "message": str(e),
                    "retryable": False,
                    "status_code": None,
                    "code": None,
                }
            }
