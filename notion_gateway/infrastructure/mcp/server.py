"""MCP server exposing the Notion tools over stdio.

Registers `list_tools` and `call_tool` handlers on a low-level
`mcp.server.Server`; every result, success or error, is returned as one
JSON text block.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from notion_gateway.core.command_handler import CommandHandler

logger = logging.getLogger(__name__)

SERVER_NAME = "notion-gateway"


def to_text_content(result: Any) -> List[TextContent]:
    return [TextContent(type="text", text=json.dumps(result, indent=2, default=str))]


def create_mcp_server(handler: CommandHandler, name: str = SERVER_NAME) -> Server:
    """Builds an MCP server whose tools route through the given CommandHandler."""
    server = Server(name)

    @server.list_tools()
    async def list_tools() -> List[Tool]:
        return [
            Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema)
            for tool in handler.list_tools()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[TextContent]:
        logger.debug(f"Received CallToolRequest: {name}")
        result = await handler.handle_tool_call(name, arguments)
        return to_text_content(result)

    return server


async def run_stdio_server(handler: CommandHandler) -> None:
    """Serves MCP on stdin/stdout until the client disconnects."""
    server = create_mcp_server(handler)
    logger.info(f"Starting MCP server '{SERVER_NAME}' on stdio with {len(handler.list_tools())} tools")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
