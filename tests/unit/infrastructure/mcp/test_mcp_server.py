import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from mcp.types import CallToolRequest, CallToolRequestParams, ListToolsRequest

from notion_gateway.core.command_handler import CommandHandler
from notion_gateway.infrastructure.mcp.server import create_mcp_server, to_text_content
from notion_gateway.infrastructure.notion.client import NotionClient


@pytest.fixture
def mock_notion_client():
    client = MagicMock(spec=NotionClient)
    client.retrieve_page = AsyncMock(return_value={"object": "page", "id": "p1"})
    return client


@pytest.fixture
def server(mock_notion_client):
    handler = CommandHandler(mock_notion_client, enabled_tools={"notion_retrieve_page", "notion_search"})
    return create_mcp_server(handler)


def test_to_text_content_is_one_json_block():
    content = to_text_content({"results": [1, 2], "partial": False})
    assert len(content) == 1
    assert content[0].type == "text"
    assert json.loads(content[0].text) == {"results": [1, 2], "partial": False}


@pytest.mark.asyncio
async def test_lists_only_enabled_tools(server):
    response = await server.request_handlers[ListToolsRequest](ListToolsRequest(method="tools/list"))
    tools = {tool.name: tool for tool in response.root.tools}
    assert set(tools) == {"notion_retrieve_page", "notion_search"}
    assert tools["notion_retrieve_page"].inputSchema["required"] == ["page_id"]


@pytest.mark.asyncio
async def test_call_tool_routes_to_client(server, mock_notion_client):
    request = CallToolRequest(
        method="tools/call",
        params=CallToolRequestParams(name="notion_retrieve_page", arguments={"page_id": "p1"}),
    )
    response = await server.request_handlers[CallToolRequest](request)

    mock_notion_client.retrieve_page.assert_awaited_once_with(page_id="p1")
    assert json.loads(response.root.content[0].text) == {"object": "page", "id": "p1"}
