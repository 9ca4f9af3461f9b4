import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from typer.testing import CliRunner

from notion_gateway.core.command_handler import CommandHandler
from notion_gateway.infrastructure.notion.client import NotionClient
from notion_gateway.main import app

# Fixtures from tests/conftest.py:
# runner: CliRunner
# isolate_config (autouse): clears NOTION_* variables and points config at a temp dir


@pytest.fixture
def mock_notion_client():
    client = MagicMock(spec=NotionClient)
    client.retrieve_page = AsyncMock(return_value={"object": "page", "id": "p1"})
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def patched_handler(mocker, mock_notion_client):
    """Replaces the composition root with a handler over a mocked NotionClient."""
    handler = CommandHandler(mock_notion_client)
    return mocker.patch("notion_gateway.main.create_command_handler", return_value=handler)


@pytest.fixture
def mock_console_display(mocker):
    return mocker.patch("notion_gateway.main.ui")


def test_tools_command_lists_enabled_tools(runner: CliRunner, monkeypatch, mock_console_display: MagicMock):
    monkeypatch.setenv("NOTION_ENABLED_TOOLS", "notion_search,notion_retrieve_page")

    result = runner.invoke(app, ["tools"])

    assert result.exit_code == 0, result.stdout
    tools = mock_console_display.display_tools.call_args.args[0]
    assert [tool["name"] for tool in tools] == ["notion_retrieve_page", "notion_search"]


def test_call_command_flow(
    runner: CliRunner,
    patched_handler: MagicMock,
    mock_notion_client: MagicMock,
    mock_console_display: MagicMock,
):
    result = runner.invoke(app, ["call", "notion_retrieve_page", "--args", json.dumps({"page_id": "p1"})])

    assert result.exit_code == 0, result.stdout
    mock_notion_client.retrieve_page.assert_awaited_once_with(page_id="p1")
    mock_notion_client.aclose.assert_awaited_once()
    mock_console_display.display_result.assert_called_once_with({"object": "page", "id": "p1"}, title="notion_retrieve_page")
    mock_console_display.display_error.assert_not_called()


def test_call_command_reports_tool_errors(
    runner: CliRunner,
    patched_handler: MagicMock,
    mock_console_display: MagicMock,
):
    result = runner.invoke(app, ["call", "notion_retrieve_page", "-a", "{}"])

    assert result.exit_code == 1
    message = mock_console_display.display_error.call_args.args[0]
    assert message.startswith("ValidationError: Missing required argument(s): page_id")


def test_call_command_rejects_bad_json(runner: CliRunner, patched_handler: MagicMock, mock_console_display: MagicMock):
    result = runner.invoke(app, ["call", "notion_search", "--args", "{not json"])
    assert result.exit_code == 1
    assert "not valid JSON" in mock_console_display.display_error.call_args.args[0]
    patched_handler.assert_not_called()


def test_call_without_token_fails(runner: CliRunner, mock_console_display: MagicMock):
    result = runner.invoke(app, ["call", "notion_retrieve_bot_user"])
    assert result.exit_code == 1
    assert "NOTION_API_TOKEN" in mock_console_display.display_error.call_args.args[0]


def test_serve_without_token_exits(runner: CliRunner, mocker):
    run_server = mocker.patch("notion_gateway.main.run_stdio_server")
    result = runner.invoke(app, ["serve"])
    assert result.exit_code == 1
    run_server.assert_not_called()
