import pytest
from unittest.mock import MagicMock

from rich.panel import Panel
from rich.table import Table

from notion_gateway.infrastructure.cli.display import ConsoleDisplay


@pytest.fixture
def mock_console():
    """Fixture to create a mock rich Console object."""
    return MagicMock()


@pytest.fixture
def console_display(mock_console: MagicMock):
    """Fixture to create a ConsoleDisplay instance with a mocked console."""
    return ConsoleDisplay(console=mock_console)


def test_display_result_prints_one_panel(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_result({"object": "page", "id": "p1"}, title="notion_retrieve_page")
    mock_console.print.assert_called_once()
    args, _ = mock_console.print.call_args
    assert isinstance(args[0], Panel)
    assert "notion_retrieve_page" in str(args[0].title)


def test_display_result_warns_on_truncation(console_display: ConsoleDisplay, mock_console: MagicMock):
    """Partial list results get an extra warning panel with the resume cursor."""
    result = {"results": [1], "partial": True, "truncated": True, "pages_fetched": 2, "next_cursor": "c3", "error": None}
    console_display.display_result(result)
    assert mock_console.print.call_count == 2
    warning = mock_console.print.call_args_list[1].args[0]
    assert "start_cursor=c3" in str(warning.renderable)


def test_display_result_warns_on_partial_error(console_display: ConsoleDisplay, mock_console: MagicMock):
    result = {"results": [1], "partial": True, "truncated": False, "error": {"message": "Max attempts (4) exceeded"}}
    console_display.display_result(result)
    assert mock_console.print.call_count == 2


def test_display_error(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_error("Something broke")
    panel = mock_console.print.call_args.args[0]
    assert isinstance(panel, Panel)
    assert "Error" in str(panel.title)
    assert str(panel.renderable) == "Something broke"


def test_display_tools_renders_table(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_tools([
        {"name": "notion_retrieve_page", "description": "Retrieve a page.", "required": ["page_id"]},
        {"name": "notion_retrieve_bot_user", "description": "Bot user.", "required": []},
    ])
    table = mock_console.print.call_args.args[0]
    assert isinstance(table, Table)
    assert table.row_count == 2
