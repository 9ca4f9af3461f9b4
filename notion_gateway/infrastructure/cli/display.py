import json
import logging
from typing import Any, Dict, List, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE, Box
from rich.console import Console, RenderableType
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from notion_gateway.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)


class ConsoleDisplay(UserInterface):
    """UserInterface implementation that renders to a rich Console."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def _message(self, text: str, label: str, color: str, box: Box) -> None:
        self.console.print(Panel(
            Text(text, style="white"),
            title=f"[bold {color}]{label}[/bold {color}]",
            border_style=color,
            box=box,
            padding=(0, 1),
        ))

    def display_result(self, result: Any, **kwargs: Any) -> None:
        """Displays a tool result as highlighted JSON.

        Args:
            result: Any JSON-serializable value.
            **kwargs: Additional arguments including:
                - title: Panel title (default: "Result")
        """
        title = kwargs.get("title", "Result")
        body: RenderableType
        try:
            body = JSON.from_data(result, indent=2, default=str)
        except (TypeError, ValueError) as e:
            logger.debug(f"Falling back to plain JSON output: {e}")
            body = Text(json.dumps(result, indent=2, default=str))

        self.console.print(Panel(
            body,
            title=f"[bold white]{title}[/bold white]",
            title_align="left",
            border_style="blue",
            box=ROUNDED,
            padding=(0, 1),
        ))

        # Partial list results are flagged so they are never mistaken for complete ones
        if isinstance(result, dict) and result.get("partial"):
            if result.get("truncated"):
                self.display_warning(
                    f"Result truncated after {result.get('pages_fetched')} page(s); "
                    f"resume with start_cursor={result.get('next_cursor')}"
                )
            if result.get("error"):
                self.display_warning(f"Walk stopped early: {result['error'].get('message')}")

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        self._message(error_message, "Error", "red", HEAVY)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        self._message(info_message, "Info", "blue", SIMPLE)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        self._message(warning_message, "Warning", "yellow", HEAVY)

    def display_tools(self, tools: List[Dict[str, Any]]) -> None:
        """Renders one table row per tool with its required arguments."""
        table = Table(show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("Tool", style="bold cyan", no_wrap=True)
        table.add_column("Required", style="green")
        table.add_column("Description", style="white")
        for tool in tools:
            table.add_row(
                tool["name"],
                ", ".join(tool.get("required", [])) or "-",
                tool.get("description", ""),
            )
        self.console.print(table)
