"""Main entry point for the Notion MCP gateway.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import json
import logging
from typing import Any, Dict

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from notion_gateway.core.command_handler import CommandHandler
from notion_gateway.core.tools import filter_tools

# --- Infrastructure Layer ---
from notion_gateway.infrastructure.cli.display import ConsoleDisplay
from notion_gateway.infrastructure.config.settings import GatewaySettings, get_config, load_settings
from notion_gateway.infrastructure.http.executor import HttpRequestExecutor, build_async_client
from notion_gateway.infrastructure.mcp.server import run_stdio_server
from notion_gateway.infrastructure.monitoring.logger_setup import setup_logging
from notion_gateway.infrastructure.notion.client import NotionClient
from notion_gateway.infrastructure.pagination.walker import PaginationWalker
from notion_gateway.infrastructure.resilience.api_retry import RetryingExecutor
from notion_gateway.infrastructure.resilience.backoff import BackoffPolicy
from notion_gateway.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# --- Dependency Injection (Manual) ---

def configure_logging() -> None:
    log_level_name = str(get_config('logging.level', 'INFO')).upper()
    log_level = getattr(logging, log_level_name, logging.INFO)
    setup_logging(
        log_level=log_level,
        log_file=get_config('logging.file'),
        log_format=get_config('logging.format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
    )


def create_command_handler(settings: GatewaySettings) -> CommandHandler:
    """Wires the request pipeline for one process.

    This acts as the Composition Root.
    """
    if not settings.api_token:
        raise ValueError("NOTION_API_TOKEN is not set (environment, .env, or config.yaml).")

    executor = HttpRequestExecutor(
        client=build_async_client(settings.request_timeout_s),
        base_url=settings.base_url,
        notion_version=settings.notion_version,
    )
    rate_limiter = None
    if settings.rate_limit_per_second:
        rate_limiter = RateLimiter(max_requests=settings.rate_limit_per_second, time_window=1.0)

    retrying_executor = RetryingExecutor(
        executor=executor,
        token=settings.api_token,
        policy=BackoffPolicy(max_attempts=settings.max_attempts, jitter_fraction=settings.jitter_fraction),
        rate_limiter=rate_limiter,
    )
    walker = PaginationWalker(retrying_executor, default_max_pages=settings.max_pages)
    notion_client = NotionClient(retrying_executor, walker=walker, page_size=settings.page_size)
    logger.info("Command handler initialized.")
    return CommandHandler(notion_client, enabled_tools=settings.enabled_tools)


# --- Typer App Definition ---
app = typer.Typer(
    name="notion-gateway",
    help="Expose the Notion REST API as MCP tools, with retry/backoff and pagination.",
    add_completion=False,
)

ui = ConsoleDisplay()


def _startup() -> GatewaySettings:
    settings = load_settings()
    configure_logging()
    return settings


def _fail(message: str) -> None:
    ui.display_error(message)
    raise typer.Exit(code=1)


@app.command()
def serve() -> None:
    """Run the MCP server on stdio."""
    settings = _startup()
    try:
        handler = create_command_handler(settings)
    except ValueError as e:
        logger.error(f"Fatal Error during initialization: {e}")  # stdout is reserved for MCP
        raise typer.Exit(code=1)

    async def _serve() -> None:
        try:
            await run_stdio_server(handler)
        finally:
            await handler.notion_client.aclose()

    asyncio.run(_serve())


@app.command(name="tools")
def list_tools_command() -> None:
    """List the enabled tools and their required arguments."""
    settings = _startup()
    tools = [tool.to_dict() for tool in filter_tools(settings.enabled_tools)]
    ui.display_tools(tools)
    ui.display_info(f"{len(tools)} tool(s) enabled. Run `notion-gateway serve` to expose them over MCP.")


@app.command()
def call(
    tool: Annotated[str, typer.Argument(help="Tool name, e.g. notion_retrieve_page.")],
    args: Annotated[str, typer.Option("--args", "-a", help="Tool arguments as a JSON object.")] = "{}",
) -> None:
    """Invoke one tool and print its JSON result."""
    settings = _startup()
    try:
        arguments: Dict[str, Any] = json.loads(args)
    except json.JSONDecodeError as e:
        _fail(f"--args is not valid JSON: {e}")
    if not isinstance(arguments, dict):
        _fail("--args must be a JSON object")

    try:
        handler = create_command_handler(settings)
    except ValueError as e:
        _fail(str(e))

    async def _call() -> Any:
        try:
            return await handler.handle_tool_call(tool, arguments)
        finally:
            await handler.notion_client.aclose()

    result = asyncio.run(_call())
    if isinstance(result, dict) and set(result) == {"error"}:
        error: Dict[str, Any] = result["error"]
        _fail(f"{error['kind']}: {error['message']} (retryable={error['retryable']})")
    ui.display_result(result, title=tool)


def cli_entry_point() -> None:
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
