"""Core Application Layer: the tool catalogue and the command handler.

Routes tool invocations from the MCP server or the CLI to NotionClient
operations and shapes their results.
"""
