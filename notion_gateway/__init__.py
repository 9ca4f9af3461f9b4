"""Notion MCP gateway: the Notion REST API as MCP tools."""
