"""MCP server adapter."""
