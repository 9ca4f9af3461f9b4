"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the gateway to the outside world (the Notion API over httpx, the
MCP stdio transport, configuration files, the terminal) by implementing the
interfaces defined in the domain layer.
"""
