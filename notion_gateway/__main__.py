"""Main entry point when executing notion_gateway as a package.

This allows running the package using python -m notion_gateway.
"""

from notion_gateway.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
