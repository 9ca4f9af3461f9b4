"""Terminal output for the CLI commands."""
