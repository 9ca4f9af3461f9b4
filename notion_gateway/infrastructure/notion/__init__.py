"""Notion API operations."""
