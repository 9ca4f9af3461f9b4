"""Cursor pagination over Notion list endpoints."""
