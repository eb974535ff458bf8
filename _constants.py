"""Shared constants for the Timesheet MCP server."""

from __future__ import annotations

PAGE_SIZE: int = 20
MAX_TOKEN_LENGTH: int = 4096
MAX_SEARCH_LEN: int = 200
MAX_DESCRIPTION_LEN: int = 5000
PROFILE_CACHE_TTL: float = 300.0
TOKEN_REFRESH_LEEWAY: float = 60.0
