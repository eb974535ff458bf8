"""Teams MCP tools."""

from __future__ import annotations

import logging
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from _auth import check_api_result, get_api_token, tool_error_handler
from _constants import MAX_DESCRIPTION_LEN
from clients import get_registry
from fields import compute_visible_fields
from tools._resource import register_resource_tools

logger = logging.getLogger("timesheet_mcp.server")

__all__ = ["register"]


def register(mcp: FastMCP) -> None:
    """Register all teams tools on the given FastMCP instance."""
    register_resource_tools(mcp, "teams", "Team")

    @mcp.tool
    @tool_error_handler("Failed to describe team fields. Please try again.")
    async def teams_input_fields() -> dict[str, Any]:
        """Describe the input fields of teams_create."""
        return {
            "status": "success",
            "data": [f.as_dict() for f in compute_visible_fields("team")],
        }

    @mcp.tool
    @tool_error_handler("Failed to create team. Please try again.")
    async def teams_create(name: str, description: str | None = None) -> dict[str, Any]:
        """Create a new Team.

        Args:
            name: Name of this Team.
            description: Description of this Team.
        """
        if not name.strip():
            raise ToolError("name must not be empty.")
        if description and len(description) > MAX_DESCRIPTION_LEN:
            raise ToolError(f"Description too long (max {MAX_DESCRIPTION_LEN} characters)")
        token, email = await get_api_token()
        result = check_api_result(
            await get_registry().teams.create(token, name=name, description=description)
        )
        logger.info("WRITE_OP tool=teams_create user=%s name=%s", email, name)
        return result
