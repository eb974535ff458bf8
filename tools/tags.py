"""Tags MCP tools."""

from __future__ import annotations

import logging
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from _auth import check_api_result, get_api_token, tool_error_handler
from clients import get_registry
from fields import compute_visible_fields
from tools._resource import register_resource_tools
from tools.projects import teams_enabled

logger = logging.getLogger("timesheet_mcp.server")

__all__ = ["register"]


def register(mcp: FastMCP) -> None:
    """Register all tags tools on the given FastMCP instance."""
    register_resource_tools(mcp, "tags", "Tag", with_list=False)

    @mcp.tool
    @tool_error_handler("Failed to list tags. Please try again.")
    async def tags_list(page: int = 1, project_id: str | None = None) -> dict[str, Any]:
        """List Tags alphabetically, 20 per page.

        Args:
            page: Page number, starting at 1.
            project_id: Only tags usable in this project.
        """
        token, _email = await get_api_token()
        return check_api_result(await get_registry().tags.list(token, page, project_id))

    @mcp.tool
    @tool_error_handler("Failed to describe tag fields. Please try again.")
    async def tags_input_fields() -> dict[str, Any]:
        """Describe the input fields of tags_create."""
        token, _email = await get_api_token()
        fields = compute_visible_fields("tag", teams_enabled=await teams_enabled(token))
        return {"status": "success", "data": [f.as_dict() for f in fields]}

    @mcp.tool
    @tool_error_handler("Failed to create tag. Please try again.")
    async def tags_create(
        name: str,
        color: int | None = None,
        team_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a new Tag.

        Args:
            name: Name of this Tag.
            color: Color of this Tag as an integer.
            team_id: Team of this Tag; only for accounts with teams.
        """
        if not name.strip():
            raise ToolError("name must not be empty.")
        token, email = await get_api_token()
        result = check_api_result(
            await get_registry().tags.create(token, name=name, color=color, team_id=team_id)
        )
        logger.info("WRITE_OP tool=tags_create user=%s name=%s", email, name)
        return result
