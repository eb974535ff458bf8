"""Rates MCP tools."""

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
    """Register all rates tools on the given FastMCP instance."""
    register_resource_tools(mcp, "rates", "Rate", with_list=False)

    @mcp.tool
    @tool_error_handler("Failed to list rates. Please try again.")
    async def rates_list(page: int = 1, project_id: str | None = None) -> dict[str, Any]:
        """List Rates alphabetically, 20 per page.

        Args:
            page: Page number, starting at 1.
            project_id: Only rates usable in this project.
        """
        token, _email = await get_api_token()
        return check_api_result(await get_registry().rates.list(token, page, project_id))

    @mcp.tool
    @tool_error_handler("Failed to describe rate fields. Please try again.")
    async def rates_input_fields() -> dict[str, Any]:
        """Describe the input fields of rates_create."""
        token, _email = await get_api_token()
        fields = compute_visible_fields("rate", teams_enabled=await teams_enabled(token))
        return {"status": "success", "data": [f.as_dict() for f in fields]}

    @mcp.tool
    @tool_error_handler("Failed to create rate. Please try again.")
    async def rates_create(
        title: str,
        factor: float | None = None,
        extra: float | None = None,
        team_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a new Rate.

        Args:
            title: Title of this Rate.
            factor: Factor multiplying the project's default rate.
            extra: Extra per hour added to the project's default rate.
            team_id: Team of this Rate; only for accounts with teams.
        """
        if not title.strip():
            raise ToolError("title must not be empty.")
        token, email = await get_api_token()
        result = check_api_result(
            await get_registry().rates.create(
                token, title=title, factor=factor, extra=extra, team_id=team_id
            )
        )
        logger.info("WRITE_OP tool=rates_create user=%s title=%s", email, title)
        return result
