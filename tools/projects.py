"""Projects MCP tools."""

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

__all__ = ["register", "teams_enabled"]


async def teams_enabled(token: str) -> bool:
    """Whether the account has teams activated (decides the teamId field)."""
    profile = check_api_result(await get_registry().base.get_profile(token))
    data = profile.get("data")
    return isinstance(data, dict) and bool(data.get("activatedTeams"))


def register(mcp: FastMCP) -> None:
    """Register all projects tools on the given FastMCP instance."""
    register_resource_tools(mcp, "projects", "Project")

    @mcp.tool
    @tool_error_handler("Failed to describe project fields. Please try again.")
    async def projects_input_fields() -> dict[str, Any]:
        """Describe the input fields of projects_create.

        The Team field is only listed when the account has teams activated.
        """
        token, _email = await get_api_token()
        fields = compute_visible_fields("project", teams_enabled=await teams_enabled(token))
        return {"status": "success", "data": [f.as_dict() for f in fields]}

    @mcp.tool
    @tool_error_handler("Failed to create project. Please try again.")
    async def projects_create(
        title: str,
        employer: str,
        description: str | None = None,
        office: str | None = None,
        salary: int | None = None,
        color: str | None = None,
        team_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a new Project.

        Args:
            title: Title of this Project.
            employer: Employer of this Project.
            description: Description of this Project.
            office: Office of this Project.
            salary: Salary of this Project in cents.
            color: Color of this Project (e.g. #ff0000).
            team_id: Team of this Project (from teams_list); only for accounts with teams.
        """
        if not title.strip():
            raise ToolError("title must not be empty.")
        if description and len(description) > MAX_DESCRIPTION_LEN:
            raise ToolError(f"Description too long (max {MAX_DESCRIPTION_LEN} characters)")
        if salary is not None and salary < 0:
            raise ToolError("salary must not be negative.")
        token, email = await get_api_token()
        result = check_api_result(
            await get_registry().projects.create(
                token,
                title=title,
                employer=employer,
                description=description,
                office=office,
                salary=salary,
                color=color,
                team_id=team_id,
            )
        )
        logger.info("WRITE_OP tool=projects_create user=%s title=%s", email, title)
        return result
