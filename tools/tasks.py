"""Tasks MCP tools -- time entries."""

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
    """Register all tasks tools on the given FastMCP instance."""
    register_resource_tools(mcp, "tasks", "Task")

    @mcp.tool
    @tool_error_handler("Failed to describe task fields. Please try again.")
    async def tasks_input_fields(
        project_id: str | None = None,
        billable: bool = True,
    ) -> dict[str, Any]:
        """Describe the input fields of tasks_create for the values chosen so far.

        Billed/Paid appear only for billable tasks; Rate/Tags only once a
        project is chosen.

        Args:
            project_id: Project chosen so far, if any.
            billable: Billable flag chosen so far (default true).
        """
        fields = compute_visible_fields(
            "task", {"projectId": project_id, "billable": billable}
        )
        return {"status": "success", "data": [f.as_dict() for f in fields]}

    @mcp.tool
    @tool_error_handler("Failed to create task. Please try again.")
    async def tasks_create(
        project_id: str,
        start_date_time: str,
        end_date_time: str,
        description: str | None = None,
        location: str | None = None,
        billable: bool = True,
        billed: bool = False,
        paid: bool = False,
        tags: list[str] | None = None,
        rate_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a new Task (time entry).

        Args:
            project_id: Project of this Task (from projects_list).
            start_date_time: Start as ISO-8601, e.g. 2025-01-15T09:00:00+01:00.
            end_date_time: End as ISO-8601.
            description: Description of this Task.
            location: Location of work.
            billable: Is the Task billable? Default is true.
            billed: Was the Task billed? Ignored unless billable.
            paid: Was the Task paid? Ignored unless billable.
            tags: Tag ids (from tags_list).
            rate_id: Rate id (from rates_list).
        """
        if description and len(description) > MAX_DESCRIPTION_LEN:
            raise ToolError(f"Description too long (max {MAX_DESCRIPTION_LEN} characters)")
        token, email = await get_api_token()
        registry = get_registry()
        result = check_api_result(
            await registry.tasks.create(
                token,
                project_id=project_id,
                start_date_time=start_date_time,
                end_date_time=end_date_time,
                description=description,
                location=location,
                billable=billable,
                billed=billed,
                paid=paid,
                tags=tags,
                rate_id=rate_id,
                zone=registry.settings.zone,
            )
        )
        logger.info(
            "WRITE_OP tool=tasks_create user=%s project_id=%s start=%s end=%s",
            email,
            project_id,
            start_date_time,
            end_date_time,
        )
        return result
