"""Reports MCP tools -- bulk export by e-mail."""

from __future__ import annotations

import logging
from typing import Any

from fastmcp import FastMCP

from _auth import check_api_result, get_api_token, tool_error_handler
from clients import get_registry
from fields import compute_visible_fields
from report_builder import ReportParameters, build_report_request

logger = logging.getLogger("timesheet_mcp.server")

__all__ = ["register"]


def register(mcp: FastMCP) -> None:
    """Register all reports tools on the given FastMCP instance."""

    @mcp.tool
    @tool_error_handler("Failed to describe report fields. Please try again.")
    async def reports_input_fields(date_range: str | None = None) -> dict[str, Any]:
        """Describe the input fields of reports_send, including the choice lists.

        Start/End appear only for the Custom date range.

        Args:
            date_range: Date range chosen so far, if any.
        """
        fields = compute_visible_fields("report", {"dateRange": date_range})
        return {"status": "success", "data": [f.as_dict() for f in fields]}

    @mcp.tool
    @tool_error_handler("Failed to send report. Please try again.")
    async def reports_send(
        email: str,
        report: int,
        date_range: str,
        exported_fields: list[str],
        project_ids: list[str] | None = None,
        start: str | None = None,
        end: str | None = None,
        type: str = "all",
        filter: str = "all",
        summarize: bool | None = None,
        format: str | None = None,
        filename: str | None = None,
    ) -> dict[str, Any]:
        """Send a report export to an e-mail address.

        Args:
            email: Recipient of the export.
            report: 0 = Data Report, 1 = Team Summary.
            date_range: Today, ThisWeek, ThisAndLastWeek, ThisMonth, ThisYear,
                Yesterday, LastWeek, Last2Weeks, Last4Weeks, LastMonth, LastYear
                or Custom.
            exported_fields: Column ids in output order (see reports_input_fields).
            project_ids: Only include tasks of these projects.
            start: Custom range start (ISO-8601); used with date_range=Custom.
            end: Custom range end (ISO-8601); used with date_range=Custom.
            type: all, task, mileage or call.
            filter: all, billable, notBillable, paid, unpaid, billed or outstanding.
            summarize: Add a summary row.
            format: xlsx or csv.
            filename: Name of the file.
        """
        registry = get_registry()
        settings = registry.settings
        body = build_report_request(
            ReportParameters(
                email=email,
                report=report,
                date_range=date_range,
                exported_fields=exported_fields,
                start=start,
                end=end,
                project_ids=project_ids,
                type=type,
                filter=filter,
                summarize=summarize,
                format=format,
                filename=filename,
            ),
            zone=settings.zone,
            week_start=settings.week_start,
        )
        token, user = await get_api_token()
        result = check_api_result(await registry.reports.send(token, body))
        logger.info(
            "WRITE_OP tool=reports_send user=%s report=%s start=%s end=%s fields=%d",
            user,
            report,
            body["start"],
            body["end"],
            len(body["exportedFields"]),
        )
        return result
