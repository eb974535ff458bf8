"""Domain client for Timesheet tasks (time entries)."""

from __future__ import annotations

from datetime import tzinfo
from typing import Any

from clients._resource import ResourceClient
from report_builder import parse_instant

__all__ = ["TasksClient"]


class TasksClient(ResourceClient):
    path = "v1/tasks"
    event = "task.create"
    sort = "dateTime"
    order = ""

    async def create(
        self,
        token: str,
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
        zone: tzinfo | None = None,
    ) -> dict[str, Any]:
        """Create a task.

        Start/end keep their UTC offset (naive values are placed in *zone*)
        with seconds zeroed.  ``billed``/``paid`` only apply to billable tasks.
        """
        start = parse_instant(start_date_time, zone)
        end = parse_instant(end_date_time, zone)
        if end < start:
            raise ValueError("end_date_time must be on or after start_date_time.")
        payload: dict[str, Any] = {
            "projectId": project_id,
            "startDateTime": start.isoformat(),
            "endDateTime": end.isoformat(),
            "description": description,
            "billable": billable,
            "billed": billable and billed,
            "paid": billable and paid,
            "tags": tags,
            "location": location,
            "rateId": rate_id,
        }
        return await self._create(token, payload)
