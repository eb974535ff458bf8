"""Domain client for Timesheet projects."""

from __future__ import annotations

from typing import Any

from clients._resource import ResourceClient

__all__ = ["ProjectsClient"]


class ProjectsClient(ResourceClient):
    path = "v1/projects"
    event = "project.create"

    async def list(self, token: str, page: int = 1) -> dict[str, Any]:
        return await self._list(
            token, self._list_params(page, status="all", sort=self.sort, order=self.order)
        )

    async def latest(self, token: str, page: int = 1) -> dict[str, Any]:
        return await self._list(
            token, self._list_params(page, status="all", sort="created", order="desc")
        )

    async def create(
        self,
        token: str,
        title: str,
        employer: str,
        description: str | None = None,
        office: str | None = None,
        salary: int | None = None,
        color: str | None = None,
        team_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a project.  *salary* is in cents."""
        payload: dict[str, Any] = {
            "title": title,
            "employer": employer,
            "description": description,
            "office": office,
            "salary": salary,
            "color": color,
        }
        if team_id:
            payload["teamId"] = team_id
        return await self._create(token, payload)
