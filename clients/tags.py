"""Domain client for Timesheet tags."""

from __future__ import annotations

from typing import Any

from clients._resource import ResourceClient

__all__ = ["TagsClient"]


class TagsClient(ResourceClient):
    path = "v1/tags"
    event = "tag.create"

    async def list(
        self, token: str, page: int = 1, project_id: str | None = None
    ) -> dict[str, Any]:
        return await self._list(
            token,
            self._list_params(page, sort=self.sort, order=self.order, projectId=project_id),
        )

    async def create(
        self,
        token: str,
        name: str,
        color: int | None = None,
        team_id: str | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": name, "color": color}
        if team_id:
            payload["teamId"] = team_id
        return await self._create(token, payload)
