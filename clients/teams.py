"""Domain client for Timesheet teams."""

from __future__ import annotations

from typing import Any

from clients._resource import ResourceClient

__all__ = ["TeamsClient"]


class TeamsClient(ResourceClient):
    path = "v1/teams"
    event = "team.create"

    async def create(
        self,
        token: str,
        name: str,
        description: str | None = None,
    ) -> dict[str, Any]:
        return await self._create(token, {"name": name, "description": description})
