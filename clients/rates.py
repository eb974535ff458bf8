"""Domain client for Timesheet rates."""

from __future__ import annotations

from typing import Any

from clients._resource import ResourceClient

__all__ = ["RatesClient"]


class RatesClient(ResourceClient):
    path = "v1/rates"
    event = "rate.create"

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
        title: str,
        factor: float | None = None,
        extra: float | None = None,
        team_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a rate.  *factor* multiplies and *extra* adds to the project rate."""
        payload: dict[str, Any] = {"title": title, "factor": factor, "extra": extra}
        if team_id:
            payload["teamId"] = team_id
        return await self._create(token, payload)
