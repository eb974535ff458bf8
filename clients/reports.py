"""Domain client for report exports."""

from __future__ import annotations

from typing import Any

from clients._base import BaseTimesheetClient

__all__ = ["ReportsClient"]


class ReportsClient:
    def __init__(self, base: BaseTimesheetClient) -> None:
        self._base = base

    async def send(self, token: str, body: dict[str, Any]) -> dict[str, Any]:
        """Queue an export; the backend mails the file to ``body["email"]``."""
        return await self._base._request("POST", "v1/export/send", token, data=body)
