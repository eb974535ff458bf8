"""Operations shared by every Timesheet collection (teams, projects, ...).

Uses composition: holds a reference to :class:`BaseTimesheetClient` and
delegates all network I/O through ``self._base._request()``.  Subclasses set
the collection path, the webhook event and the default list ordering, and
add their own ``create``.
"""

from __future__ import annotations

from typing import Any, ClassVar

from _constants import PAGE_SIZE
from clients._base import BaseTimesheetClient, validate_id

__all__ = ["ResourceClient", "unwrap_hook_item"]


def unwrap_hook_item(body: Any) -> list[dict[str, Any]]:
    """Return the delivered object of a webhook body as a one-element list.

    The API posts the object under ``item``; older deliveries use ``payload``.
    """
    if isinstance(body, dict):
        for key in ("item", "payload"):
            item = body.get(key)
            if isinstance(item, dict):
                return [item]
    raise ValueError("Webhook data is invalid or missing")


class ResourceClient:
    """get / list / search / create / webhook calls for one collection.

    All public methods take ``token: str`` as the first argument.
    """

    path: ClassVar[str]
    event: ClassVar[str]
    sort: ClassVar[str] = "alpha"
    order: ClassVar[str] = "asc"

    def __init__(self, base: BaseTimesheetClient) -> None:
        self._base = base

    # -- read methods -------------------------------------------------------

    async def get(self, token: str, item_id: str) -> dict[str, Any]:
        return await self._base._request("GET", f"{self.path}/{validate_id(item_id)}", token)

    def _list_params(self, page: int, **filters: Any) -> dict[str, Any]:
        if page < 1:
            raise ValueError("page must be >= 1")
        params: dict[str, Any] = {"limit": PAGE_SIZE, "page": page}
        params.update({k: v for k, v in filters.items() if v is not None})
        return params

    async def _list(self, token: str, params: dict[str, Any]) -> dict[str, Any]:
        result = await self._base._request("GET", self.path, token, params=params)
        return BaseTimesheetClient._extract_items(result)

    async def list(self, token: str, page: int = 1) -> dict[str, Any]:
        """List one page in form/dropdown order."""
        return await self._list(
            token, self._list_params(page, sort=self.sort, order=self.order)
        )

    async def latest(self, token: str, page: int = 1) -> dict[str, Any]:
        """List one page, newest first."""
        return await self._list(token, self._list_params(page, sort="created", order="desc"))

    async def search(self, token: str, text: str, page: int = 1) -> dict[str, Any]:
        if page < 1:
            raise ValueError("page must be >= 1")
        result = await self._base._request(
            "POST",
            f"{self.path}/search",
            token,
            data={"search": text, "limit": PAGE_SIZE, "page": page},
        )
        return BaseTimesheetClient._extract_items(result)

    # -- write methods ------------------------------------------------------

    async def _create(self, token: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a new item.  Unset (None) fields are left out of the body."""
        body = {key: value for key, value in payload.items() if value is not None}
        return await self._base._request("POST", self.path, token, data=body)

    async def subscribe(self, token: str, target_url: str) -> dict[str, Any]:
        """Register a webhook firing on ``<noun>.create``."""
        result = await self._base._request(
            "POST",
            "v1/webhooks",
            token,
            data={"target": target_url, "event": self.event},
        )
        if result.get("status") == "error":
            result["message"] = f"Webhook registration failed: {result.get('content', '')}"
        return result

    async def unsubscribe(self, token: str, webhook_id: str | None) -> dict[str, Any]:
        """Delete a webhook.  A missing id is reported as ``skipped``."""
        if not webhook_id:
            return {
                "status": "skipped",
                "message": "No webhook ID found, skipping webhook deletion",
            }
        return await self._base._request(
            "DELETE", f"v1/webhooks/{validate_id(webhook_id, 'webhook_id')}", token
        )
