"""Read and webhook tools shared by every resource domain.

``register_resource_tools(mcp, "teams", "Team")`` registers ``teams_get``,
``teams_list``, ``teams_latest``, ``teams_search``, ``teams_subscribe`` and
``teams_unsubscribe``; the domain module adds its own create and
input-field tools.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from _auth import check_api_result, get_api_token, tool_error_handler
from _constants import MAX_SEARCH_LEN
from clients import get_registry
from clients._resource import ResourceClient

logger = logging.getLogger("timesheet_mcp.server")

__all__ = ["register_resource_tools"]


def _client(domain: str) -> ResourceClient:
    return getattr(get_registry(), domain)


def _validate_target_url(url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ToolError(f"target_url must be an absolute http(s) URL, got: {url!r}")


def register_resource_tools(
    mcp: FastMCP,
    domain: str,
    noun: str,
    *,
    with_list: bool = True,
) -> None:
    """Register the common tools for *domain* (e.g. ``"teams"``, ``"Team"``)."""

    @mcp.tool(name=f"{domain}_get", description=f"Get a {noun} by id.")
    @tool_error_handler(f"Failed to fetch {noun.lower()}. Please try again.")
    async def get_item(item_id: str) -> dict[str, Any]:
        token, _email = await get_api_token()
        return check_api_result(await _client(domain).get(token, item_id))

    if with_list:

        @mcp.tool(
            name=f"{domain}_list",
            description=f"List {noun}s in display order, 20 per page (page starts at 1).",
        )
        @tool_error_handler(f"Failed to list {noun.lower()}s. Please try again.")
        async def list_items(page: int = 1) -> dict[str, Any]:
            token, _email = await get_api_token()
            return check_api_result(await _client(domain).list(token, page))

    @mcp.tool(
        name=f"{domain}_latest",
        description=f"List the most recently created {noun}s, newest first.",
    )
    @tool_error_handler(f"Failed to list {noun.lower()}s. Please try again.")
    async def latest_items(page: int = 1) -> dict[str, Any]:
        token, _email = await get_api_token()
        return check_api_result(await _client(domain).latest(token, page))

    @mcp.tool(name=f"{domain}_search", description=f"Find {noun}s matching a search text.")
    @tool_error_handler(f"Failed to search {noun.lower()}s. Please try again.")
    async def search_items(text: str, page: int = 1) -> dict[str, Any]:
        if not text.strip():
            raise ToolError("text must not be empty.")
        if len(text) > MAX_SEARCH_LEN:
            raise ToolError(f"Search text too long (max {MAX_SEARCH_LEN} characters)")
        token, _email = await get_api_token()
        return check_api_result(await _client(domain).search(token, text, page))

    @mcp.tool(
        name=f"{domain}_subscribe",
        description=f"Subscribe a webhook URL to new {noun}s. Returns the webhook (keep its id).",
    )
    @tool_error_handler(f"Failed to subscribe to new {noun.lower()}s. Please try again.")
    async def subscribe(target_url: str) -> dict[str, Any]:
        _validate_target_url(target_url)
        token, email = await get_api_token()
        result = check_api_result(await _client(domain).subscribe(token, target_url))
        logger.info("WRITE_OP tool=%s_subscribe user=%s", domain, email)
        return result

    @mcp.tool(
        name=f"{domain}_unsubscribe",
        description=(
            f"Delete a {noun} webhook by id. Without an id nothing is deleted "
            "and the result status is 'skipped'."
        ),
    )
    @tool_error_handler(f"Failed to unsubscribe {noun.lower()} webhook. Please try again.")
    async def unsubscribe(webhook_id: str | None = None) -> dict[str, Any]:
        token, email = await get_api_token()
        result = check_api_result(await _client(domain).unsubscribe(token, webhook_id))
        if result.get("status") == "skipped":
            logger.info("%s_unsubscribe skipped: no webhook id", domain)
        else:
            logger.info(
                "WRITE_OP tool=%s_unsubscribe user=%s webhook_id=%s", domain, email, webhook_id
            )
        return result
