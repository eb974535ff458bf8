"""Account MCP tools -- sign-in (stdio transport) and profile."""

from __future__ import annotations

import logging
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from _auth import check_api_result, get_api_token, tool_error_handler
from clients import get_registry
from oauth_server import start_oauth_server

logger = logging.getLogger("timesheet_mcp.server")

__all__ = ["register"]


def register(mcp: FastMCP) -> None:
    """Register all account tools on the given FastMCP instance."""

    @mcp.tool
    @tool_error_handler("Failed to start sign-in. Please try again.")
    async def account_login() -> dict[str, Any]:
        """Start browser sign-in to Timesheet (local/stdio use).

        Returns a URL to open in the browser; after signing in, the other
        tools use that account.
        """
        registry = get_registry()
        if not registry.settings.client_id:
            raise ToolError("TIMESHEET_CLIENT_ID is not configured.")
        try:
            url = await start_oauth_server(registry.settings, registry.base, registry.tokens)
        except OSError as exc:
            raise ToolError(
                f"Could not start the local sign-in server on port "
                f"{registry.settings.oauth_port}: {exc}"
            ) from exc
        return {
            "status": "success",
            "data": {
                "login_url": url,
                "redirect_uri": registry.settings.oauth_redirect_uri,
            },
            "message": "Open login_url in a browser and sign in to Timesheet.",
        }

    @mcp.tool
    @tool_error_handler("Failed to fetch profile. Please try again.")
    async def account_profile() -> dict[str, Any]:
        """Get the signed-in Timesheet profile (checks the connection)."""
        token, _email = await get_api_token()
        return check_api_result(await get_registry().base.get_profile(token))
