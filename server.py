"""Timesheet MCP Server: FastMCP v3 with Timesheet OAuth.

Exposes Timesheet teams, projects, tasks, tags, rates and report exports
via the Model Context Protocol.  Over HTTP the MCP client signs in through
an OAuth proxy in front of the Timesheet authorization server; over stdio
the ``account_login`` tool runs a local browser sign-in instead.
"""

from __future__ import annotations

import importlib.metadata
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from _auth import build_auth_provider
from _config import Settings
from clients import ClientRegistry, set_registry
from clients._resource import unwrap_hook_item
from oauth_server import stop_oauth_server
from tools import load_domains

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logger = logging.getLogger("timesheet_mcp.server")

# LOG_LEVEL env var overrides the default INFO level.
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

settings = Settings.from_env()

try:
    _APP_VERSION: str = importlib.metadata.version("timesheet-mcp")
except importlib.metadata.PackageNotFoundError:
    _APP_VERSION = os.environ.get("APP_VERSION", "dev")

# Resources whose "new item" webhooks can be delivered to /hooks/{resource}.
HOOK_RESOURCES: frozenset[str] = frozenset({"teams", "projects", "tasks", "tags", "rates"})

# ---------------------------------------------------------------------------
# Auth provider + FastMCP instance
# ---------------------------------------------------------------------------

auth = build_auth_provider(settings)


@asynccontextmanager
async def _lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Create the client registry for the lifetime of the server."""
    if not settings.client_id or not settings.client_secret:
        logger.critical(
            "TIMESHEET_CLIENT_ID / TIMESHEET_CLIENT_SECRET are not set; refusing to start"
        )
        raise SystemExit(1)
    registry = ClientRegistry.from_settings(settings)
    set_registry(registry)
    logger.info("Timesheet MCP server %s starting up (api=%s)", _APP_VERSION, settings.api_base_url)
    try:
        yield
    finally:
        logger.info("Timesheet MCP server shutting down")
        await stop_oauth_server()
        await registry.close()
        set_registry(None)


mcp = FastMCP(name="timesheet-mcp", auth=auth, lifespan=_lifespan)

loaded_domains = load_domains(mcp, settings.enabled_domains)


# ---------------------------------------------------------------------------
# Security headers middleware
# ---------------------------------------------------------------------------


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject hardening headers into every HTTP response."""

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Cache-Control"] = "no-store"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# Starlette Middleware descriptor passed to mcp.run() at startup.
_security_middleware = Middleware(SecurityHeadersMiddleware)


# ---------------------------------------------------------------------------
# Custom routes
# ---------------------------------------------------------------------------


@mcp.custom_route("/health", methods=["GET"])
async def health_check(request: Request) -> JSONResponse:
    """Return 200 OK for container health checks and load balancers."""
    return JSONResponse({"status": "ok", "version": _APP_VERSION, "domains": loaded_domains})


@mcp.custom_route("/hooks/{resource}", methods=["POST"])
async def receive_hook(request: Request) -> JSONResponse:
    """Receive a "new item" webhook delivery and return the unwrapped item."""
    resource = request.path_params["resource"]
    if resource not in HOOK_RESOURCES:
        return JSONResponse({"status": "error", "message": "Unknown resource"}, status_code=404)
    try:
        body = await request.json()
    except ValueError:
        body = None
    try:
        items = unwrap_hook_item(body)
    except ValueError as exc:
        logger.warning("HOOK_IN resource=%s rejected: %s", resource, exc)
        return JSONResponse({"status": "error", "message": str(exc)}, status_code=400)
    logger.info("HOOK_IN resource=%s id=%s", resource, items[0].get("id"))
    return JSONResponse({"status": "success", "data": items})


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    if not settings.client_id or not settings.client_secret:
        raise SystemExit(
            "TIMESHEET_CLIENT_ID and TIMESHEET_CLIENT_SECRET environment variables are required."
        )
    transport = os.environ.get("MCP_TRANSPORT", "http").lower()
    if transport == "stdio":
        mcp.run(transport="stdio")
    else:
        mcp.run(
            transport="http",
            host=os.environ.get("MCP_HOST", "127.0.0.1"),
            port=int(os.environ.get("MCP_PORT", "8100")),
            stateless_http=True,
            middleware=[_security_middleware],
        )
