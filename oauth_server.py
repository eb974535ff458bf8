"""
Local OAuth server for browser-based sign-in over the stdio transport.

Runs a small HTTP server on 127.0.0.1.  The user opens /login, signs in to
Timesheet, and is redirected back to /callback where the authorization code
is exchanged for tokens.  The redirect URI must be registered with the
Timesheet OAuth client.
"""

from __future__ import annotations

import html
import logging
import secrets
import urllib.parse
from typing import Any

from aiohttp import web

from _config import Settings
from auth import TokenSet, TokenStore
from clients._base import BaseTimesheetClient

__all__ = ["build_app", "start_oauth_server", "stop_oauth_server"]

logger = logging.getLogger("timesheet_mcp.server")

_oauth_runner: web.AppRunner | None = None

_SETTINGS_KEY = web.AppKey("settings", Settings)
_CLIENT_KEY = web.AppKey("client", BaseTimesheetClient)
_STORE_KEY = web.AppKey("store", TokenStore)
_STATE_KEY = web.AppKey("state", str)

_PAGE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <style>
    body {{ font-family: system-ui, sans-serif; max-width: 420px; margin: 60px auto; padding: 20px; text-align: center; }}
    .ok {{ color: #0d6832; font-weight: 500; }}
    .err {{ color: #c5221f; }}
  </style>
</head>
<body>
  <p class="{css}">{message}</p>
  <p>You can close this window and return to your MCP client.</p>
</body>
</html>"""


def _page(title: str, message: str, css: str) -> web.Response:
    return web.Response(
        text=_PAGE.format(title=title, message=html.escape(message), css=css),
        content_type="text/html",
    )


def authorize_url(settings: Settings, state: str) -> str:
    return f"{settings.authorize_url}?" + urllib.parse.urlencode(
        {
            "client_id": settings.client_id,
            "state": state,
            "redirect_uri": settings.oauth_redirect_uri,
            "response_type": "code",
        }
    )


async def _handle_login(request: web.Request) -> web.Response:
    app = request.app
    raise web.HTTPFound(authorize_url(app[_SETTINGS_KEY], app[_STATE_KEY]))


async def _handle_callback(request: web.Request) -> web.Response:
    app = request.app
    if "error" in request.query:
        return _page("Sign-in failed", f"Timesheet refused sign-in: {request.query['error']}", "err")
    code = request.query.get("code", "")
    if not code:
        return _page("Sign-in failed", "No authorization code received.", "err")
    if not secrets.compare_digest(request.query.get("state", ""), app[_STATE_KEY]):
        return _page("Sign-in failed", "State mismatch. Start again from /login.", "err")

    client = app[_CLIENT_KEY]
    try:
        data = await client.exchange_code(code, app[_SETTINGS_KEY].oauth_redirect_uri)
    except (ValueError, ConnectionError) as exc:
        logger.warning("Authorization code exchange failed: %s", exc)
        return _page("Sign-in failed", str(exc), "err")

    profile: dict[str, Any] = {}
    profile_result = await client.get_profile(data["access_token"])
    if profile_result.get("status") == "success" and isinstance(profile_result.get("data"), dict):
        profile = profile_result["data"]
    app[_STORE_KEY].set(TokenSet.from_response(data, email=profile.get("email")))
    return _page("Sign-in complete", "Authentication complete.", "ok")


def build_app(settings: Settings, client: BaseTimesheetClient, store: TokenStore) -> web.Application:
    app = web.Application()
    app[_SETTINGS_KEY] = settings
    app[_CLIENT_KEY] = client
    app[_STORE_KEY] = store
    app[_STATE_KEY] = secrets.token_urlsafe(24)
    app.router.add_get("/login", _handle_login)
    app.router.add_get("/callback", _handle_callback)
    return app


async def start_oauth_server(
    settings: Settings,
    client: BaseTimesheetClient,
    store: TokenStore,
) -> str:
    """Start the local sign-in server (once) and return the URL to open."""
    global _oauth_runner
    login_url = f"http://127.0.0.1:{settings.oauth_port}/login"
    if _oauth_runner is not None:
        return login_url
    app = build_app(settings, client, store)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", settings.oauth_port)
    try:
        await site.start()
    except OSError:
        await runner.cleanup()
        raise
    _oauth_runner = runner
    logger.info("Local sign-in server listening on %s", login_url)
    return login_url


async def stop_oauth_server() -> None:
    global _oauth_runner
    if _oauth_runner is not None:
        await _oauth_runner.cleanup()
    _oauth_runner = None
