"""Shared authentication and error-handling helpers for MCP tools."""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

from fastmcp.exceptions import ToolError
from fastmcp.server.auth import AccessToken, OAuthProxy, TokenVerifier
from fastmcp.server.dependencies import get_access_token

from _config import Settings
from _errors import AuthError, UpstreamError
from clients import get_registry

logger = logging.getLogger("timesheet_mcp.server")

P = ParamSpec("P")
R = TypeVar("R")


def check_api_result(result: dict[str, Any]) -> dict[str, Any]:
    """Raise UpstreamError (AuthError on 401) if a client returned an error dict."""
    if isinstance(result, dict) and result.get("status") == "error":
        message = result.get("message", "Timesheet operation failed")
        status_code = result.get("status_code")
        if status_code == 401:
            raise AuthError(message, status_code=status_code, content=result.get("content"))
        raise UpstreamError(message, status_code=status_code, content=result.get("content"))
    return result


def tool_error_handler(
    error_message: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator that wraps MCP tool functions with standard error handling.

    Converts PermissionError and ValueError to ToolError (preserving message),
    and catches all other exceptions with a generic message.
    """

    def decorator(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await fn(*args, **kwargs)
            except ToolError:
                raise
            except PermissionError as exc:
                raise ToolError(str(exc)) from exc
            except ValueError as exc:
                raise ToolError(str(exc)) from exc
            except Exception:
                logger.exception("%s failed", fn.__name__)
                raise ToolError(error_message) from None

        return wrapper

    return decorator


async def get_api_token() -> tuple[str, str | None]:
    """Return the Timesheet bearer token for the current call.

    Over HTTP the MCP client's verified token is used; over stdio the token
    from the local sign-in (refreshed when expired).

    Returns:
        (token, email) tuple.

    Raises:
        PermissionError: If nobody is signed in.
    """
    access_token: AccessToken | None = get_access_token()
    if access_token is not None:
        email: str | None = access_token.claims.get("email")
        return access_token.token, email

    registry = get_registry()
    try:
        token = await registry.tokens.get_valid_token(registry.base)
    except ConnectionError as exc:
        logger.warning("Token refresh failed: connection error")
        raise PermissionError(
            "Timesheet service is temporarily unavailable. Please try again later."
        ) from exc
    if token is None:
        raise PermissionError(
            "Authentication required. Call account_login to sign in with Timesheet."
        )
    return token, registry.tokens.email


class TimesheetTokenVerifier(TokenVerifier):
    """Accept a bearer token if the Timesheet profile endpoint accepts it."""

    async def verify_token(self, token: str) -> AccessToken | None:
        try:
            profile = await get_registry().base.verify_token(token)
        except RuntimeError:
            logger.warning("Token verification before server start-up")
            return None
        if profile is None:
            return None
        return AccessToken(
            token=token,
            client_id=str(profile.get("id", "timesheet")),
            scopes=[],
            expires_at=None,
            claims={
                "email": profile.get("email"),
                "activatedTeams": bool(profile.get("activatedTeams")),
            },
        )


def build_auth_provider(settings: Settings) -> OAuthProxy:
    """OAuth proxy fronting the Timesheet authorize and token endpoints."""
    return OAuthProxy(
        upstream_authorization_endpoint=settings.authorize_url,
        upstream_token_endpoint=settings.token_url,
        upstream_client_id=settings.client_id,
        upstream_client_secret=settings.client_secret,
        token_verifier=TimesheetTokenVerifier(),
        base_url=settings.mcp_base_url,
        redirect_path="/callback",
    )
