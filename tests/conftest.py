"""Pytest configuration for Timesheet MCP server tests.

Sets required environment variables before any test module imports server.py,
which builds its Settings from the environment at module level.
"""

from __future__ import annotations

import os
import time
from unittest.mock import AsyncMock, patch

os.environ.setdefault("TIMESHEET_CLIENT_ID", "test-client-id")
os.environ.setdefault("TIMESHEET_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("MCP_BASE_URL", "http://localhost:8100")
os.environ.setdefault("TIMESHEET_API_BASE_URL", "http://127.0.0.1:8000")
os.environ.setdefault("TIMESHEET_TIMEZONE", "UTC")
os.environ.setdefault("ENABLED_DOMAINS", "account,teams,projects,tasks,tags,rates,reports")

# ---------------------------------------------------------------------------
# Shared test helpers -- used by the test_tools_*.py modules
# ---------------------------------------------------------------------------

import pytest
from fastmcp.server.auth import AccessToken
from fastmcp.tools.function_tool import FunctionTool

import server as server_module
from _config import Settings
from clients import set_registry

OK: dict = {"status": "success", "data": {}}


def get_tool_fn(name: str):
    """Get a registered tool's underlying async function by name.

    Looks up the tool in ``mcp.local_provider._components``.
    Raises ``KeyError`` with available tool names if not found.
    """
    lp = server_module.mcp.local_provider
    for comp in lp._components.values():
        if isinstance(comp, FunctionTool) and comp.name == name:
            return comp.fn
    available = sorted(
        comp.name for comp in lp._components.values() if isinstance(comp, FunctionTool)
    )
    raise KeyError(f"Tool {name!r} not found. Available: {available}")


def make_access_token(
    *,
    email: str = "user@example.com",
    token: str = "timesheet-access-token-xyz",
    teams: bool = False,
) -> AccessToken:
    """Build a fake ``AccessToken`` with the claims TimesheetTokenVerifier produces."""
    return AccessToken(
        token=token,
        client_id="profile-42",
        scopes=[],
        expires_at=int(time.time()) + 3600,
        claims={"email": email, "activatedTeams": teams},
    )


def patch_token(token: AccessToken | None):
    """Shorthand for patching ``get_access_token`` in the _auth module."""
    return patch("_auth.get_access_token", return_value=token)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_base_url="http://127.0.0.1:8000",
        client_id="test-client-id",
        client_secret="test-client-secret",
        timezone="Europe/Berlin",
    )


@pytest.fixture
def mock_registry(settings: Settings) -> AsyncMock:
    """Return a fully mocked ``ClientRegistry`` instance."""
    registry = AsyncMock()
    registry.settings = settings
    registry.base = AsyncMock()
    registry.base.get_profile.return_value = {
        "status": "success",
        "data": {"id": "profile-42", "email": "user@example.com", "activatedTeams": False},
    }
    registry.tokens = AsyncMock()
    registry.tokens.get_valid_token.return_value = None
    for domain in ("teams", "projects", "tasks", "tags", "rates", "reports"):
        client = AsyncMock()
        for method in ("get", "list", "latest", "search", "create", "send"):
            getattr(client, method).return_value = {"status": "success", "data": []}
        client.subscribe.return_value = {"status": "success", "data": {"id": "wh-1"}}
        client.unsubscribe.return_value = {"status": "success", "data": {}}
        setattr(registry, domain, client)
    return registry


@pytest.fixture
def valid_token() -> AccessToken:
    return make_access_token()


@pytest.fixture(autouse=True)
def _cleanup_registry():
    """Ensure registry is cleaned up after each test."""
    yield
    set_registry(None)
