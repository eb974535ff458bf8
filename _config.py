"""Runtime configuration for the Timesheet MCP server.

Built once from the environment by :meth:`Settings.from_env` and handed to
the clients, the auth provider and the report builder.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

__all__ = ["ALL_DOMAINS", "Settings"]

ALL_DOMAINS: str = "account,teams,projects,tasks,tags,rates,reports"


@dataclass(frozen=True)
class Settings:
    api_base_url: str = "https://api.timesheet.io"
    client_id: str = ""
    client_secret: str = ""
    mcp_base_url: str = "http://localhost:8100"
    oauth_port: int = 8765
    timezone: str = "UTC"
    week_start: int = 0
    enabled_domains: str = ALL_DOMAINS

    def __post_init__(self) -> None:
        if not 0 <= self.week_start <= 6:
            raise ValueError(f"week_start must be 0 (Monday) to 6 (Sunday), got {self.week_start}")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {self.timezone!r}") from exc

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        return cls(
            api_base_url=env.get("TIMESHEET_API_BASE_URL", cls.api_base_url),
            client_id=env.get("TIMESHEET_CLIENT_ID", "").strip(),
            client_secret=env.get("TIMESHEET_CLIENT_SECRET", "").strip(),
            mcp_base_url=env.get("MCP_BASE_URL", cls.mcp_base_url),
            oauth_port=int(env.get("MCP_OAUTH_PORT", str(cls.oauth_port))),
            timezone=env.get("TIMESHEET_TIMEZONE", cls.timezone).strip() or cls.timezone,
            week_start=int(env.get("TIMESHEET_WEEK_START", str(cls.week_start))),
            enabled_domains=env.get("ENABLED_DOMAINS", ALL_DOMAINS),
        )

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def authorize_url(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/oauth2/auth"

    @property
    def token_url(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/oauth2/token"

    @property
    def oauth_redirect_uri(self) -> str:
        """Redirect URI of the local sign-in server used in stdio mode."""
        return f"http://127.0.0.1:{self.oauth_port}/callback"
