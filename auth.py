"""
Token store for the stdio transport.

Holds the tokens obtained by the local browser sign-in (see oauth_server.py)
and refreshes the access token when it has expired.  The HTTP transport
does not use it: there the MCP client presents its own bearer token.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from _constants import TOKEN_REFRESH_LEEWAY
from _errors import AuthError

if TYPE_CHECKING:
    from clients._base import BaseTimesheetClient

__all__ = ["TokenSet", "TokenStore"]

logger = logging.getLogger("timesheet_mcp.server")


@dataclass(frozen=True)
class TokenSet:
    access_token: str
    refresh_token: str | None = None
    expires_at: float | None = None
    email: str | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any], email: str | None = None) -> TokenSet:
        expires_in = data.get("expires_in")
        expires_at = time.time() + float(expires_in) if expires_in else None
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_at=expires_at,
            email=email,
        )

    def expired(self, leeway: float = TOKEN_REFRESH_LEEWAY) -> bool:
        return self.expires_at is not None and time.time() >= self.expires_at - leeway


class TokenStore:
    """In-memory holder of the signed-in user's tokens."""

    def __init__(self) -> None:
        self._tokens: TokenSet | None = None
        self._lock = asyncio.Lock()

    @property
    def tokens(self) -> TokenSet | None:
        return self._tokens

    @property
    def email(self) -> str | None:
        return self._tokens.email if self._tokens else None

    def set(self, tokens: TokenSet) -> None:
        self._tokens = tokens
        logger.info("Signed in to Timesheet as %s", tokens.email or "<unknown>")

    async def get_valid_token(self, client: BaseTimesheetClient) -> str | None:
        """Return a usable access token, refreshing it first if it expired.

        Raises:
            AuthError: If the refresh is rejected (the store is cleared).
            ConnectionError: If the token endpoint is unreachable (tokens kept).
        """
        async with self._lock:
            current = self._tokens
            if current is None:
                return None
            if not current.expired():
                return current.access_token
            logger.debug("Access token expired; refreshing")
            try:
                data = await client.refresh_access_token(current.refresh_token or "")
            except AuthError:
                self._tokens = None
                raise
            self._tokens = TokenSet.from_response(data, email=current.email)
            return self._tokens.access_token
