"""Error types shared by the clients, the report builder and the tools."""

from __future__ import annotations

from fastmcp.exceptions import ToolError

__all__ = ["AuthError", "InvalidRangeError", "UpstreamError"]


class InvalidRangeError(ValueError):
    """Date-range selector outside the supported set."""


class UpstreamError(ToolError):
    """The Timesheet API answered with a non-2xx status (or not at all).

    ``content`` holds the raw response body, unmodified.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        content: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.content = content


class AuthError(UpstreamError):
    """Access token rejected or refresh failed; the caller must sign in again."""
