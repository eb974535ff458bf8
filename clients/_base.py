"""Base Timesheet client with TTL cache and HTTP transport.

Provides ``BaseTimesheetClient`` -- the stateless async HTTP client for the
Timesheet REST API.  Every data-query method takes ``token: str`` as the
first positional argument; it is forwarded as ``Authorization: Bearer <value>``.

Security controls implemented:
    SEC-01  Verified profiles cached under SHA-256 token hashes (bounded LRU).
    SEC-02  ``_request`` returns error dicts for non-2xx -- never raises.
    SEC-03  ``httpx.AsyncClient(follow_redirects=False)``.
    SEC-04  Constructor rejects non-HTTPS base_url for non-localhost targets.
    SEC-05  Path ids restricted to ``[A-Za-z0-9_-]``.
"""

from __future__ import annotations

import asyncio
import hashlib
import ipaddress
import json
import logging
import re
import time
from collections import OrderedDict
from typing import Any, Generic, TypeVar
from urllib.parse import urlparse

import httpx

from _constants import MAX_TOKEN_LENGTH, PROFILE_CACHE_TTL
from _errors import AuthError

__all__ = ["BaseTimesheetClient", "TTLCache", "validate_id"]

logger = logging.getLogger("timesheet_mcp.client")

_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def validate_id(value: str, name: str = "id") -> str:
    """Return *value* stripped, or raise if it is not safe as a path segment."""
    value = str(value).strip()
    if not _ID_RE.match(value):
        raise ValueError(f"{name} must be 1-64 letters, digits, '-' or '_', got: {value!r}")
    return value


# ---------------------------------------------------------------------------
# TTLCache
# ---------------------------------------------------------------------------


T = TypeVar("T")


class TTLCache(Generic[T]):
    """Bounded LRU cache with per-entry TTL expiry.

    Clock source: :func:`time.monotonic`.  Sync ``_get``/``_put`` are not
    async-safe; use ``aget``/``aput``/``aclear`` inside the event loop.
    """

    __slots__ = ("_data", "_lock", "_maxsize", "_ttl")

    def __init__(self, maxsize: int = 500, ttl: float = 900.0) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")
        if ttl <= 0:
            raise ValueError("ttl must be > 0")
        self._maxsize = maxsize
        self._ttl = ttl
        # value stored as (payload, expires_at)
        self._data: OrderedDict[str, tuple[T, float]] = OrderedDict()
        self._lock = asyncio.Lock()

    def _get(self, key: str) -> T | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._data[key]
            return None
        self._data.move_to_end(key)
        return value

    def _put(self, key: str, value: T) -> None:
        now = time.monotonic()
        if key in self._data:
            del self._data[key]
        elif len(self._data) >= self._maxsize:
            self._data.popitem(last=False)
        self._data[key] = (value, now + self._ttl)

    async def aget(self, key: str) -> T | None:
        async with self._lock:
            return self._get(key)

    async def aput(self, key: str, value: T) -> None:
        async with self._lock:
            self._put(key, value)

    async def aclear(self) -> None:
        async with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        """Return count of non-expired entries (read-only, no eviction)."""
        now = time.monotonic()
        return sum(1 for _, exp in self._data.values() if exp > now)


# ---------------------------------------------------------------------------
# BaseTimesheetClient
# ---------------------------------------------------------------------------


class BaseTimesheetClient:
    """Stateless async HTTP client for the Timesheet REST API."""

    # -- construction -------------------------------------------------------

    def __init__(
        self,
        base_url: str,
        client_id: str = "",
        client_secret: str = "",
    ) -> None:
        parsed = urlparse(base_url)
        host = (parsed.hostname or "").lower()

        # SEC-04: reject non-HTTPS for non-localhost targets.
        if parsed.scheme != "https" and not self._is_loopback(host):
            raise ValueError(
                f"Non-HTTPS base_url is only permitted for localhost. Got: {base_url}"
            )

        self._base_url: str = base_url.rstrip("/")
        self._client_id = client_id
        self._client_secret = client_secret
        self._profile_cache: TTLCache[dict[str, Any]] = TTLCache(
            maxsize=500, ttl=PROFILE_CACHE_TTL
        )
        # SEC-03: disable HTTP redirects.
        self._http: httpx.AsyncClient = httpx.AsyncClient(
            follow_redirects=False,
            timeout=httpx.Timeout(connect=5.0, read=30.0, write=30.0, pool=5.0),
            verify=True,
        )

    async def close(self) -> None:
        """Close the underlying httpx client."""
        await self._http.aclose()

    @staticmethod
    def _is_loopback(host: str) -> bool:
        if host in ("localhost",):
            return True
        stripped = host.strip("[]")
        try:
            return ipaddress.ip_address(stripped).is_loopback
        except ValueError:
            return False

    # -- OAuth2 ---------------------------------------------------------------

    async def _token_request(self, form: dict[str, str]) -> httpx.Response:
        """POST a form to the OAuth2 token endpoint (no bearer header)."""
        form = {"client_id": self._client_id, "client_secret": self._client_secret, **form}
        try:
            return await self._http.post(
                f"{self._base_url}/oauth2/token",
                data=form,
                headers={"Accept": "application/json"},
            )
        except httpx.TransportError as exc:
            raise ConnectionError(f"Token endpoint unreachable: {exc}") from exc

    @staticmethod
    def _token_payload(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise ValueError("Token endpoint returned invalid JSON response") from exc
        if not isinstance(data, dict) or not data.get("access_token"):
            raise ValueError("Token endpoint did not return an access token")
        return data

    async def exchange_code(self, code: str, redirect_uri: str) -> dict[str, Any]:
        """Exchange an authorization code for access and refresh tokens.

        Returns:
            ``{"access_token", "refresh_token", "expires_in"}`` (``expires_in``
            may be ``None``).

        Raises:
            ValueError: On an empty code or a non-200 answer.
        """
        if not code or not code.strip():
            raise ValueError("code must not be empty")
        response = await self._token_request(
            {
                "code": code.strip(),
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
            }
        )
        if response.status_code != 200:
            logger.warning("Authorization code exchange returned status=%d", response.status_code)
            raise ValueError(f"Unable to fetch access token: {response.text}")
        data = self._token_payload(response)
        return {
            "access_token": data["access_token"],
            "refresh_token": data.get("refresh_token"),
            "expires_in": data.get("expires_in"),
        }

    async def refresh_access_token(self, refresh_token: str) -> dict[str, Any]:
        """Trade a refresh token for a new access token.

        Raises:
            AuthError: When the refresh is rejected; the user must sign in again.
        """
        if not refresh_token:
            raise AuthError("No refresh token available. Please sign in again.")
        response = await self._token_request(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )
        if response.status_code != 200:
            logger.warning("Token refresh returned status=%d", response.status_code)
            raise AuthError(
                f"Unable to refresh access token: {response.text}",
                status_code=response.status_code,
                content=response.text,
            )
        data = self._token_payload(response)
        return {
            "access_token": data["access_token"],
            "refresh_token": data.get("refresh_token") or refresh_token,
            "expires_in": data.get("expires_in"),
        }

    async def get_profile(self, token: str) -> dict[str, Any]:
        """Fetch the signed-in user's profile (also the connection test)."""
        result = await self._request("GET", "v1/profiles/me", token)
        if result.get("status_code") == 401:
            result["message"] = "The access token you supplied is not valid"
        return result

    async def verify_token(self, token: str) -> dict[str, Any] | None:
        """Return the profile for *token*, or ``None`` if the API rejects it.

        Successful lookups are cached under the token's SHA-256 hash.
        """
        if not token or len(token) > MAX_TOKEN_LENGTH:
            return None
        cache_key = hashlib.sha256(token.encode()).hexdigest()
        cached = await self._profile_cache.aget(cache_key)
        if cached is not None:
            return cached
        result = await self.get_profile(token)
        if result.get("status") != "success" or not isinstance(result.get("data"), dict):
            return None
        profile: dict[str, Any] = result["data"]
        await self._profile_cache.aput(cache_key, profile)
        return profile

    # -- generic request helper ---------------------------------------------

    async def _request(
        self,
        method: str,
        endpoint: str,
        token: str,
        *,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated request.  Returns a result dict.

        SEC-02: Never raises on HTTP errors -- returns an error dict carrying
        ``status_code`` and the raw body as ``content``.
        """
        url = f"{self._base_url}/{endpoint.lstrip('/')}"
        headers: dict[str, str] = {
            "Accept": "application/json",
            "Authorization": f"Bearer {token}",
        }
        if data is not None:
            headers["Content-Type"] = "application/json"

        try:
            response = await self._http.request(
                method,
                url,
                json=data,
                params=params,
                headers=headers,
            )
        except httpx.TransportError as exc:
            logger.warning("Timesheet API %s %s transport error: %s", method, endpoint, exc)
            return {
                "status": "error",
                "message": "Timesheet service temporarily unavailable.",
            }

        if not response.is_success:
            logger.warning(
                "Timesheet API %s %s returned status=%d",
                method,
                endpoint,
                response.status_code,
            )
            return {
                "status": "error",
                "message": f"Timesheet API error ({response.status_code}): {response.text}",
                "status_code": response.status_code,
                "content": response.text,
            }

        if not response.content:
            return {"status": "success", "data": {}}
        try:
            response_data = response.json()
        except (json.JSONDecodeError, ValueError):
            response_data = {"text": response.text}
        return {"status": "success", "data": response_data}

    # -- static helpers -------------------------------------------------------

    @staticmethod
    def _extract_items(result: dict[str, Any]) -> dict[str, Any]:
        """Replace a paged envelope ``{"items": [...]}`` by its item list."""
        if result.get("status") != "success":
            return result
        data = result.get("data")
        items = data.get("items") if isinstance(data, dict) else data
        if not isinstance(items, list):
            items = []
        return {"status": "success", "data": items, "count": len(items)}
