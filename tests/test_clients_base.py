"""Tests for clients/_base.py -- TTLCache, BaseTimesheetClient and its security controls."""

from __future__ import annotations

import hashlib
import json
from collections.abc import AsyncGenerator
from unittest.mock import patch

import httpx
import pytest
import pytest_asyncio
import respx

from _errors import AuthError
from clients._base import BaseTimesheetClient, TTLCache, validate_id

# =========================================================================
# Fixtures
# =========================================================================

BASE_URL = "https://api.timesheet.example"
PROFILE = {"id": "profile-42", "email": "user@example.com", "activatedTeams": True}


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[BaseTimesheetClient, None]:
    c = BaseTimesheetClient(BASE_URL, client_id="cid", client_secret="csecret")
    yield c
    await c.close()


# =========================================================================
# TTLCache
# =========================================================================


class TestTTLCache:
    def test_insert_and_get(self) -> None:
        c: TTLCache[str] = TTLCache(maxsize=5, ttl=2.0)
        c._put("k1", "v1")
        assert c._get("k1") == "v1"

    def test_expiry(self) -> None:
        c: TTLCache[str] = TTLCache(maxsize=10, ttl=1.0)
        with patch("clients._base.time.monotonic", return_value=100.0):
            c._put("k", "v")
        with patch("clients._base.time.monotonic", return_value=100.9):
            assert c._get("k") == "v"
        with patch("clients._base.time.monotonic", return_value=101.0):
            assert c._get("k") is None
        assert len(c) == 0

    def test_lru_eviction(self) -> None:
        c: TTLCache[int] = TTLCache(maxsize=2, ttl=3600.0)
        c._put("a", 1)
        c._put("b", 2)
        c._get("a")
        c._put("c", 3)
        assert c._get("b") is None
        assert c._get("a") == 1

    @pytest.mark.parametrize(("maxsize", "ttl", "match"), [(0, 1.0, "maxsize"), (10, 0, "ttl")])
    def test_invalid_arguments(self, maxsize: int, ttl: float, match: str) -> None:
        with pytest.raises(ValueError, match=match):
            TTLCache(maxsize=maxsize, ttl=ttl)

    async def test_async_accessors(self) -> None:
        c: TTLCache[int] = TTLCache(maxsize=5, ttl=60.0)
        await c.aput("a", 1)
        assert await c.aget("a") == 1
        await c.aclear()
        assert await c.aget("a") is None


# =========================================================================
# validate_id
# =========================================================================


class TestValidateId:
    def test_accepts_uuid_like(self) -> None:
        assert validate_id(" 3f2a-b_9 ") == "3f2a-b_9"

    @pytest.mark.parametrize("value", ["", "../etc", "a/b", "a" * 65, "id?x=1"])
    def test_rejects_unsafe(self, value: str) -> None:
        with pytest.raises(ValueError, match="item_id"):
            validate_id(value, "item_id")


# =========================================================================
# Construction
# =========================================================================


class TestConstruction:
    def test_https_remote_allowed(self) -> None:
        c = BaseTimesheetClient("https://api.timesheet.io/")
        assert c._base_url == "https://api.timesheet.io"

    @pytest.mark.parametrize(
        "url", ["http://localhost:8000", "http://127.0.0.1:8000", "http://[::1]:8000"]
    )
    def test_http_loopback_allowed(self, url: str) -> None:
        BaseTimesheetClient(url)

    @pytest.mark.parametrize("url", ["http://api.timesheet.io", "http://10.0.0.5:8000"])
    def test_http_remote_rejected(self, url: str) -> None:
        with pytest.raises(ValueError, match="Non-HTTPS"):
            BaseTimesheetClient(url)

    def test_follow_redirects_disabled(self) -> None:
        assert BaseTimesheetClient(BASE_URL)._http.follow_redirects is False


# =========================================================================
# _request
# =========================================================================


class TestRequest:
    @respx.mock
    async def test_success_sends_bearer(self, client: BaseTimesheetClient) -> None:
        route = respx.get(f"{BASE_URL}/v1/teams/t1").mock(
            return_value=httpx.Response(200, json={"id": "t1"})
        )
        result = await client._request("GET", "v1/teams/t1", "tok")
        assert result == {"status": "success", "data": {"id": "t1"}}
        assert route.calls.last.request.headers["Authorization"] == "Bearer tok"

    @respx.mock
    async def test_json_body(self, client: BaseTimesheetClient) -> None:
        route = respx.post(f"{BASE_URL}/v1/teams").mock(
            return_value=httpx.Response(201, json={"id": "t2"})
        )
        await client._request("POST", "v1/teams", "tok", data={"name": "Ops"})
        request = route.calls.last.request
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"name": "Ops"}

    @respx.mock
    async def test_error_status_returns_dict(self, client: BaseTimesheetClient) -> None:
        respx.get(f"{BASE_URL}/v1/teams").mock(return_value=httpx.Response(422, text="bad page"))
        result = await client._request("GET", "v1/teams", "tok")
        assert result["status"] == "error"
        assert result["status_code"] == 422
        assert result["content"] == "bad page"
        assert "422" in result["message"]

    @respx.mock
    async def test_redirect_is_an_error(self, client: BaseTimesheetClient) -> None:
        respx.get(f"{BASE_URL}/v1/teams").mock(
            return_value=httpx.Response(302, headers={"Location": "https://evil.example"})
        )
        result = await client._request("GET", "v1/teams", "tok")
        assert result["status"] == "error"
        assert result["status_code"] == 302

    @respx.mock
    async def test_transport_error(self, client: BaseTimesheetClient) -> None:
        respx.get(f"{BASE_URL}/v1/teams").mock(side_effect=httpx.ConnectError("refused"))
        result = await client._request("GET", "v1/teams", "tok")
        assert result == {
            "status": "error",
            "message": "Timesheet service temporarily unavailable.",
        }

    @respx.mock
    async def test_empty_body(self, client: BaseTimesheetClient) -> None:
        respx.delete(f"{BASE_URL}/v1/webhooks/w1").mock(return_value=httpx.Response(204))
        result = await client._request("DELETE", "v1/webhooks/w1", "tok")
        assert result == {"status": "success", "data": {}}

    @respx.mock
    async def test_non_json_body(self, client: BaseTimesheetClient) -> None:
        respx.get(f"{BASE_URL}/v1/ping").mock(return_value=httpx.Response(200, text="pong"))
        result = await client._request("GET", "v1/ping", "tok")
        assert result["data"] == {"text": "pong"}


class TestExtractItems:
    def test_envelope(self) -> None:
        result = BaseTimesheetClient._extract_items(
            {"status": "success", "data": {"items": [{"id": 1}], "count": 9}}
        )
        assert result == {"status": "success", "data": [{"id": 1}], "count": 1}

    def test_missing_items(self) -> None:
        result = BaseTimesheetClient._extract_items({"status": "success", "data": {}})
        assert result["data"] == []

    def test_error_passthrough(self) -> None:
        error = {"status": "error", "message": "x"}
        assert BaseTimesheetClient._extract_items(error) is error


# =========================================================================
# OAuth2
# =========================================================================


class TestExchangeCode:
    @respx.mock
    async def test_success(self, client: BaseTimesheetClient) -> None:
        route = respx.post(f"{BASE_URL}/oauth2/token").mock(
            return_value=httpx.Response(
                200, json={"access_token": "at", "refresh_token": "rt", "expires_in": 3600}
            )
        )
        data = await client.exchange_code("abc", "http://127.0.0.1:8765/callback")
        assert data == {"access_token": "at", "refresh_token": "rt", "expires_in": 3600}
        form = route.calls.last.request.content.decode()
        assert "grant_type=authorization_code" in form
        assert "client_id=cid" in form
        assert "code=abc" in form
        assert "Authorization" not in route.calls.last.request.headers

    async def test_empty_code(self, client: BaseTimesheetClient) -> None:
        with pytest.raises(ValueError, match="code"):
            await client.exchange_code("  ", "http://127.0.0.1:8765/callback")

    @respx.mock
    async def test_rejected(self, client: BaseTimesheetClient) -> None:
        respx.post(f"{BASE_URL}/oauth2/token").mock(
            return_value=httpx.Response(400, text="invalid_grant")
        )
        with pytest.raises(ValueError, match="Unable to fetch access token: invalid_grant"):
            await client.exchange_code("abc", "http://127.0.0.1:8765/callback")

    @respx.mock
    async def test_missing_access_token(self, client: BaseTimesheetClient) -> None:
        respx.post(f"{BASE_URL}/oauth2/token").mock(return_value=httpx.Response(200, json={}))
        with pytest.raises(ValueError, match="did not return an access token"):
            await client.exchange_code("abc", "http://127.0.0.1:8765/callback")

    @respx.mock
    async def test_unreachable(self, client: BaseTimesheetClient) -> None:
        respx.post(f"{BASE_URL}/oauth2/token").mock(side_effect=httpx.ConnectError("down"))
        with pytest.raises(ConnectionError):
            await client.exchange_code("abc", "http://127.0.0.1:8765/callback")


class TestRefreshAccessToken:
    @respx.mock
    async def test_keeps_refresh_token_when_not_rotated(
        self, client: BaseTimesheetClient
    ) -> None:
        respx.post(f"{BASE_URL}/oauth2/token").mock(
            return_value=httpx.Response(200, json={"access_token": "new", "expires_in": 60})
        )
        data = await client.refresh_access_token("rt-1")
        assert data == {"access_token": "new", "refresh_token": "rt-1", "expires_in": 60}

    @respx.mock
    async def test_rejected_is_auth_error(self, client: BaseTimesheetClient) -> None:
        respx.post(f"{BASE_URL}/oauth2/token").mock(
            return_value=httpx.Response(401, text="expired")
        )
        with pytest.raises(AuthError, match="Unable to refresh access token") as info:
            await client.refresh_access_token("rt-1")
        assert info.value.status_code == 401

    async def test_missing_refresh_token(self, client: BaseTimesheetClient) -> None:
        with pytest.raises(AuthError):
            await client.refresh_access_token("")


class TestProfile:
    @respx.mock
    async def test_invalid_token_message(self, client: BaseTimesheetClient) -> None:
        respx.get(f"{BASE_URL}/v1/profiles/me").mock(return_value=httpx.Response(401))
        result = await client.get_profile("bad")
        assert result["message"] == "The access token you supplied is not valid"
        assert result["status_code"] == 401

    @respx.mock
    async def test_verify_caches_under_hash(self, client: BaseTimesheetClient) -> None:
        route = respx.get(f"{BASE_URL}/v1/profiles/me").mock(
            return_value=httpx.Response(200, json=PROFILE)
        )
        assert await client.verify_token("tok") == PROFILE
        assert await client.verify_token("tok") == PROFILE
        assert route.call_count == 1
        key = hashlib.sha256(b"tok").hexdigest()
        assert await client._profile_cache.aget(key) == PROFILE
        assert await client._profile_cache.aget("tok") is None

    @respx.mock
    async def test_verify_rejected_not_cached(self, client: BaseTimesheetClient) -> None:
        route = respx.get(f"{BASE_URL}/v1/profiles/me").mock(return_value=httpx.Response(401))
        assert await client.verify_token("bad") is None
        assert await client.verify_token("bad") is None
        assert route.call_count == 2

    async def test_verify_oversized_token(self, client: BaseTimesheetClient) -> None:
        assert await client.verify_token("x" * 5000) is None
