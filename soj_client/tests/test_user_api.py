"""Tests for user API helpers: login, logout, admin permission check."""
import httpx
import pytest

from soj_client import api
from soj_client.config import (
    ACCESS_TOKEN_HEADER,
    LOGIN_API_PATH,
    LOGOUT_API_PATH,
    REFRESH_PATH,
    REFRESH_TOKEN_HEADER,
)
from soj_client.errors import ApplicationError
from soj_client.tests.fakes import login_as, make_token


def _json(code=200, data=None, message="success"):
    return httpx.Response(200, json={"code": code, "data": data, "message": message})


@pytest.mark.asyncio
async def test_login_stores_tokens_and_identity(make_client, store):
    token = make_token(user_id=3, role=1)

    async def handler(request):
        assert request.url.path == LOGIN_API_PATH
        return _json(data={"access_token": token, "refresh_token": "R1"})

    async with make_client(handler) as client:
        record = await api.login(client, "alice", "pw")
    assert record.subject_id == 3
    assert store.access_token == token
    assert store.refresh_token == "R1"


@pytest.mark.asyncio
async def test_login_failure_stores_nothing(make_client, store):
    async def handler(request):
        return _json(code=400, message="invalid username or password")

    async with make_client(handler) as client:
        with pytest.raises(ApplicationError, match="invalid username or password"):
            await api.login(client, "alice", "wrong")
    assert store.get().is_empty


@pytest.mark.asyncio
async def test_logout_sends_refresh_token_and_clears(make_client, store):
    seen = []

    async def handler(request):
        seen.append((request.url.path, request.headers.get(REFRESH_TOKEN_HEADER)))
        return _json()

    login_as(store, access_token="T1", refresh_token="R1")
    store.save_draft("1001", "code")
    async with make_client(handler) as client:
        await api.logout(client)
    assert seen == [(LOGOUT_API_PATH, "R1")]
    assert store.get().is_empty
    assert store.load_draft("1001") is None


@pytest.mark.asyncio
async def test_logout_clears_even_when_server_unreachable(make_client, store):
    async def handler(request):
        raise httpx.ConnectError("down", request=request)

    login_as(store)
    async with make_client(handler) as client:
        await api.logout(client)
    assert store.get().is_empty


@pytest.mark.asyncio
@pytest.mark.parametrize("role,expected", [(1, False), (2, True), (3, True)])
async def test_check_admin_permission_uses_server_role(make_client, store, role, expected):
    async def handler(request):
        assert request.url.path == "/api/v1/user/8"
        return _json(data={"id": 8, "role": role})

    # Token claims say root; only the server's answer counts
    login_as(store, access_token=make_token(user_id=8, role=3))
    async with make_client(handler) as client:
        assert await api.check_admin_permission(client) is expected


@pytest.mark.asyncio
async def test_check_admin_permission_false_without_login(make_client):
    async def handler(request):
        raise AssertionError("no request expected")

    async with make_client(handler) as client:
        assert await api.check_admin_permission(client) is False


@pytest.mark.asyncio
async def test_check_admin_permission_false_on_error(make_client, store):
    async def handler(request):
        return _json(code=500, message="boom")

    login_as(store, access_token=make_token(user_id=8, role=2))
    async with make_client(handler) as client:
        assert await api.check_admin_permission(client) is False


@pytest.mark.asyncio
async def test_logout_after_refresh_revokes_rotated_refresh_token(make_client, store):
    logout_refresh_tokens = []

    async def handler(request):
        if request.url.path == REFRESH_PATH:
            return _json(data={"access_token": "T2", "refresh_token": "R2"})
        if request.headers.get(ACCESS_TOKEN_HEADER) != "T2":
            return _json(code=401, message="unauthorized")
        logout_refresh_tokens.append(request.headers.get(REFRESH_TOKEN_HEADER))
        return _json()

    login_as(store, access_token="T1", refresh_token="R1")
    async with make_client(handler) as client:
        await api.logout(client)
    assert logout_refresh_tokens == ["R2"]
    assert store.get().is_empty
