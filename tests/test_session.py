import json

import httpx
import pytest

from auth.navigation import MemoryNavigator
from auth.store import MemoryKeyValueStore
from client import create_session
from sacco_client.constants import ACCESS_TOKEN_KEY, USER_KEY
from tests.backend_helpers import API_URL, REFRESH_URL, USER_PAYLOAD

LOGIN_URL = f"{API_URL}/auth/login/"
LOGOUT_URL = f"{API_URL}/auth/logout/"
ME_URL = f"{API_URL}/auth/me/"


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def navigator() -> MemoryNavigator:
    return MemoryNavigator("/dashboard")


@pytest.fixture
def session(store, navigator):
    return create_session(api_url=API_URL, store=store, navigator=navigator)


@pytest.mark.asyncio
async def test_login_stores_token_and_user(httpx_mock, session, store) -> None:
    httpx_mock.add_response(
        url=LOGIN_URL,
        method="POST",
        json={"access": "tok1", "refresh": "ignored", "user": USER_PAYLOAD},
    )

    user = await session.login("treasurer", "secret")

    assert user.username == "treasurer"
    assert await store.get(ACCESS_TOKEN_KEY) == "tok1"
    assert json.loads(await store.get(USER_KEY))["username"] == "treasurer"
    assert await session.is_authenticated() is True

    request = httpx_mock.get_request()
    assert json.loads(request.content) == {"username": "treasurer", "password": "secret"}
    assert "authorization" not in request.headers


@pytest.mark.asyncio
async def test_login_bad_credentials_raises(httpx_mock, session, store) -> None:
    httpx_mock.add_response(
        url=LOGIN_URL,
        method="POST",
        status_code=400,
        json={"detail": "Invalid credentials"},
    )

    with pytest.raises(httpx.HTTPStatusError):
        await session.login("treasurer", "wrong")

    assert await store.get(ACCESS_TOKEN_KEY) is None


@pytest.mark.asyncio
async def test_restore_without_token_skips_network(session) -> None:
    assert await session.restore() is None


@pytest.mark.asyncio
async def test_restore_fetches_current_user(httpx_mock, session, store) -> None:
    await store.set(ACCESS_TOKEN_KEY, "tok1")
    httpx_mock.add_response(url=ME_URL, method="GET", json=USER_PAYLOAD)

    user = await session.restore()

    assert user is not None
    assert user.email == "treasurer@example.com"
    assert httpx_mock.get_request().headers["authorization"] == "Bearer tok1"
    assert (await session.current_user()).username == "treasurer"


@pytest.mark.asyncio
async def test_restore_refreshes_expired_token(httpx_mock, session, store, navigator) -> None:
    await store.set(ACCESS_TOKEN_KEY, "stale")
    httpx_mock.add_response(url=ME_URL, method="GET", status_code=401)
    httpx_mock.add_response(url=REFRESH_URL, method="POST", json={"access": "tok2"})
    httpx_mock.add_response(url=ME_URL, method="GET", json=USER_PAYLOAD)

    user = await session.restore()

    assert user is not None
    assert await store.get(ACCESS_TOKEN_KEY) == "tok2"
    me_requests = httpx_mock.get_requests(url=ME_URL)
    assert [request.headers["authorization"] for request in me_requests] == [
        "Bearer stale",
        "Bearer tok2",
    ]
    refresh_request = httpx_mock.get_request(url=REFRESH_URL)
    assert "authorization" not in refresh_request.headers
    assert navigator.history == []


@pytest.mark.asyncio
async def test_restore_with_expired_refresh_cookie_clears_session(
    httpx_mock, session, store, navigator
) -> None:
    await store.set(ACCESS_TOKEN_KEY, "stale")
    await store.set(USER_KEY, json.dumps(USER_PAYLOAD))
    httpx_mock.add_response(url=ME_URL, method="GET", status_code=401)
    httpx_mock.add_response(url=REFRESH_URL, method="POST", status_code=401)

    assert await session.restore() is None

    assert await store.get(ACCESS_TOKEN_KEY) is None
    assert await store.get(USER_KEY) is None
    assert navigator.history == ["/login"]


@pytest.mark.asyncio
async def test_logout_clears_store(httpx_mock, session, store) -> None:
    await store.set(ACCESS_TOKEN_KEY, "tok1")
    await store.set(USER_KEY, json.dumps(USER_PAYLOAD))
    httpx_mock.add_response(url=LOGOUT_URL, method="POST", status_code=205)

    await session.logout()

    assert await store.get(ACCESS_TOKEN_KEY) is None
    assert await session.current_user() is None


@pytest.mark.asyncio
async def test_logout_failure_still_clears_store(httpx_mock, session, store) -> None:
    await store.set(ACCESS_TOKEN_KEY, "tok1")
    await store.set(USER_KEY, json.dumps(USER_PAYLOAD))
    httpx_mock.add_response(url=LOGOUT_URL, method="POST", status_code=500)

    await session.logout()

    assert await store.get(ACCESS_TOKEN_KEY) is None
    assert await store.get(USER_KEY) is None


@pytest.mark.asyncio
async def test_unreadable_cached_user_is_discarded(session, store) -> None:
    await store.set(USER_KEY, "not json")

    assert await session.current_user() is None
    assert await store.get(USER_KEY) is None
