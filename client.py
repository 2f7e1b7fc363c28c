from __future__ import annotations

import httpx

from auth.navigation import MemoryNavigator, Navigator
from auth.session import SessionManager
from auth.store import FileKeyValueStore, KeyValueStore
from auth.transport import SessionTransport
from sacco_client.constants import APP_VERSION, LOGGER
from sacco_client.env import get_api_url, get_store_path, get_timeout, load_env, setup_logging
from sacco_client.http import build_event_hooks


def create_client(
    *,
    api_url: str | None = None,
    store: KeyValueStore | None = None,
    navigator: Navigator | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    load_env()
    debug_enabled = setup_logging()
    return _build_client(
        api_url=api_url,
        store=store or FileKeyValueStore(get_store_path()),
        navigator=navigator,
        transport=transport,
        debug_enabled=debug_enabled,
    )


def create_session(
    *,
    api_url: str | None = None,
    store: KeyValueStore | None = None,
    navigator: Navigator | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SessionManager:
    load_env()
    debug_enabled = setup_logging()
    store = store or FileKeyValueStore(get_store_path())
    client = _build_client(
        api_url=api_url,
        store=store,
        navigator=navigator,
        transport=transport,
        debug_enabled=debug_enabled,
    )
    return SessionManager(client, store)


def _build_client(
    *,
    api_url: str | None,
    store: KeyValueStore,
    navigator: Navigator | None,
    transport: httpx.AsyncBaseTransport | None,
    debug_enabled: bool,
) -> httpx.AsyncClient:
    api_url = (api_url or get_api_url()).rstrip("/")
    session_transport = SessionTransport(
        transport or httpx.AsyncHTTPTransport(),
        api_url=api_url,
        store=store,
        navigator=navigator or MemoryNavigator(),
        logger=LOGGER,
    )
    client = httpx.AsyncClient(
        base_url=api_url,
        headers={
            "Content-Type": "application/json",
            "User-Agent": f"sacco-client/{APP_VERSION}",
        },
        timeout=get_timeout(),
        transport=session_transport,
        event_hooks=build_event_hooks(debug_enabled=debug_enabled),
    )
    # The refresh call is sent below the client, so it needs the client's jar.
    session_transport.cookies = client.cookies
    return client
