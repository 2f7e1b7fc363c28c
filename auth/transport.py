from __future__ import annotations

import logging

import httpx

from auth.models import OutgoingRequest
from auth.navigation import Navigator
from auth.refresh import RefreshCoordinator, request_access_token
from auth.store import KeyValueStore
from auth.urls import is_login_route, is_refresh_endpoint, join_api_url
from sacco_client.constants import (
    ACCESS_TOKEN_KEY,
    LOGGER,
    LOGIN_ROUTE,
    REFRESH_PATH,
    USER_KEY,
)


class SessionTransport(httpx.AsyncBaseTransport):
    """Keeps API requests authenticated with a short-lived access token.

    Every request is sent with ``Authorization: Bearer <access>`` when a token
    is stored. A 401 triggers one refresh through the HTTP-only refresh
    cookie and a single replay of the request; concurrent 401s share that
    refresh. When the refresh cookie is rejected the stored session is cleared
    and the navigator is sent to the login route.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        *,
        api_url: str,
        store: KeyValueStore,
        navigator: Navigator,
        cookies: httpx.Cookies | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._refresh_url = join_api_url(api_url, REFRESH_PATH)
        self._store = store
        self._navigator = navigator
        self._logger = logger or LOGGER
        self.cookies = cookies
        self.refresh = RefreshCoordinator(
            self._request_new_access,
            on_failure=self._on_refresh_failure,
            logger=self._logger,
        )

    @property
    def refresh_url(self) -> str:
        return self._refresh_url

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        return await self._send(OutgoingRequest(request))

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def logout(self) -> None:
        await self._store.delete(ACCESS_TOKEN_KEY)
        await self._store.delete(USER_KEY)

        if is_login_route(self._navigator.current_path):
            self._logger.info("Session cleared; already on %s", self._navigator.current_path)
            return
        self._logger.warning("Session expired; redirecting to %s", LOGIN_ROUTE)
        self._navigator.redirect(LOGIN_ROUTE)

    async def _send(self, outgoing: OutgoingRequest, *, access: str | None = None) -> httpx.Response:
        if access is None:
            access = await self._store.get(ACCESS_TOKEN_KEY)
        request = outgoing.request

        try:
            response = await self._transport.handle_async_request(self._authorize(request, access))
        except httpx.TransportError:
            if is_refresh_endpoint(request.url):
                await self.logout()
            raise

        if response.status_code < 400:
            return response
        return await self._handle_failure(outgoing, response)

    async def _handle_failure(self, outgoing: OutgoingRequest, response: httpx.Response) -> httpx.Response:
        request = outgoing.request

        if is_refresh_endpoint(request.url):
            self._logger.warning(
                "Refresh endpoint rejected %s %s -> %s",
                request.method,
                request.url,
                response.status_code,
            )
            await self.logout()
            return response

        if response.status_code != 401 or outgoing.retried:
            return response

        outgoing.retried = True
        await response.aclose()
        access = await self.refresh.refresh()
        self._logger.info("Replaying %s %s with refreshed token", request.method, request.url)
        return await self._send(outgoing, access=access)

    async def _request_new_access(self) -> str:
        access = await request_access_token(self._transport, self._refresh_url, cookies=self.cookies)
        await self._store.set(ACCESS_TOKEN_KEY, access)
        return access

    async def _on_refresh_failure(self, error: BaseException) -> None:
        del error
        await self.logout()

    @staticmethod
    def _authorize(request: httpx.Request, access: str | None) -> httpx.Request:
        headers = request.headers.copy()
        if access:
            headers["Authorization"] = f"Bearer {access}"
        return httpx.Request(
            method=request.method,
            url=request.url,
            headers=headers,
            content=request.content,
            extensions=request.extensions,
        )
