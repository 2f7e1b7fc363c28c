from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable

import httpx

from auth.models import RefreshOutcome, Rejected, Resolved
from sacco_client.constants import LOGGER


class SessionError(RuntimeError):
    def __init__(self, message: str = "Session is no longer valid.", *, status_code: int | None = 401) -> None:
        super().__init__(message)
        self.status_code = status_code


class RefreshError(SessionError):
    def __init__(self, message: str, *, status_code: int | None = None, detail: str = "") -> None:
        super().__init__(message, status_code=status_code)
        self.detail = detail


async def request_access_token(
    transport: httpx.AsyncBaseTransport,
    url: str,
    *,
    cookies: httpx.Cookies | None = None,
) -> str:
    """Exchange the refresh cookie for a new access credential.

    The call goes straight to ``transport`` so it never carries a bearer
    header and never re-enters the 401 handling that asked for it.
    """
    request = httpx.Request("POST", url, json={})
    if cookies is not None:
        cookies.set_cookie_header(request)

    response = await transport.handle_async_request(request)
    response.request = request
    await response.aread()
    if cookies is not None:
        cookies.extract_cookies(response)

    if not response.is_success:
        detail = response.text
        raise RefreshError(
            f"Token refresh failed with status {response.status_code}: {detail}",
            status_code=response.status_code,
            detail=detail,
        )

    try:
        payload = response.json()
    except ValueError as error:
        raise RefreshError(
            "Token refresh response is not valid JSON.",
            status_code=response.status_code,
        ) from error

    access = payload.get("access") if isinstance(payload, dict) else None
    if not isinstance(access, str) or not access:
        raise RefreshError(
            "Token refresh response missing access.",
            status_code=response.status_code,
        )
    return access


class RefreshCoordinator:
    """Single-flight guard around the refresh call.

    The first caller performs the refresh; every caller arriving while it is
    in flight waits on a future that is settled, in arrival order, with the
    leader's outcome.
    """

    def __init__(
        self,
        refresh_fn: Callable[[], Awaitable[str]],
        *,
        on_failure: Callable[[BaseException], Awaitable[None]] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._refresh_fn = refresh_fn
        self._on_failure = on_failure
        self._logger = logger or LOGGER
        self._queue: deque[asyncio.Future[str]] = deque()
        self.in_flight = False
        self.refresh_count = 0

    @property
    def queued(self) -> int:
        return len(self._queue)

    async def refresh(self) -> str:
        if self.in_flight:
            future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            self._queue.append(future)
            self._logger.info("Token refresh in flight; %s request(s) waiting", len(self._queue))
            return await future

        # No await between the check above and this assignment.
        self.in_flight = True
        self.refresh_count += 1
        self._logger.info("Refreshing access token")
        try:
            try:
                access = await self._refresh_fn()
            except asyncio.CancelledError:
                self._settle(Rejected(RefreshError("Token refresh was cancelled.")))
                raise
            except Exception as error:
                self._logger.warning("Token refresh failed: %s", error)
                self._settle(Rejected(error))
                if self._on_failure is not None:
                    await self._on_failure(error)
                raise

            self._logger.info("Access token refreshed")
            self._settle(Resolved(access))
            return access
        finally:
            self.in_flight = False

    def _settle(self, outcome: RefreshOutcome) -> None:
        # Waiters share one error instance; Future.result() re-raises it with the
        # traceback captured at set_exception().
        if self._queue:
            self._logger.info("Releasing %s queued request(s)", len(self._queue))
        while self._queue:
            future = self._queue.popleft()
            if future.done():
                continue
            if isinstance(outcome, Resolved):
                future.set_result(outcome.access)
            else:
                future.set_exception(outcome.error)
