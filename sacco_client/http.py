from __future__ import annotations

import httpx

from .constants import LOGGER

MAX_LOGGED_BODY = 1000


def build_event_hooks(*, debug_enabled: bool) -> dict[str, list]:
    async def log_request(request: httpx.Request) -> None:
        if not debug_enabled:
            return
        LOGGER.info("SACCO API request %s %s", request.method, request.url)

    async def log_response(response: httpx.Response) -> None:
        if not debug_enabled:
            return
        LOGGER.info(
            "SACCO API response %s %s -> %s",
            response.request.method,
            response.request.url,
            response.status_code,
        )
        if response.status_code >= 400:
            body = await response.aread()
            text = body.decode("utf-8", errors="replace")
            if len(text) > MAX_LOGGED_BODY:
                text = text[:MAX_LOGGED_BODY] + "...<truncated>"
            LOGGER.warning("SACCO API error body: %s", text)

    return {"request": [log_request], "response": [log_response]}
