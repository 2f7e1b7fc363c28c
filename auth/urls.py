from __future__ import annotations

import httpx

from sacco_client.constants import LOGIN_ROUTE, REFRESH_PATH


def join_api_url(api_url: str, path: str) -> str:
    return f"{api_url.rstrip('/')}/{path.lstrip('/')}"


def is_refresh_endpoint(url: httpx.URL | str) -> bool:
    return REFRESH_PATH in str(url)


def is_login_route(path: str) -> bool:
    return LOGIN_ROUTE in path
