from __future__ import annotations

import logging

LOGGER = logging.getLogger("sacco_client.api")
APP_VERSION = "0.1.0"

ACCESS_TOKEN_KEY = "access_token"
USER_KEY = "user"

REFRESH_PATH = "/auth/token/refresh/"
LOGIN_PATH = "/auth/login/"
LOGOUT_PATH = "/auth/logout/"
CURRENT_USER_PATH = "/auth/me/"
LOGIN_ROUTE = "/login"

DEFAULT_STORE_PATH = ".session.json"
DEFAULT_TIMEOUT_SECONDS = 30.0
