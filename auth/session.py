from __future__ import annotations

import json
import logging

import httpx

from auth.models import LoginResponse, User
from auth.refresh import SessionError
from auth.store import KeyValueStore
from sacco_client.constants import (
    ACCESS_TOKEN_KEY,
    CURRENT_USER_PATH,
    LOGGER,
    LOGIN_PATH,
    LOGOUT_PATH,
    USER_KEY,
)


class SessionManager:
    """Login state for one API client: credentials in, cached user out."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        store: KeyValueStore,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.client = client
        self.store = store
        self._logger = logger or LOGGER

    async def login(self, username: str, password: str) -> User:
        response = await self.client.post(
            LOGIN_PATH,
            json={"username": username, "password": password},
        )
        response.raise_for_status()

        login = LoginResponse.from_payload(response.json())
        await self.store.set(ACCESS_TOKEN_KEY, login.access)
        await self._cache_user(login.user)
        self._logger.info("Logged in as %s", login.user.username)
        return login.user

    async def current_user(self) -> User | None:
        raw = await self.store.get(USER_KEY)
        if raw is None:
            return None
        try:
            return User.from_payload(json.loads(raw))
        except (ValueError, RuntimeError) as error:
            self._logger.warning("Discarding unreadable cached user: %s", error)
            await self.store.delete(USER_KEY)
            return None

    async def is_authenticated(self) -> bool:
        return await self.current_user() is not None

    async def restore(self) -> User | None:
        if await self.store.get(ACCESS_TOKEN_KEY) is None:
            return None

        try:
            response = await self.client.get(CURRENT_USER_PATH)
            response.raise_for_status()
            user = User.from_payload(response.json())
        except (httpx.HTTPError, RuntimeError, ValueError) as error:
            self._logger.error("Session restore failed: %s", error)
            await self._clear()
            return None

        await self._cache_user(user)
        return user

    async def logout(self) -> None:
        try:
            response = await self.client.post(LOGOUT_PATH)
            response.raise_for_status()
        except (httpx.HTTPError, SessionError) as error:
            self._logger.error("Logout request failed: %s", error)
        finally:
            await self._clear()

    async def _cache_user(self, user: User) -> None:
        await self.store.set(USER_KEY, json.dumps(user.to_payload(), sort_keys=True))

    async def _clear(self) -> None:
        await self.store.delete(ACCESS_TOKEN_KEY)
        await self.store.delete(USER_KEY)
