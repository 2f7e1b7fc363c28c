from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable


class Navigator(ABC):
    """Where the application currently is, and how to send it somewhere else.

    A redirect is a full reload: whatever in-memory session state the caller
    holds is expected to be discarded afterwards.
    """

    @property
    @abstractmethod
    def current_path(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def redirect(self, path: str) -> None:
        raise NotImplementedError


class MemoryNavigator(Navigator):
    def __init__(
        self,
        path: str = "/",
        *,
        on_redirect: Callable[[str], None] | None = None,
    ) -> None:
        self._path = path
        self._on_redirect = on_redirect
        self.history: list[str] = []

    @property
    def current_path(self) -> str:
        return self._path

    def redirect(self, path: str) -> None:
        self._path = path
        self.history.append(path)
        if self._on_redirect is not None:
            self._on_redirect(path)
