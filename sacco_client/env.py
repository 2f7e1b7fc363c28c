from __future__ import annotations

import logging
import os
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

from .constants import DEFAULT_STORE_PATH, DEFAULT_TIMEOUT_SECONDS, LOGGER


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_env_float(key: str, default: float) -> float:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be a number.")


def load_env() -> None:
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if not env_path.exists():
        return
    load_dotenv(env_path, override=True)


def get_api_url() -> str:
    api_url = os.getenv("SACCO_API_URL", "").strip()
    if not api_url:
        raise RuntimeError(
            "SACCO_API_URL is not defined. Create a .env file in the project root "
            "with SACCO_API_URL=http://localhost:8000/api or export it in the environment."
        )

    parsed = urlparse(api_url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise RuntimeError(
            "SACCO_API_URL must be an absolute http(s) URL (for example: "
            "https://sacco.example.com/api)."
        )
    return api_url.rstrip("/")


def get_timeout() -> float:
    return _get_env_float("SACCO_API_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)


def get_store_path() -> Path:
    return Path(os.getenv("SACCO_SESSION_STORE_PATH", DEFAULT_STORE_PATH))


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv("SACCO_API_DEBUG", "1"))
    if debug_enabled:
        logging.basicConfig(level=logging.INFO)
        LOGGER.setLevel(logging.INFO)
    return debug_enabled
