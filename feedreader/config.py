"""Application configuration helpers read from the process environment."""

from __future__ import annotations

import os
from datetime import timedelta
from functools import lru_cache
from typing import Optional

_TRUE_VALUES = {"1", "true", "yes", "on"}

DEFAULT_DATABASE_URL = "sqlite:///./dev.db"
DEFAULT_TOKEN_TTL_HOURS = 24
DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0
DEFAULT_DISCOVERY_MAX_NODES = 50_000
DEFAULT_USER_AGENT = "feedreader/0.1"


def _read_flag(name: str) -> bool | None:
    """Return the parsed boolean value for ``name`` if explicitly set."""

    value = os.getenv(name)
    if value is None:
        return None
    normalized = value.strip()
    if not normalized:
        return None
    return normalized.lower() in _TRUE_VALUES


def _read_number(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc
    if parsed <= 0:
        raise ValueError(f"{name} must be positive, got {value!r}")
    return parsed


__all__ = [
    "get_database_url",
    "get_jwt_secret",
    "get_token_ttl",
    "get_fetch_timeout",
    "get_discovery_max_nodes",
    "get_user_agent",
    "is_error_detail_exposed",
    "clear_config_cache",
]


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


@lru_cache(maxsize=1)
def get_jwt_secret() -> Optional[str]:
    """Return the symmetric token signing secret, or ``None`` when unset."""

    secret = os.getenv("JWT_SECRET")
    if secret is None or not secret.strip():
        return None
    return secret


@lru_cache(maxsize=1)
def get_token_ttl() -> timedelta:
    """Return how long issued session tokens stay valid (24 hours by default)."""

    return timedelta(hours=_read_number("TOKEN_TTL_HOURS", DEFAULT_TOKEN_TTL_HOURS))


@lru_cache(maxsize=1)
def get_fetch_timeout() -> float:
    """Return the ceiling, in seconds, applied to every outbound page/feed fetch."""

    return _read_number("FETCH_TIMEOUT_SECONDS", DEFAULT_FETCH_TIMEOUT_SECONDS)


@lru_cache(maxsize=1)
def get_discovery_max_nodes() -> int:
    return int(_read_number("FEED_DISCOVERY_MAX_NODES", DEFAULT_DISCOVERY_MAX_NODES))


@lru_cache(maxsize=1)
def get_user_agent() -> str:
    return os.getenv("FETCH_USER_AGENT") or DEFAULT_USER_AGENT


@lru_cache(maxsize=1)
def is_error_detail_exposed() -> bool:
    """Return ``True`` when underlying fetch/storage causes are echoed to clients."""

    flag = _read_flag("EXPOSE_ERROR_DETAILS")
    if flag is None:
        return True
    return flag


def clear_config_cache() -> None:
    for func in (
        get_jwt_secret,
        get_token_ttl,
        get_fetch_timeout,
        get_discovery_max_nodes,
        get_user_agent,
        is_error_detail_exposed,
    ):
        func.cache_clear()
