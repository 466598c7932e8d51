from __future__ import annotations

from pathlib import Path

import pytest


TEST_SECRET = "test-secret-for-session-tokens"


def _clear_caches() -> None:
    from feedreader.auth.tokens import get_token_codec
    from feedreader.config import clear_config_cache

    clear_config_cache()
    get_token_codec.cache_clear()


@pytest.fixture(autouse=True)
def _env(monkeypatch):
    monkeypatch.syspath_prepend(str(Path(__file__).resolve().parents[1]))
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("EXPOSE_ERROR_DETAILS", "1")
    monkeypatch.delenv("TOKEN_TTL_HOURS", raising=False)
    monkeypatch.delenv("FEED_DISCOVERY_MAX_NODES", raising=False)
    monkeypatch.delenv("FETCH_TIMEOUT_SECONDS", raising=False)
    monkeypatch.delenv("FETCH_USER_AGENT", raising=False)
    monkeypatch.delenv("SQLMODEL_CREATE_ALL", raising=False)
    _clear_caches()
    try:
        yield
    finally:
        _clear_caches()


@pytest.fixture()
def db_session():
    from feedreader.db import get_session, init_db

    init_db()
    with next(get_session()) as session:
        yield session


@pytest.fixture()
def client():
    from fastapi.testclient import TestClient

    from feedreader.main import create_app

    # entering the client runs startup, which recreates the in-memory schema
    with TestClient(create_app()) as test_client:
        yield test_client
