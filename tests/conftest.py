"""Shared pytest fixtures.

api_client   FastAPI TestClient bound to a fresh SQLite database per test
auth_headers headers for the primary test user (alice@example.com)
other_headers headers for a second tenant (bob@example.com)
make_headers factory for arbitrary users
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from miniapps_api.db import reset_engine
from miniapps_api.services import currency
from miniapps_api.settings import reset_settings

BACKEND_SECRET = "test-backend-secret"


@pytest.fixture
def api_env(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("BACKEND_SESSION_SECRET", BACKEND_SECRET)
    monkeypatch.setenv("ALLOWED_EMAILS", "")
    monkeypatch.setenv("DEFAULT_TIMEZONE", "UTC")
    monkeypatch.delenv("OPENWEATHER_API_KEY", raising=False)
    reset_settings()
    reset_engine()
    currency.clear_cache()
    yield
    reset_settings()
    reset_engine()
    currency.clear_cache()


@pytest.fixture
def api_client(api_env):
    from miniapps_api.main import create_app

    with TestClient(create_app()) as client:
        yield client


@pytest.fixture
def make_headers():
    def _make(email: str, token: str = BACKEND_SECRET) -> dict:
        return {"X-User-Email": email, "X-Backend-Token": token}

    return _make


@pytest.fixture
def auth_headers(make_headers) -> dict:
    return make_headers("alice@example.com")


@pytest.fixture
def other_headers(make_headers) -> dict:
    return make_headers("bob@example.com")
