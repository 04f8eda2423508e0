"""Auth dependency, app catalog, preferences and profile endpoints."""

from __future__ import annotations

import pytest

from miniapps_api.catalog import APP_SLUGS
from miniapps_api.settings import reset_settings


class TestAuth:
    def test_health_needs_no_headers(self, api_client):
        response = api_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_missing_token_is_rejected(self, api_client):
        response = api_client.get("/v1/apps", headers={"X-User-Email": "alice@example.com"})
        assert response.status_code == 401

    def test_wrong_token_is_rejected(self, api_client, make_headers):
        response = api_client.get("/v1/apps", headers=make_headers("alice@example.com", token="nope"))
        assert response.status_code == 401

    def test_missing_email_is_rejected(self, api_client, make_headers):
        response = api_client.get("/v1/apps", headers=make_headers("   "))
        assert response.status_code == 401

    def test_allow_list_blocks_other_users(self, api_client, make_headers, monkeypatch):
        monkeypatch.setenv("ALLOWED_EMAILS", "alice@example.com")
        reset_settings()
        assert api_client.get("/v1/apps", headers=make_headers("ALICE@example.com")).status_code == 200
        assert api_client.get("/v1/apps", headers=make_headers("mallory@example.com")).status_code == 403

    def test_email_is_lowercased_into_tenant_key(self, api_client, make_headers):
        api_client.post("/v1/todos", json={"title": "Mixed case"}, headers=make_headers("Alice@Example.COM"))
        items = api_client.get("/v1/todos", headers=make_headers("alice@example.com")).json()["items"]
        assert [item["title"] for item in items] == ["Mixed case"]


class TestCatalog:
    def test_lists_seeded_apps_ordered_by_name(self, api_client, auth_headers):
        items = api_client.get("/v1/apps", headers=auth_headers).json()["items"]
        assert {item["slug"] for item in items} == set(APP_SLUGS)
        names = [item["name"] for item in items]
        assert names == sorted(names)
        assert all(isinstance(item["keywords"], list) for item in items)

    def test_seed_is_idempotent_across_restarts(self, api_env, auth_headers):
        from fastapi.testclient import TestClient

        from miniapps_api.main import create_app

        for _ in range(2):
            with TestClient(create_app()) as client:
                items = client.get("/v1/apps", headers=auth_headers).json()["items"]
        assert len(items) == len(APP_SLUGS)


class TestPreferences:
    def test_defaults_are_created_on_first_read(self, api_client, auth_headers):
        prefs = api_client.get("/v1/preferences", headers=auth_headers).json()
        assert prefs["theme"] == "dark"
        assert prefs["favorite_apps"] == []

    def test_theme_update(self, api_client, auth_headers):
        response = api_client.patch("/v1/preferences", json={"theme": "light"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["theme"] == "light"

    def test_invalid_theme_is_rejected(self, api_client, auth_headers):
        response = api_client.patch("/v1/preferences", json={"theme": "neon"}, headers=auth_headers)
        assert response.status_code == 422

    def test_toggle_favorite_adds_then_removes(self, api_client, auth_headers):
        first = api_client.post("/v1/preferences/favorites/toggle", json={"slug": "calendar"}, headers=auth_headers)
        assert first.json()["favorite_apps"] == ["calendar"]
        api_client.post("/v1/preferences/favorites/toggle", json={"slug": "todo-list"}, headers=auth_headers)
        second = api_client.post("/v1/preferences/favorites/toggle", json={"slug": "calendar"}, headers=auth_headers)
        assert second.json()["favorite_apps"] == ["todo-list"]

    def test_unknown_slug_is_rejected(self, api_client, auth_headers):
        response = api_client.post("/v1/preferences/favorites/toggle", json={"slug": "minesweeper"}, headers=auth_headers)
        assert response.status_code == 400

    def test_preferences_are_per_user(self, api_client, auth_headers, other_headers):
        api_client.post("/v1/preferences/favorites/toggle", json={"slug": "calendar"}, headers=auth_headers)
        assert api_client.get("/v1/preferences", headers=other_headers).json()["favorite_apps"] == []


class TestProfile:
    def test_profile_defaults_from_email(self, api_client, make_headers):
        profile = api_client.get("/v1/profile", headers=make_headers("jane.doe@example.com")).json()
        assert profile["display_name"] == "Jane Doe"
        assert profile["timezone"] == "UTC"

    def test_update_profile(self, api_client, auth_headers):
        response = api_client.patch(
            "/v1/profile",
            json={"display_name": "Ali", "bio": "Hi", "timezone": "Europe/Lisbon"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["display_name"] == "Ali"
        assert body["timezone"] == "Europe/Lisbon"

    @pytest.mark.parametrize("payload", [{"timezone": "Mars/Olympus"}, {"display_name": "   "}])
    def test_invalid_profile_updates(self, api_client, auth_headers, payload):
        assert api_client.patch("/v1/profile", json=payload, headers=auth_headers).status_code == 400

    def test_header_snapshot(self, api_client, auth_headers):
        api_client.patch("/v1/preferences", json={"theme": "light"}, headers=auth_headers)
        header = api_client.get("/v1/header", headers=auth_headers).json()
        assert header["display_name"] == "Alice"
        assert header["theme"] == "light"
        assert len(header["today"]) == 10


class TestDatabaseUrl:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("postgres://u:p@db.example.com/app", "postgresql+asyncpg://u:p@db.example.com/app"),
            ("postgresql://u:p@db/app?sslmode=require&channel_binding=require", "postgresql+asyncpg://u:p@db/app?ssl=true"),
            ("postgresql://u:p@db/app?sslmode=disable", "postgresql+asyncpg://u:p@db/app"),
            ("sqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
            ("sqlite+aiosqlite:///tmp/x.db", "sqlite+aiosqlite:///tmp/x.db"),
        ],
    )
    def test_normalize(self, raw, expected):
        from miniapps_api.db import normalize_database_url

        assert normalize_database_url(raw) == expected
