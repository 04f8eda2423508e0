"""Notes and snippets endpoints."""

from __future__ import annotations

import pytest


def _create(client, headers, **payload):
    payload.setdefault("title", "Untitled")
    response = client.post("/v1/notes", json=payload, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def _titles(client, headers, **params):
    response = client.get("/v1/notes", params=params, headers=headers)
    assert response.status_code == 200, response.text
    return sorted(item["title"] for item in response.json()["items"])


class TestNotes:
    def test_tags_are_trimmed_and_deduplicated(self, api_client, auth_headers):
        note = _create(api_client, auth_headers, tags=[" python ", "Python", "sql", ""])
        assert note["tags"] == ["python", "sql"]
        assert note["content_type"] == "note"
        assert note["is_favorite"] is False

    def test_invalid_content_type(self, api_client, auth_headers):
        response = api_client.post("/v1/notes", json={"title": "x", "content_type": "video"}, headers=auth_headers)
        assert response.status_code == 400

    def test_filters(self, api_client, auth_headers):
        _create(api_client, auth_headers, title="Plain")
        _create(api_client, auth_headers, title="Snippet", content_type="code", language="python")
        _create(api_client, auth_headers, title="Doc", content_type="markdown", is_favorite=True)
        assert _titles(api_client, auth_headers) == ["Doc", "Plain", "Snippet"]
        assert _titles(api_client, auth_headers, filter="code") == ["Snippet"]
        assert _titles(api_client, auth_headers, filter="favorites") == ["Doc"]
        assert api_client.get("/v1/notes", params={"filter": "images"}, headers=auth_headers).status_code == 400

    @pytest.mark.parametrize("query, expected", [("SELECT", ["Query"]), ("groceries", ["List"]), ("ops", ["Query"])])
    def test_search_covers_title_content_and_tags(self, api_client, auth_headers, query, expected):
        _create(api_client, auth_headers, title="Query", content="select * from users", tags=["devops"])
        _create(api_client, auth_headers, title="List", content="eggs", tags=["Groceries"])
        assert _titles(api_client, auth_headers, search=query) == expected

    def test_tag_listing_is_case_insensitive_sorted(self, api_client, auth_headers):
        _create(api_client, auth_headers, title="a", tags=["beta", "Alpha"])
        _create(api_client, auth_headers, title="b", tags=["alpha", "gamma"])
        tags = api_client.get("/v1/notes/tags", headers=auth_headers).json()["items"]
        assert [tag.lower() for tag in tags] == ["alpha", "beta", "gamma"]

    def test_favorite_toggle_patch_delete(self, api_client, auth_headers, other_headers):
        note = _create(api_client, auth_headers)
        assert api_client.post(f"/v1/notes/{note['id']}/favorite", headers=auth_headers).json()["is_favorite"] is True
        assert api_client.post(f"/v1/notes/{note['id']}/favorite", headers=auth_headers).json()["is_favorite"] is False
        assert api_client.post(f"/v1/notes/{note['id']}/favorite", headers=other_headers).status_code == 404

        patched = api_client.patch(
            f"/v1/notes/{note['id']}", json={"content": "# Title", "content_type": "markdown"}, headers=auth_headers
        ).json()
        assert patched["content"] == "# Title"
        assert patched["content_type"] == "markdown"

        assert api_client.delete(f"/v1/notes/{note['id']}", headers=auth_headers).json() == {"ok": True}
        assert api_client.delete(f"/v1/notes/{note['id']}", headers=auth_headers).status_code == 404
