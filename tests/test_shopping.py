"""Shared shopping lists: roles, items and grouping."""

from __future__ import annotations

from miniapps_api.services import shopping


def _create_list(client, headers, name="Groceries"):
    response = client.post("/v1/shopping/lists", json={"name": name}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def _add_item(client, headers, list_id, **payload):
    payload.setdefault("name", "Milk")
    return client.post(f"/v1/shopping/lists/{list_id}/items", json=payload, headers=headers)


class TestShoppingHelpers:
    def test_category_normalization(self):
        assert shopping.normalize_category("dairy") == "Dairy"
        assert shopping.normalize_category("Hardware") == "Other"
        assert shopping.normalize_category(None) == "Other"

    def test_grouping_follows_category_order(self):
        items = [{"name": "Chips", "category": "Snacks"}, {"name": "Apple", "category": "produce"}]
        grouped = shopping.group_by_category(items)
        assert list(grouped) == ["Produce", "Snacks"]

    def test_progress(self):
        assert shopping.progress([]) == 0
        items = [{"is_checked": True}, {"is_checked": False}, {"is_checked": False}]
        assert shopping.progress(items) == 33


class TestOwnerFlow:
    def test_list_detail_with_items(self, api_client, auth_headers):
        groceries = _create_list(api_client, auth_headers)
        assert groceries["role"] == "owner"
        _add_item(api_client, auth_headers, groceries["id"], name="Bread", category="bakery")
        milk = _add_item(api_client, auth_headers, groceries["id"], category="Dairy", quantity="2 L").json()
        api_client.post(f"/v1/shopping/lists/{groceries['id']}/items/{milk['id']}/toggle", headers=auth_headers)

        detail = api_client.get(f"/v1/shopping/lists/{groceries['id']}", headers=auth_headers).json()
        assert detail["role"] == "owner"
        assert detail["progress"] == 50
        assert list(detail["grouped"]) == ["Dairy", "Bakery"]
        assert detail["items"][0]["name"] == "Bread"
        checked = next(item for item in detail["items"] if item["name"] == "Milk")
        assert checked["is_checked"] is True
        assert checked["checked_by"] == "alice@example.com"

        summary = api_client.get("/v1/shopping/lists", headers=auth_headers).json()["items"][0]
        assert summary["item_count"] == 2
        assert summary["checked_count"] == 1

    def test_clear_checked_and_delete_item(self, api_client, auth_headers):
        groceries = _create_list(api_client, auth_headers)
        eggs = _add_item(api_client, auth_headers, groceries["id"], name="Eggs").json()
        tea = _add_item(api_client, auth_headers, groceries["id"], name="Tea").json()
        api_client.post(f"/v1/shopping/lists/{groceries['id']}/items/{eggs['id']}/toggle", headers=auth_headers)
        cleared = api_client.delete(f"/v1/shopping/lists/{groceries['id']}/items/checked", headers=auth_headers)
        assert cleared.json() == {"ok": True, "deleted": 1}
        deleted = api_client.delete(f"/v1/shopping/lists/{groceries['id']}/items/{tea['id']}", headers=auth_headers)
        assert deleted.json() == {"ok": True}
        assert api_client.get(f"/v1/shopping/lists/{groceries['id']}", headers=auth_headers).json()["items"] == []

    def test_rename_and_delete_list(self, api_client, auth_headers):
        groceries = _create_list(api_client, auth_headers)
        renamed = api_client.patch(
            f"/v1/shopping/lists/{groceries['id']}", json={"name": "Weekly"}, headers=auth_headers
        )
        assert renamed.json()["name"] == "Weekly"
        assert api_client.delete(f"/v1/shopping/lists/{groceries['id']}", headers=auth_headers).json() == {"ok": True}
        assert api_client.get(f"/v1/shopping/lists/{groceries['id']}", headers=auth_headers).status_code == 404

    def test_owner_cannot_add_self(self, api_client, auth_headers):
        groceries = _create_list(api_client, auth_headers)
        response = api_client.post(
            f"/v1/shopping/lists/{groceries['id']}/members",
            json={"email": "Alice@example.com"},
            headers=auth_headers,
        )
        assert response.status_code == 400


class TestSharing:
    def _share(self, client, headers, list_id, email, role):
        response = client.post(
            f"/v1/shopping/lists/{list_id}/members", json={"email": email, "role": role}, headers=headers
        )
        assert response.status_code == 200, response.text
        return response.json()

    def test_strangers_cannot_see_list(self, api_client, auth_headers, other_headers):
        groceries = _create_list(api_client, auth_headers)
        assert api_client.get(f"/v1/shopping/lists/{groceries['id']}", headers=other_headers).status_code == 404
        assert _add_item(api_client, other_headers, groceries["id"]).status_code == 404
        assert api_client.get("/v1/shopping/lists", headers=other_headers).json()["items"] == []

    def test_editor_can_edit_items_but_not_list(self, api_client, auth_headers, other_headers):
        groceries = _create_list(api_client, auth_headers)
        member = self._share(api_client, auth_headers, groceries["id"], "Bob@Example.com", "editor")
        assert member["user_id"] == "bob@example.com"

        shared = api_client.get("/v1/shopping/lists", headers=other_headers).json()["items"]
        assert [(item["name"], item["role"], item["is_shared"]) for item in shared] == [("Groceries", "editor", True)]

        assert _add_item(api_client, other_headers, groceries["id"], name="Cheese").status_code == 200
        rename = api_client.patch(f"/v1/shopping/lists/{groceries['id']}", json={"name": "Mine"}, headers=other_headers)
        assert rename.status_code == 403
        assert api_client.delete(f"/v1/shopping/lists/{groceries['id']}", headers=other_headers).status_code == 403

    def test_viewer_is_read_only(self, api_client, auth_headers, other_headers):
        groceries = _create_list(api_client, auth_headers)
        item = _add_item(api_client, auth_headers, groceries["id"]).json()
        self._share(api_client, auth_headers, groceries["id"], "bob@example.com", "viewer")

        detail = api_client.get(f"/v1/shopping/lists/{groceries['id']}", headers=other_headers).json()
        assert detail["role"] == "viewer"
        assert [entry["name"] for entry in detail["items"]] == ["Milk"]
        assert _add_item(api_client, other_headers, groceries["id"]).status_code == 403
        toggle = api_client.post(
            f"/v1/shopping/lists/{groceries['id']}/items/{item['id']}/toggle", headers=other_headers
        )
        assert toggle.status_code == 403

    def test_reshare_updates_role_and_removal_unshares(self, api_client, auth_headers, other_headers):
        groceries = _create_list(api_client, auth_headers)
        self._share(api_client, auth_headers, groceries["id"], "bob@example.com", "viewer")
        self._share(api_client, auth_headers, groceries["id"], "bob@example.com", "editor")
        members = api_client.get(f"/v1/shopping/lists/{groceries['id']}", headers=auth_headers).json()["members"]
        assert [(m["user_id"], m["role"]) for m in members] == [("bob@example.com", "editor")]

        removed = api_client.delete(
            f"/v1/shopping/lists/{groceries['id']}/members/bob@example.com", headers=auth_headers
        )
        assert removed.json() == {"ok": True}
        assert api_client.get(f"/v1/shopping/lists/{groceries['id']}", headers=other_headers).status_code == 404
        assert api_client.get(f"/v1/shopping/lists/{groceries['id']}", headers=auth_headers).json()["is_shared"] is False

    def test_removing_a_non_member_is_not_found(self, api_client, auth_headers):
        groceries = _create_list(api_client, auth_headers)
        self._share(api_client, auth_headers, groceries["id"], "bob@example.com", "viewer")
        missing = api_client.delete(
            f"/v1/shopping/lists/{groceries['id']}/members/carol@example.com", headers=auth_headers
        )
        assert missing.status_code == 404
        assert api_client.get(f"/v1/shopping/lists/{groceries['id']}", headers=auth_headers).json()["is_shared"] is True

    def test_invalid_role(self, api_client, auth_headers):
        groceries = _create_list(api_client, auth_headers)
        response = api_client.post(
            f"/v1/shopping/lists/{groceries['id']}/members",
            json={"email": "bob@example.com", "role": "owner"},
            headers=auth_headers,
        )
        assert response.status_code == 422
