"""Habit tracker endpoints and streak arithmetic."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from miniapps_api.services import streaks


def _create(client, headers, **payload):
    payload.setdefault("name", "Read")
    response = client.post("/v1/habits", json=payload, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def _toggle(client, headers, habit_id, day):
    return client.post(f"/v1/habits/{habit_id}/completions/toggle", json={"date": day.isoformat()}, headers=headers)


class TestStreaks:
    TODAY = date(2024, 3, 10)

    def _days(self, *offsets):
        return [(self.TODAY - timedelta(days=offset)).isoformat() for offset in offsets]

    def test_streak_ending_today(self):
        assert streaks.current_streak(self._days(0, 1, 2), self.TODAY) == 3

    def test_streak_may_end_yesterday(self):
        assert streaks.current_streak(self._days(1, 2), self.TODAY) == 2

    def test_gap_before_yesterday_breaks_streak(self):
        assert streaks.current_streak(self._days(2, 3, 4), self.TODAY) == 0

    def test_gap_inside_run_stops_count(self):
        assert streaks.current_streak(self._days(0, 1, 3, 4, 5), self.TODAY) == 2

    def test_duplicates_and_future_dates_ignored(self):
        dates = self._days(0, 0, 1) + [(self.TODAY + timedelta(days=1)).isoformat()]
        assert streaks.current_streak(dates, self.TODAY) == 2

    def test_empty_history(self):
        assert streaks.current_streak([], self.TODAY) == 0
        assert streaks.longest_streak([]) == 0

    def test_longest_streak(self):
        assert streaks.longest_streak(self._days(0, 1, 5, 6, 7, 8, 20)) == 4

    @pytest.mark.parametrize(
        "offsets, window, expected",
        [((0, 1, 2), 30, 10.0), ((0, 40), 30, 3.3), ((), 30, 0.0), ((0,), 0, 0.0)],
    )
    def test_completion_rate(self, offsets, window, expected):
        assert streaks.completion_rate(self._days(*offsets), self.TODAY, window) == expected


class TestHabitEndpoints:
    def test_create_uses_palette_defaults(self, api_client, auth_headers):
        habit = _create(api_client, auth_headers)
        listing = api_client.get("/v1/habits", headers=auth_headers).json()
        assert habit["color"] == listing["colors"][0]
        assert habit["icon"] == listing["icons"][0]
        assert listing["items"][0]["current_streak"] == 0

    @pytest.mark.parametrize(
        "payload",
        [{"name": " "}, {"color": "#000000"}, {"frequency": "hourly"}, {"target_days": [7]}],
    )
    def test_invalid_habits_are_rejected(self, api_client, auth_headers, payload):
        body = {"name": "Stretch", **payload}
        assert api_client.post("/v1/habits", json=body, headers=auth_headers).status_code == 400

    def test_toggle_completion_updates_stats(self, api_client, auth_headers):
        habit = _create(api_client, auth_headers)
        today = date.fromisoformat(api_client.get("/v1/habits", headers=auth_headers).json()["today"])
        for offset in range(3):
            result = _toggle(api_client, auth_headers, habit["id"], today - timedelta(days=offset)).json()
            assert result["completed"] is True

        item = api_client.get("/v1/habits", headers=auth_headers).json()["items"][0]
        assert item["current_streak"] == 3
        assert item["longest_streak"] == 3
        assert item["completed_today"] is True
        assert item["completion_rate_30d"] == 10.0

        undone = _toggle(api_client, auth_headers, habit["id"], today).json()
        assert undone == {"habit_id": habit["id"], "date": today.isoformat(), "completed": False}
        item = api_client.get("/v1/habits", headers=auth_headers).json()["items"][0]
        assert item["current_streak"] == 2
        assert item["completed_today"] is False

    def test_completions_range(self, api_client, auth_headers):
        habit = _create(api_client, auth_headers)
        _toggle(api_client, auth_headers, habit["id"], date(2024, 1, 5))
        _toggle(api_client, auth_headers, habit["id"], date(2024, 2, 5))
        items = api_client.get(
            "/v1/habits/completions", params={"start": "2024-01-01", "end": "2024-01-31"}, headers=auth_headers
        ).json()["items"]
        assert [item["completed_date"] for item in items] == ["2024-01-05"]
        assert items[0]["habit_id"] == habit["id"]

    def test_completions_range_must_be_ordered(self, api_client, auth_headers):
        response = api_client.get(
            "/v1/habits/completions", params={"start": "2024-02-01", "end": "2024-01-01"}, headers=auth_headers
        )
        assert response.status_code == 400

    def test_toggle_unknown_habit(self, api_client, auth_headers):
        assert _toggle(api_client, auth_headers, "missing", date(2024, 1, 1)).status_code == 404

    def test_archive_hides_habit(self, api_client, auth_headers):
        habit = _create(api_client, auth_headers)
        archived = api_client.post(f"/v1/habits/{habit['id']}/archive", headers=auth_headers).json()
        assert archived["archived_at"]
        assert api_client.get("/v1/habits", headers=auth_headers).json()["items"] == []

    def test_patch_and_delete(self, api_client, auth_headers):
        habit = _create(api_client, auth_headers)
        patched = api_client.patch(f"/v1/habits/{habit['id']}", json={"name": "Read more"}, headers=auth_headers)
        assert patched.json()["name"] == "Read more"
        assert api_client.delete(f"/v1/habits/{habit['id']}", headers=auth_headers).json() == {"ok": True}
        assert api_client.patch(f"/v1/habits/{habit['id']}", json={"name": "x"}, headers=auth_headers).status_code == 404
