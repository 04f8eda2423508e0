"""Pomodoro session recording and cycle rules."""

from __future__ import annotations

import pytest

from miniapps_api.services.pomodoro import next_session_type


def _record(client, headers, session_type="work", **extra):
    response = client.post("/v1/pomodoro/sessions", json={"session_type": session_type, **extra}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


class TestNextSessionType:
    @pytest.mark.parametrize(
        "current, completed, expected",
        [
            ("work", 0, "short_break"),
            ("work", 2, "short_break"),
            ("work", 3, "long_break"),
            ("work", 7, "long_break"),
            ("short_break", 3, "work"),
            ("long_break", 4, "work"),
        ],
    )
    def test_cycle(self, current, completed, expected):
        assert next_session_type(current, completed) == expected

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            next_session_type("nap", 0)


class TestPomodoroEndpoints:
    def test_duration_defaults_by_type(self, api_client, auth_headers):
        assert _record(api_client, auth_headers)["duration_minutes"] == 25
        assert _record(api_client, auth_headers, "short_break")["duration_minutes"] == 5
        assert _record(api_client, auth_headers, "long_break")["duration_minutes"] == 15

    def test_fourth_work_session_of_a_run_earns_long_break(self, api_client, auth_headers):
        results = [
            _record(api_client, auth_headers, completed_work_count=count)["next_session_type"] for count in range(4)
        ]
        assert results == ["short_break", "short_break", "short_break", "long_break"]
        assert _record(api_client, auth_headers, "long_break")["next_session_type"] == "work"

    def test_new_run_ignores_earlier_history(self, api_client, auth_headers):
        for count in range(3):
            _record(api_client, auth_headers, completed_work_count=count)
        assert _record(api_client, auth_headers)["next_session_type"] == "short_break"

    def test_negative_run_count_is_rejected(self, api_client, auth_headers):
        response = api_client.post(
            "/v1/pomodoro/sessions", json={"session_type": "work", "completed_work_count": -1}, headers=auth_headers
        )
        assert response.status_code == 422

    @pytest.mark.parametrize("payload", [{"session_type": "nap"}, {"session_type": "work", "duration_minutes": 0}])
    def test_invalid_sessions(self, api_client, auth_headers, payload):
        assert api_client.post("/v1/pomodoro/sessions", json=payload, headers=auth_headers).status_code == 400

    def test_stats_and_history(self, api_client, auth_headers):
        _record(api_client, auth_headers)
        _record(api_client, auth_headers, "short_break")
        _record(api_client, auth_headers, completed_at="2020-01-01T10:00:00Z")

        stats = api_client.get("/v1/pomodoro/stats", headers=auth_headers).json()
        assert stats["today_sessions"] == 1
        assert stats["today_minutes"] == 30
        assert stats["week_sessions"] == 1
        assert stats["total_sessions"] == 2
        assert stats["durations"] == {"work": 25, "short_break": 5, "long_break": 15}

        history = api_client.get("/v1/pomodoro/sessions", params={"limit": 2}, headers=auth_headers).json()["items"]
        assert len(history) == 2
        assert all(not item["completed_at"].startswith("2020") for item in history)

    def test_history_is_per_user(self, api_client, auth_headers, other_headers):
        _record(api_client, auth_headers)
        assert api_client.get("/v1/pomodoro/sessions", headers=other_headers).json()["items"] == []
        assert api_client.get("/v1/pomodoro/stats", headers=other_headers).json()["total_sessions"] == 0
