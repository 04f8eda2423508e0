"""Calendar endpoints and recurrence handling."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from miniapps_api.services import recurrence


def _create(client, headers, **payload):
    payload.setdefault("title", "Standup")
    payload.setdefault("start_time", "2024-01-01T09:00:00")
    response = client.post("/v1/calendar/events", json=payload, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def _list(client, headers, start, end):
    response = client.get("/v1/calendar/events", params={"start": start, "end": end}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["items"]


class TestNormalizeRule:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("FREQ=DAILY", "FREQ=DAILY"),
            ("rrule:freq=weekly;interval=2", "FREQ=WEEKLY;INTERVAL=2"),
            ("COUNT=5;FREQ=MONTHLY", "FREQ=MONTHLY;COUNT=5"),
            ("FREQ=DAILY;UNTIL=20240131", "FREQ=DAILY;UNTIL=20240131T235959"),
            ("FREQ=YEARLY;UNTIL=20240131T120000Z", "FREQ=YEARLY;UNTIL=20240131T120000"),
            ("", None),
            (None, None),
        ],
    )
    def test_canonical_form(self, raw, expected):
        assert recurrence.normalize_rule(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [
            "FREQ=HOURLY",
            "INTERVAL=2",
            "FREQ=DAILY;BYDAY=MO",
            "FREQ=DAILY;COUNT=0",
            "FREQ=DAILY;COUNT=3;UNTIL=20240110",
            "FREQ=DAILY;UNTIL=tomorrow",
            "FREQ",
        ],
    )
    def test_rejected_rules(self, raw):
        with pytest.raises(ValueError):
            recurrence.normalize_rule(raw)


class TestExpandOccurrences:
    def test_weekly_interval(self):
        base = {
            "id": "evt-1",
            "title": "Review",
            "start": datetime(2024, 1, 1, 10, 0),
            "end": datetime(2024, 1, 1, 11, 0),
            "recurrence_rule": "FREQ=WEEKLY;INTERVAL=2",
        }
        occurrences = recurrence.expand_occurrences([base], datetime(2024, 1, 1), datetime(2024, 2, 1))
        assert [item["start"].date() for item in occurrences] == [
            date(2024, 1, 1),
            date(2024, 1, 15),
            date(2024, 1, 29),
        ]
        assert all(item["end"] - item["start"] == timedelta(hours=1) for item in occurrences)

    def test_non_recurring_events_are_skipped(self):
        plain = {"id": "evt-2", "start": datetime(2024, 1, 1), "end": datetime(2024, 1, 1, 1)}
        assert recurrence.expand_occurrences([plain], datetime(2024, 1, 1), datetime(2024, 1, 2)) == []


class TestEventEndpoints:
    def test_create_defaults_to_one_hour(self, api_client, auth_headers):
        event = _create(api_client, auth_headers)
        assert event["start_time"] == "2024-01-01T09:00:00"
        assert event["end_time"] == "2024-01-01T10:00:00"
        assert event["is_all_day"] is False

    def test_offsets_are_dropped_to_wall_clock(self, api_client, auth_headers):
        event = _create(api_client, auth_headers, start_time="2024-01-01T09:00:00+02:00")
        assert event["start_time"] == "2024-01-01T09:00:00"

    def test_all_day_spans_whole_day(self, api_client, auth_headers):
        event = _create(api_client, auth_headers, start_time="2024-02-10T15:00:00", is_all_day=True)
        assert event["start_time"] == "2024-02-10T00:00:00"
        assert event["end_time"] == "2024-02-10T23:59:59"

    def test_end_before_start_is_rejected(self, api_client, auth_headers):
        response = api_client.post(
            "/v1/calendar/events",
            json={"title": "Bad", "start_time": "2024-01-02T10:00:00", "end_time": "2024-01-02T09:00:00"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_invalid_rule_is_rejected(self, api_client, auth_headers):
        response = api_client.post(
            "/v1/calendar/events",
            json={"title": "Bad", "start_time": "2024-01-02T10:00:00", "recurrence_rule": "FREQ=SECONDLY"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_range_includes_overlapping_multi_day_event(self, api_client, auth_headers):
        _create(api_client, auth_headers, title="Overnight", start_time="2024-03-01T22:00:00", end_time="2024-03-02T02:00:00")
        _create(api_client, auth_headers, title="Elsewhere", start_time="2024-03-05T09:00:00")
        items = _list(api_client, auth_headers, "2024-03-02", "2024-03-02")
        assert [item["title"] for item in items] == ["Overnight"]
        assert items[0]["is_occurrence"] is False

    def test_recurring_event_is_expanded(self, api_client, auth_headers):
        event = _create(api_client, auth_headers, recurrence_rule="FREQ=DAILY;COUNT=3")
        items = _list(api_client, auth_headers, "2024-01-01", "2024-01-07")
        assert [item["start_time"] for item in items] == [
            "2024-01-01T09:00:00",
            "2024-01-02T09:00:00",
            "2024-01-03T09:00:00",
        ]
        assert all(item["id"] == event["id"] and item["is_occurrence"] for item in items)
        assert items[1]["occurrence_start"] == "2024-01-02T09:00:00"
        assert items[1]["end_time"] == "2024-01-02T10:00:00"

    def test_until_date_includes_last_day(self, api_client, auth_headers):
        event = _create(api_client, auth_headers, recurrence_rule="FREQ=DAILY;UNTIL=20240103")
        assert event["recurrence_rule"] == "FREQ=DAILY;UNTIL=20240103T235959"
        items = _list(api_client, auth_headers, "2024-01-01", "2024-01-10")
        assert len(items) == 3

    def test_window_inside_series(self, api_client, auth_headers):
        _create(api_client, auth_headers, recurrence_rule="FREQ=WEEKLY")
        items = _list(api_client, auth_headers, "2024-02-05", "2024-02-05")
        assert [item["start_time"] for item in items] == ["2024-02-05T09:00:00"]

    def test_range_must_be_ordered(self, api_client, auth_headers):
        response = api_client.get(
            "/v1/calendar/events", params={"start": "2024-02-02", "end": "2024-02-01"}, headers=auth_headers
        )
        assert response.status_code == 400

    def test_upcoming(self, api_client, auth_headers):
        soon = (date.today() + timedelta(days=2)).isoformat()
        _create(api_client, auth_headers, title="Past", start_time="2001-01-01T09:00:00")
        _create(api_client, auth_headers, title="Soon", start_time=f"{soon}T10:00:00")
        items = api_client.get("/v1/calendar/upcoming", params={"limit": 3}, headers=auth_headers).json()["items"]
        assert [item["title"] for item in items] == ["Soon"]

    def test_get_patch_delete(self, api_client, auth_headers, other_headers):
        event = _create(api_client, auth_headers)
        assert api_client.get(f"/v1/calendar/events/{event['id']}", headers=other_headers).status_code == 404
        patched = api_client.patch(
            f"/v1/calendar/events/{event['id']}",
            json={"title": "Retro", "end_time": "2024-01-01T11:30:00"},
            headers=auth_headers,
        ).json()
        assert patched["title"] == "Retro"
        assert patched["start_time"] == "2024-01-01T09:00:00"
        assert patched["end_time"] == "2024-01-01T11:30:00"
        assert api_client.delete(f"/v1/calendar/events/{event['id']}", headers=auth_headers).json() == {"ok": True}
        assert api_client.get(f"/v1/calendar/events/{event['id']}", headers=auth_headers).status_code == 404

    def test_ics_export(self, api_client, auth_headers):
        _create(api_client, auth_headers, title="Standup", recurrence_rule="FREQ=DAILY;COUNT=3", location="Room 1")
        response = api_client.get("/v1/calendar/export.ics", headers=auth_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/calendar")
        body = response.text
        assert "BEGIN:VCALENDAR" in body
        assert "SUMMARY:Standup" in body
        assert "LOCATION:Room 1" in body
        assert "RRULE:FREQ=DAILY" in body
