"""Display formatting, the month grid and chart data frames."""

from __future__ import annotations

from datetime import date, datetime, timezone

import numpy as np
import pytest

from miniapps_shell import calendar_grid, formatting, visualizations

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


class TestFormatting:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2024-05-10T11:59:30+00:00", "Just now"),
            ("2024-05-10T11:15:00Z", "45m ago"),
            ("2024-05-10T02:00:00", "10h ago"),
            ("2024-05-07T12:00:00+00:00", "3d ago"),
            ("2024-04-01T12:00:00+00:00", "Apr 01, 2024"),
            ("not a date", ""),
            (None, ""),
        ],
    )
    def test_time_ago(self, value, expected):
        assert formatting.time_ago(value, now=NOW) == expected

    @pytest.mark.parametrize(
        "minutes, expected",
        [
            (None, "No reminder"),
            (0, "At start"),
            (15, "15 minutes before"),
            (60, "1 hour before"),
            (120, "2 hours before"),
            (1440, "1 day before"),
        ],
    )
    def test_reminder_label(self, minutes, expected):
        assert formatting.reminder_label(minutes) == expected

    def test_format_money(self):
        assert formatting.format_money(1234.5, "USD", "$") == "$1,234.50"
        assert formatting.format_money(1234.5, "CHF") == "CHF 1,234.50"
        assert formatting.format_money(-3, "EUR", "€") == "-€3.00"
        assert formatting.format_money(None) == "USD 0.00"

    def test_format_event_time(self):
        assert formatting.format_event_time({"is_all_day": True}) == "All day"
        event = {"start_time": "2024-05-10T09:00:00", "end_time": "2024-05-10T10:30:00"}
        assert formatting.format_event_time(event) == "09:00 - 10:30"

    def test_format_day(self):
        assert formatting.format_day("2024-05-10T09:00:00") == "Fri, May 10"


class TestCalendarGrid:
    def test_month_grid_starts_on_sunday(self):
        cells = calendar_grid.month_grid(2024, 5)
        assert len(cells) == calendar_grid.GRID_DAYS
        assert cells[0]["date"] == date(2024, 4, 28)
        assert cells[0]["in_month"] is False
        assert cells[3]["date"] == date(2024, 5, 1)
        assert sum(cell["in_month"] for cell in cells) == 31

    def test_month_starting_on_sunday(self):
        assert calendar_grid.grid_bounds(2024, 9) == (date(2024, 9, 1), date(2024, 10, 12))

    def test_week_days(self):
        days = calendar_grid.week_days(date(2024, 5, 10))
        assert days[0] == date(2024, 5, 5)
        assert days[-1] == date(2024, 5, 11)

    @pytest.mark.parametrize(
        "year, month, delta, expected",
        [(2024, 1, -1, (2023, 12)), (2024, 12, 1, (2025, 1)), (2024, 5, 14, (2025, 7)), (2024, 5, 0, (2024, 5))],
    )
    def test_shift_month(self, year, month, delta, expected):
        assert calendar_grid.shift_month(year, month, delta) == expected

    def test_events_for_day_spans_and_order(self):
        events = [
            {"title": "Late", "start_time": "2024-05-10T18:00:00", "end_time": "2024-05-10T19:00:00"},
            {"title": "Trip", "start_time": "2024-05-09T08:00:00", "end_time": "2024-05-11T20:00:00"},
            {"title": "Holiday", "start_time": "2024-05-10T00:00:00", "end_time": "2024-05-10T23:59:59", "is_all_day": True},
            {"title": "Other", "start_time": "2024-05-12T09:00:00", "end_time": "2024-05-12T10:00:00"},
        ]
        titles = [event["title"] for event in calendar_grid.events_for_day(events, date(2024, 5, 10))]
        assert titles == ["Holiday", "Trip", "Late"]
        assert [event["title"] for event in calendar_grid.events_for_day(events, "2024-05-11")] == ["Trip"]

    def test_month_html_marks_today_and_overflow(self):
        events = [
            {"title": f"E{index}", "start_time": f"2024-05-10T0{index}:00:00", "end_time": f"2024-05-10T0{index}:30:00"}
            for index in range(5)
        ]
        events.append({"title": "<b>x</b>", "start_time": "2024-05-11T09:00:00", "end_time": "2024-05-11T10:00:00"})
        markup = visualizations.build_month_calendar_html(2024, 5, events, today=date(2024, 5, 10))
        assert markup.count("<tr>") == 7
        assert "calendar-cell today" in markup
        assert "+2 more" in markup
        assert "&lt;b&gt;x&lt;/b&gt;" in markup


class TestChartFrames:
    def test_usage_frame(self):
        usage = {"metrics": {"completed_todos": {"this_month": 4, "last_month": 1}}}
        frame = visualizations.usage_frame(usage)
        assert len(frame) == 6
        todo_rows = frame[frame["metric"] == "Completed to-dos"]
        assert todo_rows["count"].tolist() == [1, 4]
        assert frame["count"].sum() == 5

    def test_budget_chart_skips_empty(self):
        assert visualizations.budget_category_chart({"by_category": {}}) is None

    def test_habit_matrix(self):
        habits = [{"id": "h1"}, {"id": "h2"}]
        completions = [
            {"habit_id": "h1", "completed_date": "2024-05-10"},
            {"habit_id": "h2", "completed_date": "2024-05-04"},
            {"habit_id": "h2", "completed_date": "2024-01-01"},
            {"habit_id": "gone", "completed_date": "2024-05-10"},
        ]
        matrix, labels = visualizations.habit_completion_matrix(habits, completions, date(2024, 5, 10), days=7)
        assert matrix.shape == (2, 7)
        assert matrix[0, 6] == 1.0
        assert matrix[1, 0] == 1.0
        assert np.sum(matrix) == 2.0
        assert labels[0] == "04/05"
        assert labels[-1] == "10/05"

    def test_pomodoro_week_frame(self):
        sessions = [
            {"session_type": "work", "duration_minutes": 25, "completed_at": "2024-05-10T09:00:00.000000+00:00"},
            {"session_type": "work", "duration_minutes": 25, "completed_at": "2024-05-10T10:00:00.000000+00:00"},
            {"session_type": "short_break", "duration_minutes": 5, "completed_at": "2024-05-10T10:30:00.000000+00:00"},
            {"session_type": "work", "duration_minutes": 25, "completed_at": "2024-05-08T09:00:00+00:00"},
            {"session_type": "work", "duration_minutes": 25, "completed_at": "2024-04-01T09:00:00+00:00"},
        ]
        frame = visualizations.pomodoro_week_frame(sessions, date(2024, 5, 10))
        assert frame["day"].tolist() == ["Sat", "Sun", "Mon", "Tue", "Wed", "Thu", "Fri"]
        assert frame["minutes"].tolist() == [0, 0, 0, 0, 25, 0, 50]

    def test_pomodoro_week_frame_empty(self):
        frame = visualizations.pomodoro_week_frame([], date(2024, 5, 10))
        assert frame["minutes"].tolist() == [0] * 7
