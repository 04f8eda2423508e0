from __future__ import annotations

from datetime import date, timedelta

from miniapps_api.repositories.common import parse_date


def _unique_dates_desc(dates) -> list[date]:
    parsed = {parse_date(value) for value in dates or []}
    parsed.discard(None)
    return sorted(parsed, reverse=True)


def current_streak(dates, today: date) -> int:
    """Consecutive completion days ending today, or yesterday when today is still open."""
    ordered = [day for day in _unique_dates_desc(dates) if day <= today]
    if not ordered or ordered[0] < today - timedelta(days=1):
        return 0
    streak = 0
    expected = ordered[0]
    for day in ordered:
        if day != expected:
            break
        streak += 1
        expected = day - timedelta(days=1)
    return streak


def longest_streak(dates) -> int:
    ordered = sorted(_unique_dates_desc(dates))
    best = 0
    run = 0
    previous = None
    for day in ordered:
        if previous is not None and day - previous == timedelta(days=1):
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = day
    return best


def completion_rate(dates, today: date, window_days: int = 30) -> float:
    if window_days <= 0:
        return 0.0
    start = today - timedelta(days=window_days - 1)
    done = {day for day in _unique_dates_desc(dates) if start <= day <= today}
    return round(len(done) / window_days * 100, 1)
