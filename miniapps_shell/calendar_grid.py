from datetime import date, timedelta

GRID_DAYS = 42
WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def _sunday_on_or_before(day):
    # date.weekday(): Monday=0 .. Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def month_grid(year, month):
    """Six full weeks starting on the Sunday on or before the 1st of the month."""
    first = date(year, month, 1)
    start = _sunday_on_or_before(first)
    return [
        {
            "date": start + timedelta(days=offset),
            "in_month": (start + timedelta(days=offset)).month == month,
        }
        for offset in range(GRID_DAYS)
    ]


def grid_bounds(year, month):
    cells = month_grid(year, month)
    return cells[0]["date"], cells[-1]["date"]


def week_days(anchor):
    start = _sunday_on_or_before(anchor)
    return [start + timedelta(days=offset) for offset in range(7)]


def shift_month(year, month, delta):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def event_span(event):
    start = str(event.get("start_time") or event.get("occurrence_start") or "")[:10]
    end = str(event.get("end_time") or "")[:10] or start
    return start, max(start, end)


def events_for_day(events, day):
    """Events touching ``day``; multi-day events appear on every day they span."""
    day_iso = day.isoformat() if isinstance(day, date) else str(day)[:10]
    matching = []
    for event in events:
        start, end = event_span(event)
        if start <= day_iso <= end:
            matching.append(event)
    return sorted(matching, key=lambda event: (not event.get("is_all_day"), str(event.get("start_time") or "")))
