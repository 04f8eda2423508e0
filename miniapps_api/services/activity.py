from __future__ import annotations

from datetime import datetime

from miniapps_api.repositories.common import parse_datetime

FEED_LIMIT = 10
SOURCE_LIMIT = 5

# Tie order when two apps have the same monthly count.
USAGE_METRICS = [
    ("completed_todos", "To-Do List"),
    ("pomodoro_sessions", "Pomodoro Timer"),
    ("notes_created", "Notes Manager"),
]


def percentage_change(this_month: int, last_month: int) -> int:
    if last_month > 0:
        return round((this_month - last_month) / last_month * 100)
    return 100 if this_month > 0 else 0


def month_bounds(local_now: datetime) -> tuple[datetime, datetime, datetime]:
    """Start of last month, this month and next month in ``local_now``'s timezone."""
    this_start = local_now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if this_start.month == 1:
        last_start = this_start.replace(year=this_start.year - 1, month=12)
    else:
        last_start = this_start.replace(month=this_start.month - 1)
    if this_start.month == 12:
        next_start = this_start.replace(year=this_start.year + 1, month=1)
    else:
        next_start = this_start.replace(month=this_start.month + 1)
    return last_start, this_start, next_start


def usage_statistics(this_month: dict, last_month: dict) -> dict:
    metrics = {}
    for key, _ in USAGE_METRICS:
        current = int(this_month.get(key) or 0)
        previous = int(last_month.get(key) or 0)
        metrics[key] = {
            "this_month": current,
            "last_month": previous,
            "percentage_change": percentage_change(current, previous),
        }
    most_used = None
    best = 0
    for key, label in USAGE_METRICS:
        count = metrics[key]["this_month"]
        if count > best:
            best = count
            most_used = label
    return {"metrics": metrics, "most_used_app": most_used, "most_used_count": best}


def build_activity_feed(todos: list[dict], sessions: list[dict], notes: list[dict], limit: int = FEED_LIMIT) -> list[dict]:
    items = []
    for todo in todos[:SOURCE_LIMIT]:
        if not todo.get("completed_at"):
            continue
        items.append({
            "type": "todo",
            "description": f"Completed: {todo.get('title')}",
            "timestamp": todo["completed_at"],
            "icon": "✅",
        })
    for session in sessions[:SOURCE_LIMIT]:
        minutes = int(session.get("duration_minutes") or 0)
        if session.get("session_type") == "work":
            description = f"Completed {minutes} min focus session"
        else:
            description = f"Took a {minutes} min break"
        items.append({
            "type": "pomodoro",
            "description": description,
            "timestamp": session["completed_at"],
            "icon": "⏱️",
        })
    for note in notes[:SOURCE_LIMIT]:
        items.append({
            "type": "note",
            "description": f"Created: {note.get('title')}",
            "timestamp": note["created_at"],
            "icon": "📝",
        })
    items.sort(key=lambda item: parse_datetime(item["timestamp"]), reverse=True)
    return items[:limit]
