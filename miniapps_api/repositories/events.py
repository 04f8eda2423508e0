from __future__ import annotations

from datetime import date, datetime, timedelta

from sqlalchemy import text as sql_text

from miniapps_api.db import get_sessionmaker
from miniapps_api.db_init import EVENTS_TABLE
from miniapps_api.repositories.common import (
    build_update,
    clean_text,
    new_id,
    normalize_row,
    now_iso,
    require_choice,
    require_text,
)
from miniapps_api.services import recurrence

EVENT_TYPES = ("event", "meeting", "reminder", "task", "personal")
REMINDER_MINUTES = (0, 5, 15, 30, 60, 1440)
EVENT_COLORS = ["#3b82f6", "#10b981", "#ef4444", "#f59e0b", "#8b5cf6", "#ec4899"]

EVENT_COLUMNS = (
    "id, user_id, title, description, start_time, end_time, location, event_type, color, is_all_day, "
    "recurrence_rule, parent_event_id, reminder_minutes, created_at, updated_at"
)
EDITABLE_COLUMNS = (
    "title",
    "description",
    "start_time",
    "end_time",
    "location",
    "event_type",
    "color",
    "is_all_day",
    "recurrence_rule",
    "parent_event_id",
    "reminder_minutes",
)


def to_wall_clock(value) -> datetime:
    """Calendar times are floating wall-clock values; offsets are dropped after parsing."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, datetime.min.time())
    else:
        raw = str(value or "").strip()
        if not raw:
            raise ValueError("Event time is required")
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    return parsed.replace(tzinfo=None, microsecond=0)


def _wall_iso(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%S")


def _normalize_reminder(value):
    if value is None or value == "":
        return None
    minutes = int(value)
    if minutes not in REMINDER_MINUTES:
        raise ValueError(f"Invalid reminder minutes: {value!r}")
    return minutes


def _normalize_event_fields(patch: dict) -> dict:
    clean = {}
    if "title" in patch:
        clean["title"] = require_text(patch["title"], "title")
    for key in ("description", "location", "parent_event_id"):
        if key in patch:
            clean[key] = clean_text(patch[key])
    if "event_type" in patch:
        clean["event_type"] = require_choice(patch["event_type"] or "event", EVENT_TYPES, "event type")
    if "color" in patch:
        clean["color"] = clean_text(patch["color"]) or EVENT_COLORS[0]
    if "is_all_day" in patch:
        clean["is_all_day"] = int(bool(patch["is_all_day"]))
    if "recurrence_rule" in patch:
        clean["recurrence_rule"] = recurrence.normalize_rule(patch["recurrence_rule"])
    if "reminder_minutes" in patch:
        clean["reminder_minutes"] = _normalize_reminder(patch["reminder_minutes"])
    for key in ("start_time", "end_time"):
        if key in patch and patch[key] is not None:
            clean[key] = to_wall_clock(patch[key])
    return clean


def _finalize_times(clean: dict, current: dict | None = None) -> None:
    start = clean.get("start_time") or (to_wall_clock(current["start_time"]) if current else None)
    end = clean.get("end_time") or (to_wall_clock(current["end_time"]) if current else None)
    if start is None:
        raise ValueError("start_time is required")
    if end is None:
        end = start + timedelta(hours=1)
    all_day = clean.get("is_all_day", (current or {}).get("is_all_day"))
    if all_day:
        start = start.replace(hour=0, minute=0, second=0)
        end = end.replace(hour=23, minute=59, second=59)
    if end < start:
        raise ValueError("end_time must not be before start_time")
    clean["start_time"] = _wall_iso(start)
    clean["end_time"] = _wall_iso(end)


def _normalize_event_row(row) -> dict:
    return normalize_row(row, bool_fields=("is_all_day",))


def _to_occurrence_payload(event: dict) -> dict:
    payload = dict(event)
    payload["start"] = to_wall_clock(event["start_time"])
    payload["end"] = to_wall_clock(event["end_time"])
    return payload


def _from_occurrence_payload(occurrence: dict) -> dict:
    payload = {key: value for key, value in occurrence.items() if key not in {"start", "end", "occurrence_start"}}
    payload["start_time"] = _wall_iso(occurrence["start"])
    payload["end_time"] = _wall_iso(occurrence["end"])
    payload["occurrence_start"] = _wall_iso(occurrence.get("occurrence_start") or occurrence["start"])
    payload["is_occurrence"] = bool(occurrence.get("recurrence_rule"))
    return payload


async def get_event(user_id: str, event_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT {EVENT_COLUMNS} FROM {EVENTS_TABLE} WHERE user_id = :user_id AND id = :id"),
            {"user_id": user_id, "id": event_id},
        )).mappings().fetchone()
    return _normalize_event_row(row) if row else {}


async def list_all_events(user_id: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(f"SELECT {EVENT_COLUMNS} FROM {EVENTS_TABLE} WHERE user_id = :user_id ORDER BY start_time"),
            {"user_id": user_id},
        )).mappings().all()
    return [_normalize_event_row(row) for row in rows]


async def list_events(user_id: str, start_day: date, end_day: date) -> list[dict]:
    """Events overlapping the inclusive day range, with recurring events expanded."""
    if end_day < start_day:
        raise ValueError("end must not be before start")
    window_start = datetime.combine(start_day, datetime.min.time())
    window_end = datetime.combine(end_day + timedelta(days=1), datetime.min.time())
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {EVENT_COLUMNS}
                FROM {EVENTS_TABLE}
                WHERE user_id = :user_id
                  AND start_time < :window_end
                  AND (end_time >= :window_start OR recurrence_rule IS NOT NULL)
                ORDER BY start_time
                """
            ),
            {"user_id": user_id, "window_start": _wall_iso(window_start), "window_end": _wall_iso(window_end)},
        )).mappings().all()
    events = [_normalize_event_row(row) for row in rows]
    single = []
    for event in events:
        if event.get("recurrence_rule"):
            continue
        payload = _to_occurrence_payload(event)
        if recurrence.overlaps(payload["start"], payload["end"], window_start, window_end):
            single.append(_from_occurrence_payload(payload))
    expanded = recurrence.expand_occurrences(
        [_to_occurrence_payload(event) for event in events if event.get("recurrence_rule")],
        window_start,
        window_end,
    )
    items = single + [_from_occurrence_payload(item) for item in expanded]
    items.sort(key=lambda item: (item["start_time"], item["title"]))
    return items


async def upcoming_events(user_id: str, now: datetime, limit: int = 5, horizon_days: int = 365) -> list[dict]:
    start_day = now.date()
    items = await list_events(user_id, start_day, start_day + timedelta(days=horizon_days))
    now_iso_wall = _wall_iso(now.replace(tzinfo=None))
    upcoming = [item for item in items if item["start_time"] >= now_iso_wall]
    return upcoming[:limit]


async def count_upcoming_events(user_id: str, now: datetime) -> int:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        count = (await session.execute(
            sql_text(
                f"""
                SELECT COUNT(*) FROM {EVENTS_TABLE}
                WHERE user_id = :user_id AND start_time >= :now
                """
            ),
            {"user_id": user_id, "now": _wall_iso(now.replace(tzinfo=None))},
        )).scalar_one()
    return int(count or 0)


async def create_event(user_id: str, payload: dict) -> dict:
    clean = _normalize_event_fields({key: value for key, value in payload.items() if value is not None})
    if "title" not in clean:
        raise ValueError("title is required")
    _finalize_times(clean)
    now = now_iso()
    record = {
        "id": new_id(),
        "user_id": user_id,
        "title": clean["title"],
        "description": clean.get("description"),
        "start_time": clean["start_time"],
        "end_time": clean["end_time"],
        "location": clean.get("location"),
        "event_type": clean.get("event_type", "event"),
        "color": clean.get("color", EVENT_COLORS[0]),
        "is_all_day": clean.get("is_all_day", 0),
        "recurrence_rule": clean.get("recurrence_rule"),
        "parent_event_id": clean.get("parent_event_id"),
        "reminder_minutes": clean.get("reminder_minutes"),
        "created_at": now,
        "updated_at": now,
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {EVENTS_TABLE} ({EVENT_COLUMNS})
                VALUES (
                    :id, :user_id, :title, :description, :start_time, :end_time, :location, :event_type, :color,
                    :is_all_day, :recurrence_rule, :parent_event_id, :reminder_minutes, :created_at, :updated_at
                )
                """
            ),
            record,
        )
        await session.commit()
    return _normalize_event_row(record)


async def update_event(user_id: str, event_id: str, patch: dict) -> dict:
    current = await get_event(user_id, event_id)
    if not current:
        return {}
    clean = _normalize_event_fields(patch)
    if {"start_time", "end_time", "is_all_day"} & set(clean):
        _finalize_times(clean, current)
    assignments, fields = build_update(clean, EDITABLE_COLUMNS)
    if not fields:
        return current
    fields.update({"user_id": user_id, "id": event_id, "updated_at": now_iso()})
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"UPDATE {EVENTS_TABLE} SET {assignments}, updated_at = :updated_at WHERE user_id = :user_id AND id = :id"
            ),
            fields,
        )
        await session.commit()
    return await get_event(user_id, event_id)


async def delete_event(user_id: str, event_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {EVENTS_TABLE} WHERE user_id = :user_id AND id = :id"),
            {"user_id": user_id, "id": event_id},
        )
        await session.commit()
    return bool(result.rowcount)


async def export_ics(user_id: str) -> bytes:
    events = await list_all_events(user_id)
    cal = recurrence.build_calendar([_to_occurrence_payload(event) for event in events])
    return cal.to_ical()
