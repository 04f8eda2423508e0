from __future__ import annotations

import re
from datetime import date, timedelta

from sqlalchemy import text as sql_text, bindparam

from miniapps_api.db import get_sessionmaker
from miniapps_api.db_init import HABITS_TABLE, HABIT_COMPLETIONS_TABLE
from miniapps_api.repositories.common import (
    build_update,
    clean_text,
    date_iso,
    dump_list,
    new_id,
    normalize_row,
    now_iso,
    require_choice,
    require_text,
)
from miniapps_api.services import streaks

FREQUENCIES = ("daily", "weekly")
COLORS = ["#3b82f6", "#ef4444", "#10b981", "#f59e0b", "#8b5cf6", "#ec4899", "#06b6d4", "#84cc16"]
ICONS = ["✓", "⭐", "💪", "📚", "🏃", "🧘", "💧", "🎯", "🎨", "🎵", "💼", "🌱"]

HABIT_COLUMNS = (
    "id, user_id, name, description, color, icon, frequency, target_days, reminder_time, archived_at, created_at"
)
EDITABLE_COLUMNS = ("name", "description", "color", "icon", "frequency", "target_days", "reminder_time")

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _normalize_target_days(values) -> list[int]:
    days = []
    for value in values or []:
        day = int(value)
        if not 0 <= day <= 6:
            raise ValueError(f"Invalid weekday index: {value!r}")
        if day not in days:
            days.append(day)
    return sorted(days)


def _normalize_reminder_time(value):
    text = clean_text(value)
    if text is None:
        return None
    text = text[:5]
    if not _TIME_RE.match(text):
        raise ValueError(f"Invalid reminder time: {value!r}")
    return text


def _normalize_habit_fields(patch: dict) -> dict:
    clean = {}
    if "name" in patch:
        clean["name"] = require_text(patch["name"], "name")
    if "description" in patch:
        clean["description"] = clean_text(patch["description"])
    if "color" in patch:
        clean["color"] = require_choice(patch["color"] or COLORS[0], COLORS, "color")
    if "icon" in patch:
        clean["icon"] = require_choice(patch["icon"] or ICONS[0], ICONS, "icon")
    if "frequency" in patch:
        clean["frequency"] = require_choice(patch["frequency"] or "daily", FREQUENCIES, "frequency")
    if "target_days" in patch:
        clean["target_days"] = dump_list(_normalize_target_days(patch["target_days"]))
    if "reminder_time" in patch:
        clean["reminder_time"] = _normalize_reminder_time(patch["reminder_time"])
    return clean


def _normalize_habit_row(row) -> dict:
    return normalize_row(row, list_fields=("target_days",))


async def list_habits(user_id: str, include_archived: bool = False) -> list[dict]:
    archived_clause = "" if include_archived else "AND archived_at IS NULL"
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {HABIT_COLUMNS}
                FROM {HABITS_TABLE}
                WHERE user_id = :user_id {archived_clause}
                ORDER BY created_at
                """
            ),
            {"user_id": user_id},
        )).mappings().all()
    return [_normalize_habit_row(row) for row in rows]


async def get_habit(user_id: str, habit_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT {HABIT_COLUMNS} FROM {HABITS_TABLE} WHERE user_id = :user_id AND id = :id"),
            {"user_id": user_id, "id": habit_id},
        )).mappings().fetchone()
    return _normalize_habit_row(row) if row else {}


async def create_habit(user_id: str, payload: dict) -> dict:
    defaults = {"color": COLORS[0], "icon": ICONS[0], "frequency": "daily", "target_days": []}
    clean = _normalize_habit_fields({**defaults, **{k: v for k, v in payload.items() if v is not None}})
    if "name" not in clean:
        raise ValueError("name is required")
    record = {
        "id": new_id(),
        "user_id": user_id,
        "name": clean["name"],
        "description": clean.get("description"),
        "color": clean["color"],
        "icon": clean["icon"],
        "frequency": clean["frequency"],
        "target_days": clean["target_days"],
        "reminder_time": clean.get("reminder_time"),
        "archived_at": None,
        "created_at": now_iso(),
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {HABITS_TABLE} ({HABIT_COLUMNS})
                VALUES (
                    :id, :user_id, :name, :description, :color, :icon, :frequency, :target_days,
                    :reminder_time, :archived_at, :created_at
                )
                """
            ),
            record,
        )
        await session.commit()
    return _normalize_habit_row(record)


async def update_habit(user_id: str, habit_id: str, patch: dict) -> dict:
    if not await get_habit(user_id, habit_id):
        return {}
    assignments, fields = build_update(_normalize_habit_fields(patch), EDITABLE_COLUMNS)
    if fields:
        fields.update({"user_id": user_id, "id": habit_id})
        session_factory = get_sessionmaker()
        async with session_factory() as session:
            await session.execute(
                sql_text(f"UPDATE {HABITS_TABLE} SET {assignments} WHERE user_id = :user_id AND id = :id"),
                fields,
            )
            await session.commit()
    return await get_habit(user_id, habit_id)


async def archive_habit(user_id: str, habit_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                UPDATE {HABITS_TABLE}
                SET archived_at = :archived_at
                WHERE user_id = :user_id AND id = :id AND archived_at IS NULL
                """
            ),
            {"user_id": user_id, "id": habit_id, "archived_at": now_iso()},
        )
        await session.commit()
    return await get_habit(user_id, habit_id)


async def delete_habit(user_id: str, habit_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(f"DELETE FROM {HABIT_COMPLETIONS_TABLE} WHERE user_id = :user_id AND habit_id = :habit_id"),
            {"user_id": user_id, "habit_id": habit_id},
        )
        result = await session.execute(
            sql_text(f"DELETE FROM {HABITS_TABLE} WHERE user_id = :user_id AND id = :id"),
            {"user_id": user_id, "id": habit_id},
        )
        await session.commit()
    return bool(result.rowcount)


async def toggle_completion(user_id: str, habit_id: str, day: date, notes: str | None = None) -> dict | None:
    if not await get_habit(user_id, habit_id):
        return None
    day_iso = date_iso(day)
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(
                f"""
                DELETE FROM {HABIT_COMPLETIONS_TABLE}
                WHERE user_id = :user_id AND habit_id = :habit_id AND completed_date = :completed_date
                """
            ),
            {"user_id": user_id, "habit_id": habit_id, "completed_date": day_iso},
        )
        completed = not result.rowcount
        if completed:
            await session.execute(
                sql_text(
                    f"""
                    INSERT INTO {HABIT_COMPLETIONS_TABLE} (id, habit_id, user_id, completed_date, notes, created_at)
                    VALUES (:id, :habit_id, :user_id, :completed_date, :notes, :created_at)
                    """
                ),
                {
                    "id": new_id(),
                    "habit_id": habit_id,
                    "user_id": user_id,
                    "completed_date": day_iso,
                    "notes": clean_text(notes),
                    "created_at": now_iso(),
                },
            )
        await session.commit()
    return {"habit_id": habit_id, "date": day_iso, "completed": completed}


async def list_completions(
    user_id: str,
    start_iso: str | None = None,
    end_iso: str | None = None,
    habit_ids: list[str] | None = None,
) -> list[dict]:
    clauses = ["user_id = :user_id"]
    params: dict = {"user_id": user_id}
    if start_iso:
        clauses.append("completed_date >= :start_date")
        params["start_date"] = start_iso
    if end_iso:
        clauses.append("completed_date <= :end_date")
        params["end_date"] = end_iso
    stmt_sql = f"""
        SELECT id, habit_id, user_id, completed_date, notes, created_at
        FROM {HABIT_COMPLETIONS_TABLE}
        WHERE {" AND ".join(clauses)}
    """
    if habit_ids is not None:
        if not habit_ids:
            return []
        stmt_sql += " AND habit_id IN :habit_ids"
        params["habit_ids"] = habit_ids
    stmt = sql_text(stmt_sql + " ORDER BY completed_date DESC")
    if habit_ids is not None:
        stmt = stmt.bindparams(bindparam("habit_ids", expanding=True))
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(stmt, params)).mappings().all()
    return [normalize_row(row) for row in rows]


async def recent_completion_dates(user_id: str, limit: int = 365) -> list[str]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT completed_date
                FROM {HABIT_COMPLETIONS_TABLE}
                WHERE user_id = :user_id
                ORDER BY completed_date DESC
                LIMIT :limit
                """
            ),
            {"user_id": user_id, "limit": limit},
        )).scalars().all()
    return [str(value) for value in rows]


async def list_habits_with_stats(user_id: str, today: date) -> list[dict]:
    habits = await list_habits(user_id)
    history_start = (today - timedelta(days=365)).isoformat()
    completions = await list_completions(
        user_id,
        start_iso=history_start,
        end_iso=today.isoformat(),
        habit_ids=[habit["id"] for habit in habits],
    )
    dates_by_habit: dict[str, list[str]] = {}
    for item in completions:
        dates_by_habit.setdefault(item["habit_id"], []).append(item["completed_date"])
    today_iso = today.isoformat()
    for habit in habits:
        dates = dates_by_habit.get(habit["id"], [])
        habit["current_streak"] = streaks.current_streak(dates, today)
        habit["longest_streak"] = streaks.longest_streak(dates)
        habit["completed_today"] = today_iso in dates
        habit["completion_rate_30d"] = streaks.completion_rate(dates, today, 30)
    return habits
