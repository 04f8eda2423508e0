from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import text as sql_text

from miniapps_api.db import get_sessionmaker
from miniapps_api.db_init import POMODORO_TABLE
from miniapps_api.repositories.common import (
    clean_text,
    new_id,
    normalize_row,
    parse_datetime,
    require_choice,
    to_utc_iso,
    utc_now,
)
from miniapps_api.services.pomodoro import DURATIONS, SESSION_TYPES

SESSION_COLUMNS = "id, user_id, session_type, duration_minutes, completed_at, notes"


async def record_session(user_id: str, payload: dict) -> dict:
    session_type = require_choice(payload.get("session_type"), SESSION_TYPES, "session type")
    duration = payload.get("duration_minutes")
    duration = DURATIONS[session_type] if duration is None else int(duration)
    if duration <= 0:
        raise ValueError("duration_minutes must be positive")
    completed_at = parse_datetime(payload.get("completed_at")) or utc_now()
    record = {
        "id": new_id(),
        "user_id": user_id,
        "session_type": session_type,
        "duration_minutes": duration,
        "completed_at": to_utc_iso(completed_at),
        "notes": clean_text(payload.get("notes")),
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {POMODORO_TABLE} ({SESSION_COLUMNS})
                VALUES (:id, :user_id, :session_type, :duration_minutes, :completed_at, :notes)
                """
            ),
            record,
        )
        await session.commit()
    return record


async def list_sessions(user_id: str, limit: int | None = 10) -> list[dict]:
    limit_clause = "LIMIT :limit" if limit else ""
    params = {"user_id": user_id, "limit": limit} if limit else {"user_id": user_id}
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {SESSION_COLUMNS}
                FROM {POMODORO_TABLE}
                WHERE user_id = :user_id
                ORDER BY completed_at DESC
                {limit_clause}
                """
            ),
            params,
        )).mappings().all()
    return [normalize_row(row) for row in rows]


async def session_stats(user_id: str, local_now: datetime) -> dict:
    """Counters for the timer panel; ``local_now`` carries the user's timezone."""
    day_start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    params = {
        "user_id": user_id,
        "day_start": to_utc_iso(day_start),
        "day_end": to_utc_iso(day_start + timedelta(days=1)),
        "week_start": to_utc_iso(local_now - timedelta(days=7)),
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(
                f"""
                SELECT
                    SUM(CASE WHEN session_type = 'work' AND completed_at >= :day_start
                             AND completed_at < :day_end THEN 1 ELSE 0 END) AS today_sessions,
                    SUM(CASE WHEN completed_at >= :day_start AND completed_at < :day_end
                             THEN duration_minutes ELSE 0 END) AS today_minutes,
                    SUM(CASE WHEN session_type = 'work' AND completed_at >= :week_start THEN 1 ELSE 0 END)
                        AS week_sessions,
                    SUM(CASE WHEN session_type = 'work' THEN 1 ELSE 0 END) AS total_sessions
                FROM {POMODORO_TABLE}
                WHERE user_id = :user_id
                """
            ),
            params,
        )).mappings().fetchone()
    row = dict(row or {})
    return {key: int(row.get(key) or 0) for key in ("today_sessions", "today_minutes", "week_sessions", "total_sessions")}
