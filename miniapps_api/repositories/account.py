from __future__ import annotations

from datetime import datetime

from sqlalchemy import text as sql_text

from miniapps_api.db import get_sessionmaker
from miniapps_api.db_init import (
    APP_DATA_TABLE,
    BUDGETS_TABLE,
    EVENTS_TABLE,
    EXPENSES_TABLE,
    HABIT_COMPLETIONS_TABLE,
    HABITS_TABLE,
    LOCATIONS_TABLE,
    NOTES_TABLE,
    POMODORO_TABLE,
    PREFERENCES_TABLE,
    PROFILES_TABLE,
    SHOPPING_ITEMS_TABLE,
    SHOPPING_LISTS_TABLE,
    SHOPPING_MEMBERS_TABLE,
    TODOS_TABLE,
)
from miniapps_api.repositories import (
    app_data,
    budgets,
    catalog,
    events,
    habits,
    locations,
    notes,
    pomodoro,
    profiles,
    shopping,
    todos,
)
from miniapps_api.repositories.common import now_iso, normalize_row, to_utc_iso
from miniapps_api.services import activity, streaks

# Tables whose rows belong to a single user through ``user_id``.
USER_SCOPED_TABLES = [
    TODOS_TABLE,
    HABIT_COMPLETIONS_TABLE,
    HABITS_TABLE,
    EVENTS_TABLE,
    POMODORO_TABLE,
    NOTES_TABLE,
    EXPENSES_TABLE,
    BUDGETS_TABLE,
    LOCATIONS_TABLE,
    APP_DATA_TABLE,
    SHOPPING_MEMBERS_TABLE,
    PREFERENCES_TABLE,
    PROFILES_TABLE,
]


async def _scalar(sql: str, params: dict) -> int:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        value = (await session.execute(sql_text(sql), params)).scalar_one()
    return int(value or 0)


async def profile_stats(user_id: str, local_now: datetime) -> dict:
    params = {"user_id": user_id}
    total_todos = await _scalar(f"SELECT COUNT(*) FROM {TODOS_TABLE} WHERE user_id = :user_id", params)
    completed_todos = await _scalar(
        f"SELECT COUNT(*) FROM {TODOS_TABLE} WHERE user_id = :user_id AND COALESCE(completed, 0) = 1",
        params,
    )
    total_notes = await _scalar(f"SELECT COUNT(*) FROM {NOTES_TABLE} WHERE user_id = :user_id", params)
    active_habits = await _scalar(
        f"SELECT COUNT(*) FROM {HABITS_TABLE} WHERE user_id = :user_id AND archived_at IS NULL",
        params,
    )
    pomodoro_sessions = await _scalar(f"SELECT COUNT(*) FROM {POMODORO_TABLE} WHERE user_id = :user_id", params)
    upcoming_events = await events.count_upcoming_events(user_id, local_now)
    shopping_lists = await shopping.count_visible_lists(user_id)
    dates = await habits.recent_completion_dates(user_id, limit=365)
    return {
        "total_todos": total_todos,
        "completed_todos": completed_todos,
        "total_notes": total_notes,
        "active_habits": active_habits,
        "pomodoro_sessions": pomodoro_sessions,
        "upcoming_events": upcoming_events,
        "shopping_lists": shopping_lists,
        "habit_streak": streaks.current_streak(dates, local_now.date()),
    }


async def _monthly_counts(user_id: str, start: datetime, end: datetime) -> dict:
    params = {"user_id": user_id, "start": to_utc_iso(start), "end": to_utc_iso(end)}
    return {
        "completed_todos": await _scalar(
            f"""
            SELECT COUNT(*) FROM {TODOS_TABLE}
            WHERE user_id = :user_id AND COALESCE(completed, 0) = 1
              AND completed_at >= :start AND completed_at < :end
            """,
            params,
        ),
        "pomodoro_sessions": await _scalar(
            f"""
            SELECT COUNT(*) FROM {POMODORO_TABLE}
            WHERE user_id = :user_id AND completed_at >= :start AND completed_at < :end
            """,
            params,
        ),
        "notes_created": await _scalar(
            f"""
            SELECT COUNT(*) FROM {NOTES_TABLE}
            WHERE user_id = :user_id AND created_at >= :start AND created_at < :end
            """,
            params,
        ),
    }


async def usage_statistics(user_id: str, local_now: datetime) -> dict:
    last_start, this_start, next_start = activity.month_bounds(local_now)
    this_month = await _monthly_counts(user_id, this_start, next_start)
    last_month = await _monthly_counts(user_id, last_start, this_start)
    payload = activity.usage_statistics(this_month, last_month)
    payload["month"] = this_start.strftime("%Y-%m")
    return payload


async def _recent_rows(sql: str, user_id: str, limit: int) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(sql_text(sql), {"user_id": user_id, "limit": limit})).mappings().all()
    return [normalize_row(row) for row in rows]


async def recent_activity(user_id: str, limit: int = activity.FEED_LIMIT) -> list[dict]:
    source_limit = activity.SOURCE_LIMIT
    completed_todos = await _recent_rows(
        f"""
        SELECT id, title, completed_at FROM {TODOS_TABLE}
        WHERE user_id = :user_id AND COALESCE(completed, 0) = 1 AND completed_at IS NOT NULL
        ORDER BY completed_at DESC LIMIT :limit
        """,
        user_id,
        source_limit,
    )
    sessions = await _recent_rows(
        f"""
        SELECT id, session_type, duration_minutes, completed_at FROM {POMODORO_TABLE}
        WHERE user_id = :user_id ORDER BY completed_at DESC LIMIT :limit
        """,
        user_id,
        source_limit,
    )
    recent_notes = await _recent_rows(
        f"""
        SELECT id, title, created_at FROM {NOTES_TABLE}
        WHERE user_id = :user_id ORDER BY created_at DESC LIMIT :limit
        """,
        user_id,
        source_limit,
    )
    return activity.build_activity_feed(completed_todos, sessions, recent_notes, limit=limit)


async def export_user_data(user_id: str) -> dict:
    profile = await profiles.get_profile(user_id)
    today = await profiles.user_today(user_id)
    shopping_lists = []
    for item in await shopping.list_lists(user_id):
        item["items"] = await shopping.list_items(user_id, item["id"]) or []
        shopping_lists.append(item)
    budget_rows = []
    for budget in await budgets.list_budgets(user_id):
        budget["expenses"] = await budgets.list_expenses(user_id, budget["id"])
        budget_rows.append(budget)
    return {
        "exported_at": now_iso(),
        "user_id": user_id,
        "profile": profile,
        "preferences": await catalog.get_preferences(user_id),
        "todos": await todos.list_todos(user_id, today),
        "notes": await notes.list_notes(user_id),
        "habits": await habits.list_habits(user_id, include_archived=True),
        "habit_completions": await habits.list_completions(user_id),
        "pomodoro_sessions": await pomodoro.list_sessions(user_id, limit=None),
        "events": await events.list_all_events(user_id),
        "shopping_lists": shopping_lists,
        "budgets": budget_rows,
        "saved_locations": await locations.list_locations(user_id),
        "app_data": await app_data.list_all_app_data(user_id),
    }


async def delete_user_data(user_id: str) -> dict:
    """Remove every row owned by the user; lists they own go with their items and members."""
    deleted: dict[str, int] = {}
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        owned_lists = (await session.execute(
            sql_text(f"SELECT id FROM {SHOPPING_LISTS_TABLE} WHERE owner_id = :user_id"),
            {"user_id": user_id},
        )).scalars().all()
        for list_id in owned_lists:
            for table in (SHOPPING_ITEMS_TABLE, SHOPPING_MEMBERS_TABLE):
                await session.execute(sql_text(f"DELETE FROM {table} WHERE list_id = :list_id"), {"list_id": list_id})
        result = await session.execute(
            sql_text(f"DELETE FROM {SHOPPING_LISTS_TABLE} WHERE owner_id = :user_id"),
            {"user_id": user_id},
        )
        deleted[SHOPPING_LISTS_TABLE] = int(result.rowcount or 0)
        for table in USER_SCOPED_TABLES:
            result = await session.execute(
                sql_text(f"DELETE FROM {table} WHERE user_id = :user_id"),
                {"user_id": user_id},
            )
            deleted[table] = int(result.rowcount or 0)
        await session.commit()
    return deleted
