from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import text as sql_text

from miniapps_api.catalog import APP_CATALOG
from miniapps_api.db import get_engine

logger = logging.getLogger(__name__)

APPS_TABLE = "apps"
PREFERENCES_TABLE = "user_preferences"
PROFILES_TABLE = "user_profiles"
APP_DATA_TABLE = "user_app_data"
TODOS_TABLE = "todos"
HABITS_TABLE = "habits"
HABIT_COMPLETIONS_TABLE = "habit_completions"
EVENTS_TABLE = "calendar_events"
POMODORO_TABLE = "pomodoro_sessions"
NOTES_TABLE = "notes"
SHOPPING_LISTS_TABLE = "shopping_lists"
SHOPPING_MEMBERS_TABLE = "shopping_list_members"
SHOPPING_ITEMS_TABLE = "shopping_items"
BUDGETS_TABLE = "budgets"
EXPENSES_TABLE = "budget_expenses"
LOCATIONS_TABLE = "saved_locations"

TABLE_DDL = [
    f"""
    CREATE TABLE IF NOT EXISTS {APPS_TABLE} (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        slug TEXT NOT NULL UNIQUE,
        description TEXT,
        icon TEXT,
        category TEXT,
        keywords TEXT,
        is_active INTEGER DEFAULT 1,
        entry_point TEXT,
        created_at TEXT
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {PREFERENCES_TABLE} (
        user_id TEXT PRIMARY KEY,
        theme TEXT DEFAULT 'dark',
        favorite_apps TEXT DEFAULT '[]',
        updated_at TEXT
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {PROFILES_TABLE} (
        user_id TEXT PRIMARY KEY,
        display_name TEXT,
        bio TEXT,
        timezone TEXT DEFAULT 'UTC',
        avatar_url TEXT,
        created_at TEXT,
        updated_at TEXT
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {APP_DATA_TABLE} (
        user_id TEXT NOT NULL,
        app_slug TEXT NOT NULL,
        data TEXT,
        updated_at TEXT,
        PRIMARY KEY (user_id, app_slug)
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {TODOS_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        completed INTEGER DEFAULT 0,
        completed_at TEXT,
        priority TEXT DEFAULT 'medium',
        category TEXT,
        due_date TEXT,
        created_at TEXT,
        updated_at TEXT
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {HABITS_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        description TEXT,
        color TEXT,
        icon TEXT,
        frequency TEXT DEFAULT 'daily',
        target_days TEXT DEFAULT '[]',
        reminder_time TEXT,
        archived_at TEXT,
        created_at TEXT
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {HABIT_COMPLETIONS_TABLE} (
        id TEXT PRIMARY KEY,
        habit_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        completed_date TEXT NOT NULL,
        notes TEXT,
        created_at TEXT,
        UNIQUE (habit_id, completed_date)
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {EVENTS_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        start_time TEXT NOT NULL,
        end_time TEXT NOT NULL,
        location TEXT,
        event_type TEXT DEFAULT 'event',
        color TEXT,
        is_all_day INTEGER DEFAULT 0,
        recurrence_rule TEXT,
        parent_event_id TEXT,
        reminder_minutes INTEGER,
        created_at TEXT,
        updated_at TEXT
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {POMODORO_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        session_type TEXT NOT NULL,
        duration_minutes INTEGER NOT NULL,
        completed_at TEXT NOT NULL,
        notes TEXT
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {NOTES_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        content TEXT,
        content_type TEXT DEFAULT 'note',
        language TEXT,
        category TEXT,
        tags TEXT DEFAULT '[]',
        is_favorite INTEGER DEFAULT 0,
        color TEXT,
        created_at TEXT,
        updated_at TEXT
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {SHOPPING_LISTS_TABLE} (
        id TEXT PRIMARY KEY,
        owner_id TEXT NOT NULL,
        name TEXT NOT NULL,
        description TEXT,
        is_shared INTEGER DEFAULT 0,
        created_at TEXT,
        updated_at TEXT
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {SHOPPING_MEMBERS_TABLE} (
        list_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        role TEXT DEFAULT 'editor',
        added_at TEXT,
        PRIMARY KEY (list_id, user_id)
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {SHOPPING_ITEMS_TABLE} (
        id TEXT PRIMARY KEY,
        list_id TEXT NOT NULL,
        name TEXT NOT NULL,
        quantity TEXT,
        category TEXT DEFAULT 'Other',
        notes TEXT,
        is_checked INTEGER DEFAULT 0,
        checked_by TEXT,
        checked_at TEXT,
        added_by TEXT,
        created_at TEXT
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {BUDGETS_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        description TEXT,
        currency TEXT DEFAULT 'USD',
        total_amount REAL NOT NULL,
        period TEXT DEFAULT 'monthly',
        start_date TEXT,
        end_date TEXT,
        created_at TEXT
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {EXPENSES_TABLE} (
        id TEXT PRIMARY KEY,
        budget_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        description TEXT NOT NULL,
        amount REAL NOT NULL,
        category TEXT DEFAULT 'Other',
        date TEXT NOT NULL,
        notes TEXT,
        created_at TEXT
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {LOCATIONS_TABLE} (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        city TEXT,
        country TEXT,
        latitude REAL NOT NULL,
        longitude REAL NOT NULL,
        is_default INTEGER DEFAULT 0,
        created_at TEXT
    )
    """,
]

INDEX_DDL = [
    f"CREATE INDEX IF NOT EXISTS idx_{TODOS_TABLE}_user_created ON {TODOS_TABLE} (user_id, created_at)",
    f"CREATE INDEX IF NOT EXISTS idx_{HABITS_TABLE}_user ON {HABITS_TABLE} (user_id, archived_at)",
    f"CREATE INDEX IF NOT EXISTS idx_{HABIT_COMPLETIONS_TABLE}_user_date "
    f"ON {HABIT_COMPLETIONS_TABLE} (user_id, completed_date)",
    f"CREATE INDEX IF NOT EXISTS idx_{EVENTS_TABLE}_user_start ON {EVENTS_TABLE} (user_id, start_time)",
    f"CREATE INDEX IF NOT EXISTS idx_{POMODORO_TABLE}_user_completed ON {POMODORO_TABLE} (user_id, completed_at)",
    f"CREATE INDEX IF NOT EXISTS idx_{NOTES_TABLE}_user_updated ON {NOTES_TABLE} (user_id, updated_at)",
    f"CREATE INDEX IF NOT EXISTS idx_{SHOPPING_ITEMS_TABLE}_list ON {SHOPPING_ITEMS_TABLE} (list_id)",
    f"CREATE INDEX IF NOT EXISTS idx_{SHOPPING_MEMBERS_TABLE}_user ON {SHOPPING_MEMBERS_TABLE} (user_id)",
    f"CREATE INDEX IF NOT EXISTS idx_{EXPENSES_TABLE}_budget ON {EXPENSES_TABLE} (budget_id, date)",
    f"CREATE INDEX IF NOT EXISTS idx_{LOCATIONS_TABLE}_user ON {LOCATIONS_TABLE} (user_id)",
]


async def seed_apps(conn) -> None:
    now = datetime.now(timezone.utc).isoformat(timespec="microseconds")
    for item in APP_CATALOG:
        await conn.execute(
            sql_text(
                f"""
                INSERT INTO {APPS_TABLE} (id, name, slug, description, icon, category, keywords, is_active, entry_point, created_at)
                VALUES (:id, :name, :slug, :description, :icon, :category, :keywords, 1, :entry_point, :created_at)
                ON CONFLICT (slug) DO UPDATE SET
                    name = EXCLUDED.name,
                    description = EXCLUDED.description,
                    icon = EXCLUDED.icon,
                    category = EXCLUDED.category,
                    keywords = EXCLUDED.keywords,
                    entry_point = EXCLUDED.entry_point
                """
            ),
            {
                "id": uuid4().hex,
                "name": item["name"],
                "slug": item["slug"],
                "description": item["description"],
                "icon": item["icon"],
                "category": item["category"],
                "keywords": json.dumps(item["keywords"]),
                "entry_point": f"/apps/{item['slug']}",
                "created_at": now,
            },
        )


async def init_db():
    engine = get_engine()
    async with engine.begin() as conn:
        for ddl in TABLE_DDL:
            await conn.execute(sql_text(ddl))

    async def ensure_index(index_sql: str) -> None:
        try:
            async with engine.begin() as conn:
                await conn.execute(sql_text(index_sql))
        except Exception as exc:
            logger.warning("Index creation skipped: %s", exc)

    for index_sql in INDEX_DDL:
        await ensure_index(index_sql)

    async with engine.begin() as conn:
        await seed_apps(conn)
    logger.info("Database schema ready (%s tables)", len(TABLE_DDL))
