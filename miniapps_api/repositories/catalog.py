from __future__ import annotations

from sqlalchemy import text as sql_text

from miniapps_api.catalog import APP_SLUGS
from miniapps_api.db import get_sessionmaker
from miniapps_api.db_init import APPS_TABLE, PREFERENCES_TABLE
from miniapps_api.repositories.common import dump_list, normalize_row, now_iso, require_choice

THEMES = ("light", "dark")
DEFAULT_THEME = "dark"


def _normalize_app_row(row) -> dict:
    return normalize_row(row, bool_fields=("is_active",), list_fields=("keywords",))


def _normalize_preferences_row(row) -> dict:
    payload = normalize_row(row, list_fields=("favorite_apps",))
    if payload.get("theme") not in THEMES:
        payload["theme"] = DEFAULT_THEME
    return payload


async def list_apps() -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT id, name, slug, description, icon, category, keywords, is_active, entry_point
                FROM {APPS_TABLE}
                WHERE COALESCE(is_active, 1) = 1
                ORDER BY name
                """
            )
        )).mappings().all()
    return [_normalize_app_row(row) for row in rows]


async def get_preferences(user_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(
                f"SELECT user_id, theme, favorite_apps, updated_at FROM {PREFERENCES_TABLE} WHERE user_id = :user_id"
            ),
            {"user_id": user_id},
        )).mappings().fetchone()
        if row:
            return _normalize_preferences_row(row)
        record = {
            "user_id": user_id,
            "theme": DEFAULT_THEME,
            "favorite_apps": dump_list([]),
            "updated_at": now_iso(),
        }
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {PREFERENCES_TABLE} (user_id, theme, favorite_apps, updated_at)
                VALUES (:user_id, :theme, :favorite_apps, :updated_at)
                ON CONFLICT (user_id) DO NOTHING
                """
            ),
            record,
        )
        await session.commit()
    return _normalize_preferences_row(record)


async def update_preferences(user_id: str, patch: dict) -> dict:
    current = await get_preferences(user_id)
    theme = patch.get("theme", current["theme"])
    require_choice(theme, THEMES, "theme")
    favorites = patch.get("favorite_apps", current["favorite_apps"])
    for slug in favorites:
        require_choice(slug, APP_SLUGS, "app slug")
    deduped = list(dict.fromkeys(favorites))
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                UPDATE {PREFERENCES_TABLE}
                SET theme = :theme, favorite_apps = :favorite_apps, updated_at = :updated_at
                WHERE user_id = :user_id
                """
            ),
            {"user_id": user_id, "theme": theme, "favorite_apps": dump_list(deduped), "updated_at": now_iso()},
        )
        await session.commit()
    return await get_preferences(user_id)


async def toggle_favorite(user_id: str, slug: str) -> list[str]:
    require_choice(slug, APP_SLUGS, "app slug")
    current = await get_preferences(user_id)
    favorites = list(current["favorite_apps"])
    if slug in favorites:
        favorites.remove(slug)
    else:
        favorites.append(slug)
    updated = await update_preferences(user_id, {"favorite_apps": favorites})
    return updated["favorite_apps"]
