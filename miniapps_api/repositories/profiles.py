from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import text as sql_text

from miniapps_api.db import get_sessionmaker
from miniapps_api.db_init import PROFILES_TABLE
from miniapps_api.repositories.common import (
    build_update,
    clean_text,
    is_valid_timezone,
    normalize_row,
    now_iso,
    resolve_zone,
    utc_now,
)
from miniapps_api.settings import get_settings

PROFILE_COLUMNS = ("display_name", "bio", "timezone", "avatar_url")


def default_display_name(user_id: str) -> str:
    local = (user_id or "").split("@")[0].replace(".", " ").replace("_", " ").strip()
    return local.title() if local else "User"


async def get_profile(user_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(
                f"""
                SELECT user_id, display_name, bio, timezone, avatar_url, created_at, updated_at
                FROM {PROFILES_TABLE}
                WHERE user_id = :user_id
                """
            ),
            {"user_id": user_id},
        )).mappings().fetchone()
        if row:
            return normalize_row(row)
        now = now_iso()
        record = {
            "user_id": user_id,
            "display_name": default_display_name(user_id),
            "bio": None,
            "timezone": get_settings().default_timezone,
            "avatar_url": None,
            "created_at": now,
            "updated_at": now,
        }
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {PROFILES_TABLE} (user_id, display_name, bio, timezone, avatar_url, created_at, updated_at)
                VALUES (:user_id, :display_name, :bio, :timezone, :avatar_url, :created_at, :updated_at)
                ON CONFLICT (user_id) DO NOTHING
                """
            ),
            record,
        )
        await session.commit()
    return record


async def update_profile(user_id: str, patch: dict) -> dict:
    await get_profile(user_id)
    clean = {}
    for key in PROFILE_COLUMNS:
        if key not in patch:
            continue
        clean[key] = clean_text(patch[key])
    if "timezone" in clean:
        if not clean["timezone"] or not is_valid_timezone(clean["timezone"]):
            raise ValueError(f"Unknown timezone: {patch.get('timezone')!r}")
    if "display_name" in clean and not clean["display_name"]:
        raise ValueError("display_name cannot be empty")
    assignments, fields = build_update(clean, PROFILE_COLUMNS)
    if fields:
        fields.update({"user_id": user_id, "updated_at": now_iso()})
        session_factory = get_sessionmaker()
        async with session_factory() as session:
            await session.execute(
                sql_text(
                    f"UPDATE {PROFILES_TABLE} SET {assignments}, updated_at = :updated_at WHERE user_id = :user_id"
                ),
                fields,
            )
            await session.commit()
    return await get_profile(user_id)


async def user_now(user_id: str) -> datetime:
    profile = await get_profile(user_id)
    zone = resolve_zone(profile.get("timezone"), get_settings().default_timezone)
    return utc_now().astimezone(zone)


async def user_today(user_id: str) -> date:
    return (await user_now(user_id)).date()
