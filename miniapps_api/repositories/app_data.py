from __future__ import annotations

import json

from sqlalchemy import text as sql_text

from miniapps_api.db import get_sessionmaker
from miniapps_api.db_init import APP_DATA_TABLE
from miniapps_api.repositories.common import load_dict, now_iso

SUMMARY_HISTORY_LIMIT = 10
SUMMARY_PREVIEW_CHARS = 100


async def get_app_data(user_id: str, app_slug: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        raw = (await session.execute(
            sql_text(f"SELECT data FROM {APP_DATA_TABLE} WHERE user_id = :user_id AND app_slug = :app_slug"),
            {"user_id": user_id, "app_slug": app_slug},
        )).scalar_one_or_none()
    return load_dict(raw)


async def set_app_data(user_id: str, app_slug: str, data: dict) -> None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {APP_DATA_TABLE} (user_id, app_slug, data, updated_at)
                VALUES (:user_id, :app_slug, :data, :updated_at)
                ON CONFLICT (user_id, app_slug) DO UPDATE SET
                    data = EXCLUDED.data,
                    updated_at = EXCLUDED.updated_at
                """
            ),
            {"user_id": user_id, "app_slug": app_slug, "data": json.dumps(data), "updated_at": now_iso()},
        )
        await session.commit()


async def list_all_app_data(user_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(f"SELECT app_slug, data FROM {APP_DATA_TABLE} WHERE user_id = :user_id"),
            {"user_id": user_id},
        )).mappings().all()
    return {row["app_slug"]: load_dict(row["data"]) for row in rows}


async def list_summaries(user_id: str) -> list[dict]:
    data = await get_app_data(user_id, "text-summarizer")
    return list(data.get("summaries") or [])


async def save_summary(user_id: str, original_text: str, result: dict) -> list[dict]:
    entry = {
        "text": original_text[:SUMMARY_PREVIEW_CHARS],
        "summary": result["summary"],
        "original_words": result["original_words"],
        "summary_words": result["summary_words"],
        "created_at": now_iso(),
    }
    summaries = [entry] + await list_summaries(user_id)
    summaries = summaries[:SUMMARY_HISTORY_LIMIT]
    await set_app_data(user_id, "text-summarizer", {"summaries": summaries})
    return summaries


async def clear_summaries(user_id: str) -> None:
    await set_app_data(user_id, "text-summarizer", {"summaries": []})
