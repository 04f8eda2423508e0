from __future__ import annotations

from sqlalchemy import text as sql_text

from miniapps_api.db import get_sessionmaker
from miniapps_api.db_init import NOTES_TABLE
from miniapps_api.repositories.common import (
    build_update,
    clean_text,
    dedupe_tags,
    dump_list,
    new_id,
    normalize_row,
    now_iso,
    require_choice,
    require_text,
)

CONTENT_TYPES = ("note", "code", "markdown")
FILTERS = ("all", "favorites") + CONTENT_TYPES
NOTE_COLORS = ["#fef3c7", "#dbeafe", "#dcfce7", "#fce7f3", "#ede9fe", "#f3f4f6"]

NOTE_COLUMNS = (
    "id, user_id, title, content, content_type, language, category, tags, is_favorite, color, created_at, updated_at"
)
EDITABLE_COLUMNS = ("title", "content", "content_type", "language", "category", "tags", "is_favorite", "color")


def _normalize_note_row(row) -> dict:
    return normalize_row(row, bool_fields=("is_favorite",), list_fields=("tags",))


def _normalize_note_fields(patch: dict) -> dict:
    clean = {}
    if "title" in patch:
        clean["title"] = require_text(patch["title"], "title")
    if "content" in patch:
        clean["content"] = "" if patch["content"] is None else str(patch["content"])
    if "content_type" in patch:
        clean["content_type"] = require_choice(patch["content_type"] or "note", CONTENT_TYPES, "content type")
    for key in ("language", "category", "color"):
        if key in patch:
            clean[key] = clean_text(patch[key])
    if "tags" in patch:
        clean["tags"] = dump_list(dedupe_tags(patch["tags"]))
    if "is_favorite" in patch:
        clean["is_favorite"] = int(bool(patch["is_favorite"]))
    return clean


def matches_search(note: dict, query: str | None) -> bool:
    needle = (query or "").strip().lower()
    if not needle:
        return True
    if needle in (note.get("title") or "").lower():
        return True
    if needle in (note.get("content") or "").lower():
        return True
    return any(needle in str(tag).lower() for tag in note.get("tags") or [])


async def list_notes(user_id: str, note_filter: str = "all", search: str | None = None) -> list[dict]:
    require_choice(note_filter, FILTERS, "filter")
    clauses = ["user_id = :user_id"]
    params: dict = {"user_id": user_id}
    if note_filter == "favorites":
        clauses.append("COALESCE(is_favorite, 0) = 1")
    elif note_filter in CONTENT_TYPES:
        clauses.append("content_type = :content_type")
        params["content_type"] = note_filter
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {NOTE_COLUMNS}
                FROM {NOTES_TABLE}
                WHERE {" AND ".join(clauses)}
                ORDER BY updated_at DESC
                """
            ),
            params,
        )).mappings().all()
    notes = [_normalize_note_row(row) for row in rows]
    # Tags live in a JSON column, so search runs after the fetch.
    return [note for note in notes if matches_search(note, search)]


async def get_note(user_id: str, note_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT {NOTE_COLUMNS} FROM {NOTES_TABLE} WHERE user_id = :user_id AND id = :id"),
            {"user_id": user_id, "id": note_id},
        )).mappings().fetchone()
    return _normalize_note_row(row) if row else {}


async def create_note(user_id: str, payload: dict) -> dict:
    defaults = {"content": "", "content_type": "note", "tags": [], "is_favorite": False}
    clean = _normalize_note_fields({**defaults, **{k: v for k, v in payload.items() if v is not None}})
    if "title" not in clean:
        raise ValueError("title is required")
    now = now_iso()
    record = {
        "id": new_id(),
        "user_id": user_id,
        "title": clean["title"],
        "content": clean["content"],
        "content_type": clean["content_type"],
        "language": clean.get("language") if clean["content_type"] == "code" else None,
        "category": clean.get("category"),
        "tags": clean["tags"],
        "is_favorite": clean["is_favorite"],
        "color": clean.get("color"),
        "created_at": now,
        "updated_at": now,
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {NOTES_TABLE} ({NOTE_COLUMNS})
                VALUES (
                    :id, :user_id, :title, :content, :content_type, :language, :category, :tags, :is_favorite,
                    :color, :created_at, :updated_at
                )
                """
            ),
            record,
        )
        await session.commit()
    return _normalize_note_row(record)


async def update_note(user_id: str, note_id: str, patch: dict) -> dict:
    if not await get_note(user_id, note_id):
        return {}
    assignments, fields = build_update(_normalize_note_fields(patch), EDITABLE_COLUMNS)
    if fields:
        fields.update({"user_id": user_id, "id": note_id, "updated_at": now_iso()})
        session_factory = get_sessionmaker()
        async with session_factory() as session:
            await session.execute(
                sql_text(
                    f"UPDATE {NOTES_TABLE} SET {assignments}, updated_at = :updated_at "
                    "WHERE user_id = :user_id AND id = :id"
                ),
                fields,
            )
            await session.commit()
    return await get_note(user_id, note_id)


async def toggle_favorite(user_id: str, note_id: str) -> dict:
    current = await get_note(user_id, note_id)
    if not current:
        return {}
    return await update_note(user_id, note_id, {"is_favorite": not current["is_favorite"]})


async def delete_note(user_id: str, note_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {NOTES_TABLE} WHERE user_id = :user_id AND id = :id"),
            {"user_id": user_id, "id": note_id},
        )
        await session.commit()
    return bool(result.rowcount)


async def list_tags(user_id: str) -> list[str]:
    notes = await list_notes(user_id)
    tags = dedupe_tags(tag for note in notes for tag in note.get("tags") or [])
    return sorted(tags, key=str.lower)
