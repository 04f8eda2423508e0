from __future__ import annotations

from datetime import date

from sqlalchemy import text as sql_text

from miniapps_api.db import get_sessionmaker
from miniapps_api.db_init import TODOS_TABLE
from miniapps_api.repositories.common import (
    build_update,
    clean_text,
    contains_pattern,
    date_iso,
    new_id,
    normalize_row,
    now_iso,
    parse_date,
    require_choice,
    require_text,
)

PRIORITIES = ("low", "medium", "high")
FILTERS = ("all", "active", "completed")
SORTS = ("created", "due_date", "priority")

TODO_COLUMNS = (
    "id, user_id, title, description, completed, completed_at, priority, category, "
    "due_date, created_at, updated_at"
)
EDITABLE_COLUMNS = ("title", "description", "priority", "category", "due_date", "completed")

_ORDER_BY = {
    "created": "created_at DESC",
    "due_date": "due_date IS NULL, due_date, created_at DESC",
    "priority": (
        "CASE priority WHEN 'high' THEN 0 WHEN 'medium' THEN 1 WHEN 'low' THEN 2 ELSE 1 END, created_at DESC"
    ),
}


def _normalize_priority(value):
    if value is None:
        return "medium"
    return require_choice(str(value).lower(), PRIORITIES, "priority")


def is_overdue(todo: dict, today: date) -> bool:
    due = parse_date(todo.get("due_date"))
    return bool(due and not todo.get("completed") and due < today)


def _normalize_todo_row(row, today: date | None = None) -> dict:
    payload = normalize_row(row, bool_fields=("completed",))
    if today is not None:
        payload["is_overdue"] = is_overdue(payload, today)
    return payload


async def list_todos(
    user_id: str,
    today: date,
    todo_filter: str = "all",
    search: str | None = None,
    sort: str = "created",
) -> list[dict]:
    require_choice(todo_filter, FILTERS, "filter")
    require_choice(sort, SORTS, "sort")
    clauses = ["user_id = :user_id"]
    params: dict = {"user_id": user_id}
    if todo_filter == "active":
        clauses.append("COALESCE(completed, 0) = 0")
    elif todo_filter == "completed":
        clauses.append("COALESCE(completed, 0) = 1")
    query = clean_text(search)
    if query:
        clauses.append(
            "(LOWER(title) LIKE :pattern ESCAPE '\\' "
            "OR LOWER(COALESCE(description, '')) LIKE :pattern ESCAPE '\\')"
        )
        params["pattern"] = contains_pattern(query)
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {TODO_COLUMNS}
                FROM {TODOS_TABLE}
                WHERE {" AND ".join(clauses)}
                ORDER BY {_ORDER_BY[sort]}
                """
            ),
            params,
        )).mappings().all()
    return [_normalize_todo_row(row, today) for row in rows]


async def get_todo(user_id: str, todo_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT {TODO_COLUMNS} FROM {TODOS_TABLE} WHERE user_id = :user_id AND id = :id"),
            {"user_id": user_id, "id": todo_id},
        )).mappings().fetchone()
    return _normalize_todo_row(row) if row else {}


async def create_todo(user_id: str, payload: dict) -> dict:
    now = now_iso()
    record = {
        "id": new_id(),
        "user_id": user_id,
        "title": require_text(payload.get("title"), "title"),
        "description": clean_text(payload.get("description")),
        "completed": 0,
        "completed_at": None,
        "priority": _normalize_priority(payload.get("priority")),
        "category": clean_text(payload.get("category")),
        "due_date": date_iso(payload.get("due_date")),
        "created_at": now,
        "updated_at": now,
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {TODOS_TABLE} ({TODO_COLUMNS})
                VALUES (
                    :id, :user_id, :title, :description, :completed, :completed_at, :priority, :category,
                    :due_date, :created_at, :updated_at
                )
                """
            ),
            record,
        )
        await session.commit()
    return _normalize_todo_row(record)


async def update_todo(user_id: str, todo_id: str, patch: dict) -> dict:
    current = await get_todo(user_id, todo_id)
    if not current:
        return {}
    clean = {}
    if "title" in patch:
        clean["title"] = require_text(patch["title"], "title")
    if "description" in patch:
        clean["description"] = clean_text(patch["description"])
    if "category" in patch:
        clean["category"] = clean_text(patch["category"])
    if "priority" in patch:
        clean["priority"] = _normalize_priority(patch["priority"])
    if "due_date" in patch:
        clean["due_date"] = date_iso(patch["due_date"])
    if "completed" in patch and patch["completed"] is not None:
        done = bool(patch["completed"])
        clean["completed"] = int(done)
        if done != current["completed"]:
            clean["completed_at"] = now_iso() if done else None
    assignments, fields = build_update(clean, EDITABLE_COLUMNS + ("completed_at",))
    if not fields:
        return current
    fields.update({"user_id": user_id, "id": todo_id, "updated_at": now_iso()})
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                UPDATE {TODOS_TABLE}
                SET {assignments}, updated_at = :updated_at
                WHERE user_id = :user_id AND id = :id
                """
            ),
            fields,
        )
        await session.commit()
    return await get_todo(user_id, todo_id)


async def toggle_todo(user_id: str, todo_id: str) -> dict:
    current = await get_todo(user_id, todo_id)
    if not current:
        return {}
    return await update_todo(user_id, todo_id, {"completed": not current["completed"]})


async def delete_todo(user_id: str, todo_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {TODOS_TABLE} WHERE user_id = :user_id AND id = :id"),
            {"user_id": user_id, "id": todo_id},
        )
        await session.commit()
    return bool(result.rowcount)


async def clear_completed(user_id: str) -> int:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {TODOS_TABLE} WHERE user_id = :user_id AND COALESCE(completed, 0) = 1"),
            {"user_id": user_id},
        )
        await session.commit()
    return int(result.rowcount or 0)


def count_todos(items: list[dict]) -> dict:
    completed = sum(1 for item in items if item.get("completed"))
    return {"total": len(items), "active": len(items) - completed, "completed": completed}
