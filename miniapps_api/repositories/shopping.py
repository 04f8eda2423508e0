from __future__ import annotations

from sqlalchemy import text as sql_text

from miniapps_api.db import get_sessionmaker
from miniapps_api.db_init import SHOPPING_ITEMS_TABLE, SHOPPING_LISTS_TABLE, SHOPPING_MEMBERS_TABLE
from miniapps_api.repositories.common import (
    build_update,
    clean_text,
    new_id,
    normalize_row,
    now_iso,
    require_choice,
    require_text,
)
from miniapps_api.services.shopping import normalize_category

ROLES = ("editor", "viewer")
WRITE_ROLES = ("owner", "editor")

LIST_COLUMNS = "id, owner_id, name, description, is_shared, created_at, updated_at"
ITEM_COLUMNS = "id, list_id, name, quantity, category, notes, is_checked, checked_by, checked_at, added_by, created_at"
EDITABLE_ITEM_COLUMNS = ("name", "quantity", "category", "notes")


def _normalize_list_row(row) -> dict:
    return normalize_row(row, bool_fields=("is_shared",))


def _normalize_item_row(row) -> dict:
    return normalize_row(row, bool_fields=("is_checked",))


async def get_access(user_id: str, list_id: str) -> str | None:
    """Role of ``user_id`` on the list: owner, editor, viewer, or None when it is not visible."""
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(
                f"""
                SELECT l.owner_id, m.role
                FROM {SHOPPING_LISTS_TABLE} l
                LEFT JOIN {SHOPPING_MEMBERS_TABLE} m ON m.list_id = l.id AND m.user_id = :user_id
                WHERE l.id = :list_id
                """
            ),
            {"user_id": user_id, "list_id": list_id},
        )).mappings().fetchone()
    if not row:
        return None
    if row["owner_id"] == user_id:
        return "owner"
    return row["role"]


async def _require_write(user_id: str, list_id: str) -> bool:
    role = await get_access(user_id, list_id)
    if role is None:
        return False
    if role not in WRITE_ROLES:
        raise PermissionError("Read-only access to this list")
    return True


async def _require_owner(user_id: str, list_id: str) -> bool:
    role = await get_access(user_id, list_id)
    if role is None:
        return False
    if role != "owner":
        raise PermissionError("Only the list owner can do this")
    return True


async def list_lists(user_id: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT
                    l.id, l.owner_id, l.name, l.description, l.is_shared, l.created_at, l.updated_at,
                    CASE WHEN l.owner_id = :user_id THEN 'owner' ELSE m.role END AS role,
                    (SELECT COUNT(*) FROM {SHOPPING_ITEMS_TABLE} i WHERE i.list_id = l.id) AS item_count,
                    (SELECT COUNT(*) FROM {SHOPPING_ITEMS_TABLE} i
                        WHERE i.list_id = l.id AND COALESCE(i.is_checked, 0) = 1) AS checked_count
                FROM {SHOPPING_LISTS_TABLE} l
                LEFT JOIN {SHOPPING_MEMBERS_TABLE} m ON m.list_id = l.id AND m.user_id = :user_id
                WHERE l.owner_id = :user_id OR m.user_id IS NOT NULL
                ORDER BY l.created_at DESC
                """
            ),
            {"user_id": user_id},
        )).mappings().all()
    lists = []
    for row in rows:
        payload = _normalize_list_row(row)
        payload["item_count"] = int(payload.get("item_count") or 0)
        payload["checked_count"] = int(payload.get("checked_count") or 0)
        lists.append(payload)
    return lists


async def get_list(user_id: str, list_id: str) -> dict:
    role = await get_access(user_id, list_id)
    if role is None:
        return {}
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT {LIST_COLUMNS} FROM {SHOPPING_LISTS_TABLE} WHERE id = :id"),
            {"id": list_id},
        )).mappings().fetchone()
    payload = _normalize_list_row(row)
    payload["role"] = role
    return payload


async def create_list(user_id: str, payload: dict) -> dict:
    now = now_iso()
    record = {
        "id": new_id(),
        "owner_id": user_id,
        "name": require_text(payload.get("name"), "name"),
        "description": clean_text(payload.get("description")),
        "is_shared": 0,
        "created_at": now,
        "updated_at": now,
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {SHOPPING_LISTS_TABLE} ({LIST_COLUMNS})
                VALUES (:id, :owner_id, :name, :description, :is_shared, :created_at, :updated_at)
                """
            ),
            record,
        )
        await session.commit()
    payload = _normalize_list_row(record)
    payload["role"] = "owner"
    return payload


async def update_list(user_id: str, list_id: str, patch: dict) -> dict:
    if not await _require_owner(user_id, list_id):
        return {}
    clean = {}
    if "name" in patch:
        clean["name"] = require_text(patch["name"], "name")
    if "description" in patch:
        clean["description"] = clean_text(patch["description"])
    assignments, fields = build_update(clean, ("name", "description"))
    if fields:
        fields.update({"id": list_id, "updated_at": now_iso()})
        session_factory = get_sessionmaker()
        async with session_factory() as session:
            await session.execute(
                sql_text(f"UPDATE {SHOPPING_LISTS_TABLE} SET {assignments}, updated_at = :updated_at WHERE id = :id"),
                fields,
            )
            await session.commit()
    return await get_list(user_id, list_id)


async def delete_list(user_id: str, list_id: str) -> bool:
    if not await _require_owner(user_id, list_id):
        return False
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        for table in (SHOPPING_ITEMS_TABLE, SHOPPING_MEMBERS_TABLE):
            await session.execute(sql_text(f"DELETE FROM {table} WHERE list_id = :list_id"), {"list_id": list_id})
        await session.execute(sql_text(f"DELETE FROM {SHOPPING_LISTS_TABLE} WHERE id = :id"), {"id": list_id})
        await session.commit()
    return True


async def list_members(user_id: str, list_id: str) -> list[dict] | None:
    if await get_access(user_id, list_id) is None:
        return None
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT list_id, user_id, role, added_at
                FROM {SHOPPING_MEMBERS_TABLE}
                WHERE list_id = :list_id
                ORDER BY added_at
                """
            ),
            {"list_id": list_id},
        )).mappings().all()
    return [normalize_row(row) for row in rows]


async def add_member(user_id: str, list_id: str, member_id: str, role: str = "editor") -> dict | None:
    if not await _require_owner(user_id, list_id):
        return None
    member = require_text(member_id, "member email").lower()
    if member == user_id:
        raise ValueError("The owner is already on the list")
    require_choice(role, ROLES, "role")
    record = {"list_id": list_id, "user_id": member, "role": role, "added_at": now_iso()}
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {SHOPPING_MEMBERS_TABLE} (list_id, user_id, role, added_at)
                VALUES (:list_id, :user_id, :role, :added_at)
                ON CONFLICT (list_id, user_id) DO UPDATE SET role = EXCLUDED.role
                """
            ),
            record,
        )
        await session.execute(
            sql_text(f"UPDATE {SHOPPING_LISTS_TABLE} SET is_shared = 1, updated_at = :updated_at WHERE id = :id"),
            {"id": list_id, "updated_at": record["added_at"]},
        )
        await session.commit()
    return record


async def remove_member(user_id: str, list_id: str, member_id: str) -> bool:
    if not await _require_owner(user_id, list_id):
        return False
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {SHOPPING_MEMBERS_TABLE} WHERE list_id = :list_id AND user_id = :user_id"),
            {"list_id": list_id, "user_id": str(member_id).strip().lower()},
        )
        if not result.rowcount:
            return False
        remaining = (await session.execute(
            sql_text(f"SELECT COUNT(*) FROM {SHOPPING_MEMBERS_TABLE} WHERE list_id = :list_id"),
            {"list_id": list_id},
        )).scalar_one()
        await session.execute(
            sql_text(f"UPDATE {SHOPPING_LISTS_TABLE} SET is_shared = :is_shared, updated_at = :updated_at WHERE id = :id"),
            {"id": list_id, "is_shared": int(bool(remaining)), "updated_at": now_iso()},
        )
        await session.commit()
    return True


async def list_items(user_id: str, list_id: str) -> list[dict] | None:
    if await get_access(user_id, list_id) is None:
        return None
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {ITEM_COLUMNS}
                FROM {SHOPPING_ITEMS_TABLE}
                WHERE list_id = :list_id
                ORDER BY COALESCE(is_checked, 0), category, LOWER(name)
                """
            ),
            {"list_id": list_id},
        )).mappings().all()
    return [_normalize_item_row(row) for row in rows]


async def _get_item(list_id: str, item_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT {ITEM_COLUMNS} FROM {SHOPPING_ITEMS_TABLE} WHERE list_id = :list_id AND id = :id"),
            {"list_id": list_id, "id": item_id},
        )).mappings().fetchone()
    return _normalize_item_row(row) if row else {}


async def add_item(user_id: str, list_id: str, payload: dict) -> dict:
    if not await _require_write(user_id, list_id):
        return {}
    record = {
        "id": new_id(),
        "list_id": list_id,
        "name": require_text(payload.get("name"), "name"),
        "quantity": clean_text(payload.get("quantity")),
        "category": normalize_category(payload.get("category")),
        "notes": clean_text(payload.get("notes")),
        "is_checked": 0,
        "checked_by": None,
        "checked_at": None,
        "added_by": user_id,
        "created_at": now_iso(),
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {SHOPPING_ITEMS_TABLE} ({ITEM_COLUMNS})
                VALUES (
                    :id, :list_id, :name, :quantity, :category, :notes, :is_checked, :checked_by, :checked_at,
                    :added_by, :created_at
                )
                """
            ),
            record,
        )
        await session.commit()
    return _normalize_item_row(record)


async def update_item(user_id: str, list_id: str, item_id: str, patch: dict) -> dict:
    if not await _require_write(user_id, list_id) or not await _get_item(list_id, item_id):
        return {}
    clean = {}
    if "name" in patch:
        clean["name"] = require_text(patch["name"], "name")
    if "quantity" in patch:
        clean["quantity"] = clean_text(patch["quantity"])
    if "category" in patch:
        clean["category"] = normalize_category(patch["category"])
    if "notes" in patch:
        clean["notes"] = clean_text(patch["notes"])
    assignments, fields = build_update(clean, EDITABLE_ITEM_COLUMNS)
    if fields:
        fields.update({"list_id": list_id, "id": item_id})
        session_factory = get_sessionmaker()
        async with session_factory() as session:
            await session.execute(
                sql_text(f"UPDATE {SHOPPING_ITEMS_TABLE} SET {assignments} WHERE list_id = :list_id AND id = :id"),
                fields,
            )
            await session.commit()
    return await _get_item(list_id, item_id)


async def toggle_item(user_id: str, list_id: str, item_id: str) -> dict:
    if not await _require_write(user_id, list_id):
        return {}
    current = await _get_item(list_id, item_id)
    if not current:
        return {}
    checked = not current["is_checked"]
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                UPDATE {SHOPPING_ITEMS_TABLE}
                SET is_checked = :is_checked, checked_by = :checked_by, checked_at = :checked_at
                WHERE list_id = :list_id AND id = :id
                """
            ),
            {
                "list_id": list_id,
                "id": item_id,
                "is_checked": int(checked),
                "checked_by": user_id if checked else None,
                "checked_at": now_iso() if checked else None,
            },
        )
        await session.commit()
    return await _get_item(list_id, item_id)


async def delete_item(user_id: str, list_id: str, item_id: str) -> bool:
    if not await _require_write(user_id, list_id):
        return False
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {SHOPPING_ITEMS_TABLE} WHERE list_id = :list_id AND id = :id"),
            {"list_id": list_id, "id": item_id},
        )
        await session.commit()
    return bool(result.rowcount)


async def clear_checked(user_id: str, list_id: str) -> int | None:
    if not await _require_write(user_id, list_id):
        return None
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {SHOPPING_ITEMS_TABLE} WHERE list_id = :list_id AND COALESCE(is_checked, 0) = 1"),
            {"list_id": list_id},
        )
        await session.commit()
    return int(result.rowcount or 0)


async def count_visible_lists(user_id: str) -> int:
    return len(await list_lists(user_id))
