from __future__ import annotations

from sqlalchemy import text as sql_text

from miniapps_api.db import get_sessionmaker
from miniapps_api.db_init import BUDGETS_TABLE, EXPENSES_TABLE
from miniapps_api.repositories.common import (
    build_update,
    clean_text,
    date_iso,
    new_id,
    normalize_row,
    now_iso,
    parse_date,
    require_choice,
    require_text,
)
from miniapps_api.services.budget import EXPENSE_CATEGORIES, PERIODS
from miniapps_api.services.currency import CURRENCY_CODES

BUDGET_COLUMNS = "id, user_id, name, description, currency, total_amount, period, start_date, end_date, created_at"
EXPENSE_COLUMNS = "id, budget_id, user_id, description, amount, category, date, notes, created_at"
EDITABLE_BUDGET_COLUMNS = ("name", "description", "currency", "total_amount", "period", "start_date", "end_date")


def _positive_amount(value, field: str) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field} must be a number") from exc
    if amount <= 0:
        raise ValueError(f"{field} must be positive")
    return round(amount, 2)


def _normalize_budget_fields(patch: dict, current: dict | None = None) -> dict:
    """Validate budget fields; `current` supplies stored values the patch leaves alone."""
    clean = {}
    if "name" in patch:
        clean["name"] = require_text(patch["name"], "name")
    if "description" in patch:
        clean["description"] = clean_text(patch["description"])
    if "currency" in patch:
        clean["currency"] = require_choice(str(patch["currency"] or "USD").upper(), CURRENCY_CODES, "currency")
    if "total_amount" in patch:
        clean["total_amount"] = _positive_amount(patch["total_amount"], "total_amount")
    if "period" in patch:
        clean["period"] = require_choice(patch["period"] or "monthly", PERIODS, "period")
    for key in ("start_date", "end_date"):
        if key in patch:
            clean[key] = date_iso(patch[key])
    merged = {**(current or {}), **clean}
    start, end = parse_date(merged.get("start_date")), parse_date(merged.get("end_date"))
    if start and end and end < start:
        raise ValueError("end_date must not be before start_date")
    return clean


async def list_budgets(user_id: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(f"SELECT {BUDGET_COLUMNS} FROM {BUDGETS_TABLE} WHERE user_id = :user_id ORDER BY created_at DESC"),
            {"user_id": user_id},
        )).mappings().all()
    return [normalize_row(row) for row in rows]


async def get_budget(user_id: str, budget_id: str) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT {BUDGET_COLUMNS} FROM {BUDGETS_TABLE} WHERE user_id = :user_id AND id = :id"),
            {"user_id": user_id, "id": budget_id},
        )).mappings().fetchone()
    return normalize_row(row) if row else {}


async def create_budget(user_id: str, payload: dict) -> dict:
    defaults = {"currency": "USD", "period": "monthly"}
    clean = _normalize_budget_fields({**defaults, **{k: v for k, v in payload.items() if v is not None}})
    for key in ("name", "total_amount"):
        if key not in clean:
            raise ValueError(f"{key} is required")
    record = {
        "id": new_id(),
        "user_id": user_id,
        "name": clean["name"],
        "description": clean.get("description"),
        "currency": clean["currency"],
        "total_amount": clean["total_amount"],
        "period": clean["period"],
        "start_date": clean.get("start_date"),
        "end_date": clean.get("end_date"),
        "created_at": now_iso(),
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {BUDGETS_TABLE} ({BUDGET_COLUMNS})
                VALUES (
                    :id, :user_id, :name, :description, :currency, :total_amount, :period, :start_date,
                    :end_date, :created_at
                )
                """
            ),
            record,
        )
        await session.commit()
    return record


async def update_budget(user_id: str, budget_id: str, patch: dict) -> dict:
    current = await get_budget(user_id, budget_id)
    if not current:
        return {}
    assignments, fields = build_update(_normalize_budget_fields(patch, current), EDITABLE_BUDGET_COLUMNS)
    if fields:
        fields.update({"user_id": user_id, "id": budget_id})
        session_factory = get_sessionmaker()
        async with session_factory() as session:
            await session.execute(
                sql_text(f"UPDATE {BUDGETS_TABLE} SET {assignments} WHERE user_id = :user_id AND id = :id"),
                fields,
            )
            await session.commit()
    return await get_budget(user_id, budget_id)


async def delete_budget(user_id: str, budget_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(f"DELETE FROM {EXPENSES_TABLE} WHERE user_id = :user_id AND budget_id = :budget_id"),
            {"user_id": user_id, "budget_id": budget_id},
        )
        result = await session.execute(
            sql_text(f"DELETE FROM {BUDGETS_TABLE} WHERE user_id = :user_id AND id = :id"),
            {"user_id": user_id, "id": budget_id},
        )
        await session.commit()
    return bool(result.rowcount)


async def list_expenses(user_id: str, budget_id: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {EXPENSE_COLUMNS}
                FROM {EXPENSES_TABLE}
                WHERE user_id = :user_id AND budget_id = :budget_id
                ORDER BY date DESC, created_at DESC
                """
            ),
            {"user_id": user_id, "budget_id": budget_id},
        )).mappings().all()
    return [normalize_row(row) for row in rows]


async def add_expense(user_id: str, budget_id: str, payload: dict, today_iso: str) -> dict:
    if not await get_budget(user_id, budget_id):
        return {}
    category = payload.get("category") or "Other"
    record = {
        "id": new_id(),
        "budget_id": budget_id,
        "user_id": user_id,
        "description": require_text(payload.get("description"), "description"),
        "amount": _positive_amount(payload.get("amount"), "amount"),
        "category": require_choice(category, EXPENSE_CATEGORIES, "category"),
        "date": date_iso(payload.get("date")) or today_iso,
        "notes": clean_text(payload.get("notes")),
        "created_at": now_iso(),
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {EXPENSES_TABLE} ({EXPENSE_COLUMNS})
                VALUES (:id, :budget_id, :user_id, :description, :amount, :category, :date, :notes, :created_at)
                """
            ),
            record,
        )
        await session.commit()
    return record


async def delete_expense(user_id: str, budget_id: str, expense_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(
                f"DELETE FROM {EXPENSES_TABLE} WHERE user_id = :user_id AND budget_id = :budget_id AND id = :id"
            ),
            {"user_id": user_id, "budget_id": budget_id, "id": expense_id},
        )
        await session.commit()
    return bool(result.rowcount)
