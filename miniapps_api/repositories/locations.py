from __future__ import annotations

from sqlalchemy import text as sql_text

from miniapps_api.db import get_sessionmaker
from miniapps_api.db_init import LOCATIONS_TABLE
from miniapps_api.repositories.common import clean_text, new_id, normalize_row, now_iso, require_text

LOCATION_COLUMNS = "id, user_id, name, city, country, latitude, longitude, is_default, created_at"


def _coordinate(value, field: str, limit: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field} must be a number") from exc
    if not -limit <= number <= limit:
        raise ValueError(f"{field} out of range")
    return number


def _normalize_location_row(row) -> dict:
    return normalize_row(row, bool_fields=("is_default",))


async def list_locations(user_id: str) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(
                f"""
                SELECT {LOCATION_COLUMNS}
                FROM {LOCATIONS_TABLE}
                WHERE user_id = :user_id
                ORDER BY is_default DESC, created_at
                """
            ),
            {"user_id": user_id},
        )).mappings().all()
    return [_normalize_location_row(row) for row in rows]


async def _clear_default(session, user_id: str) -> None:
    await session.execute(
        sql_text(f"UPDATE {LOCATIONS_TABLE} SET is_default = 0 WHERE user_id = :user_id"),
        {"user_id": user_id},
    )


async def add_location(user_id: str, payload: dict) -> dict:
    existing = await list_locations(user_id)
    record = {
        "id": new_id(),
        "user_id": user_id,
        "name": require_text(payload.get("name"), "name"),
        "city": clean_text(payload.get("city")),
        "country": clean_text(payload.get("country")),
        "latitude": _coordinate(payload.get("latitude"), "latitude", 90),
        "longitude": _coordinate(payload.get("longitude"), "longitude", 180),
        # The first saved place becomes the default.
        "is_default": int(bool(payload.get("is_default")) or not existing),
        "created_at": now_iso(),
    }
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        if record["is_default"]:
            await _clear_default(session, user_id)
        await session.execute(
            sql_text(
                f"""
                INSERT INTO {LOCATIONS_TABLE} ({LOCATION_COLUMNS})
                VALUES (:id, :user_id, :name, :city, :country, :latitude, :longitude, :is_default, :created_at)
                """
            ),
            record,
        )
        await session.commit()
    return _normalize_location_row(record)


async def set_default(user_id: str, location_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        exists = (await session.execute(
            sql_text(f"SELECT COUNT(*) FROM {LOCATIONS_TABLE} WHERE user_id = :user_id AND id = :id"),
            {"user_id": user_id, "id": location_id},
        )).scalar_one()
        if not exists:
            return False
        await _clear_default(session, user_id)
        await session.execute(
            sql_text(f"UPDATE {LOCATIONS_TABLE} SET is_default = 1 WHERE user_id = :user_id AND id = :id"),
            {"user_id": user_id, "id": location_id},
        )
        await session.commit()
    return True


async def delete_location(user_id: str, location_id: str) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {LOCATIONS_TABLE} WHERE user_id = :user_id AND id = :id"),
            {"user_id": user_id, "id": location_id},
        )
        await session.commit()
    return bool(result.rowcount)
