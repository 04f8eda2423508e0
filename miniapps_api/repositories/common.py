from __future__ import annotations

import json
from datetime import date, datetime, timezone
from uuid import uuid4
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def new_id() -> str:
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc_iso(value: datetime) -> str:
    # Fixed width keeps lexicographic order equal to time order in TEXT columns.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def now_iso() -> str:
    return to_utc_iso(utc_now())


def parse_datetime(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, datetime.min.time())
    else:
        raw = str(value).strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def date_iso(value) -> str | None:
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else None


def resolve_zone(tz_name: str | None, fallback: str = "UTC") -> ZoneInfo:
    for candidate in (tz_name, fallback, "UTC"):
        if not candidate:
            continue
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError):
            continue
    return ZoneInfo("UTC")


def is_valid_timezone(tz_name: str) -> bool:
    try:
        ZoneInfo(str(tz_name))
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def dump_list(values) -> str:
    return json.dumps(list(values or []))


def load_list(raw) -> list:
    if raw is None or raw == "":
        return []
    if isinstance(raw, list):
        return raw
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return value if isinstance(value, list) else []


def load_dict(raw) -> dict:
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return value if isinstance(value, dict) else {}


def clean_text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def contains_pattern(query: str) -> str:
    """Lower-cased LIKE pattern matching `query` literally; pair with ESCAPE '\\'."""
    escaped = query.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def require_text(value, field: str) -> str:
    text = clean_text(value)
    if not text:
        raise ValueError(f"{field} is required")
    return text


def require_choice(value, choices, field: str) -> str:
    if value not in choices:
        raise ValueError(f"Invalid {field}: {value!r}")
    return value


def dedupe_tags(tags) -> list[str]:
    seen = set()
    result = []
    for tag in tags or []:
        clean = str(tag).strip()
        if not clean or clean.lower() in seen:
            continue
        seen.add(clean.lower())
        result.append(clean)
    return result


def normalize_row(row, bool_fields=(), list_fields=()) -> dict:
    if not row:
        return {}
    payload = dict(row)
    for key in bool_fields:
        if key in payload:
            payload[key] = bool(payload.get(key) or 0)
    for key in list_fields:
        if key in payload:
            payload[key] = load_list(payload.get(key))
    for key, value in list(payload.items()):
        if isinstance(value, (datetime, date)):
            payload[key] = value.isoformat()
    return payload


def build_update(patch: dict, allowed) -> tuple[str, dict]:
    """Build the SET clause for a partial update restricted to ``allowed`` columns."""
    fields = {key: value for key, value in patch.items() if key in allowed}
    assignments = ", ".join(f"{key} = :{key}" for key in fields)
    return assignments, fields
