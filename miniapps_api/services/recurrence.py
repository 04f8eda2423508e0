from __future__ import annotations

import logging
from datetime import datetime, timedelta

import recurring_ical_events
from icalendar import Calendar, Event, vRecur

logger = logging.getLogger(__name__)

FREQUENCIES = ("DAILY", "WEEKLY", "MONTHLY", "YEARLY")
_ALLOWED_PARTS = ("FREQ", "INTERVAL", "COUNT", "UNTIL")


def normalize_rule(rule: str | None) -> str | None:
    """Validate a recurrence rule and return it in canonical form.

    Only FREQ with optional INTERVAL, COUNT and UNTIL is accepted. A bare
    UNTIL date is widened to the end of that day.
    """
    if rule is None:
        return None
    raw = str(rule).strip().upper()
    if raw.startswith("RRULE:"):
        raw = raw[len("RRULE:") :]
    if not raw:
        return None
    parts: dict[str, str] = {}
    for chunk in raw.split(";"):
        if not chunk:
            continue
        if "=" not in chunk:
            raise ValueError(f"Invalid recurrence rule: {rule!r}")
        key, value = chunk.split("=", 1)
        if key not in _ALLOWED_PARTS or key in parts:
            raise ValueError(f"Unsupported recurrence part: {key}")
        parts[key] = value
    if parts.get("FREQ") not in FREQUENCIES:
        raise ValueError(f"Invalid recurrence frequency in {rule!r}")
    for key in ("INTERVAL", "COUNT"):
        if key in parts and (not parts[key].isdigit() or int(parts[key]) < 1):
            raise ValueError(f"Invalid {key.lower()} in {rule!r}")
    if "COUNT" in parts and "UNTIL" in parts:
        raise ValueError("COUNT and UNTIL cannot be combined")
    if "UNTIL" in parts:
        until = parts["UNTIL"].rstrip("Z")
        try:
            if "T" in until:
                until_dt = datetime.strptime(until, "%Y%m%dT%H%M%S")
            else:
                until_dt = datetime.strptime(until, "%Y%m%d").replace(hour=23, minute=59, second=59)
        except ValueError as exc:
            raise ValueError(f"Invalid until value in {rule!r}") from exc
        parts["UNTIL"] = until_dt.strftime("%Y%m%dT%H%M%S")
    return ";".join(f"{key}={parts[key]}" for key in _ALLOWED_PARTS if key in parts)


def _to_ical_event(item: dict) -> Event:
    event = Event()
    event.add("uid", item["id"])
    event.add("summary", item.get("title") or "Untitled event")
    event.add("dtstart", item["start"])
    event.add("dtend", item["end"])
    if item.get("description"):
        event.add("description", item["description"])
    if item.get("location"):
        event.add("location", item["location"])
    if item.get("recurrence_rule"):
        event.add("rrule", vRecur.from_ical(item["recurrence_rule"]))
    return event


def build_calendar(events: list[dict], name: str = "Mini Apps Calendar") -> Calendar:
    """Events need ``id``, ``start`` and ``end`` (naive datetimes) plus optional details."""
    cal = Calendar()
    cal.add("prodid", "-//Mini Apps Hub//Calendar//EN")
    cal.add("version", "2.0")
    cal.add("x-wr-calname", name)
    for item in events:
        cal.add_component(_to_ical_event(item))
    return cal


def expand_occurrences(events: list[dict], window_start: datetime, window_end: datetime) -> list[dict]:
    """Expand recurring events into occurrences overlapping ``[window_start, window_end)``.

    Each occurrence is a copy of the base event with ``start``/``end`` moved
    and ``occurrence_start`` set.
    """
    recurring = [item for item in events if item.get("recurrence_rule")]
    if not recurring:
        return []
    by_id = {item["id"]: item for item in recurring}
    cal = build_calendar(recurring)
    occurrences = []
    for component in recurring_ical_events.of(cal).between(window_start, window_end):
        uid = str(component.get("uid"))
        base = by_id.get(uid)
        if base is None:
            logger.warning("Recurring expansion produced unknown uid %s", uid)
            continue
        start = component.decoded("dtstart")
        end = component.decoded("dtend") if component.get("dtend") else start + (base["end"] - base["start"])
        occurrence = dict(base)
        occurrence["start"] = start
        occurrence["end"] = end
        occurrence["occurrence_start"] = start
        occurrences.append(occurrence)
    occurrences.sort(key=lambda item: item["start"])
    return occurrences


def overlaps(start: datetime, end: datetime, window_start: datetime, window_end: datetime) -> bool:
    if end <= start:
        end = start + timedelta(seconds=1)
    return start < window_end and end > window_start
