import html
import logging
from datetime import date, datetime, time, timedelta

import streamlit as st

from miniapps_shell.calendar_grid import events_for_day, grid_bounds, shift_month, week_days
from miniapps_shell.data import api_client, loaders
from miniapps_shell.formatting import format_day, format_event_time, reminder_label
from miniapps_shell.state import session_slices
from miniapps_shell.visualizations import build_month_calendar_html

logger = logging.getLogger(__name__)

SLUG = "calendar"
VIEW_MODES = ["Month", "Week", "Day", "Agenda"]
EVENT_TYPES = ["event", "meeting", "reminder", "task", "personal"]
EVENT_COLORS = ["#3b82f6", "#10b981", "#ef4444", "#f59e0b", "#8b5cf6", "#ec4899"]
REMINDER_OPTIONS = [None, 0, 5, 15, 30, 60, 1440]
REPEAT_OPTIONS = {"": "Does not repeat", "DAILY": "Daily", "WEEKLY": "Weekly", "MONTHLY": "Monthly", "YEARLY": "Yearly"}
AGENDA_DAYS = 30

_EVENT_LOADERS = (loaders.load_events_cached, loaders.load_upcoming_cached)


def build_rule(freq, interval=1, count=None):
    if not freq:
        return None
    parts = [f"FREQ={freq}"]
    if interval and int(interval) > 1:
        parts.append(f"INTERVAL={int(interval)}")
    if count:
        parts.append(f"COUNT={int(count)}")
    return ";".join(parts)


def _anchor():
    raw = session_slices.get_value(SLUG, "anchor")
    return date.fromisoformat(raw) if raw else None


def _set_anchor(day):
    session_slices.set_value(SLUG, "anchor", day.isoformat())


def _window(mode, anchor):
    if mode == "Month":
        return grid_bounds(anchor.year, anchor.month)
    if mode == "Week":
        days = week_days(anchor)
        return days[0], days[-1]
    if mode == "Day":
        return anchor, anchor
    return anchor, anchor + timedelta(days=AGENDA_DAYS - 1)


def _step(mode, anchor, direction):
    if mode == "Month":
        year, month = shift_month(anchor.year, anchor.month, direction)
        return date(year, month, 1)
    if mode == "Week":
        return anchor + timedelta(days=7 * direction)
    if mode == "Day":
        return anchor + timedelta(days=direction)
    return anchor + timedelta(days=AGENDA_DAYS * direction)


def _render_event_line(event, key_prefix):
    cols = st.columns([6, 1])
    repeat = " 🔁" if event.get("recurrence_rule") else ""
    with cols[0]:
        st.markdown(
            f"<span class='calendar-chip' style='background:{html.escape(event.get('color') or EVENT_COLORS[0])}'>"
            f"{html.escape(event.get('event_type') or 'event')}</span> "
            f"<b>{html.escape(event.get('title') or '')}</b>{repeat} · {format_event_time(event)}"
            + (f" · 📍 {html.escape(event['location'])}" if event.get("location") else "")
            + (f"<br><span class='small-label'>⏰ {reminder_label(event.get('reminder_minutes'))}</span>" if event.get("reminder_minutes") is not None else ""),
            unsafe_allow_html=True,
        )
    with cols[1]:
        if st.button("Edit", key=f"{key_prefix}.{event['id']}.{event.get('start_time')}"):
            session_slices.set_value(SLUG, "editing", event["id"])
            st.rerun()


def _render_day_list(events, day, key_prefix):
    day_events = events_for_day(events, day)
    if not day_events:
        st.caption("No events.")
    for event in day_events:
        _render_event_line(event, key_prefix)


def _event_form(form_key, event=None, default_day=None):
    event = event or {}
    start_raw = event.get("start_time")
    end_raw = event.get("end_time")
    start_dt = datetime.fromisoformat(start_raw) if start_raw else datetime.combine(default_day, time(9, 0))
    end_dt = datetime.fromisoformat(end_raw) if end_raw else start_dt + timedelta(hours=1)
    rule = event.get("recurrence_rule") or ""
    rule_parts = dict(part.split("=", 1) for part in rule.split(";") if "=" in part)

    with st.form(form_key, clear_on_submit=not event):
        title = st.text_input("Title", value=event.get("title") or "")
        cols = st.columns(2)
        with cols[0]:
            start_day = st.date_input("Start date", value=start_dt.date())
            end_day = st.date_input("End date", value=end_dt.date())
        with cols[1]:
            start_clock = st.time_input("Start time", value=start_dt.time())
            end_clock = st.time_input("End time", value=end_dt.time())
        all_day = st.checkbox("All day", value=bool(event.get("is_all_day")))
        cols = st.columns(3)
        with cols[0]:
            event_type = st.selectbox(
                "Type", EVENT_TYPES, index=EVENT_TYPES.index(event.get("event_type") or "event")
            )
        with cols[1]:
            color = st.selectbox(
                "Color",
                EVENT_COLORS,
                index=EVENT_COLORS.index(event["color"]) if event.get("color") in EVENT_COLORS else 0,
            )
        with cols[2]:
            reminder = st.selectbox(
                "Reminder",
                REMINDER_OPTIONS,
                index=REMINDER_OPTIONS.index(event.get("reminder_minutes")) if event.get("reminder_minutes") in REMINDER_OPTIONS else 0,
                format_func=reminder_label,
            )
        cols = st.columns(3)
        with cols[0]:
            freq = st.selectbox(
                "Repeat",
                list(REPEAT_OPTIONS),
                index=list(REPEAT_OPTIONS).index(rule_parts.get("FREQ", "")) if rule_parts.get("FREQ", "") in REPEAT_OPTIONS else 0,
                format_func=REPEAT_OPTIONS.get,
            )
        with cols[1]:
            interval = st.number_input("Every", min_value=1, max_value=52, value=int(rule_parts.get("INTERVAL", 1)))
        with cols[2]:
            count = st.number_input("Occurrences (0 = forever)", min_value=0, max_value=500, value=int(rule_parts.get("COUNT", 0)))
        location = st.text_input("Location", value=event.get("location") or "")
        description = st.text_area("Description", value=event.get("description") or "", height=70)
        submitted = st.form_submit_button("Save event", type="primary")
    if not submitted:
        return None
    return {
        "title": title,
        "description": description or None,
        "start_time": datetime.combine(start_day, start_clock).isoformat(),
        "end_time": datetime.combine(end_day, end_clock).isoformat(),
        "is_all_day": all_day,
        "event_type": event_type,
        "color": color,
        "reminder_minutes": reminder,
        "recurrence_rule": build_rule(freq, interval, count or None),
        "location": location or None,
    }


def _render_editor(ctx):
    event_id = session_slices.get_value(SLUG, "editing")
    if not event_id:
        return
    try:
        event = api_client.get(f"/v1/calendar/events/{event_id}")
    except RuntimeError as exc:
        logger.warning("Unable to load event %s: %s", event_id, exc)
        session_slices.set_value(SLUG, "editing", None)
        st.error(str(exc))
        return
    st.markdown(f"<div class='section-title'>Edit: {html.escape(event.get('title') or '')}</div>", unsafe_allow_html=True)
    payload = _event_form(f"calendar.edit.{event_id}", event)
    if payload is not None:
        if loaders.mutate("PATCH", f"/v1/calendar/events/{event_id}", json=payload, invalidates=_EVENT_LOADERS, success="Event saved") is not None:
            session_slices.set_value(SLUG, "editing", None)
            st.rerun()
    cols = st.columns(2)
    with cols[0]:
        if st.button("Delete event", key="calendar.delete"):
            loaders.mutate("DELETE", f"/v1/calendar/events/{event_id}", invalidates=_EVENT_LOADERS, success="Event deleted")
            session_slices.set_value(SLUG, "editing", None)
            st.rerun()
    with cols[1]:
        if st.button("Close", key="calendar.close_editor"):
            session_slices.set_value(SLUG, "editing", None)
            st.rerun()


def _render_export():
    if st.button("Prepare .ics export", key="calendar.export"):
        try:
            session_slices.set_value(SLUG, "ics", api_client.download_text("/v1/calendar/export.ics"))
        except RuntimeError as exc:
            logger.warning("Calendar export failed: %s", exc)
            st.error(str(exc))
    body = session_slices.get_value(SLUG, "ics")
    if body:
        st.download_button("Download calendar.ics", data=body, file_name="calendar.ics", mime="text/calendar")


def render(ctx):
    st.markdown("<div class='section-title'>📅 Calendar</div>", unsafe_allow_html=True)
    today = date.fromisoformat(ctx.today)
    anchor = _anchor() or today

    cols = st.columns([3, 1, 1, 1])
    with cols[0]:
        mode = st.segmented_control("View", VIEW_MODES, default="Month", key="calendar.mode") or "Month"
    with cols[1]:
        if st.button("◀", key="calendar.prev", use_container_width=True):
            _set_anchor(_step(mode, anchor, -1))
            st.rerun()
    with cols[2]:
        if st.button("Today", key="calendar.today", use_container_width=True):
            _set_anchor(today)
            st.rerun()
    with cols[3]:
        if st.button("▶", key="calendar.next", use_container_width=True):
            _set_anchor(_step(mode, anchor, 1))
            st.rerun()

    start, end = _window(mode, anchor)
    try:
        events = loaders.load_events_cached(ctx.user_email, start.isoformat(), end.isoformat())
    except RuntimeError as exc:
        logger.warning("Unable to load events: %s", exc)
        st.error(str(exc))
        events = []

    if mode == "Month":
        st.markdown(f"**{anchor.strftime('%B %Y')}**")
        st.markdown(build_month_calendar_html(anchor.year, anchor.month, events, today), unsafe_allow_html=True)
    elif mode == "Week":
        st.markdown(f"**Week of {format_day(start)}**")
        for day in week_days(anchor):
            st.markdown(f"<div class='small-label'>{format_day(day)}</div>", unsafe_allow_html=True)
            _render_day_list(events, day, "calendar.week")
    elif mode == "Day":
        st.markdown(f"**{format_day(anchor)}**")
        _render_day_list(events, anchor, "calendar.day")
    else:
        st.markdown(f"**Next {AGENDA_DAYS} days from {format_day(anchor)}**")
        if not events:
            st.caption("Nothing scheduled.")
        for offset in range(AGENDA_DAYS):
            day = anchor + timedelta(days=offset)
            day_events = events_for_day(events, day)
            if day_events:
                st.markdown(f"<div class='small-label'>{format_day(day)}</div>", unsafe_allow_html=True)
                for event in day_events:
                    _render_event_line(event, f"calendar.agenda.{day.isoformat()}")

    _render_editor(ctx)

    with st.expander("➕ New event", expanded=False):
        payload = _event_form("calendar.create", default_day=anchor)
        if payload is not None:
            if not payload["title"].strip():
                st.warning("Event title cannot be empty.")
            elif loaders.mutate("POST", "/v1/calendar/events", json=payload, invalidates=_EVENT_LOADERS, success="Event created") is not None:
                st.rerun()

    side, export = st.columns([3, 1])
    with side:
        st.markdown("<div class='small-label'>Upcoming</div>", unsafe_allow_html=True)
        try:
            upcoming = loaders.load_upcoming_cached(ctx.user_email, 5)
        except RuntimeError as exc:
            logger.warning("Unable to load upcoming events: %s", exc)
            upcoming = []
        if not upcoming:
            st.caption("No upcoming events.")
        for event in upcoming:
            st.markdown(f"• **{html.escape(event.get('title') or '')}** · {format_day(event['start_time'])} {format_event_time(event)}", unsafe_allow_html=True)
    with export:
        _render_export()
