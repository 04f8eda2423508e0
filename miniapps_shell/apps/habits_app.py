import html
import logging
from datetime import date, timedelta

import streamlit as st

from miniapps_shell.data import loaders
from miniapps_shell.state import session_slices
from miniapps_shell.visualizations import habit_heatmap

logger = logging.getLogger(__name__)

SLUG = "habit-tracker"
WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
HEATMAP_DAYS = 28

_HABIT_LOADERS = (loaders.load_habits_cached, loaders.load_habit_completions_cached)


def _render_create_form(colors, icons):
    with st.expander("➕ New habit", expanded=False):
        with st.form("habits.create", clear_on_submit=True):
            name = st.text_input("Name", placeholder="e.g. Drink water")
            description = st.text_input("Description")
            cols = st.columns(3)
            with cols[0]:
                icon = st.selectbox("Icon", icons)
            with cols[1]:
                color = st.selectbox("Color", colors)
            with cols[2]:
                frequency = st.selectbox("Frequency", ["daily", "weekly"])
            target_days = st.multiselect("Target days (weekly)", list(range(7)), format_func=lambda idx: WEEKDAYS[idx])
            reminder = st.time_input("Reminder", value=None)
            submitted = st.form_submit_button("Create habit", type="primary")
        if submitted:
            payload = {
                "name": name,
                "description": description or None,
                "icon": icon,
                "color": color,
                "frequency": frequency,
                "target_days": target_days if frequency == "weekly" else [],
                "reminder_time": reminder.strftime("%H:%M") if reminder else None,
            }
            if loaders.mutate("POST", "/v1/habits", json=payload, invalidates=_HABIT_LOADERS) is not None:
                session_slices.flash(SLUG, f"Habit '{name}' created")
                st.rerun()


def _toggle(habit_id, day_iso):
    loaders.mutate(
        "POST",
        f"/v1/habits/{habit_id}/completions/toggle",
        json={"date": day_iso},
        invalidates=_HABIT_LOADERS,
    )


def _render_habit_card(habit, week, completed_days, today):
    color = habit.get("color") or "#5a67d8"
    st.markdown(
        f"<div class='panel' style='border-left:4px solid {html.escape(color)}'>"
        f"<b>{habit.get('icon') or ''} {html.escape(habit.get('name') or '')}</b>"
        f"<div class='small-label'>🔥 {habit.get('current_streak', 0)} day streak · best {habit.get('longest_streak', 0)}"
        f" · {habit.get('completion_rate_30d', 0)}% last 30 days</div>"
        "</div>",
        unsafe_allow_html=True,
    )
    cols = st.columns(len(week) + 2)
    for col, day in zip(cols, week):
        done = day.isoformat() in completed_days
        label = f"{'✅' if done else '⬜'} {day.strftime('%a')[:2]}"
        with col:
            if st.button(label, key=f"habits.toggle.{habit['id']}.{day.isoformat()}", disabled=day > today):
                _toggle(habit["id"], day.isoformat())
                st.rerun()
    with cols[-2]:
        if st.button("📦", key=f"habits.archive.{habit['id']}", help="Archive"):
            loaders.mutate("POST", f"/v1/habits/{habit['id']}/archive", invalidates=_HABIT_LOADERS, success="Habit archived")
            st.rerun()
    with cols[-1]:
        if st.button("🗑️", key=f"habits.delete.{habit['id']}", help="Delete"):
            loaders.mutate("DELETE", f"/v1/habits/{habit['id']}", invalidates=_HABIT_LOADERS, success="Habit deleted")
            st.rerun()


def render(ctx):
    st.markdown("<div class='section-title'>🔥 Habit Tracker</div>", unsafe_allow_html=True)
    session_slices.render_flash(SLUG)
    try:
        payload = loaders.load_habits_cached(ctx.user_email)
    except RuntimeError as exc:
        logger.warning("Unable to load habits: %s", exc)
        st.error(str(exc))
        return

    today = date.fromisoformat(payload.get("today") or ctx.today)
    habits = payload.get("items") or []
    _render_create_form(payload.get("colors") or ["#3b82f6"], payload.get("icons") or ["✓"])

    if not habits:
        st.info("No habits yet. Create one to start a streak.")
        return

    done_today = sum(1 for habit in habits if habit.get("completed_today"))
    st.progress(done_today / len(habits), text=f"{done_today}/{len(habits)} done today")

    week = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
    heatmap_start = today - timedelta(days=HEATMAP_DAYS - 1)
    try:
        completions = loaders.load_habit_completions_cached(ctx.user_email, heatmap_start.isoformat(), today.isoformat())
    except RuntimeError as exc:
        logger.warning("Unable to load habit completions: %s", exc)
        completions = []
    by_habit = {}
    for item in completions:
        by_habit.setdefault(item.get("habit_id"), set()).add(str(item.get("completed_date"))[:10])

    for habit in habits:
        _render_habit_card(habit, week, by_habit.get(habit["id"], set()), today)

    st.plotly_chart(habit_heatmap(habits, completions, today, HEATMAP_DAYS), use_container_width=True)
