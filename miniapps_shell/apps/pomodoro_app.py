import logging
import time
from datetime import date

import streamlit as st

from miniapps_shell.data import loaders
from miniapps_shell.formatting import time_ago
from miniapps_shell.state import session_slices
from miniapps_shell.state.pomodoro_timer import DURATIONS, SESSION_LABELS, PomodoroTimer, format_time
from miniapps_shell.visualizations import pomodoro_week_chart

logger = logging.getLogger(__name__)

SLUG = "pomodoro-timer"

_SESSION_LOADERS = (loaders.load_pomodoro_sessions_cached, loaders.load_pomodoro_stats_cached)


def load_timer():
    return PomodoroTimer.from_dict(session_slices.get_value(SLUG, "timer"))


def save_timer(timer):
    session_slices.set_value(SLUG, "timer", timer.to_dict())


def record_finished(timer):
    payload = {
        "session_type": timer.session_type,
        "duration_minutes": DURATIONS[timer.session_type],
        "notes": session_slices.get_value(SLUG, "notes") or None,
        "completed_work_count": timer.completed_work,
    }
    result = loaders.mutate("POST", "/v1/pomodoro/sessions", json=payload, invalidates=_SESSION_LOADERS)
    if result is None:
        logger.warning("Finished %s session could not be recorded", timer.session_type)
    next_type = timer.advance()
    st.toast(f"{SESSION_LABELS[payload['session_type']]} done! Next: {SESSION_LABELS[next_type]}")


@st.fragment(run_every=1)
def _render_clock():
    timer = load_timer()
    now = time.time()
    if timer.tick(now):
        record_finished(timer)
        save_timer(timer)
        st.rerun()
    remaining = timer.remaining_seconds(now)
    st.markdown(f"<div class='timer-display'>{format_time(remaining)}</div>", unsafe_allow_html=True)
    st.progress(timer.progress(now), text=f"{SESSION_LABELS[timer.session_type]} · {timer.state}")


def _render_controls(timer):
    now = time.time()
    cols = st.columns(4)
    with cols[0]:
        if timer.state in ("idle", "finished"):
            if st.button("▶ Start", key="pomodoro.start", type="primary", use_container_width=True):
                timer.start(now)
                save_timer(timer)
                st.rerun()
        elif timer.state == "running":
            if st.button("⏸ Pause", key="pomodoro.pause", use_container_width=True):
                timer.pause(now)
                save_timer(timer)
                st.rerun()
        elif st.button("▶ Resume", key="pomodoro.resume", type="primary", use_container_width=True):
            timer.resume(now)
            save_timer(timer)
            st.rerun()
    with cols[1]:
        if st.button("↺ Reset", key="pomodoro.reset", use_container_width=True):
            timer.reset()
            save_timer(timer)
            st.rerun()
    with cols[2]:
        if st.button("⏭ Skip", key="pomodoro.skip", use_container_width=True):
            timer.skip()
            save_timer(timer)
            st.rerun()
    with cols[3]:
        st.caption(f"Completed this run: {timer.completed_work}")


def render(ctx):
    st.markdown("<div class='section-title'>🍅 Pomodoro Timer</div>", unsafe_allow_html=True)
    timer = load_timer()

    selected = st.segmented_control(
        "Session",
        list(DURATIONS),
        format_func=lambda key: f"{SESSION_LABELS[key]} ({DURATIONS[key]}m)",
        default=timer.session_type,
        key=f"pomodoro.mode.{timer.session_type}",
    )
    if selected and selected != timer.session_type and timer.state != "running":
        timer.select(selected)
        save_timer(timer)
        st.rerun()

    _render_clock()
    _render_controls(timer)
    notes = st.text_input("What are you working on?", value=session_slices.get_value(SLUG, "notes") or "", key="pomodoro.notes")
    session_slices.set_value(SLUG, "notes", notes)

    try:
        stats = loaders.load_pomodoro_stats_cached(ctx.user_email)
        sessions = loaders.load_pomodoro_sessions_cached(ctx.user_email, 50)
    except RuntimeError as exc:
        logger.warning("Unable to load pomodoro stats: %s", exc)
        st.error(str(exc))
        return

    cols = st.columns(4)
    for col, (key, label) in zip(
        cols,
        [("today_sessions", "Today"), ("today_minutes", "Minutes today"), ("week_sessions", "This week"), ("total_sessions", "All time")],
    ):
        with col:
            st.markdown(
                f"<div class='stat-card'><div class='stat-value'>{int(stats.get(key) or 0)}</div>"
                f"<div class='stat-label'>{label}</div></div>",
                unsafe_allow_html=True,
            )

    st.plotly_chart(pomodoro_week_chart(sessions, date.fromisoformat(ctx.today)), use_container_width=True)
    st.markdown("<div class='small-label'>History</div>", unsafe_allow_html=True)
    if not sessions:
        st.caption("No sessions yet.")
    for session in sessions[:10]:
        label = SESSION_LABELS.get(session.get("session_type"), session.get("session_type"))
        note = f" · {session['notes']}" if session.get("notes") else ""
        st.markdown(f"{label} · {session.get('duration_minutes')} min · {time_ago(session.get('completed_at'))}{note}")
