from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import streamlit as st


def greeting_for_hour(hour):
    if hour < 12:
        return "Good morning"
    if hour < 18:
        return "Good afternoon"
    return "Good evening"


def local_hour(timezone_name):
    try:
        return datetime.now(ZoneInfo(timezone_name)).hour
    except ZoneInfoNotFoundError:
        return datetime.now().hour


@st.fragment
def render_global_header(ctx):
    today = date.fromisoformat(ctx.today)
    greeting = greeting_for_hour(local_hour(ctx.timezone))
    active = ctx.app_by_slug(st.session_state.get("ui.active_view", ""))
    crumb = f" • {active['icon']} {active['name']}" if active else ""
    st.markdown(
        f"<div class='small-label'>{today.strftime('%A, %B %d, %Y')}{crumb}</div>",
        unsafe_allow_html=True,
    )
    st.markdown(f"<div class='section-title'>{greeting}, {ctx.display_name}!</div>", unsafe_allow_html=True)
    if not ctx.backend_ok:
        st.warning("Backend is unreachable right now. Data may take a moment to appear.")
