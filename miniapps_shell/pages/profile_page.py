import json
import logging
from zoneinfo import available_timezones

import streamlit as st

from miniapps_shell.auth import logout
from miniapps_shell.data import api_client, loaders

logger = logging.getLogger(__name__)

STAT_LABELS = [
    ("total_todos", "To-dos"),
    ("completed_todos", "Completed"),
    ("total_notes", "Notes"),
    ("active_habits", "Active habits"),
    ("habit_streak", "Habit streak"),
    ("pomodoro_sessions", "Pomodoros"),
    ("upcoming_events", "Upcoming events"),
    ("shopping_lists", "Shopping lists"),
]


@st.cache_data(show_spinner=False)
def timezone_options():
    return sorted(available_timezones())


def _render_stats(ctx):
    try:
        stats = loaders.load_profile_stats_cached(ctx.user_email)
    except RuntimeError as exc:
        logger.warning("Profile stats unavailable: %s", exc)
        st.caption("Statistics unavailable.")
        return
    for start in range(0, len(STAT_LABELS), 4):
        cols = st.columns(4)
        for col, (key, label) in zip(cols, STAT_LABELS[start:start + 4]):
            with col:
                st.markdown(
                    "<div class='stat-card'>"
                    f"<div class='stat-value'>{int(stats.get(key) or 0)}</div>"
                    f"<div class='stat-label'>{label}</div>"
                    "</div>",
                    unsafe_allow_html=True,
                )


def _render_profile_form(ctx):
    profile = ctx.profile
    zones = timezone_options()
    current_zone = profile.get("timezone") or "UTC"
    with st.form("profile.form"):
        display_name = st.text_input("Display name", value=profile.get("display_name") or "")
        bio = st.text_area("Bio", value=profile.get("bio") or "", height=90)
        timezone = st.selectbox("Timezone", zones, index=zones.index(current_zone) if current_zone in zones else 0)
        avatar_url = st.text_input("Avatar URL", value=profile.get("avatar_url") or "")
        submitted = st.form_submit_button("Save profile", type="primary")
    if submitted:
        result = loaders.mutate(
            "PATCH",
            "/v1/profile",
            json={"display_name": display_name, "bio": bio, "timezone": timezone, "avatar_url": avatar_url},
            invalidates=(loaders.load_profile_cached, loaders.load_header_cached),
            success="Profile saved",
        )
        if result is not None:
            st.rerun()


def _render_account(ctx):
    st.markdown("<div class='section-title'>Your data</div>", unsafe_allow_html=True)
    if st.button("Prepare export", key="profile.export"):
        try:
            st.session_state["profile.export_payload"] = json.dumps(api_client.get("/v1/account/export"), indent=2)
        except RuntimeError as exc:
            logger.warning("Export failed: %s", exc)
            st.error(str(exc))
    payload = st.session_state.get("profile.export_payload")
    if payload:
        st.download_button(
            "Download JSON",
            data=payload,
            file_name="mini-apps-export.json",
            mime="application/json",
            key="profile.export_download",
        )

    with st.expander("Danger zone"):
        st.warning("Deleting your account removes every to-do, note, habit, event and list you own.")
        confirm = st.text_input("Type DELETE to confirm", key="profile.delete_confirm")
        if st.button("Delete all my data", key="profile.delete", disabled=confirm != "DELETE"):
            try:
                api_client.delete("/v1/account")
            except RuntimeError as exc:
                logger.warning("Account deletion failed: %s", exc)
                st.error(str(exc))
                return
            loaders.invalidate_all()
            st.success("Your data was deleted.")
            logout()


def render(ctx):
    st.markdown("<div class='section-title'>👤 Profile</div>", unsafe_allow_html=True)
    avatar = ctx.profile.get("avatar_url")
    left, right = st.columns([1, 4])
    with left:
        if avatar:
            st.image(avatar, width=96)
        else:
            st.markdown(f"<div class='timer-display' style='font-size:3rem'>{ctx.display_name[:1].upper()}</div>", unsafe_allow_html=True)
    with right:
        st.markdown(f"**{ctx.display_name}**  \n{ctx.user_email}")
        if ctx.profile.get("bio"):
            st.caption(ctx.profile["bio"])
    _render_stats(ctx)
    st.markdown("<div class='section-title'>Edit profile</div>", unsafe_allow_html=True)
    _render_profile_form(ctx)
    _render_account(ctx)
