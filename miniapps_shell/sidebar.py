import logging

import streamlit as st

from miniapps_shell.auth import logout
from miniapps_shell.catalog import quick_search, shortcut_digit, shortcut_slug, split_favorites
from miniapps_shell.constants import ACTIVE_VIEW_KEY, DEFAULT_PAGE, PAGES, QUICK_SEARCH_KEY, QUICK_SWITCH_KEY
from miniapps_shell.data import loaders
from miniapps_shell.theme import toggled_theme

logger = logging.getLogger(__name__)


def set_active_view(slug):
    st.session_state[ACTIVE_VIEW_KEY] = slug


def get_active_view():
    return st.session_state.get(ACTIVE_VIEW_KEY, DEFAULT_PAGE)


def _on_quick_switch():
    slug = shortcut_slug(st.session_state.get(QUICK_SWITCH_KEY))
    if slug:
        set_active_view(slug)
    st.session_state[QUICK_SWITCH_KEY] = ""


def _toggle_theme(current):
    new_theme = toggled_theme(current)
    st.session_state["ui_theme"] = new_theme
    loaders.mutate("PATCH", "/v1/preferences", json={"theme": new_theme}, invalidates=(loaders.load_preferences_cached, loaders.load_header_cached))


def _nav_button(slug, label, key_prefix):
    active = get_active_view() == slug
    if st.button(label, key=f"{key_prefix}.{slug}", use_container_width=True, type="primary" if active else "secondary"):
        set_active_view(slug)
        st.rerun()


def render_sidebar(ctx):
    with st.sidebar:
        st.markdown("<div class='section-title'>🧩 Mini Apps</div>", unsafe_allow_html=True)
        st.caption(ctx.user_email)

        col_theme, col_logout = st.columns(2)
        with col_theme:
            label = "☀️ Light" if ctx.theme == "dark" else "🌙 Dark"
            if st.button(label, key="sidebar.theme", use_container_width=True):
                _toggle_theme(ctx.theme)
                st.rerun()
        with col_logout:
            if st.button("Logout", key="sidebar.logout", use_container_width=True):
                logout()

        st.text_input(
            "Quick switch (1-9)",
            key=QUICK_SWITCH_KEY,
            max_chars=1,
            on_change=_on_quick_switch,
            placeholder="e.g. 3 for Pomodoro",
        )

        query = st.text_input("Search apps", key=QUICK_SEARCH_KEY, placeholder="Search by name or keyword")
        if query:
            matches = quick_search(ctx.apps, query)
            st.markdown("<div class='small-label'>Results</div>", unsafe_allow_html=True)
            if not matches:
                st.caption("No apps match your search.")
            for app in matches:
                _nav_button(app["slug"], f"{app['icon']} {app['name']}", "sidebar.search")
            st.divider()

        st.markdown("<div class='small-label'>Pages</div>", unsafe_allow_html=True)
        for slug, label, icon in PAGES:
            _nav_button(slug, f"{icon} {label}", "sidebar.page")

        favorites, others = split_favorites(ctx.apps, ctx.favorites)
        if favorites:
            st.markdown("<div class='small-label'>Favorites</div>", unsafe_allow_html=True)
            for app in favorites:
                _nav_button(app["slug"], f"⭐ {app['icon']} {app['name']}", "sidebar.fav")

        st.markdown("<div class='small-label'>Apps</div>", unsafe_allow_html=True)
        for app in others:
            digit = shortcut_digit(app["slug"])
            suffix = f"  ·  {digit}" if digit else ""
            _nav_button(app["slug"], f"{app['icon']} {app['name']}{suffix}", "sidebar.app")
