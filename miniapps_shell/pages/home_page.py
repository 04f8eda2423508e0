import html
import logging

import streamlit as st

from miniapps_shell.catalog import shortcut_digit, split_favorites
from miniapps_shell.data import loaders
from miniapps_shell.formatting import time_ago
from miniapps_shell.sidebar import set_active_view
from miniapps_shell.visualizations import USAGE_LABELS, usage_chart

logger = logging.getLogger(__name__)

GRID_COLUMNS = 3


def _toggle_favorite(slug):
    loaders.mutate(
        "POST",
        "/v1/preferences/favorites/toggle",
        json={"slug": slug},
        invalidates=(loaders.load_preferences_cached, loaders.load_header_cached),
    )


def _render_app_card(app, is_favorite, key_prefix):
    digit = shortcut_digit(app["slug"])
    st.markdown(
        "<div class='app-card'>"
        f"<div class='app-icon'>{app['icon']}</div>"
        f"<div class='app-name'>{html.escape(app['name'])}</div>"
        f"<div class='app-desc'>{html.escape(app.get('description') or '')}</div>"
        f"<div class='small-label'>{html.escape(app.get('category') or '')}{f' · key {digit}' if digit else ''}</div>"
        "</div>",
        unsafe_allow_html=True,
    )
    open_col, fav_col = st.columns([3, 1])
    with open_col:
        if st.button("Open", key=f"{key_prefix}.open.{app['slug']}", use_container_width=True):
            set_active_view(app["slug"])
            st.rerun()
    with fav_col:
        if st.button("★" if is_favorite else "☆", key=f"{key_prefix}.fav.{app['slug']}", use_container_width=True):
            _toggle_favorite(app["slug"])
            st.rerun()


def _render_grid(apps, favorites, key_prefix):
    favorite_set = set(favorites)
    for start in range(0, len(apps), GRID_COLUMNS):
        cols = st.columns(GRID_COLUMNS)
        for col, app in zip(cols, apps[start:start + GRID_COLUMNS]):
            with col:
                _render_app_card(app, app["slug"] in favorite_set, key_prefix)


def _render_usage(ctx):
    try:
        usage = loaders.load_usage_cached(ctx.user_email)
    except RuntimeError as exc:
        logger.warning("Usage statistics unavailable: %s", exc)
        st.caption("Usage statistics unavailable.")
        return
    metrics = usage.get("metrics") or {}
    cols = st.columns(len(USAGE_LABELS) + 1)
    for col, (key, label) in zip(cols, USAGE_LABELS.items()):
        values = metrics.get(key) or {}
        change = int(values.get("percentage_change") or 0)
        css = "change-up" if change >= 0 else "change-down"
        with col:
            st.markdown(
                "<div class='stat-card'>"
                f"<div class='stat-value'>{int(values.get('this_month') or 0)}</div>"
                f"<div class='stat-label'>{label}</div>"
                f"<div class='{css}'>{'+' if change >= 0 else ''}{change}% vs last month</div>"
                "</div>",
                unsafe_allow_html=True,
            )
    with cols[-1]:
        most_used = usage.get("most_used_app") or "No activity yet"
        st.markdown(
            "<div class='stat-card'>"
            f"<div class='stat-value' style='font-size:1.1rem'>{html.escape(most_used)}</div>"
            "<div class='stat-label'>Most used this month</div>"
            "</div>",
            unsafe_allow_html=True,
        )
    st.plotly_chart(usage_chart(usage), use_container_width=True)


def _render_activity(ctx):
    try:
        items = loaders.load_activity_cached(ctx.user_email, 10)
    except RuntimeError as exc:
        logger.warning("Activity feed unavailable: %s", exc)
        st.caption("Recent activity unavailable.")
        return
    if not items:
        st.caption("No recent activity. Complete a task or a focus session to see it here.")
        return
    for item in items:
        st.markdown(
            "<div class='activity-row'>"
            f"<span>{item.get('icon') or '•'}</span>"
            f"<span>{html.escape(item.get('description') or '')}</span>"
            f"<span class='activity-time'>{time_ago(item.get('timestamp'))}</span>"
            "</div>",
            unsafe_allow_html=True,
        )


def render(ctx):
    st.markdown(
        "<div class='banner'>"
        f"<h2>Welcome back, {html.escape(ctx.display_name)}</h2>"
        f"<div>You have {len(ctx.apps)} apps ready. Press a digit in the sidebar quick switch to jump straight in.</div>"
        "</div>",
        unsafe_allow_html=True,
    )

    favorites, _ = split_favorites(ctx.apps, ctx.favorites)
    if favorites:
        st.markdown("<div class='section-title'>⭐ Favorites</div>", unsafe_allow_html=True)
        _render_grid(favorites, ctx.favorites, "home.favorites")

    st.markdown("<div class='section-title'>All apps</div>", unsafe_allow_html=True)
    _render_grid(ctx.apps, ctx.favorites, "home.apps")

    st.markdown("<div class='section-title'>Usage statistics</div>", unsafe_allow_html=True)
    _render_usage(ctx)

    st.markdown("<div class='section-title'>Recent activity</div>", unsafe_allow_html=True)
    _render_activity(ctx)
