import logging

import streamlit as st

from miniapps_shell.apps import (
    calendar_app,
    currency_app,
    habits_app,
    notes_app,
    pomodoro_app,
    shopping_app,
    summarizer_app,
    todo_app,
    weather_app,
)
from miniapps_shell.constants import ACTIVE_VIEW_KEY, DEFAULT_PAGE
from miniapps_shell.pages import about_page, home_page, profile_page

logger = logging.getLogger(__name__)

RENDERERS = {
    "home": home_page.render,
    "profile": profile_page.render,
    "about": about_page.render,
    "todo-list": todo_app.render,
    "habit-tracker": habits_app.render,
    "calendar": calendar_app.render,
    "pomodoro-timer": pomodoro_app.render,
    "notes-manager": notes_app.render,
    "shopping-list": shopping_app.render,
    "currency-converter": currency_app.render,
    "weather-info": weather_app.render,
    "text-summarizer": summarizer_app.render,
}


def resolve_view(slug):
    return slug if slug in RENDERERS else DEFAULT_PAGE


def render_router(ctx):
    requested = st.session_state.get(ACTIVE_VIEW_KEY, DEFAULT_PAGE)
    active = resolve_view(requested)
    if active != requested:
        logger.info("Unknown view %r, falling back to %s", requested, DEFAULT_PAGE)
        st.session_state[ACTIVE_VIEW_KEY] = active
    RENDERERS[active](ctx)
