from __future__ import annotations

import logging

import streamlit as st

from miniapps_shell.data import api_client

logger = logging.getLogger(__name__)


@st.cache_data(ttl=600, show_spinner=False)
def load_apps_cached(user_email):
    return api_client.get("/v1/apps").get("items", [])


@st.cache_data(ttl=60, show_spinner=False)
def load_header_cached(user_email):
    return api_client.get("/v1/header")


@st.cache_data(ttl=60, show_spinner=False)
def load_preferences_cached(user_email):
    return api_client.get("/v1/preferences")


@st.cache_data(ttl=60, show_spinner=False)
def load_profile_cached(user_email):
    return api_client.get("/v1/profile")


@st.cache_data(ttl=30, show_spinner=False)
def load_profile_stats_cached(user_email):
    return api_client.get("/v1/profile/stats")


@st.cache_data(ttl=30, show_spinner=False)
def load_usage_cached(user_email):
    return api_client.get("/v1/usage")


@st.cache_data(ttl=30, show_spinner=False)
def load_activity_cached(user_email, limit=10):
    return api_client.get("/v1/activity", params={"limit": limit}).get("items", [])


@st.cache_data(ttl=30, show_spinner=False)
def load_todos_cached(user_email, todo_filter, search, sort):
    params = {"filter": todo_filter, "sort": sort}
    if search:
        params["search"] = search
    return api_client.get("/v1/todos", params=params)


@st.cache_data(ttl=30, show_spinner=False)
def load_habits_cached(user_email):
    return api_client.get("/v1/habits")


@st.cache_data(ttl=30, show_spinner=False)
def load_habit_completions_cached(user_email, start_iso, end_iso):
    return api_client.get("/v1/habits/completions", params={"start": start_iso, "end": end_iso}).get("items", [])


@st.cache_data(ttl=30, show_spinner=False)
def load_events_cached(user_email, start_iso, end_iso):
    return api_client.get("/v1/calendar/events", params={"start": start_iso, "end": end_iso}).get("items", [])


@st.cache_data(ttl=30, show_spinner=False)
def load_upcoming_cached(user_email, limit=5):
    return api_client.get("/v1/calendar/upcoming", params={"limit": limit}).get("items", [])


@st.cache_data(ttl=30, show_spinner=False)
def load_pomodoro_sessions_cached(user_email, limit=10):
    return api_client.get("/v1/pomodoro/sessions", params={"limit": limit}).get("items", [])


@st.cache_data(ttl=30, show_spinner=False)
def load_pomodoro_stats_cached(user_email):
    return api_client.get("/v1/pomodoro/stats")


@st.cache_data(ttl=30, show_spinner=False)
def load_notes_cached(user_email, note_filter, search):
    params = {"filter": note_filter}
    if search:
        params["search"] = search
    return api_client.get("/v1/notes", params=params).get("items", [])


@st.cache_data(ttl=60, show_spinner=False)
def load_note_tags_cached(user_email):
    return api_client.get("/v1/notes/tags").get("items", [])


@st.cache_data(ttl=20, show_spinner=False)
def load_shopping_lists_cached(user_email):
    return api_client.get("/v1/shopping/lists")


@st.cache_data(ttl=20, show_spinner=False)
def load_shopping_list_cached(user_email, list_id):
    return api_client.get(f"/v1/shopping/lists/{list_id}")


@st.cache_data(ttl=1800, show_spinner=False)
def load_rates_cached(user_email):
    return api_client.get("/v1/currency/rates")


@st.cache_data(ttl=30, show_spinner=False)
def load_budgets_cached(user_email):
    return api_client.get("/v1/budgets")


@st.cache_data(ttl=30, show_spinner=False)
def load_budget_cached(user_email, budget_id):
    return api_client.get(f"/v1/budgets/{budget_id}")


@st.cache_data(ttl=600, show_spinner=False)
def load_weather_cached(user_email, lat, lon):
    return api_client.get("/v1/weather", params={"lat": lat, "lon": lon})


@st.cache_data(ttl=60, show_spinner=False)
def load_locations_cached(user_email):
    return api_client.get("/v1/weather/locations").get("items", [])


@st.cache_data(ttl=60, show_spinner=False)
def load_summary_history_cached(user_email):
    return api_client.get("/v1/summarize/history").get("items", [])


def check_backend_health():
    try:
        api_client.get("/health")
    except RuntimeError as exc:
        logger.warning("Backend health check failed: %s", exc)
        return False
    return True


ALL_CACHED_LOADERS = (
    load_apps_cached,
    load_header_cached,
    load_preferences_cached,
    load_profile_cached,
    load_profile_stats_cached,
    load_usage_cached,
    load_activity_cached,
    load_todos_cached,
    load_habits_cached,
    load_habit_completions_cached,
    load_events_cached,
    load_upcoming_cached,
    load_pomodoro_sessions_cached,
    load_pomodoro_stats_cached,
    load_notes_cached,
    load_note_tags_cached,
    load_shopping_lists_cached,
    load_shopping_list_cached,
    load_budgets_cached,
    load_budget_cached,
    load_locations_cached,
    load_summary_history_cached,
)

# Profile counters and the activity feed read every table, so any mutation stales them.
AGGREGATE_LOADERS = (load_profile_stats_cached, load_usage_cached, load_activity_cached)


def invalidate(*loaders):
    for loader in loaders + AGGREGATE_LOADERS:
        loader.clear()


def invalidate_all():
    for loader in ALL_CACHED_LOADERS:
        loader.clear()


def mutate(method, path, json=None, params=None, invalidates=(), success=None):
    """Run one API mutation, clear the affected caches, and surface failures with st.error."""
    try:
        result = api_client.request(method, path, params=params, json=json)
    except RuntimeError as exc:
        logger.warning("%s %s failed: %s", method, path, exc)
        st.error(str(exc))
        return None
    invalidate(*invalidates)
    if success:
        st.toast(success)
    return result if result is not None else {}
