from datetime import date

import streamlit as st

from miniapps_shell.auth import (
    bootstrap_local_secrets_from_env,
    enforce_login,
    get_current_user_email,
    get_display_name,
    get_secret,
    load_local_env,
)
from miniapps_shell.context import ShellContext
from miniapps_shell.data import api_client, loaders
from miniapps_shell.header import render_global_header
from miniapps_shell.logging_config import configure_logging
from miniapps_shell.router import render_router
from miniapps_shell.sidebar import render_sidebar
from miniapps_shell.theme import THEME_PRESETS, inject_theme_css

st.set_page_config(page_title="Mini Apps", page_icon="🧩", layout="wide")

logger = configure_logging()
load_local_env()
bootstrap_local_secrets_from_env()

inject_theme_css()
enforce_login()

current_user_email = get_current_user_email()
api_client.configure(get_secret, get_current_user_email)
if not api_client.is_enabled():
    st.error("API_BASE_URL and BACKEND_SESSION_SECRET must be configured for the shell to reach the API.")
    st.stop()

try:
    header = loaders.load_header_cached(current_user_email)
    apps = loaders.load_apps_cached(current_user_email)
    preferences = loaders.load_preferences_cached(current_user_email)
    profile = loaders.load_profile_cached(current_user_email)
    backend_ok = True
except RuntimeError as exc:
    logger.warning("Shell bootstrap failed for %s: %s", current_user_email, exc)
    header = {"today": date.today().isoformat(), "theme": None}
    apps, preferences, profile = [], {}, {}
    backend_ok = loaders.check_backend_health()

# Adopt the stored theme once per browser session; the sidebar toggle owns it afterwards.
if not st.session_state.get("ui_theme_synced"):
    st.session_state["ui_theme_synced"] = True
    stored_theme = header.get("theme")
    if stored_theme in THEME_PRESETS and stored_theme != st.session_state.get("ui_theme"):
        st.session_state["ui_theme"] = stored_theme
        st.rerun()

context = ShellContext(
    user_email=current_user_email,
    display_name=get_display_name(current_user_email, profile),
    today=header.get("today") or date.today().isoformat(),
    theme=st.session_state.get("ui_theme", "dark"),
    apps=apps,
    preferences=preferences,
    profile=profile,
    backend_ok=backend_ok,
)

render_sidebar(context)
render_global_header(context)
render_router(context)
