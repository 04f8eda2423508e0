from __future__ import annotations

import logging
import os
from pathlib import Path
from urllib.parse import urlparse

import streamlit as st

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_FILE = PROJECT_ROOT / ".env"
SECRETS_FILE = PROJECT_ROOT / ".streamlit" / "secrets.toml"
GOOGLE_METADATA_URL = "https://accounts.google.com/.well-known/openid-configuration"

# Secret path -> environment variable that overrides it.
ENV_FALLBACK_KEYS = {
    ("auth", "redirect_uri"): "AUTH_REDIRECT_URI",
    ("auth", "cookie_secret"): "AUTH_COOKIE_SECRET",
    ("auth", "client_id"): "OIDC_CLIENT_ID",
    ("auth", "client_secret"): "OIDC_CLIENT_SECRET",
    ("auth", "server_metadata_url"): "OIDC_SERVER_METADATA_URL",
    ("app", "allowed_emails"): "ALLOWED_EMAILS",
    ("app", "API_BASE_URL"): "API_BASE_URL",
    ("app", "BACKEND_SESSION_SECRET"): "BACKEND_SESSION_SECRET",
    ("app", "dev_user_email"): "SHELL_DEV_USER_EMAIL",
}

AUTH_BLOCK_ENV = {
    "redirect_uri": "AUTH_REDIRECT_URI",
    "cookie_secret": "AUTH_COOKIE_SECRET",
    "client_id": "OIDC_CLIENT_ID",
    "client_secret": "OIDC_CLIENT_SECRET",
}


def parse_env_line(line):
    """Return (key, value) for a KEY=VALUE line, or None for blanks and comments."""
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None
    key, sep, value = stripped.partition("=")
    key = key.strip()
    if not sep or not key:
        return None
    return key, value.strip().strip("'\"")


def load_local_env():
    if not ENV_FILE.is_file():
        return
    for line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        parsed = parse_env_line(line)
        if parsed:
            os.environ.setdefault(*parsed)


def bootstrap_local_secrets_from_env():
    """Write .streamlit/secrets.toml from env vars so st.login works without a hand-made secrets file."""
    if SECRETS_FILE.exists():
        return
    values = {name: os.getenv(env_key) for name, env_key in AUTH_BLOCK_ENV.items()}
    if not all(values.values()):
        return
    values["server_metadata_url"] = os.getenv("OIDC_SERVER_METADATA_URL", GOOGLE_METADATA_URL)
    lines = ["[auth]"] + [f'{name} = "{value}"' for name, value in values.items()]
    SECRETS_FILE.parent.mkdir(parents=True, exist_ok=True)
    SECRETS_FILE.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.info("Wrote %s from environment", SECRETS_FILE)


def get_secret(path, default=None):
    path = tuple(path)
    env_key = ENV_FALLBACK_KEYS.get(path)
    override = os.getenv(env_key) if env_key else None
    if override:
        return override
    node = st.secrets
    try:
        for key in path:
            if key not in node:
                return default
            node = node[key]
    except (FileNotFoundError, KeyError, TypeError):
        return default
    return node


def auth_configured():
    return all(get_secret(("auth", name)) for name in AUTH_BLOCK_ENV)


def allowed_emails():
    raw = get_secret(("app", "allowed_emails")) or ""
    return {email.strip().lower() for email in str(raw).split(",") if email.strip()}


def dev_user_email():
    return str(get_secret(("app", "dev_user_email")) or "").strip().lower()


def is_email_allowed(email, allowed):
    return not allowed or email in allowed


def enforce_login():
    if not auth_configured():
        if dev_user_email():
            st.sidebar.caption(f"Local dev session: {dev_user_email()}")
            return
        st.markdown("<div class='section-title'>Login Setup Required</div>", unsafe_allow_html=True)
        st.markdown("Configure an OpenID Connect provider in Streamlit secrets before using the hub.")
        st.code(
            "[auth]\n"
            "redirect_uri = \"https://your-hub.example.com/oauth2callback\"\n"
            "cookie_secret = \"LONG_RANDOM_SECRET\"\n"
            "client_id = \"YOUR_CLIENT_ID\"\n"
            "client_secret = \"YOUR_CLIENT_SECRET\"\n"
            "server_metadata_url = \"https://accounts.google.com/.well-known/openid-configuration\"\n\n"
            "[app]\n"
            "API_BASE_URL = \"https://api.your-hub.example.com\"\n"
            "BACKEND_SESSION_SECRET = \"SHARED_SECRET\"",
            language="toml",
        )
        st.stop()

    redirect_uri = str(get_secret(("auth", "redirect_uri")) or "").strip()
    if urlparse(redirect_uri).path != "/oauth2callback":
        st.error("Invalid auth.redirect_uri. For st.login it must end with /oauth2callback.")
        st.stop()

    if not st.user.is_logged_in:
        st.markdown("<div class='section-title'>Welcome to Mini Apps</div>", unsafe_allow_html=True)
        st.markdown("Sign in to reach your personal tools. Your data stays scoped to your account.")
        if st.button("Sign in", key="auth.login", type="primary"):
            st.login()
        st.stop()

    user_email = get_current_user_email()
    if not is_email_allowed(user_email, allowed_emails()):
        logger.warning("Rejected login for %s", user_email)
        st.error("Access denied for this account.")
        if st.button("Logout", key="auth.logout_denied"):
            st.logout()
        st.stop()


def get_current_user_email():
    if auth_configured():
        return str(getattr(st.user, "email", "") or "").strip().lower()
    return dev_user_email()


def get_display_name(user_email, profile=None):
    profile_name = str((profile or {}).get("display_name") or "").strip()
    if profile_name:
        return profile_name
    user_name = str(getattr(st.user, "name", "") or "").strip() if auth_configured() else ""
    if user_name:
        return user_name.split()[0]
    local = (user_email or "").split("@")[0].replace(".", " ").strip()
    return local.title() if local else "there"


def logout():
    if auth_configured():
        st.logout()
