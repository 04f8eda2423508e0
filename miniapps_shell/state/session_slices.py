import streamlit as st

PREFIX = "mini"


def slice_key(app_slug):
    return f"{PREFIX}.{app_slug}"


def get_slice(app_slug):
    key = slice_key(app_slug)
    if key not in st.session_state:
        st.session_state[key] = {}
    return st.session_state[key]


def get_value(app_slug, name, default=None):
    return get_slice(app_slug).get(name, default)


def set_value(app_slug, name, value):
    get_slice(app_slug)[name] = value


def pop_value(app_slug, name, default=None):
    return get_slice(app_slug).pop(name, default)


def flash(app_slug, message, kind="success"):
    set_value(app_slug, "_flash", (kind, message))


def render_flash(app_slug):
    pending = pop_value(app_slug, "_flash")
    if not pending:
        return
    kind, message = pending
    if kind == "error":
        st.error(message)
    elif kind == "warning":
        st.warning(message)
    else:
        st.success(message)
