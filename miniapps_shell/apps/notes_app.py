import html
import logging

import streamlit as st

from miniapps_shell.data import loaders
from miniapps_shell.formatting import time_ago
from miniapps_shell.state import session_slices

logger = logging.getLogger(__name__)

SLUG = "notes-manager"
CONTENT_TYPES = ["note", "code", "markdown"]
FILTER_LABELS = {"all": "All", "favorites": "⭐ Favorites", "note": "Notes", "code": "Code", "markdown": "Markdown"}
NOTE_COLORS = ["#fef3c7", "#dbeafe", "#dcfce7", "#fce7f3", "#ede9fe", "#f3f4f6"]
CODE_LANGUAGES = ["python", "javascript", "typescript", "sql", "bash", "json", "html", "css", "go", "rust", "text"]

_NOTE_LOADERS = (loaders.load_notes_cached, loaders.load_note_tags_cached)


def parse_tags(raw):
    seen = []
    for part in str(raw or "").split(","):
        tag = part.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def _note_form(form_key, note=None):
    note = note or {}
    with st.form(form_key, clear_on_submit=not note):
        title = st.text_input("Title", value=note.get("title") or "")
        cols = st.columns(3)
        with cols[0]:
            content_type = st.selectbox(
                "Type", CONTENT_TYPES, index=CONTENT_TYPES.index(note.get("content_type") or "note")
            )
        with cols[1]:
            language = st.selectbox(
                "Language (code)",
                CODE_LANGUAGES,
                index=CODE_LANGUAGES.index(note["language"]) if note.get("language") in CODE_LANGUAGES else 0,
            )
        with cols[2]:
            color = st.selectbox(
                "Color",
                NOTE_COLORS,
                index=NOTE_COLORS.index(note["color"]) if note.get("color") in NOTE_COLORS else 0,
            )
        content = st.text_area("Content", value=note.get("content") or "", height=200)
        cols = st.columns(2)
        with cols[0]:
            category = st.text_input("Category", value=note.get("category") or "")
        with cols[1]:
            tags = st.text_input("Tags (comma separated)", value=", ".join(note.get("tags") or []))
        submitted = st.form_submit_button("Save note", type="primary")
    if not submitted:
        return None
    return {
        "title": title,
        "content": content,
        "content_type": content_type,
        "language": language if content_type == "code" else None,
        "color": color,
        "category": category or None,
        "tags": parse_tags(tags),
    }


def _render_note_body(note):
    content = note.get("content") or ""
    if note.get("content_type") == "code":
        st.code(content, language=note.get("language") or "text")
    elif note.get("content_type") == "markdown":
        st.markdown(content)
    else:
        st.text(content)


def _render_note(note):
    star = "⭐ " if note.get("is_favorite") else ""
    tags = " ".join(f"#{html.escape(tag)}" for tag in note.get("tags") or [])
    with st.container(border=True):
        st.markdown(
            f"<div style='border-left:4px solid {html.escape(note.get('color') or NOTE_COLORS[0])};padding-left:8px'>"
            f"<b>{star}{html.escape(note.get('title') or '')}</b>"
            f"<div class='small-label'>{html.escape(note.get('content_type') or 'note')} · updated {time_ago(note.get('updated_at'))}"
            f"{' · ' + html.escape(note['category']) if note.get('category') else ''} {tags}</div></div>",
            unsafe_allow_html=True,
        )
        editing = session_slices.get_value(SLUG, "editing") == note["id"]
        if editing:
            payload = _note_form(f"notes.edit.{note['id']}", note)
            if payload is not None:
                if loaders.mutate("PATCH", f"/v1/notes/{note['id']}", json=payload, invalidates=_NOTE_LOADERS) is not None:
                    session_slices.set_value(SLUG, "editing", None)
                    st.rerun()
        else:
            _render_note_body(note)
        cols = st.columns(3)
        with cols[0]:
            if st.button("☆ Favorite" if not note.get("is_favorite") else "★ Unfavorite", key=f"notes.fav.{note['id']}"):
                loaders.mutate("POST", f"/v1/notes/{note['id']}/favorite", invalidates=_NOTE_LOADERS)
                st.rerun()
        with cols[1]:
            if st.button("Cancel" if editing else "Edit", key=f"notes.edit_btn.{note['id']}"):
                session_slices.set_value(SLUG, "editing", None if editing else note["id"])
                st.rerun()
        with cols[2]:
            if st.button("Delete", key=f"notes.delete.{note['id']}"):
                loaders.mutate("DELETE", f"/v1/notes/{note['id']}", invalidates=_NOTE_LOADERS, success="Note deleted")
                st.rerun()


def render(ctx):
    st.markdown("<div class='section-title'>📝 Notes Manager</div>", unsafe_allow_html=True)
    with st.expander("➕ New note", expanded=False):
        payload = _note_form("notes.create")
        if payload is not None:
            if not payload["title"].strip():
                st.warning("A note needs a title.")
            elif loaders.mutate("POST", "/v1/notes", json=payload, invalidates=_NOTE_LOADERS, success="Note created") is not None:
                st.rerun()

    cols = st.columns([3, 2])
    with cols[0]:
        note_filter = st.segmented_control(
            "Filter", list(FILTER_LABELS), format_func=FILTER_LABELS.get, default="all", key="notes.filter"
        ) or "all"
    with cols[1]:
        search = st.text_input("Search", key="notes.search", placeholder="Title, content or tag")

    try:
        notes = loaders.load_notes_cached(ctx.user_email, note_filter, search.strip())
        tags = loaders.load_note_tags_cached(ctx.user_email)
    except RuntimeError as exc:
        logger.warning("Unable to load notes: %s", exc)
        st.error(str(exc))
        return

    if tags:
        st.caption("Tags: " + " ".join(f"#{tag}" for tag in tags))
    if not notes:
        st.info("No notes found.")
    for note in notes:
        _render_note(note)
