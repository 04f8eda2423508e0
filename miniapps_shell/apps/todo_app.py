import html
import logging
from datetime import date

import streamlit as st

from miniapps_shell.data import loaders
from miniapps_shell.state import session_slices

logger = logging.getLogger(__name__)

SLUG = "todo-list"
PRIORITIES = ["low", "medium", "high"]
PRIORITY_BADGES = {"high": "🔴", "medium": "🟡", "low": "🟢"}
FILTER_LABELS = {"all": "All", "active": "Active", "completed": "Completed"}
SORT_LABELS = {"created": "Newest", "due_date": "Due date", "priority": "Priority"}

_TODO_LOADERS = (loaders.load_todos_cached,)


def _render_create_form():
    with st.form("todo.create", clear_on_submit=True):
        title = st.text_input("New task", placeholder="What needs doing?")
        cols = st.columns([2, 2, 2])
        with cols[0]:
            priority = st.selectbox("Priority", PRIORITIES, index=1)
        with cols[1]:
            category = st.text_input("Category", placeholder="Optional")
        with cols[2]:
            due_date = st.date_input("Due date", value=None)
        description = st.text_area("Description", height=70)
        submitted = st.form_submit_button("Add task", type="primary")
    if not submitted:
        return
    if not title.strip():
        st.warning("Task title cannot be empty.")
        return
    payload = {
        "title": title,
        "description": description or None,
        "priority": priority,
        "category": category or None,
        "due_date": due_date.isoformat() if due_date else None,
    }
    if loaders.mutate("POST", "/v1/todos", json=payload, invalidates=_TODO_LOADERS) is not None:
        session_slices.flash(SLUG, "Task added")
        st.rerun()


def _render_edit_form(todo):
    with st.form(f"todo.edit.{todo['id']}"):
        title = st.text_input("Title", value=todo.get("title") or "")
        description = st.text_area("Description", value=todo.get("description") or "", height=70)
        cols = st.columns(3)
        with cols[0]:
            priority = st.selectbox("Priority", PRIORITIES, index=PRIORITIES.index(todo.get("priority") or "medium"))
        with cols[1]:
            category = st.text_input("Category", value=todo.get("category") or "")
        with cols[2]:
            due_raw = todo.get("due_date")
            due_date = st.date_input("Due date", value=_parse_day(due_raw))
        save = st.form_submit_button("Save")
    if save:
        payload = {
            "title": title,
            "description": description or None,
            "priority": priority,
            "category": category or None,
            "due_date": due_date.isoformat() if due_date else None,
        }
        if loaders.mutate("PATCH", f"/v1/todos/{todo['id']}", json=payload, invalidates=_TODO_LOADERS) is not None:
            session_slices.set_value(SLUG, "editing", None)
            st.rerun()


def _parse_day(value):
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _render_todo_row(todo):
    cols = st.columns([0.6, 6, 1, 1])
    with cols[0]:
        checked = st.checkbox(
            "done",
            value=bool(todo.get("completed")),
            key=f"todo.check.{todo['id']}.{int(bool(todo.get('completed')))}",
            label_visibility="collapsed",
        )
        if checked != bool(todo.get("completed")):
            loaders.mutate("POST", f"/v1/todos/{todo['id']}/toggle", invalidates=_TODO_LOADERS)
            st.rerun()
    with cols[1]:
        css = "done" if todo.get("completed") else ("overdue" if todo.get("is_overdue") else "")
        meta = [PRIORITY_BADGES.get(todo.get("priority"), "")]
        if todo.get("category"):
            meta.append(html.escape(todo["category"]))
        if todo.get("due_date"):
            meta.append(("⚠️ overdue " if todo.get("is_overdue") else "due ") + str(todo["due_date"])[:10])
        st.markdown(
            f"<span class='{css}'>{html.escape(todo.get('title') or '')}</span><br>"
            f"<span class='small-label'>{' · '.join(part for part in meta if part)}</span>",
            unsafe_allow_html=True,
        )
    with cols[2]:
        if st.button("✏️", key=f"todo.edit_btn.{todo['id']}"):
            current = session_slices.get_value(SLUG, "editing")
            session_slices.set_value(SLUG, "editing", None if current == todo["id"] else todo["id"])
            st.rerun()
    with cols[3]:
        if st.button("🗑️", key=f"todo.delete.{todo['id']}"):
            loaders.mutate("DELETE", f"/v1/todos/{todo['id']}", invalidates=_TODO_LOADERS, success="Task deleted")
            st.rerun()
    if session_slices.get_value(SLUG, "editing") == todo["id"]:
        _render_edit_form(todo)


def render(ctx):
    st.markdown("<div class='section-title'>✅ To-Do List</div>", unsafe_allow_html=True)
    session_slices.render_flash(SLUG)
    _render_create_form()

    cols = st.columns([2, 3, 2])
    with cols[0]:
        todo_filter = st.segmented_control(
            "Show",
            list(FILTER_LABELS),
            format_func=FILTER_LABELS.get,
            default="all",
            key="todo.filter",
        ) or "all"
    with cols[1]:
        search = st.text_input("Search", key="todo.search", placeholder="Search tasks")
    with cols[2]:
        sort = st.selectbox("Sort by", list(SORT_LABELS), format_func=SORT_LABELS.get, key="todo.sort")

    try:
        payload = loaders.load_todos_cached(ctx.user_email, todo_filter, search.strip(), sort)
    except RuntimeError as exc:
        logger.warning("Unable to load todos: %s", exc)
        st.error(str(exc))
        return

    counts = payload.get("counts") or {}
    st.caption(
        f"{counts.get('total', 0)} total · {counts.get('active', 0)} active · {counts.get('completed', 0)} completed"
    )
    items = payload.get("items") or []
    if not items:
        st.info("Nothing here yet." if todo_filter == "all" and not search else "No tasks match this view.")
    for todo in items:
        _render_todo_row(todo)

    if counts.get("completed"):
        if st.button("Clear completed", key="todo.clear_completed"):
            loaders.mutate("DELETE", "/v1/todos/completed", invalidates=_TODO_LOADERS, success="Completed tasks cleared")
            st.rerun()
