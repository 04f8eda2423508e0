import html
import logging

import streamlit as st

from miniapps_shell.data import loaders
from miniapps_shell.state import session_slices

logger = logging.getLogger(__name__)

SLUG = "shopping-list"
DEFAULT_CATEGORIES = ["Produce", "Dairy", "Meat", "Bakery", "Pantry", "Frozen", "Beverages", "Snacks", "Other"]
ROLE_BADGES = {"owner": "👑 owner", "editor": "✏️ editor", "viewer": "👀 viewer"}

_LIST_LOADERS = (loaders.load_shopping_lists_cached, loaders.load_shopping_list_cached)


def can_edit_items(role):
    return role in ("owner", "editor")


def _render_lists_sidebar(lists):
    with st.form("shopping.create_list", clear_on_submit=True):
        name = st.text_input("New list", placeholder="Weekly groceries")
        description = st.text_input("Description")
        submitted = st.form_submit_button("Create list")
    if submitted:
        record = loaders.mutate(
            "POST", "/v1/shopping/lists", json={"name": name, "description": description or None}, invalidates=_LIST_LOADERS
        )
        if record:
            session_slices.set_value(SLUG, "selected", record.get("id"))
            st.rerun()
    for item in lists:
        done = f"{item.get('checked_count', 0)}/{item.get('item_count', 0)}"
        shared = " 👥" if item.get("is_shared") else ""
        selected = session_slices.get_value(SLUG, "selected") == item["id"]
        if st.button(
            f"{item['name']}{shared} · {done}",
            key=f"shopping.select.{item['id']}",
            type="primary" if selected else "secondary",
            use_container_width=True,
        ):
            session_slices.set_value(SLUG, "selected", item["id"])
            st.rerun()


def _render_add_item(list_id, categories):
    with st.form(f"shopping.add_item.{list_id}", clear_on_submit=True):
        cols = st.columns([3, 1, 2])
        with cols[0]:
            name = st.text_input("Item", placeholder="Milk")
        with cols[1]:
            quantity = st.text_input("Qty")
        with cols[2]:
            category = st.selectbox("Category", categories, index=len(categories) - 1)
        submitted = st.form_submit_button("Add item")
    if submitted:
        payload = {"name": name, "quantity": quantity or None, "category": category}
        if loaders.mutate("POST", f"/v1/shopping/lists/{list_id}/items", json=payload, invalidates=_LIST_LOADERS) is not None:
            st.rerun()


def _render_items(detail, editable):
    list_id = detail["id"]
    for category, items in (detail.get("grouped") or {}).items():
        if not items:
            continue
        st.markdown(f"<div class='small-label'>{html.escape(category)}</div>", unsafe_allow_html=True)
        for item in items:
            cols = st.columns([0.6, 6, 1])
            with cols[0]:
                checked = st.checkbox(
                    "checked",
                    value=bool(item.get("is_checked")),
                    key=f"shopping.check.{item['id']}.{int(bool(item.get('is_checked')))}",
                    disabled=not editable,
                    label_visibility="collapsed",
                )
                if editable and checked != bool(item.get("is_checked")):
                    loaders.mutate("POST", f"/v1/shopping/lists/{list_id}/items/{item['id']}/toggle", invalidates=_LIST_LOADERS)
                    st.rerun()
            with cols[1]:
                css = "done" if item.get("is_checked") else ""
                quantity = f" × {html.escape(item['quantity'])}" if item.get("quantity") else ""
                by = f" · by {html.escape(item['checked_by'])}" if item.get("is_checked") and item.get("checked_by") else ""
                st.markdown(
                    f"<span class='{css}'>{html.escape(item.get('name') or '')}{quantity}</span>"
                    f"<span class='small-label'>{by}</span>",
                    unsafe_allow_html=True,
                )
            with cols[2]:
                if editable and st.button("🗑️", key=f"shopping.delete_item.{item['id']}"):
                    loaders.mutate("DELETE", f"/v1/shopping/lists/{list_id}/items/{item['id']}", invalidates=_LIST_LOADERS)
                    st.rerun()


def _render_members(detail):
    list_id = detail["id"]
    st.markdown("<div class='small-label'>Members</div>", unsafe_allow_html=True)
    st.caption(f"👑 {detail.get('owner_id')}")
    for member in detail.get("members") or []:
        cols = st.columns([5, 1])
        with cols[0]:
            st.caption(f"{member['user_id']} · {member.get('role')}")
        with cols[1]:
            if detail.get("role") == "owner" and st.button("✕", key=f"shopping.remove_member.{member['user_id']}"):
                loaders.mutate("DELETE", f"/v1/shopping/lists/{list_id}/members/{member['user_id']}", invalidates=_LIST_LOADERS)
                st.rerun()
    if detail.get("role") != "owner":
        return
    with st.form(f"shopping.share.{list_id}", clear_on_submit=True):
        email = st.text_input("Share with (email)")
        role = st.selectbox("Role", ["editor", "viewer"])
        submitted = st.form_submit_button("Share")
    if submitted:
        if loaders.mutate("POST", f"/v1/shopping/lists/{list_id}/members", json={"email": email, "role": role}, invalidates=_LIST_LOADERS, success="List shared") is not None:
            st.rerun()


def render(ctx):
    st.markdown("<div class='section-title'>🛒 Shopping List</div>", unsafe_allow_html=True)
    try:
        payload = loaders.load_shopping_lists_cached(ctx.user_email)
    except RuntimeError as exc:
        logger.warning("Unable to load shopping lists: %s", exc)
        st.error(str(exc))
        return
    lists = payload.get("items") or []
    categories = payload.get("categories") or DEFAULT_CATEGORIES

    left, right = st.columns([1, 2])
    with left:
        _render_lists_sidebar(lists)

    selected = session_slices.get_value(SLUG, "selected")
    if selected not in {item["id"] for item in lists}:
        selected = lists[0]["id"] if lists else None
        session_slices.set_value(SLUG, "selected", selected)

    with right:
        if not selected:
            st.info("Create a list to get started.")
            return
        try:
            detail = loaders.load_shopping_list_cached(ctx.user_email, selected)
        except RuntimeError as exc:
            logger.warning("Unable to load shopping list %s: %s", selected, exc)
            st.error(str(exc))
            return
        role = detail.get("role")
        editable = can_edit_items(role)
        st.markdown(f"**{html.escape(detail.get('name') or '')}** · {ROLE_BADGES.get(role, role)}", unsafe_allow_html=True)
        if detail.get("description"):
            st.caption(detail["description"])
        st.progress((detail.get("progress") or 0) / 100, text=f"{detail.get('progress') or 0}% done")
        if editable:
            _render_add_item(selected, categories)
        _render_items(detail, editable)

        cols = st.columns(2)
        with cols[0]:
            if editable and any(item.get("is_checked") for item in detail.get("items") or []):
                if st.button("Clear checked", key="shopping.clear_checked"):
                    loaders.mutate("DELETE", f"/v1/shopping/lists/{selected}/items/checked", invalidates=_LIST_LOADERS)
                    st.rerun()
        with cols[1]:
            if role == "owner" and st.button("Delete list", key="shopping.delete_list"):
                loaders.mutate("DELETE", f"/v1/shopping/lists/{selected}", invalidates=_LIST_LOADERS, success="List deleted")
                session_slices.set_value(SLUG, "selected", None)
                st.rerun()
        _render_members(detail)
