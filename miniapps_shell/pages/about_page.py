import pandas as pd
import streamlit as st

from miniapps_shell.catalog import shortcut_digit


def shortcut_rows(apps):
    rows = []
    for app in apps:
        digit = shortcut_digit(app["slug"])
        if digit:
            rows.append({"Key": digit, "App": f"{app['icon']} {app['name']}", "Category": app.get("category") or ""})
    return sorted(rows, key=lambda row: row["Key"])


def render(ctx):
    st.markdown("<div class='section-title'>ℹ️ About</div>", unsafe_allow_html=True)
    st.markdown(
        "Mini Apps is a personal hub of small single-purpose tools. Every app keeps its data "
        "scoped to your account, and the home page rolls the numbers up into usage statistics "
        "and a recent activity feed."
    )
    st.markdown("<div class='section-title'>Quick switch</div>", unsafe_allow_html=True)
    st.caption("Type a digit in the sidebar quick switch box to open an app.")
    st.dataframe(pd.DataFrame(shortcut_rows(ctx.apps)), hide_index=True, use_container_width=True)
