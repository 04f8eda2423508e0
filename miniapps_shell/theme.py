import streamlit as st

THEME_PRESETS = {
    "dark": {
        "bg_main": "#121212",
        "bg_glow": "#1b1b2a",
        "bg_card": "#1c1c24",
        "bg_panel": "#23232e",
        "border": "#34344a",
        "text_main": "#e0e0e0",
        "text_soft": "#a0a0b4",
        "primary": "#5a67d8",
        "primary_hover": "#6b78e5",
        "accent": "#b794f4",
        "success": "#48bb78",
        "danger": "#f56565",
        "plot_grid": "#2e2e3e",
        "today_border": "#b794f4",
        "today_bg": "rgba(183, 148, 244, 0.12)",
        "row_hover": "rgba(255, 255, 255, 0.04)",
        "divider": "rgba(255,255,255,0.08)",
    },
    "light": {
        "bg_main": "#f7f8fc",
        "bg_glow": "#eceffa",
        "bg_card": "#ffffff",
        "bg_panel": "#f1f3fa",
        "border": "#d6d9e8",
        "text_main": "#1a1a2e",
        "text_soft": "#5f6275",
        "primary": "#5a67d8",
        "primary_hover": "#4c51bf",
        "accent": "#805ad5",
        "success": "#2f855a",
        "danger": "#c53030",
        "plot_grid": "#e2e5f0",
        "today_border": "#5a67d8",
        "today_bg": "rgba(90, 103, 216, 0.10)",
        "row_hover": "rgba(26, 26, 46, 0.05)",
        "divider": "rgba(0,0,0,0.08)",
    },
}

DEFAULT_THEME = "dark"


def ensure_theme_state():
    if "ui_theme" not in st.session_state:
        st.session_state["ui_theme"] = DEFAULT_THEME
    if st.session_state["ui_theme"] not in THEME_PRESETS:
        st.session_state["ui_theme"] = DEFAULT_THEME
    return st.session_state["ui_theme"]


def get_active_theme():
    name = ensure_theme_state()
    return name, THEME_PRESETS[name]


def toggled_theme(name):
    return "light" if name == "dark" else "dark"


def inject_theme_css() -> dict:
    active_name, active_theme = get_active_theme()
    theme_vars_css = "\n".join(
        f"    --{key.replace('_', '-')}: {value};" for key, value in active_theme.items()
    )
    st.markdown(
        """
<style>
@import url('https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&family=JetBrains+Mono:wght@400;500&display=swap');
:root {
"""
        + theme_vars_css
        + """
}
.stApp {
    background: radial-gradient(circle at 15% 0%, var(--bg-glow) 0%, var(--bg-main) 55%);
    color: var(--text-main);
    font-family: 'Inter', sans-serif;
}
section[data-testid="stSidebar"] > div {
    background: var(--bg-panel);
    border-right: 1px solid var(--border);
}
.section-title {
    font-size: 1.45rem;
    font-weight: 700;
    letter-spacing: -0.02em;
    margin: 0.2rem 0 0.8rem 0;
    color: var(--text-main);
}
.small-label {
    font-size: 0.78rem;
    text-transform: uppercase;
    letter-spacing: 0.06em;
    color: var(--text-soft);
    margin-bottom: 0.35rem;
}
.panel, .app-card, .stat-card {
    background: var(--bg-card);
    border: 1px solid var(--border);
    border-radius: 14px;
    padding: 14px 16px;
    margin-bottom: 10px;
    box-shadow: 0 6px 24px rgba(0, 0, 0, 0.12);
}
.app-card .app-icon { font-size: 1.8rem; }
.app-card .app-name { font-weight: 600; margin-top: 4px; }
.app-card .app-desc { color: var(--text-soft); font-size: 0.86rem; min-height: 2.4em; }
.stat-card .stat-value { font-size: 1.6rem; font-weight: 700; color: var(--accent); }
.stat-card .stat-label { color: var(--text-soft); font-size: 0.8rem; }
.change-up { color: var(--success); }
.change-down { color: var(--danger); }
.banner {
    background: linear-gradient(120deg, var(--primary) 0%, var(--accent) 100%);
    color: #ffffff;
    border-radius: 18px;
    padding: 22px 26px;
    margin-bottom: 18px;
}
.banner h2 { margin: 0; color: #ffffff; }
.activity-row {
    display: flex;
    gap: 10px;
    padding: 6px 4px;
    border-bottom: 1px solid var(--divider);
}
.activity-row:hover { background: var(--row-hover); }
.activity-time { margin-left: auto; color: var(--text-soft); font-size: 0.8rem; }
.calendar-cell {
    min-height: 86px;
    border: 1px solid var(--divider);
    border-radius: 8px;
    padding: 4px 6px;
    font-size: 0.78rem;
}
.calendar-cell.muted { opacity: 0.45; }
.calendar-cell.today { border-color: var(--today-border); background: var(--today-bg); }
.calendar-chip {
    border-radius: 6px;
    padding: 1px 5px;
    margin-top: 2px;
    color: #ffffff;
    white-space: nowrap;
    overflow: hidden;
    text-overflow: ellipsis;
}
.timer-display {
    font-family: 'JetBrains Mono', monospace;
    font-size: 4.2rem;
    text-align: center;
    color: var(--accent);
    margin: 0.4rem 0;
}
.overdue { color: var(--danger); font-weight: 600; }
.done { text-decoration: line-through; color: var(--text-soft); }
.stButton > button {
    border-radius: 10px;
    border: 1px solid var(--border);
}
.stButton > button:hover { border-color: var(--primary-hover); color: var(--primary-hover); }
</style>
""",
        unsafe_allow_html=True,
    )
    return {"name": active_name, "theme": active_theme}
