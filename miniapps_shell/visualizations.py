from __future__ import annotations

import html
from datetime import date, timedelta

import numpy as np
import pandas as pd
import plotly.graph_objects as go

from miniapps_shell.calendar_grid import WEEKDAY_LABELS, events_for_day, month_grid
from miniapps_shell.theme import get_active_theme

USAGE_LABELS = {
    "completed_todos": "Completed to-dos",
    "pomodoro_sessions": "Focus sessions",
    "notes_created": "Notes created",
}


def _active_theme():
    return get_active_theme()[1]


def apply_common_plot_style(fig, title, height=280):
    theme = _active_theme()
    fig.update_layout(
        title=title,
        title_font=dict(color=theme["text_main"], size=15, family="Inter"),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font=dict(color=theme["text_main"], family="Inter"),
        margin=dict(l=36, r=16, t=40, b=28),
        height=height,
        legend=dict(orientation="h", yanchor="bottom", y=1.02, x=0),
        xaxis=dict(gridcolor=theme["plot_grid"], tickfont=dict(color=theme["text_soft"]), zeroline=False),
        yaxis=dict(gridcolor=theme["plot_grid"], tickfont=dict(color=theme["text_soft"]), zeroline=False),
    )
    return fig


def usage_frame(usage):
    metrics = (usage or {}).get("metrics") or {}
    rows = []
    for key, label in USAGE_LABELS.items():
        values = metrics.get(key) or {}
        rows.append({"metric": label, "period": "Last month", "count": int(values.get("last_month") or 0)})
        rows.append({"metric": label, "period": "This month", "count": int(values.get("this_month") or 0)})
    return pd.DataFrame(rows, columns=["metric", "period", "count"])


def usage_chart(usage):
    theme = _active_theme()
    frame = usage_frame(usage)
    fig = go.Figure()
    for period, color in (("Last month", theme["border"]), ("This month", theme["primary"])):
        subset = frame[frame["period"] == period]
        fig.add_bar(x=subset["metric"], y=subset["count"], name=period, marker_color=color)
    fig.update_layout(barmode="group")
    return apply_common_plot_style(fig, "Usage this month")


def budget_category_chart(summary):
    by_category = (summary or {}).get("by_category") or {}
    if not by_category:
        return None
    fig = go.Figure(
        data=go.Pie(
            labels=list(by_category.keys()),
            values=list(by_category.values()),
            hole=0.55,
            textinfo="label+percent",
        )
    )
    return apply_common_plot_style(fig, "Spending by category", height=300)


def habit_completion_matrix(habits, completions, end_day, days=28):
    """Rows are habits, columns the ``days`` days ending at ``end_day``; 1.0 marks a completion."""
    day_index = {end_day - timedelta(days=offset): days - 1 - offset for offset in range(days)}
    habit_index = {habit["id"]: row for row, habit in enumerate(habits)}
    matrix = np.zeros((len(habits), days))
    for completion in completions:
        row = habit_index.get(completion.get("habit_id"))
        try:
            column = day_index.get(date.fromisoformat(str(completion.get("completed_date"))[:10]))
        except ValueError:
            continue
        if row is not None and column is not None:
            matrix[row, column] = 1.0
    labels = [(end_day - timedelta(days=days - 1 - column)).strftime("%d/%m") for column in range(days)]
    return matrix, labels


def habit_heatmap(habits, completions, end_day, days=28):
    theme = _active_theme()
    matrix, labels = habit_completion_matrix(habits, completions, end_day, days)
    fig = go.Figure(
        data=go.Heatmap(
            z=matrix,
            x=labels,
            y=[f"{habit.get('icon') or ''} {habit.get('name')}" for habit in habits],
            colorscale=[(0.0, theme["bg_panel"]), (1.0, theme["success"])],
            showscale=False,
            xgap=2,
            ygap=2,
            zmin=0,
            zmax=1,
        )
    )
    return apply_common_plot_style(fig, "Last 4 weeks", height=max(160, 46 * len(habits) + 70))


def pomodoro_week_frame(sessions, today, days=7):
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    frame = pd.DataFrame(sessions or [], columns=["session_type", "duration_minutes", "completed_at"])
    if frame.empty:
        minutes = pd.Series(0, index=window)
    else:
        frame = frame[frame["session_type"] == "work"].copy()
        frame["day"] = pd.to_datetime(frame["completed_at"], utc=True, format="ISO8601").dt.date
        minutes = frame.groupby("day")["duration_minutes"].sum().reindex(window, fill_value=0)
    return pd.DataFrame({"day": [day.strftime("%a") for day in window], "minutes": minutes.astype(int).tolist()})


def pomodoro_week_chart(sessions, today):
    frame = pomodoro_week_frame(sessions, today)
    fig = go.Figure(data=go.Bar(x=frame["day"], y=frame["minutes"], marker_color=_active_theme()["accent"]))
    return apply_common_plot_style(fig, "Focus minutes, last 7 days", height=240)


def build_month_calendar_html(year, month, events, today):
    header = "".join(f"<th>{label}</th>" for label in WEEKDAY_LABELS)
    rows = []
    cells = month_grid(year, month)
    for week_start in range(0, len(cells), 7):
        row_cells = []
        for cell in cells[week_start:week_start + 7]:
            day = cell["date"]
            classes = ["calendar-cell"]
            if not cell["in_month"]:
                classes.append("muted")
            if day == today:
                classes.append("today")
            chips = []
            day_events = events_for_day(events, day)
            for event in day_events[:3]:
                color = html.escape(event.get("color") or "#5a67d8")
                chips.append(
                    f"<div class='calendar-chip' style='background:{color}'>{html.escape(event.get('title') or '')}</div>"
                )
            if len(day_events) > 3:
                chips.append(f"<div class='small-label'>+{len(day_events) - 3} more</div>")
            row_cells.append(
                f"<td class='{' '.join(classes)}'><div>{day.day}</div>{''.join(chips)}</td>"
            )
        rows.append(f"<tr>{''.join(row_cells)}</tr>")
    return (
        "<table style='width:100%;table-layout:fixed;border-collapse:separate;border-spacing:4px;'>"
        f"<thead><tr>{header}</tr></thead>"
        f"<tbody>{''.join(rows)}</tbody>"
        "</table>"
    )
