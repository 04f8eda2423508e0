import html
import logging
from datetime import date

import pandas as pd
import streamlit as st

from miniapps_shell.data import api_client, loaders
from miniapps_shell.formatting import format_money
from miniapps_shell.state import session_slices
from miniapps_shell.visualizations import budget_category_chart

logger = logging.getLogger(__name__)

SLUG = "currency-converter"
POPULAR_PAIRS = [("USD", "EUR"), ("USD", "GBP"), ("EUR", "GBP"), ("USD", "JPY")]

_BUDGET_LOADERS = (loaders.load_budgets_cached, loaders.load_budget_cached)


def symbol_for(currencies, code):
    for currency in currencies:
        if currency.get("code") == code:
            return currency.get("symbol")
    return None


def _render_converter(ctx, rates_payload):
    currencies = rates_payload.get("currencies") or []
    codes = [item["code"] for item in currencies] or ["USD"]
    if rates_payload.get("source") == "fallback":
        st.caption("Live rates unavailable. Showing offline reference rates.")
    cols = st.columns([2, 2, 1, 2])
    with cols[0]:
        amount = st.number_input("Amount", min_value=0.0, value=100.0, step=1.0, key="currency.amount")
    with cols[1]:
        source = st.selectbox("From", codes, index=codes.index("USD") if "USD" in codes else 0, key="currency.from")
    with cols[2]:
        st.write("")
        if st.button("⇄", key="currency.swap"):
            st.session_state["currency.from"], st.session_state["currency.to"] = (
                st.session_state.get("currency.to", "EUR"),
                source,
            )
            st.rerun()
    with cols[3]:
        target = st.selectbox("To", codes, index=codes.index("EUR") if "EUR" in codes else 0, key="currency.to")

    try:
        result = api_client.get("/v1/currency/convert", params={"amount": amount, "from": source, "to": target})
    except RuntimeError as exc:
        logger.warning("Conversion failed: %s", exc)
        st.error(str(exc))
        return
    st.markdown(
        f"<div class='stat-card'><div class='stat-value'>{format_money(result['result'], target, symbol_for(currencies, target))}</div>"
        f"<div class='stat-label'>1 {source} = {result['rate']} {target}</div></div>",
        unsafe_allow_html=True,
    )

    rates = rates_payload.get("rates") or {}
    rows = []
    for base, quote in POPULAR_PAIRS:
        if base in rates and quote in rates:
            rows.append({"Pair": f"{base}/{quote}", "Rate": round(rates[quote] / rates[base], 4)})
    if rows:
        st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)


def _render_budget_detail(ctx, budget_id, categories):
    try:
        budget = loaders.load_budget_cached(ctx.user_email, budget_id)
    except RuntimeError as exc:
        logger.warning("Unable to load budget %s: %s", budget_id, exc)
        st.error(str(exc))
        return
    summary = budget.get("summary") or {}
    currency = budget.get("currency") or "USD"
    st.markdown(f"**{html.escape(budget.get('name') or '')}** · {budget.get('period')}")
    st.progress(min(1.0, (summary.get("progress") or 0) / 100), text=f"{summary.get('progress', 0)}% used")
    cols = st.columns(3)
    cols[0].metric("Budget", format_money(summary.get("total_amount"), currency))
    cols[1].metric("Spent", format_money(summary.get("total_spent"), currency))
    cols[2].metric("Remaining", format_money(summary.get("remaining"), currency))
    if summary.get("over_budget"):
        st.error("Over budget!")

    with st.form(f"budget.expense.{budget_id}", clear_on_submit=True):
        cols = st.columns([3, 2, 2, 2])
        with cols[0]:
            description = st.text_input("Expense")
        with cols[1]:
            amount = st.number_input("Amount", min_value=0.0, step=1.0)
        with cols[2]:
            category = st.selectbox("Category", categories, index=len(categories) - 1)
        with cols[3]:
            spent_on = st.date_input("Date", value=date.fromisoformat(ctx.today))
        submitted = st.form_submit_button("Add expense")
    if submitted:
        payload = {"description": description, "amount": amount, "category": category, "date": spent_on.isoformat()}
        if loaders.mutate("POST", f"/v1/budgets/{budget_id}/expenses", json=payload, invalidates=_BUDGET_LOADERS) is not None:
            st.rerun()

    chart = budget_category_chart(summary)
    if chart is not None:
        st.plotly_chart(chart, use_container_width=True)
    for expense in budget.get("expenses") or []:
        cols = st.columns([2, 4, 2, 2, 1])
        cols[0].caption(str(expense.get("date") or "")[:10])
        cols[1].write(expense.get("description"))
        cols[2].caption(expense.get("category"))
        cols[3].write(format_money(expense.get("amount"), currency))
        if cols[4].button("🗑️", key=f"budget.delete_expense.{expense['id']}"):
            loaders.mutate("DELETE", f"/v1/budgets/{budget_id}/expenses/{expense['id']}", invalidates=_BUDGET_LOADERS)
            st.rerun()
    if st.button("Delete budget", key=f"budget.delete.{budget_id}"):
        loaders.mutate("DELETE", f"/v1/budgets/{budget_id}", invalidates=_BUDGET_LOADERS, success="Budget deleted")
        session_slices.set_value(SLUG, "budget", None)
        st.rerun()


def _render_budgets(ctx, codes):
    try:
        payload = loaders.load_budgets_cached(ctx.user_email)
    except RuntimeError as exc:
        logger.warning("Unable to load budgets: %s", exc)
        st.error(str(exc))
        return
    budgets = payload.get("items") or []
    periods = payload.get("periods") or ["monthly"]
    categories = payload.get("categories") or ["Other"]

    with st.expander("➕ New budget", expanded=not budgets):
        with st.form("budget.create", clear_on_submit=True):
            name = st.text_input("Name", placeholder="Groceries")
            cols = st.columns(3)
            with cols[0]:
                total = st.number_input("Total amount", min_value=0.0, step=10.0)
            with cols[1]:
                currency = st.selectbox("Currency", codes, index=codes.index("USD") if "USD" in codes else 0)
            with cols[2]:
                period = st.selectbox("Period", periods, index=periods.index("monthly") if "monthly" in periods else 0)
            submitted = st.form_submit_button("Create budget")
        if submitted:
            if loaders.mutate("POST", "/v1/budgets", json={"name": name, "total_amount": total, "currency": currency, "period": period}, invalidates=_BUDGET_LOADERS, success="Budget created") is not None:
                st.rerun()

    if not budgets:
        st.caption("No budgets yet.")
        return
    labels = {item["id"]: f"{item['name']} · {item['summary']['progress']}%" for item in budgets}
    selected = session_slices.get_value(SLUG, "budget")
    if selected not in labels:
        selected = budgets[0]["id"]
    selected = st.selectbox("Budget", list(labels), index=list(labels).index(selected), format_func=labels.get)
    session_slices.set_value(SLUG, "budget", selected)
    _render_budget_detail(ctx, selected, categories)


def render(ctx):
    st.markdown("<div class='section-title'>💱 Currency Converter</div>", unsafe_allow_html=True)
    try:
        rates_payload = loaders.load_rates_cached(ctx.user_email)
    except RuntimeError as exc:
        logger.warning("Unable to load exchange rates: %s", exc)
        st.error(str(exc))
        return
    convert_tab, budget_tab = st.tabs(["Convert", "Budgets"])
    with convert_tab:
        _render_converter(ctx, rates_payload)
    with budget_tab:
        _render_budgets(ctx, [item["code"] for item in rates_payload.get("currencies") or []] or ["USD"])
