from __future__ import annotations

from datetime import date, datetime, timedelta

import streamlit as st

from components.metrics import Kpi, fmt_money, line_chart, pie_chart, render_kpi_row
from components.notices import render_callout, render_page_intro
from data.analytics import dashboard_stats, points_frame, records_frame
from data.service import DataContext, read_frame


def render(ctx: DataContext) -> None:
    st.title("Dashboard")

    render_page_intro(
        kicker="Farm overview",
        title="How big is the herd, and how did this month go?",
        context="Headline numbers for today and the current month. Drill into Expenses or Finance for detail.",
    )

    today = date.today()
    # the 7-day window can reach into last month
    since = datetime.combine(min(today.replace(day=1), today - timedelta(days=6)), datetime.min.time())
    stats = dashboard_stats(ctx.animals.all(), ctx.expenses.since(since), today)

    st.caption(f"Data source: **{ctx.source}**")

    render_kpi_row(
        [
            Kpi("Total animals", f"{stats.total_animals:,}"),
            Kpi("Today's expenses", fmt_money(stats.daily_expenses)),
            Kpi("Monthly income", fmt_money(stats.monthly_income), help="Animals sold this month"),
            Kpi("Monthly profit", fmt_money(stats.monthly_profit),
                delta=f"{'▲' if stats.monthly_profit >= 0 else '▼'} {fmt_money(stats.monthly_expenses)} spent"),
        ]
    )

    st.divider()

    c1, c2 = st.columns([3, 2])
    with c1:
        st.subheader("Expenses, last 7 days")
        trend = read_frame(ctx.handle, lambda: points_frame(stats.last_7_days, "day", "amount"))
        line_chart(trend.df, x="day", y="amount")
    with c2:
        st.subheader("Animals by type")
        by_type = read_frame(ctx.handle, lambda: points_frame(stats.animals_by_type, "type", "count"))
        pie_chart(by_type.df, names="type", values="count")

    st.subheader("Recent expenses this month")
    if stats.recent_expenses:
        st.dataframe(
            records_frame(stats.recent_expenses, ["date", "category", "description", "amount"]),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.info("No expenses recorded this month yet.")

    if stats.monthly_profit < 0:
        render_callout(
            title="Spending is ahead of sales",
            body=f"This month's expenses exceed sale income by {fmt_money(-stats.monthly_profit)}.",
            kind="warn",
        )
