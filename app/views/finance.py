from __future__ import annotations

from datetime import date

import streamlit as st

from components.metrics import Kpi, fmt_money, render_kpi_row
from components.notices import render_form_errors, render_page_intro, show_result
from core.exceptions import ValidationError
from data.analytics import finance_statistics, records_frame
from data.models import PAYMENT_METHODS, Income, IncomeForm, SaleForm, validate_form
from data.service import ActionResult, DataContext, run_action

SALE_COLUMNS = ["date", "type", "description", "amount", "payment_method", "animal_id", "batch_id"]
INCOME_SOURCES = ["Animal Sale", "Milk", "Eggs", "Wool", "Manure", "Subsidy", "Other"]


def _income_form(ctx: DataContext) -> None:
    with st.form("add_income"):
        c1, c2 = st.columns(2)
        values = {
            "source": c1.selectbox("Source *", INCOME_SOURCES, index=len(INCOME_SOURCES) - 1),
            "amount": c2.number_input("Amount *", min_value=0.0, step=1.0),
            "description": st.text_input("Description *"),
            "date": c1.date_input("Date *", value=date.today()),
            "payment_method": c2.selectbox("Payment method", PAYMENT_METHODS),
        }
        submitted = st.form_submit_button("Add income")
    render_form_errors("income_add_errors")
    if not submitted:
        return
    try:
        form = validate_form(IncomeForm, values)
    except ValidationError as e:
        show_result(ActionResult(ok=False, message=e.message, errors=e.errors), "income_add_errors")
        return
    income = Income(
        type=form.source,
        amount=form.amount,
        date=form.date,
        description=form.description,
        payment_method=form.payment_method,
        animal_related=form.animal_related,
        animal_name=form.animal_name,
    )
    show_result(run_action("add income record", lambda: ctx.finance.add_income(income),
                           success="Income record added successfully"), "income_add_errors")


def _sale_form(ctx: DataContext) -> None:
    active = ctx.animals.active()
    with st.form("finance_sale"):
        selected = st.multiselect("Animals to sell *", [a.id for a in active],
                                  format_func=lambda i: next((f"{a.id} · {a.type} {a.breed}" for a in active if a.id == i), i))
        c1, c2 = st.columns(2)
        total = c1.number_input("Total selling price *", min_value=0.0, step=10.0)
        method = c2.selectbox("Payment method", PAYMENT_METHODS, key="sale_method")
        submitted = st.form_submit_button("Record sale")
    render_form_errors("finance_sale_errors")
    if not submitted:
        return
    try:
        sale = validate_form(SaleForm, {"selected_animals": selected, "total_price": total, "payment_method": method})
    except ValidationError as e:
        show_result(ActionResult(ok=False, message=e.message, errors=e.errors), "finance_sale_errors")
        return
    result = run_action(
        "sell animals",
        lambda: ctx.finance.sell_animals(sale.selected_animals, sale.total_price, sale.payment_method),
        success=lambda rows: f"Successfully sold {len(rows)} animal{'s' if len(rows) > 1 else ''}",
    )
    if show_result(result, "finance_sale_errors"):
        ctx.invalidate_animals()


def render(ctx: DataContext) -> None:
    st.title("Finance")
    render_page_intro(
        kicker="Profit and loss",
        title="Is the farm making money?",
        context="Income comes from animal sales and manual entries; expenses include every running cost.",
    )
    on = st.date_input("Report date", value=date.today(), key="finance_on")
    income = ctx.finance.income()
    stats = finance_statistics(income, ctx.expenses.all(), on)

    render_kpi_row(
        [
            Kpi("Total income", fmt_money(stats.total_income)),
            Kpi("Total expenses", fmt_money(stats.total_expenses)),
            Kpi("Net profit", fmt_money(stats.net_profit),
                delta="+ profitable" if stats.net_profit >= 0 else "- loss"),
            Kpi("Highest sale", fmt_money(stats.highest_sale.amount) if stats.highest_sale else "—"),
        ]
    )
    render_kpi_row(
        [
            Kpi("Income (day)", fmt_money(stats.daily_income)),
            Kpi("Expenses (day)", fmt_money(stats.daily_expenses)),
            Kpi("Income (month)", fmt_money(stats.monthly_income)),
            Kpi("Expenses (month)", fmt_money(stats.monthly_expenses)),
        ]
    )

    st.subheader("Recent sales")
    st.dataframe(records_frame(stats.recent_sales, SALE_COLUMNS), use_container_width=True, hide_index=True)

    if income:
        labels = {i.id: f"{i.date:%Y-%m-%d} · {i.type} · {fmt_money(i.amount)}" if i.date else i.id for i in income}
        chosen = st.selectbox("Income record", list(labels), format_func=labels.get, key="income_delete_id")
        if st.button("Delete income record"):
            show_result(run_action("delete income record", lambda: ctx.finance.delete_income(chosen),
                                   success="Income record deleted successfully"))

    tab_sale, tab_income = st.tabs(["Sell animals", "Add income"])
    with tab_sale:
        _sale_form(ctx)
    with tab_income:
        _income_form(ctx)
