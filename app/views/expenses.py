from __future__ import annotations

from datetime import date, datetime, time

import streamlit as st

from components.metrics import Kpi, bar_chart, fmt_money, pie_chart, render_kpi_row
from components.notices import render_form_errors, render_page_intro, show_result
from core.exceptions import ValidationError
from data.analytics import ALL_MONTHS, expense_analytics, filter_expenses, points_frame, records_frame
from data.cache import expenses_key
from data.models import EXPENSE_CATEGORIES, PAYMENT_METHODS, Expense, ExpenseForm, validate_form
from data.pagination import PageResult
from data.service import ActionResult, DataContext, read_frame, run_action

TABLE_COLUMNS = ["date", "category", "description", "amount", "payment_method", "animal_name"]
MONTHS = ["All months", "January", "February", "March", "April", "May", "June", "July",
          "August", "September", "October", "November", "December"]
ADD_ERRORS = "expense_add_errors"


def _range_page(ctx: DataContext, page: int, start: datetime, end: datetime) -> PageResult[Expense]:
    key = expenses_key(page, start, end)
    entry = ctx.cache.get(key)
    if entry is not None:
        return entry.data
    result = ctx.expenses.list_page(page, ctx.cfg.page_size, start=start, end=end)
    ctx.cache.set(key, result, result.cursor)
    return result


def _list_tab(ctx: DataContext) -> None:
    use_range = st.toggle("Filter by date range", key="expense_use_range")
    if use_range:
        c1, c2, c3 = st.columns(3)
        start_d = c1.date_input("From", value=date.today().replace(day=1), key="expense_from")
        end_d = c2.date_input("To", value=date.today(), key="expense_to")
        start, end = datetime.combine(start_d, time.min), datetime.combine(end_d, time.max)
        page = int(c3.number_input("Page", min_value=1, value=1, step=1, key="expense_page"))
        result = _range_page(ctx, page, start, end)
        expenses = result.items
        st.caption(f"Page {result.page} of {max(result.total_pages, 1)} ({result.total} expenses)")
    else:
        pages = ctx.expense_pages
        expenses = pages.current()
        st.caption(f"Showing {len(expenses)} of {pages.total} expenses")

    st.dataframe(records_frame(expenses, TABLE_COLUMNS), use_container_width=True, hide_index=True)

    if not use_range:
        c1, c2 = st.columns(2)
        if c1.button("Load more", disabled=not ctx.expense_pages.has_more, key="expenses_more"):
            ctx.expense_pages.load_more()
            st.rerun()
        if c2.button("Refresh", key="expenses_refresh"):
            ctx.expense_pages.refresh()
            st.rerun()

    if expenses:
        labels = {e.id: f"{e.date:%Y-%m-%d} · {e.category} · {fmt_money(e.amount)}" if e.date else e.id for e in expenses}
        chosen = st.selectbox("Expense", list(labels), format_func=labels.get, key="expense_delete_id")
        if st.button("Delete expense", key="expense_delete"):
            snap = ctx.expense_pages.snapshot()
            ctx.expense_pages.remove(chosen)
            result = run_action("delete expense", lambda: ctx.expenses.delete(chosen), success="Expense deleted")
            if show_result(result):
                ctx.invalidate_expenses()
            else:
                ctx.expense_pages.restore(snap)


def _analytics_tab(ctx: DataContext) -> None:
    today = date.today()
    c1, c2 = st.columns(2)
    year = int(c1.selectbox("Year", list(range(today.year, today.year - 5, -1)), key="expense_year"))
    month_label = c2.selectbox("Month", MONTHS, index=today.month, key="expense_month")
    month = ALL_MONTHS if month_label == MONTHS[0] else MONTHS.index(month_label)

    rows = filter_expenses(ctx.expenses.all(), year, month)
    stats = expense_analytics(rows)
    highest = stats.highest_category
    render_kpi_row(
        [
            Kpi("Total expenses", fmt_money(stats.total)),
            Kpi("Average expense", fmt_money(stats.average)),
            Kpi("Highest category", highest.name if highest else "—",
                delta=fmt_money(highest.amount) if highest else None),
            Kpi("Entries", f"{len(rows):,}"),
        ]
    )
    c1, c2 = st.columns(2)
    with c1:
        by_cat = read_frame(ctx.handle, lambda: points_frame(stats.by_category, "category", "amount"))
        pie_chart(by_cat.df, names="category", values="amount", title="By category")
    with c2:
        monthly = read_frame(ctx.handle, lambda: points_frame(stats.monthly, "month", "amount"))
        bar_chart(monthly.df, x="month", y="amount", title="By month")


def _add_tab(ctx: DataContext) -> None:
    animals = ctx.animals.active()
    with st.form("add_expense"):
        c1, c2 = st.columns(2)
        values = {
            "category": c1.selectbox("Category *", EXPENSE_CATEGORIES),
            "amount": c2.number_input("Amount *", min_value=0.0, step=1.0),
            "description": st.text_input("Description *"),
            "date": c1.date_input("Date *", value=date.today()),
            "payment_method": c2.selectbox("Payment method *", PAYMENT_METHODS),
            "animal_related": st.checkbox("Related to an animal"),
        }
        options = [""] + [a.id for a in animals]
        values["animal_id"] = st.selectbox("Animal", options, format_func=lambda i: i or "—")
        submitted = st.form_submit_button("Add expense")
    render_form_errors(ADD_ERRORS)
    if not submitted:
        return
    try:
        form = validate_form(ExpenseForm, values)
    except ValidationError as e:
        show_result(ActionResult(ok=False, message=e.message, errors=e.errors), ADD_ERRORS)
        return
    names = {a.id: a.display_name for a in animals}
    expense = Expense(**form.model_dump(exclude={"animal_name"}), animal_name=names.get(form.animal_id or "", ""))
    result = run_action("add expense", lambda: ctx.expenses.add(expense), success="Expense added")
    if show_result(result, ADD_ERRORS):
        ctx.expense_pages.prepend(result.data)
        ctx.invalidate_expenses()


def render(ctx: DataContext) -> None:
    st.title("Expenses")
    render_page_intro(
        kicker="Running costs",
        title="Where is the money going this month?",
        context="Feed, vet work, labour and purchases. Animal purchases are booked automatically from the herd register.",
    )
    tab_list, tab_analytics, tab_add = st.tabs(["Expenses", "Analytics", "Add expense"])
    with tab_list:
        _list_tab(ctx)
    with tab_analytics:
        _analytics_tab(ctx)
    with tab_add:
        _add_tab(ctx)
