from __future__ import annotations

import time
from datetime import date

import streamlit as st

from components.notices import render_form_errors, render_page_intro, show_result, status_badge
from core.exceptions import ValidationError
from data.analytics import records_frame
from data.models import ANIMAL_STATUSES, PAYMENT_METHODS, Animal, AnimalEditForm, AnimalForm, SaleForm, validate_form
from data.search import Debouncer
from data.service import ActionResult, DataContext, run_action

TABLE_COLUMNS = ["id", "name", "type", "breed", "gender", "age", "weight", "health", "status", "purchase_price", "purchase_date"]
ANIMAL_TYPES = ["cattle", "goat", "sheep", "pig", "chicken", "other"]

ADD_ERRORS = "animal_add_errors"
EDIT_ERRORS = "animal_edit_errors"
SALE_ERRORS = "animal_sale_errors"


def _invalid(e: ValidationError) -> ActionResult:
    return ActionResult(ok=False, message=e.message, errors=e.errors)


def _debounced_search(ctx: DataContext) -> str:
    deb: Debouncer[str] = st.session_state.setdefault(
        "animal_search_debouncer", Debouncer(ctx.cfg.search_debounce_ms, initial="")
    )
    deb.push(st.text_input("Search by ID, type or breed", key="animal_search_raw"))
    term = deb.settled() or ""
    if deb.is_pending:
        time.sleep(deb.remaining())
        st.rerun()
    return term


def _animal_fields(prefix: str, current: Animal | None = None) -> dict:
    a = current or Animal()
    c1, c2, c3 = st.columns(3)
    values = {
        "id": c1.text_input("Animal ID *", value=a.id, key=f"{prefix}_id"),
        "name": c2.text_input("Name", value=a.name, key=f"{prefix}_name"),
        "type": c3.selectbox("Type *", ANIMAL_TYPES,
                             index=ANIMAL_TYPES.index(a.type) if a.type in ANIMAL_TYPES else 0, key=f"{prefix}_type"),
        "breed": c1.text_input("Breed", value=a.breed, key=f"{prefix}_breed"),
        "gender": c2.selectbox("Gender *", ["female", "male"],
                               index=1 if a.gender == "male" else 0, key=f"{prefix}_gender"),
        "status": c3.selectbox("Status", ANIMAL_STATUSES,
                               index=ANIMAL_STATUSES.index(a.status) if a.status in ANIMAL_STATUSES else 0,
                               key=f"{prefix}_status"),
        "age": c1.number_input("Age (years)", min_value=0.0, value=float(a.age), step=0.5, key=f"{prefix}_age"),
        "weight": c2.number_input("Weight (kg)", min_value=0.0, value=float(a.weight), key=f"{prefix}_weight"),
        "purchase_price": c3.number_input("Purchase price *", min_value=0.0, value=float(a.purchase_price),
                                          key=f"{prefix}_price"),
        "purchase_date": c1.date_input("Purchase date", value=a.purchase_date.date() if a.purchase_date else date.today(),
                                       key=f"{prefix}_pdate"),
        "health": c2.selectbox("Health", ["Good", "Fair", "Poor"],
                               index=["Good", "Fair", "Poor"].index(a.health) if a.health in ("Good", "Fair", "Poor") else 0,
                               key=f"{prefix}_health"),
        "is_vaccinated": c3.checkbox("Vaccinated", value=a.is_vaccinated, key=f"{prefix}_vacc"),
        "description": st.text_area("Description", value=a.description or "", key=f"{prefix}_desc"),
    }
    return values


def _add_form(ctx: DataContext) -> None:
    with st.form("add_animal", clear_on_submit=False):
        values = _animal_fields("add")
        submitted = st.form_submit_button("Add animal")
    render_form_errors(ADD_ERRORS)
    if not submitted:
        return
    try:
        form = validate_form(AnimalForm, values)
    except ValidationError as e:
        show_result(_invalid(e), ADD_ERRORS)
        return
    result = run_action("add animal", lambda: ctx.animals.add(Animal(**form.model_dump())),
                        success=lambda a: f"Animal {a.id} added")
    if show_result(result, ADD_ERRORS):
        ctx.animal_pages.prepend(result.data)
        ctx.invalidate_animals()
        ctx.invalidate_expenses()


def _edit_form(ctx: DataContext, animals: list[Animal]) -> None:
    if not animals:
        return
    ids = [a.id for a in animals]
    chosen = st.selectbox("Animal to edit", ids, key="edit_animal_id")
    current = next(a for a in animals if a.id == chosen)
    st.markdown(status_badge(current.status), unsafe_allow_html=True)
    with st.form("edit_animal"):
        values = _animal_fields(f"edit_{chosen}", current)
        submitted = st.form_submit_button("Save changes")
    render_form_errors(EDIT_ERRORS)
    if not submitted:
        return
    try:
        form = validate_form(AnimalEditForm, values)
    except ValidationError as e:
        show_result(_invalid(e), EDIT_ERRORS)
        return
    snap = ctx.animal_pages.snapshot()
    ctx.animal_pages.replace(chosen, current.model_copy(update=form.model_dump()))
    result = run_action("update animal", lambda: ctx.animals.update(chosen, form.model_dump()),
                        success=lambda a: f"Animal {a.id} updated")
    if show_result(result, EDIT_ERRORS):
        ctx.animal_pages.replace(chosen, result.data)
        ctx.invalidate_animals()
    else:
        ctx.animal_pages.restore(snap)


def _bulk_actions(ctx: DataContext, animals: list[Animal]) -> None:
    selected = st.multiselect("Select animals", [a.id for a in animals], key="bulk_selection")
    c1, c2, c3 = st.columns(3)
    if c1.button("Mark active", disabled=not selected):
        result = run_action("update status", lambda: ctx.animals.bulk_status(selected, "active"),
                            success=lambda n: f"{n} animal(s) marked active")
        if show_result(result):
            ctx.animal_pages.refresh()
    if c2.button("Mark deceased", disabled=not selected):
        result = run_action("update status", lambda: ctx.animals.bulk_status(selected, "deceased"),
                            success=lambda n: f"{n} animal(s) marked deceased")
        if show_result(result):
            ctx.animal_pages.refresh()
    confirm = c3.checkbox("Confirm delete", key="bulk_delete_confirm")
    if c3.button("Delete selected", disabled=not (selected and confirm)):
        snap = ctx.animal_pages.snapshot()
        for animal_id in selected:
            ctx.animal_pages.remove(animal_id)
        result = run_action("delete animals", lambda: ctx.animals.bulk_delete(selected),
                            success=lambda ids: f"Deleted {len(ids)} animal(s) and their records")
        if show_result(result):
            ctx.invalidate_animals()
            ctx.invalidate_expenses()
        else:
            ctx.animal_pages.restore(snap)

    with st.expander("Sell selected animals", expanded=False):
        with st.form("sell_animals"):
            total = st.number_input("Total selling price", min_value=0.0, step=10.0)
            method = st.selectbox("Payment method", PAYMENT_METHODS)
            submitted = st.form_submit_button("Record sale", disabled=not selected)
        render_form_errors(SALE_ERRORS)
        if submitted:
            try:
                sale = validate_form(SaleForm, {"selected_animals": selected, "total_price": total, "payment_method": method})
            except ValidationError as e:
                show_result(_invalid(e), SALE_ERRORS)
                return
            result = run_action(
                "sell animals",
                lambda: ctx.finance.sell_animals(sale.selected_animals, sale.total_price, sale.payment_method),
                success=lambda rows: f"Successfully sold {len(rows)} animal{'s' if len(rows) > 1 else ''}",
            )
            if show_result(result, SALE_ERRORS):
                for animal_id in sale.selected_animals:
                    ctx.animal_pages.replace(animal_id, ctx.animals.get(animal_id))
                ctx.invalidate_animals()


def render(ctx: DataContext) -> None:
    st.title("Animals")
    render_page_intro(
        kicker="Herd register",
        title="Who is on the farm right now, and what did they cost?",
        context="Newest animals first. Adding an animal with a purchase price also books the purchase expense.",
    )

    term = _debounced_search(ctx)
    pages = ctx.animal_pages
    if term:
        animals = ctx.search.search(term)
        st.caption(f"{len(animals)} match(es) for “{term}”")
    else:
        animals = pages.current()
        st.caption(f"Showing {len(animals)} of {pages.total} animals")

    st.dataframe(records_frame(animals, TABLE_COLUMNS), use_container_width=True, hide_index=True)

    if not term:
        c1, c2 = st.columns(2)
        if c1.button("Load more", disabled=not pages.has_more):
            pages.load_more()
            st.rerun()
        if c2.button("Refresh"):
            pages.refresh()
            st.rerun()

    tab_add, tab_edit, tab_bulk = st.tabs(["Add animal", "Edit animal", "Bulk actions"])
    with tab_add:
        _add_form(ctx)
    with tab_edit:
        _edit_form(ctx, animals)
    with tab_bulk:
        _bulk_actions(ctx, animals)
