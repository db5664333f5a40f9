from __future__ import annotations

from datetime import date, datetime, timedelta

import streamlit as st

from components.notices import render_callout, render_form_errors, render_page_intro, show_result
from core.exceptions import ValidationError
from data.analytics import records_frame
from data.models import (
    HEALTH_CONDITIONS,
    Animal,
    BatchHealthRecordForm,
    BatchVaccinationForm,
    HealthRecord,
    HealthRecordForm,
    Vaccination,
    VaccinationForm,
    validate_form,
)
from data.service import ActionResult, DataContext, run_action

RECORD_COLUMNS = ["date", "animal_id", "animal_name", "animal_type", "condition", "treatment", "status", "cost", "notes"]
VACCINATION_COLUMNS = ["date", "animal_id", "animal_name", "vaccine_name", "next_due_date", "administered"]


def _invalid(e: ValidationError) -> ActionResult:
    return ActionResult(ok=False, message=e.message, errors=e.errors)


def _pager(key: str, total_pages: int) -> int:
    if total_pages <= 1:
        return 1
    return int(st.number_input("Page", min_value=1, max_value=total_pages, value=1, step=1, key=key))


def _records_tab(ctx: DataContext, animals: list[Animal]) -> None:
    page_no = st.session_state.get("health_page", 1)
    page = ctx.health.records_page(page_no, ctx.cfg.health_page_size)
    st.dataframe(records_frame(page.items, RECORD_COLUMNS), use_container_width=True, hide_index=True)
    st.caption(f"{page.total} records")
    _pager("health_page", page.total_pages)

    if page.items:
        labels = {r.id: f"{r.date:%Y-%m-%d} · {r.animal_id} · {r.condition}" if r.date else r.id for r in page.items}
        chosen = st.selectbox("Record", list(labels), format_func=labels.get, key="health_record_pick")
        c1, c2 = st.columns(2)
        if c1.button("Mark resolved", key="health_resolve"):
            show_result(run_action("update health record",
                                   lambda: ctx.health.update_record(chosen, {"status": "resolved"}),
                                   success="Health record updated"))
        if c2.button("Delete record", key="health_delete"):
            show_result(run_action("delete health record", lambda: ctx.health.delete_record(chosen),
                                   success="Health record deleted"))

    st.subheader("Add health record")
    with st.form("add_health_record"):
        c1, c2 = st.columns(2)
        values = {
            "animal_id": c1.selectbox("Animal *", [""] + [a.id for a in animals], format_func=lambda i: i or "—"),
            "condition": c2.selectbox("Condition *", HEALTH_CONDITIONS),
            "treatment": c1.text_input("Treatment *"),
            "status": c2.selectbox("Status *", ["ongoing", "resolved"]),
            "date": c1.date_input("Date *", value=date.today()),
            "cost": c2.number_input("Cost", min_value=0.0, step=1.0),
            "notes": st.text_area("Notes"),
        }
        submitted = st.form_submit_button("Add record")
    render_form_errors("health_add_errors")
    if submitted:
        try:
            form = validate_form(HealthRecordForm, values)
        except ValidationError as e:
            show_result(_invalid(e), "health_add_errors")
            return
        record = HealthRecord(**form.model_dump(exclude_none=True))
        show_result(run_action("add health record", lambda: ctx.health.add_record(record),
                               success="Health record added"), "health_add_errors")


def _vaccinations_tab(ctx: DataContext, animals: list[Animal]) -> None:
    due = ctx.health.due_vaccinations(datetime.now())
    if due:
        names = ", ".join(f"{v.animal_name or v.animal_id} ({v.vaccine_name}, {v.next_due_date:%b %d})" for v in due[:5])
        render_callout("Vaccinations due within 30 days", names, kind="warn")

    page_no = st.session_state.get("vaccination_page", 1)
    page = ctx.health.vaccinations_page(page_no, ctx.cfg.health_page_size)
    st.dataframe(records_frame(page.items, VACCINATION_COLUMNS), use_container_width=True, hide_index=True)
    _pager("vaccination_page", page.total_pages)

    if page.items:
        labels = {v.id: f"{v.date:%Y-%m-%d} · {v.animal_id} · {v.vaccine_name}" if v.date else v.id for v in page.items}
        chosen = st.selectbox("Vaccination", list(labels), format_func=labels.get, key="vaccination_pick")
        if st.button("Delete vaccination", key="vaccination_delete"):
            show_result(run_action("delete vaccination", lambda: ctx.health.delete_vaccination(chosen),
                                   success="Vaccination deleted"))

    st.subheader("Record vaccination")
    with st.form("add_vaccination"):
        c1, c2 = st.columns(2)
        values = {
            "animal_id": c1.selectbox("Animal *", [""] + [a.id for a in animals], format_func=lambda i: i or "—"),
            "vaccine_name": c2.text_input("Vaccine *"),
            "date": c1.date_input("Date *", value=date.today()),
            "next_due_date": c2.date_input("Next due *", value=date.today() + timedelta(days=180)),
            "administered": st.checkbox("Administered", value=True),
            "notes": st.text_area("Notes"),
        }
        submitted = st.form_submit_button("Add vaccination")
    render_form_errors("vaccination_add_errors")
    if submitted:
        try:
            form = validate_form(VaccinationForm, values)
        except ValidationError as e:
            show_result(_invalid(e), "vaccination_add_errors")
            return
        vaccination = Vaccination(**form.model_dump(exclude_none=True))
        result = run_action("add vaccination", lambda: ctx.health.add_vaccination(vaccination),
                            success="Vaccination recorded")
        if show_result(result, "vaccination_add_errors") and vaccination.administered:
            # the animal is now marked vaccinated
            ctx.invalidate_animals()


def _batch_tab(ctx: DataContext, animals: list[Animal]) -> None:
    ids = [a.id for a in animals]
    st.subheader("Batch health record")
    with st.form("batch_health"):
        values = {
            "selected_animals": st.multiselect("Animals *", ids, key="batch_health_animals"),
            "condition": st.selectbox("Condition *", HEALTH_CONDITIONS, key="batch_health_condition"),
            "treatment": st.text_input("Treatment *", key="batch_health_treatment"),
            "cost": st.number_input("Cost per animal", min_value=0.0, key="batch_health_cost"),
            "date": st.date_input("Date *", value=date.today(), key="batch_health_date"),
            "notes": st.text_area("Notes", key="batch_health_notes"),
        }
        submitted = st.form_submit_button("Add to all selected")
    render_form_errors("batch_health_errors")
    if submitted:
        try:
            form = validate_form(BatchHealthRecordForm, values)
        except ValidationError as e:
            show_result(_invalid(e), "batch_health_errors")
        else:
            template = HealthRecord(**form.model_dump(exclude={"selected_animals"}, exclude_none=True), status="ongoing")
            show_result(run_action("add health records",
                                   lambda: ctx.health.batch_add_records(form.selected_animals, template),
                                   success=lambda rows: f"Added {len(rows)} health records"), "batch_health_errors")

    st.subheader("Batch vaccination")
    with st.form("batch_vaccination"):
        values = {
            "selected_animals": st.multiselect("Animals *", ids, key="batch_vacc_animals"),
            "vaccine_name": st.text_input("Vaccine *", key="batch_vacc_name"),
            "date": st.date_input("Date *", value=date.today(), key="batch_vacc_date"),
            "next_due_date": st.date_input("Next due *", value=date.today() + timedelta(days=180), key="batch_vacc_due"),
            "notes": st.text_area("Notes", key="batch_vacc_notes"),
        }
        submitted = st.form_submit_button("Vaccinate all selected")
    render_form_errors("batch_vacc_errors")
    if submitted:
        try:
            form = validate_form(BatchVaccinationForm, values)
        except ValidationError as e:
            show_result(_invalid(e), "batch_vacc_errors")
        else:
            template = Vaccination(**form.model_dump(exclude={"selected_animals"}, exclude_none=True), administered=True)
            result = run_action("add vaccinations",
                                lambda: ctx.health.batch_add_vaccinations(form.selected_animals, template),
                                success=lambda rows: f"Recorded {len(rows)} vaccinations")
            if show_result(result, "batch_vacc_errors"):
                ctx.invalidate_animals()


def render(ctx: DataContext) -> None:
    st.title("Health")
    render_page_intro(
        kicker="Vet book",
        title="Which animals need attention, and which doses are coming due?",
    )
    animals = ctx.animals.active()
    tab_records, tab_vacc, tab_batch = st.tabs(["Health records", "Vaccinations", "Batch entry"])
    with tab_records:
        _records_tab(ctx, animals)
    with tab_vacc:
        _vaccinations_tab(ctx, animals)
    with tab_batch:
        _batch_tab(ctx, animals)
