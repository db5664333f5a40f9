from __future__ import annotations

from datetime import datetime

import streamlit as st

from components.metrics import Kpi, render_kpi_row
from components.notices import render_form_errors, render_page_intro, show_result
from data.models import User
from data.service import DataContext, run_action


def _stamp(ts: float | None) -> str:
    return datetime.fromtimestamp(ts).strftime("%H:%M:%S") if ts else "—"


def render(ctx: DataContext, user: User) -> None:
    st.title("Settings")
    render_page_intro(kicker="Account and data", title="Profile, data source and cache")

    st.subheader("Profile")
    st.markdown(f"**Email:** {user.email}  \n**Role:** {user.role}")
    with st.form("profile"):
        name = st.text_input("Name", value=user.name)
        submitted = st.form_submit_button("Save profile")
    render_form_errors("profile_errors")
    if submitted:
        result = run_action("update profile", lambda: ctx.users.update_profile(user, name), success="Profile updated")
        if show_result(result, "profile_errors"):
            st.session_state["user"] = result.data
            st.rerun()

    st.subheader("Data source")
    st.markdown(f"Currently reading from **{ctx.source}**.")
    if ctx.handle.warning:
        st.warning(ctx.handle.warning)
    st.caption("Toggle mock data in the sidebar. Live mode needs FIREBASE_PROJECT_ID or FIREBASE_CREDENTIALS.")

    st.subheader("Cache")
    stats = ctx.cache.stats()
    render_kpi_row(
        [
            Kpi("Entries", f"{stats.size:,} / {ctx.cache.max_size:,}"),
            Kpi("Hit rate", f"{stats.hit_rate * 100:.0f}%"),
            Kpi("Hits / misses", f"{stats.hit_count:,} / {stats.miss_count:,}"),
            Kpi("Oldest / newest", f"{_stamp(stats.oldest_entry)} / {_stamp(stats.newest_entry)}"),
        ]
    )
    st.caption(f"Entries expire after {ctx.cfg.cache_max_age_seconds}s. Cache version {ctx.cache.version}.")
    c1, c2 = st.columns(2)
    if c1.button("Clear cache"):
        ctx.cache.clear()
        st.toast("Cache cleared", icon="✅")
        st.rerun()
    if c2.button("Start new cache version"):
        version = ctx.cache.bump_version()
        st.toast(f"Cache version {version}", icon="✅")
        st.rerun()
