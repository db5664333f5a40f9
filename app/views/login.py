from __future__ import annotations

import streamlit as st

from components.notices import render_page_intro, show_result
from data.service import DataContext, run_action


def render(ctx: DataContext) -> None:
    render_page_intro(
        kicker="Green Pastures",
        title="Sign in to manage the farm",
        context="Demo accounts: admin@example.com and user@example.com (any password)." if ctx.auth.is_mock else None,
    )

    tab_in, tab_up = st.tabs(["Sign in", "Create account"])
    with tab_in:
        with st.form("sign_in"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in")
        if submitted:
            result = run_action("sign in", lambda: ctx.auth.sign_in(email, password),
                                success=lambda u: f"Welcome back, {u.name or u.email}!")
            if show_result(result):
                st.session_state["user"] = result.data
                st.rerun()
    with tab_up:
        with st.form("register"):
            name = st.text_input("Name")
            email = st.text_input("Email", key="register_email")
            password = st.text_input("Password", type="password", key="register_password")
            submitted = st.form_submit_button("Create account")
        if submitted:
            result = run_action("create account", lambda: ctx.auth.register(email, password, name),
                                success="Your account has been created")
            if show_result(result):
                st.session_state["user"] = result.data
                st.rerun()
