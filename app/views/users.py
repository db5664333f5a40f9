from __future__ import annotations

import streamlit as st

from components.notices import render_form_errors, render_page_intro, show_result
from data.analytics import records_frame
from data.auth import filter_users
from data.models import User
from data.service import DataContext, run_action

EDIT_ERRORS = "user_edit_errors"


def render(ctx: DataContext, user: User) -> None:
    st.title("Users")
    if not user.is_admin:
        st.error("Only admins can manage users.")
        return
    render_page_intro(kicker="Administration", title="Who can sign in, and with which role?")

    term = st.text_input("Filter by name or email", key="user_filter")
    users = filter_users(ctx.users.list(), term)
    st.dataframe(records_frame(users, ["id", "name", "email", "role"]), use_container_width=True, hide_index=True)
    if not users:
        st.info("No users match this filter." if term else "No users yet.")
        return

    labels = {u.id: f"{u.name or u.email} ({u.email})" for u in users}
    chosen = st.selectbox("User", list(labels), format_func=labels.get)
    current = next(u for u in users if u.id == chosen)

    with st.form(f"edit_user_{chosen}"):
        c1, c2 = st.columns(2)
        name = c1.text_input("Name", value=current.name)
        role = c2.selectbox("Role", ["user", "admin"], index=1 if current.is_admin else 0)
        submitted = st.form_submit_button("Save user")
    render_form_errors(EDIT_ERRORS)
    if submitted:
        show_result(run_action("update user", lambda: ctx.users.update_user(user, chosen, name, role),
                               success=lambda u: f"{u.email} saved as {u.role}"), EDIT_ERRORS)

    confirm = st.checkbox("Confirm delete")
    if st.button("Delete user", disabled=not confirm or chosen == user.id):
        show_result(run_action("delete user", lambda: ctx.users.delete(user, chosen), success="User deleted"))
