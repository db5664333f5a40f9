from __future__ import annotations

import html
from typing import Optional

import streamlit as st

from data.service import ActionResult


def render_page_intro(kicker: str, title: str, context: str | None = None) -> None:
    st.markdown(
        f"""
<div class="page-intro">
  <div class="page-intro-kicker">{kicker}</div>
  <div class="page-intro-title">{title}</div>
  {f'<div class="page-intro-body">{context}</div>' if context else ''}
</div>
        """,
        unsafe_allow_html=True,
    )


def render_callout(title: str, body: str, kind: str = "info") -> None:
    """kind: "info" | "warn" """
    st.markdown(
        f"""
<div class="callout callout-{kind}">
  <div class="callout-title">{title}</div>
  <div class="callout-body">{body}</div>
</div>
        """,
        unsafe_allow_html=True,
    )


def status_badge(status: str) -> str:
    return f'<span class="badge badge-{html.escape(status)}">{html.escape(status.capitalize())}</span>'


def show_result(result: ActionResult, form_errors_key: Optional[str] = None) -> bool:
    """
    Toast an action outcome. Field errors of a failed validation are kept in
    session state under `form_errors_key` so the form can show them inline.
    """
    if result.ok:
        if result.message:
            st.toast(result.message, icon="✅")
        if form_errors_key:
            st.session_state.pop(form_errors_key, None)
        return True
    st.toast(result.message, icon="⚠️")
    if form_errors_key:
        st.session_state[form_errors_key] = result.errors
    return False


def render_form_errors(form_errors_key: str) -> None:
    errors = st.session_state.get(form_errors_key) or {}
    for message in errors.values():
        st.error(message)
