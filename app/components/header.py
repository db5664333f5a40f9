from __future__ import annotations

import html
from typing import Optional

import streamlit as st


def render_header(app_name: str, subtitle: str, right_pill: str, user_label: Optional[str] = None) -> None:
    user_html = f'<div class="pill">{html.escape(user_label)}</div>' if user_label else ""
    st.markdown(
        f"""
<div class="farm-header">
  <div class="farm-header-left">
    <div>
      <div class="farm-title">{app_name}</div>
      <div class="farm-subtitle">{subtitle}</div>
    </div>
  </div>
  <div class="farm-header-left">
    {user_html}
    <div class="pill"><span class="dot"></span>{right_pill}</div>
  </div>
</div>
        """,
        unsafe_allow_html=True,
    )
