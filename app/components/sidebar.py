from __future__ import annotations

from dataclasses import dataclass

import streamlit as st

from config import AppConfig
from data.models import User


@dataclass(frozen=True)
class SidebarState:
    view: str
    use_mock: bool
    sign_out: bool = False


NAV_ITEMS = [
    ("🏠 Dashboard", "dashboard"),
    ("🐄 Animals", "animals"),
    ("💸 Expenses", "expenses"),
    ("🩺 Health", "health"),
    ("📈 Finance", "finance"),
    ("⚙️ Settings", "settings"),
]
ADMIN_ITEMS = [("👥 Users", "users")]


def nav_items(user: User) -> list[tuple[str, str]]:
    return NAV_ITEMS + (ADMIN_ITEMS if user.is_admin else [])


def render_sidebar(cfg: AppConfig, user: User) -> SidebarState:
    with st.sidebar:
        st.markdown("### 🌾 Green Pastures")
        st.caption(f"Signed in as {user.name or user.email} ({user.role})")

        items = nav_items(user)
        labels = [l for l, _ in items]
        default_label = st.session_state.get("nav_label", labels[0])
        idx = labels.index(default_label) if default_label in labels else 0

        label = st.radio(
            "Nav",
            labels,
            index=idx,
            label_visibility="collapsed",
        )
        st.session_state["nav_label"] = label
        view = dict(items)[label]

        with st.expander("Data source", expanded=False):
            use_mock = st.toggle(
                "Use mock data",
                value=st.session_state.get("use_mock", cfg.default_use_mock),
                help="When off, the app tries the hosted store. Any failure falls back to mock data.",
            )
            st.session_state["use_mock"] = use_mock
            if cfg.firebase_project_id:
                st.markdown("**Project**")
                st.code(cfg.firebase_project_id, language="text")

        sign_out = st.button("Sign out", use_container_width=True)
    use_mock = st.session_state.get("use_mock", cfg.default_use_mock)

    return SidebarState(view=view, use_mock=use_mock, sign_out=sign_out)
