"""
Routing only.

All view logic lives in app/views/.
All env reads happen ONLY in config.py.
"""

from __future__ import annotations

import os
import sys

# Make `app/` importable as a flat module path when running:
#   streamlit run app/app.py
APP_DIR = os.path.dirname(__file__)
REPO_ROOT = os.path.abspath(os.path.join(APP_DIR, ".."))
for p in [APP_DIR, REPO_ROOT]:
    if p not in sys.path:
        sys.path.insert(0, p)

import streamlit as st  # noqa: E402

from components.header import render_header  # noqa: E402
from components.sidebar import render_sidebar  # noqa: E402
from components.styles import APP_TITLE, apply_theme  # noqa: E402
from config import AppConfig, get_config  # noqa: E402
from core.exceptions import FarmDashError  # noqa: E402
from core.logging import get_logger, setup_logging  # noqa: E402
from data.service import DataContext, build_context  # noqa: E402

from views import animals, dashboard, expenses, finance, health, login, settings, users  # noqa: E402

logger = get_logger(__name__)


def get_context(cfg: AppConfig, use_mock: bool) -> DataContext:
    """One data context per session and data mode; switching mode rebuilds it."""
    ctx = st.session_state.get("ctx")
    if ctx is None or st.session_state.get("ctx_use_mock") != use_mock:
        ctx = build_context(cfg, use_mock)
        st.session_state["ctx"] = ctx
        st.session_state["ctx_use_mock"] = use_mock
    return ctx


def main() -> None:
    apply_theme()
    cfg = get_config()
    setup_logging(cfg.log_level, json_output=cfg.log_json)

    ctx = get_context(cfg, st.session_state.get("use_mock", cfg.default_use_mock))
    user = st.session_state.get("user")
    if user is None:
        render_header(app_name=APP_TITLE, subtitle="Livestock, costs and sales in one place", right_pill=f"Data: {ctx.source}")
        if ctx.handle.warning:
            st.warning(ctx.handle.warning)
        login.render(ctx)
        return

    state = render_sidebar(cfg, user)
    if state.sign_out:
        logger.info("sign_out", uid=user.id)
        st.session_state.pop("user", None)
        st.rerun()
    ctx = get_context(cfg, state.use_mock)

    render_header(
        app_name=APP_TITLE,
        subtitle="Livestock, costs and sales in one place",
        right_pill=f"Data: {'Mock' if ctx.source == 'mock' else 'Firestore'}",
        user_label=user.name or user.email,
    )
    if ctx.handle.warning:
        st.warning(ctx.handle.warning)

    # Routing only
    try:
        if state.view == "dashboard":
            dashboard.render(ctx)
        elif state.view == "animals":
            animals.render(ctx)
        elif state.view == "expenses":
            expenses.render(ctx)
        elif state.view == "health":
            health.render(ctx)
        elif state.view == "finance":
            finance.render(ctx)
        elif state.view == "users":
            users.render(ctx, user)
        elif state.view == "settings":
            settings.render(ctx, user)
        else:
            st.error("Unknown view")
    except FarmDashError as e:
        logger.error("view_failed", view=state.view, error=type(e).__name__, detail=e.message)
        st.error(f"Could not load this page: {e.message}")


if __name__ == "__main__":
    main()
