from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from config import THEME

# pasture, harvest, soil, then neutrals for long category lists
COLORWAY = [
    THEME["accent_primary"],
    THEME["harvest"],
    THEME["earth_800"],
    THEME["accent_secondary"],
    "#8D6E63",
    "#A1887F",
    "#9CA3AF",
]
FONT_STACK = "DM Sans, system-ui, -apple-system, Segoe UI, Roboto, Arial, sans-serif"
EMPTY_PERIOD = "No data for this period yet."


@dataclass(frozen=True)
class Kpi:
    label: str
    value: str
    delta: Optional[str] = None
    help: Optional[str] = None


def fmt_money(x: float) -> str:
    return f"-${abs(x):,.2f}" if x < 0 else f"${x:,.2f}"


def _delta_class(delta: str) -> str:
    head = delta.strip()[:1]
    if head in ("+", "▲"):
        return "positive"
    if head in ("-", "▼"):
        return "negative"
    return ""


def render_kpi_row(kpis: list[Kpi]) -> None:
    """One card per KPI. A delta starting with +/▲ renders green, -/▼ red."""
    for col, k in zip(st.columns(len(kpis)), kpis):
        delta = ""
        if k.delta:
            delta = f'<div class="metric-delta {_delta_class(k.delta)}">{html.escape(k.delta)}</div>'
        col.markdown(
            f'<div class="metric-card" title="{html.escape(k.help or "")}">'
            f'<div class="metric-label">{html.escape(k.label)}</div>'
            f'<div class="metric-value">{html.escape(k.value)}</div>'
            f"{delta}</div>",
            unsafe_allow_html=True,
        )


def style_figure(fig: go.Figure, x_title: str = "", y_title: str = "", money: bool = False) -> go.Figure:
    """Card-surface layout shared by every chart on the farm pages."""
    muted = dict(color=THEME["text_secondary"])
    fig.update_layout(
        margin=dict(l=8, r=8, t=40, b=8),
        font=dict(family=FONT_STACK, color=THEME["text_primary"]),
        paper_bgcolor=THEME["bg_card"],
        plot_bgcolor=THEME["bg_card"],
        colorway=COLORWAY,
        title_font=dict(color=THEME["earth_900"], size=15),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, x=0, font=muted),
    )
    axis = dict(gridcolor=THEME["grid"], linecolor=THEME["border_color"], zeroline=False,
                tickfont=muted, title_font=muted)
    fig.update_xaxes(title_text=x_title, **axis)
    fig.update_yaxes(title_text=y_title, **axis)
    if money:
        fig.update_yaxes(tickprefix="$", separatethousands=True)
    return fig


def _show(fig: go.Figure) -> None:
    st.plotly_chart(fig, use_container_width=True)


def line_chart(df: pd.DataFrame, x: str, y: str, color: Optional[str] = None, title: str = "", currency: bool = True) -> None:
    if df.empty:
        st.info(EMPTY_PERIOD)
        return
    fig = px.line(df, x=x, y=y, color=color, title=title, markers=True)
    fig.update_traces(line=dict(width=2))
    _show(style_figure(fig, x, y, money=currency))


def bar_chart(df: pd.DataFrame, x: str, y: str, title: str = "", currency: bool = True) -> None:
    if df.empty:
        st.info(EMPTY_PERIOD)
        return
    _show(style_figure(px.bar(df, x=x, y=y, title=title), x, y, money=currency))


def pie_chart(df: pd.DataFrame, names: str, values: str, title: str = "") -> None:
    if df.empty:
        st.info("Nothing to break down yet.")
        return
    _show(style_figure(px.pie(df, names=names, values=values, title=title, hole=0.45)))
