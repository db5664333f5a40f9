from __future__ import annotations

from string import Template

import streamlit as st

from config import THEME


APP_TITLE = "Green Pastures Farm Dashboard"

# $tokens are filled from config.THEME in apply_theme()
_CSS = Template("""
<style>
@import url('https://fonts.googleapis.com/css2?family=DM+Sans:wght@400;500;600;700&display=swap');

:root{
  --green: $green; --green-hover: $green_hover; --harvest: $harvest;
  --soil-dark: $soil_dark; --soil: $soil;
  --page: $page; --surface: $surface; --line: $line;
  --ink: $ink; --ink-muted: $ink_muted; --shadow: $shadow; --radius: ${radius}px;
}

#MainMenu, header, footer { visibility: hidden; }
.block-container{ padding-top: 0.75rem !important; padding-bottom: 2rem !important; }

html, body, [data-testid="stAppViewContainer"], [data-testid="stSidebar"] *{
  font-family: "DM Sans", system-ui, -apple-system, Segoe UI, Roboto, Arial, sans-serif !important;
}
html, body, [data-testid="stAppViewContainer"]{ background: var(--page) !important; color: var(--ink) !important; }

/* sidebar: paddock-style nav tiles */
[data-testid="stSidebar"]{ background: var(--surface) !important; border-right: 1px solid var(--line) !important; }
[data-testid="stSidebar"] div[role="radiogroup"] > label{
  background: var(--surface) !important; border: 1px solid var(--line) !important;
  border-radius: 12px !important; padding: 9px 12px !important; margin: 0 0 8px 0 !important;
}
[data-testid="stSidebar"] div[role="radiogroup"] > label:has(input:checked){
  border-color: var(--green) !important; border-left: 4px solid var(--green) !important;
}

/* shared card surface */
.farm-header, .metric-card, .page-intro, .callout, div[data-testid="stPlotlyChart"], div[data-testid="stDataFrame"]{
  background: var(--surface); border: 1px solid var(--line);
  border-radius: var(--radius); box-shadow: var(--shadow);
}

.farm-header{ display:flex; align-items:center; justify-content:space-between; gap:12px; padding:10px 14px; margin:0 0 14px 0; }
.farm-header-left{ display:flex; align-items:center; gap:10px; }
.farm-title{ font-size:20px; font-weight:700; color: var(--soil-dark); }
.farm-subtitle{ font-size:14px; color: var(--ink-muted); }
.pill{
  display:inline-flex; align-items:center; gap:6px; padding:5px 10px;
  border:1px solid var(--line); border-radius:999px; font-size:13px; font-weight:600; color: var(--soil);
}
.pill .dot{ width:8px; height:8px; border-radius:999px; background: var(--green); }

.metric-card{ padding:12px 14px; }
.metric-label{ font-size:14px; color: var(--ink-muted); margin-bottom:4px; }
.metric-value{ font-size:24px; font-weight:700; }
.metric-delta{ margin-top:4px; font-size:13px; font-weight:600; color: var(--ink-muted); }
.metric-delta.positive{ color: $success; }
.metric-delta.negative{ color: $danger; }

.page-intro{ padding:14px; margin:0 0 14px 0; border-top: 3px solid var(--green); }
.page-intro-kicker{ font-size:13px; font-weight:600; text-transform:uppercase; letter-spacing:.04em; color: var(--soil); }
.page-intro-title{ font-size:18px; font-weight:700; color: var(--soil-dark); margin:4px 0; }
.page-intro-body{ font-size:14px; color: var(--ink-muted); line-height:1.5; }

.callout{ padding:12px 14px; margin:10px 0; }
.callout-info{ border-left:4px solid var(--soil); }
.callout-warn{ border-left:4px solid var(--harvest); }
.callout-title{ font-size:14px; font-weight:700; margin-bottom:4px; }
.callout-body{ font-size:14px; color: var(--ink-muted); }

div[data-testid="stPlotlyChart"]{ padding:8px 10px; }

div.stButton > button, div.stFormSubmitButton > button{
  border-radius:10px !important; font-weight:600 !important; border:none !important;
  background: var(--green) !important; color:white !important;
}
div.stButton > button:hover, div.stFormSubmitButton > button:hover{ background: var(--green-hover) !important; }
button[data-baseweb="tab"]{ border-radius:999px !important; font-weight:600 !important; color: var(--soil) !important; }
button[data-baseweb="tab"][aria-selected="true"]{ background: var(--green) !important; color:white !important; }

/* animal status */
.badge{ display:inline-block; border-radius:999px; padding:2px 10px; font-size:12px; font-weight:600; color:white; }
.badge-active{ background: $success; }
.badge-sold{ background: $warning; }
.badge-deceased{ background: $danger; }
</style>
""")


def apply_theme() -> None:
    st.set_page_config(
        page_title=APP_TITLE,
        page_icon="🐄",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    css = _CSS.substitute(
        green=THEME["accent_primary"],
        green_hover=THEME["accent_secondary"],
        harvest=THEME["harvest"],
        soil_dark=THEME["earth_900"],
        soil=THEME["earth_800"],
        page=THEME["bg_primary"],
        surface=THEME["bg_card"],
        line=THEME["border_color"],
        ink=THEME["text_primary"],
        ink_muted=THEME["text_secondary"],
        shadow=THEME["shadow"],
        radius=int(THEME["radius_px"]),
        success=THEME["success"],
        warning=THEME["warning"],
        danger=THEME["danger"],
    )
    st.markdown(css, unsafe_allow_html=True)
