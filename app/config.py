from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from core.exceptions import ConfigurationError


#
# Shared theme tokens (pasture greens + harvest amber).
# - Centralized here so components/styles.py and the plotly theme agree.
#
THEME = {
    # Backgrounds
    "bg_primary": "#F5F4EE",     # page background
    "bg_card": "#FFFFFF",        # card surface
    # Accents
    "accent_primary": "#2F7D32",    # pasture green
    "accent_secondary": "#43A047",  # hover
    "earth_900": "#3E2723",
    "earth_800": "#5D4037",
    "harvest": "#F9A825",
    # Text + borders
    "text_primary": "#1F2421",
    "text_secondary": "rgba(31, 36, 33, 0.72)",
    "border_color": "#E4E2DA",
    "grid": "rgba(31, 36, 33, 0.10)",
    "shadow": "0 1px 3px rgba(16,24,40,0.08)",
    "radius_px": 10,
    # Status colors
    "success": "#067647",
    "warning": "#F59E0B",
    "danger": "#B42318",
}


@dataclass(frozen=True)
class AppConfig:
    # Required for "live data" mode (hosted document store)
    firebase_project_id: Optional[str]
    firebase_credentials: Optional[str]  # path to a service-account JSON file

    # Email/password sign-in goes through the identity REST endpoint, which needs the web API key.
    firebase_web_api_key: Optional[str]

    # Defaults
    default_use_mock: bool

    # Client-side cache + paging
    cache_max_size: int
    cache_max_age_seconds: int
    cache_warmup_threshold: int
    page_size: int
    health_page_size: int
    search_debounce_ms: int

    # Logging
    log_level: str
    log_json: bool

    @property
    def live_configured(self) -> bool:
        return bool(self.firebase_project_id or self.firebase_credentials)


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name, default)
    if v is None:
        return None
    v = v.strip()
    return v if v else None


def _getint(name: str, default: int, minimum: int = 0) -> int:
    raw = _getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _getbool(name: str, default: str) -> bool:
    return (_getenv(name, default) or default).lower() in ("1", "true", "yes", "on")


def get_config() -> AppConfig:
    """
    Centralized config: this is the ONLY place env vars are read.
    - Loads `.env` if present (local dev)
    - Live mode needs FIREBASE_PROJECT_ID and/or FIREBASE_CREDENTIALS
    """
    load_dotenv(override=False)

    return AppConfig(
        firebase_project_id=_getenv("FIREBASE_PROJECT_ID"),
        firebase_credentials=_getenv("FIREBASE_CREDENTIALS"),
        firebase_web_api_key=_getenv("FIREBASE_WEB_API_KEY"),
        default_use_mock=_getbool("USE_MOCK_DATA", "true"),
        cache_max_size=_getint("CACHE_MAX_SIZE", 1000, minimum=1),
        cache_max_age_seconds=_getint("CACHE_MAX_AGE_SECONDS", 300),
        cache_warmup_threshold=_getint("CACHE_WARMUP_THRESHOLD", 3, minimum=1),
        page_size=_getint("PAGE_SIZE", 20, minimum=1),
        health_page_size=_getint("HEALTH_PAGE_SIZE", 10, minimum=1),
        search_debounce_ms=_getint("SEARCH_DEBOUNCE_MS", 300),
        log_level=_getenv("LOG_LEVEL", "INFO") or "INFO",
        log_json=_getbool("LOG_JSON", "false"),
    )
