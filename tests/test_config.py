"""Tests for environment-driven configuration."""

import pytest

from config import get_config
from core.exceptions import ConfigurationError

KEYS = [
    "FIREBASE_PROJECT_ID",
    "FIREBASE_CREDENTIALS",
    "FIREBASE_WEB_API_KEY",
    "USE_MOCK_DATA",
    "CACHE_MAX_SIZE",
    "CACHE_MAX_AGE_SECONDS",
    "CACHE_WARMUP_THRESHOLD",
    "PAGE_SIZE",
    "HEALTH_PAGE_SIZE",
    "SEARCH_DEBOUNCE_MS",
    "LOG_LEVEL",
    "LOG_JSON",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    cfg = get_config()
    assert cfg.default_use_mock is True
    assert cfg.cache_max_size == 1000
    assert cfg.cache_max_age_seconds == 300
    assert cfg.cache_warmup_threshold == 3
    assert cfg.page_size == 20
    assert cfg.health_page_size == 10
    assert cfg.search_debounce_ms == 300
    assert cfg.log_level == "INFO"
    assert cfg.log_json is False
    assert cfg.live_configured is False


def test_overrides(monkeypatch):
    monkeypatch.setenv("FIREBASE_PROJECT_ID", "green-pastures")
    monkeypatch.setenv("USE_MOCK_DATA", "false")
    monkeypatch.setenv("PAGE_SIZE", " 50 ")
    monkeypatch.setenv("LOG_JSON", "yes")
    cfg = get_config()
    assert cfg.live_configured is True
    assert cfg.default_use_mock is False
    assert cfg.page_size == 50
    assert cfg.log_json is True


def test_blank_values_use_defaults(monkeypatch):
    monkeypatch.setenv("FIREBASE_PROJECT_ID", "   ")
    monkeypatch.setenv("CACHE_MAX_SIZE", "")
    cfg = get_config()
    assert cfg.firebase_project_id is None
    assert cfg.cache_max_size == 1000


@pytest.mark.parametrize("key,value", [("CACHE_MAX_SIZE", "lots"), ("PAGE_SIZE", "0"), ("CACHE_MAX_AGE_SECONDS", "-1")])
def test_invalid_integers(monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    with pytest.raises(ConfigurationError) as exc:
        get_config()
    assert key in str(exc.value)
