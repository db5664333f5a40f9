"""Shared fixtures: an in-memory store, controllable clocks and a small cache."""

import itertools
from datetime import date, datetime, timedelta

import pytest

from config import AppConfig
from data.animals import AnimalRepository
from data.cache import CacheService
from data.expenses import ExpenseRepository
from data.finance import FinanceRepository
from data.health import HealthRepository
from data.mock_data import MemoryStore, seed_store

TODAY = date(2026, 10, 15)


class FakeClock:
    """Monotonic-style float clock that only moves when told to."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Ticker:
    """datetime source that moves forward one minute per call, so createdAt values are distinct."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CacheService(max_size=5, max_age=300, warmup_threshold=2, clock=clock)


@pytest.fixture
def store():
    counter = itertools.count(1)
    return MemoryStore(id_factory=lambda: f"doc{next(counter):04d}")


@pytest.fixture
def seeded_store():
    return seed_store(MemoryStore(), today=TODAY)


@pytest.fixture
def now():
    return Ticker(datetime(2026, 10, 15, 8, 0))


@pytest.fixture
def animals(store, now):
    return AnimalRepository(store, now=now)


@pytest.fixture
def expenses(store, now):
    return ExpenseRepository(store, now=now)


@pytest.fixture
def health(store, now):
    return HealthRepository(store, now=now)


@pytest.fixture
def finance(store):
    return FinanceRepository(store, now=lambda: datetime(2026, 10, 15, 12, 0))


@pytest.fixture
def cfg():
    return AppConfig(
        firebase_project_id=None,
        firebase_credentials=None,
        firebase_web_api_key=None,
        default_use_mock=True,
        cache_max_size=100,
        cache_max_age_seconds=300,
        cache_warmup_threshold=3,
        page_size=5,
        health_page_size=10,
        search_debounce_ms=300,
        log_level="INFO",
        log_json=False,
    )
