from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Generic, Optional, TypeVar

import pandas as pd

from config import AppConfig
from core.exceptions import FarmDashError, ValidationError
from core.logging import get_logger
from data import mock_data
from data.animals import AnimalRepository
from data.auth import AuthClient, UserRepository
from data.cache import CacheService, animals_key, expenses_key
from data.connection import get_firestore_store
from data.expenses import ExpenseRepository
from data.finance import FinanceRepository
from data.health import HealthRepository
from data.pagination import CursorPaginator
from data.search import AnimalSearch
from data.store import DocumentStore

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class DataResult:
    df: pd.DataFrame
    source: str  # "mock" | "firestore"
    warning: str | None = None


@dataclass(frozen=True)
class StoreHandle:
    store: DocumentStore
    source: str
    warning: str | None = None


def open_store(cfg: AppConfig, use_mock: bool, mock_factory: Callable[[], DocumentStore] = mock_data.mock_store) -> StoreHandle:
    if use_mock:
        return StoreHandle(store=mock_factory(), source="mock")
    try:
        store = get_firestore_store(cfg)
        return StoreHandle(store=store, source=store.source)
    except Exception as e:
        logger.warning("store_fallback", error=type(e).__name__, detail=str(e))
        return StoreHandle(store=mock_factory(), source="mock", warning=f"Fell back to mock data: {type(e).__name__}")


def read_frame(handle: StoreHandle, fn: Callable[[], pd.DataFrame]) -> DataResult:
    """Run a chart read; a failing read yields an empty frame plus a warning instead of an exception."""
    try:
        return DataResult(df=fn(), source=handle.source, warning=handle.warning)
    except FarmDashError as e:
        logger.error("chart_read_failed", error=type(e).__name__, detail=e.message)
        return DataResult(df=pd.DataFrame(), source=handle.source, warning=f"Could not load data: {e.message}")


@dataclass(frozen=True)
class ActionResult(Generic[T]):
    ok: bool
    message: str
    data: Optional[T] = None
    errors: dict = field(default_factory=dict)


def run_action(label: str, fn: Callable[[], T], success: str | Callable[[T], str] = "") -> ActionResult[T]:
    """
    Run one user action (save, delete, sell...) and turn any failure into a result.

    Only FarmDashError is expected here; anything else is a bug and propagates.
    """
    try:
        data = fn()
    except ValidationError as e:
        logger.info("action_invalid", action=label, errors=e.errors)
        return ActionResult(ok=False, message=e.message, errors=e.errors)
    except FarmDashError as e:
        logger.error("action_failed", action=label, error=type(e).__name__, detail=e.message)
        return ActionResult(ok=False, message=f"Failed to {label}: {e.message}")
    message = success(data) if callable(success) else success
    logger.info("action_ok", action=label)
    return ActionResult(ok=True, message=message, data=data)


@dataclass
class DataContext:
    """Everything a page needs, built once per session and per data mode."""

    cfg: AppConfig
    handle: StoreHandle
    cache: CacheService
    animals: AnimalRepository
    expenses: ExpenseRepository
    health: HealthRepository
    finance: FinanceRepository
    auth: AuthClient
    users: UserRepository
    search: AnimalSearch
    animal_pages: CursorPaginator
    expense_pages: CursorPaginator

    @property
    def store(self) -> DocumentStore:
        return self.handle.store

    @property
    def source(self) -> str:
        return self.handle.source

    def invalidate_animals(self) -> None:
        self.cache.invalidate_pattern("animals-")
        self.cache.invalidate_pattern("search-")

    def invalidate_expenses(self) -> None:
        self.cache.invalidate_pattern("expenses-")


def build_context(cfg: AppConfig, use_mock: bool, now: Callable[[], datetime] = datetime.now,
                  handle: StoreHandle | None = None, clock: Callable[[], float] | None = None) -> DataContext:
    handle = handle or open_store(cfg, use_mock)
    store = handle.store
    cache_kwargs: dict[str, Any] = {"clock": clock} if clock is not None else {}
    cache = CacheService(
        max_size=cfg.cache_max_size,
        max_age=float(cfg.cache_max_age_seconds),
        warmup_threshold=cfg.cache_warmup_threshold,
        **cache_kwargs,
    )
    animals = AnimalRepository(store, now=now)
    expenses = ExpenseRepository(store, now=now)

    ctx = DataContext(
        cfg=cfg,
        handle=handle,
        cache=cache,
        animals=animals,
        expenses=expenses,
        health=HealthRepository(store, now=now),
        finance=FinanceRepository(store, now=now),
        auth=AuthClient(cfg, store, now=now),
        users=UserRepository(store),
        search=AnimalSearch(store, cache, limit=cfg.page_size),
        animal_pages=CursorPaginator(
            fetch_page=lambda page, cursor: animals.list_page(page, cfg.page_size, cursor=cursor),
            cache=cache,
            key_fn=lambda page: animals_key(page),
            cache_prefix="animals-",
            page_size=cfg.page_size,
        ),
        expense_pages=CursorPaginator(
            fetch_page=lambda page, cursor: expenses.list_page(page, cfg.page_size, cursor=cursor),
            cache=cache,
            key_fn=lambda page: expenses_key(page),
            cache_prefix="expenses-",
            page_size=cfg.page_size,
        ),
    )
    logger.info("data_context_ready", source=handle.source, fallback=bool(handle.warning))
    return ctx
