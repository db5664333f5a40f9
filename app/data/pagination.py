"""
Incremental, cursor-based list loading on top of the read cache.

A paginator owns the list a page shows: the first page replaces it, "load
more" appends the next page using the cursor of the previous one, and local
(optimistic) edits are applied in place until the next refresh.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from core.logging import get_logger
from data.cache import CacheService

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class PageResult(Generic[T]):
    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20
    total_pages: int = 0
    has_more: bool = False
    cursor: Optional[Any] = field(default=None, metadata={"sized": False})


def paginate_list(items: Sequence[T], page: int, per_page: int) -> PageResult[T]:
    """Offset paging for small collections that are fetched whole."""
    total = len(items)
    page = max(1, page)
    start = (page - 1) * per_page
    chunk = list(items[start:start + per_page])
    return PageResult(
        items=chunk,
        total=total,
        page=page,
        limit=per_page,
        total_pages=math.ceil(total / per_page) if per_page else 0,
        has_more=start + per_page < total,
    )


FetchPage = Callable[[int, Optional[Any]], PageResult]


class CursorPaginator(Generic[T]):
    def __init__(
        self,
        fetch_page: FetchPage,
        cache: CacheService,
        key_fn: Callable[[int], str],
        cache_prefix: str,
        page_size: int = 20,
        id_of: Callable[[T], str] = lambda item: getattr(item, "id"),
    ):
        self._fetch_page = fetch_page
        self._cache = cache
        self._key_fn = key_fn
        self.page_size = page_size
        self._cache_prefix = cache_prefix
        self._id_of = id_of

        self.items: List[T] = []
        self.page = 0
        self.total = 0
        self.total_pages = 0
        self.has_more = True
        self.cursor: Optional[Any] = None
        self.loading = False

    def _load(self, page: int, cursor: Optional[Any], use_cache: bool) -> PageResult:
        key = self._key_fn(page)
        if use_cache:
            entry = self._cache.get(key)
            if entry is not None:
                logger.debug("page_from_cache", cache_key=key)
                return entry.data
        result = self._fetch_page(page, cursor)
        self._cache.set(key, result, result.cursor)
        logger.debug("page_fetched", cache_key=key, count=len(result.items), has_more=result.has_more)
        return result

    def _prefetch_next(self, page: int, cursor: Optional[Any]) -> None:
        if not self.has_more or cursor is None:
            return
        self._cache.warmup(self._key_fn(page + 1), lambda: self._fetch_page(page + 1, cursor))

    def load_first(self, force: bool = False) -> List[T]:
        if self.loading:
            return self.items
        self.loading = True
        try:
            result = self._load(1, None, use_cache=not force)
        finally:
            self.loading = False
        self.items = list(result.items)
        self.page = 1
        self.total = result.total
        self.total_pages = result.total_pages
        self.has_more = result.has_more
        self.cursor = result.cursor
        self._prefetch_next(1, self.cursor)
        return self.items

    def is_stale(self) -> bool:
        """True once the cached first page has expired or been invalidated."""
        return self._cache.peek(self._key_fn(1)) is None

    def current(self) -> List[T]:
        """
        The list a page should render.

        Reloads from page 1 when nothing is loaded yet or the first page has
        left the cache, so rendered rows are never older than the cache max age
        and any invalidation reaches the screen on the next rerun.
        """
        if self.page == 0 or self.is_stale():
            self.load_first()
        return self.items

    def load_more(self) -> List[T]:
        """Append the next page; returns only the newly added items."""
        if self.loading or not self.has_more:
            return []
        if self.page == 0:
            return self.load_first()
        self.loading = True
        try:
            result = self._load(self.page + 1, self.cursor, use_cache=True)
        finally:
            self.loading = False
        seen = {self._id_of(i) for i in self.items}
        fresh = [i for i in result.items if self._id_of(i) not in seen]
        self.items.extend(fresh)
        self.page += 1
        self.has_more = result.has_more
        self.cursor = result.cursor
        self._prefetch_next(self.page, self.cursor)
        return fresh

    def refresh(self) -> List[T]:
        self.cursor = None
        self.items = []
        self.page = 0
        self.has_more = True
        self._cache.invalidate_pattern(self._cache_prefix)
        return self.load_first(force=True)

    # --- optimistic edits -------------------------------------------------

    def prepend(self, item: T) -> None:
        self.items.insert(0, item)
        self.total += 1

    def replace(self, item_id: str, item: T) -> bool:
        for idx, existing in enumerate(self.items):
            if self._id_of(existing) == item_id:
                self.items[idx] = item
                return True
        return False

    def remove(self, item_id: str) -> bool:
        before = len(self.items)
        self.items = [i for i in self.items if self._id_of(i) != item_id]
        removed = len(self.items) < before
        if removed:
            self.total = max(0, self.total - 1)
        return removed

    def snapshot(self) -> dict:
        return {"items": copy.copy(self.items), "total": self.total}

    def restore(self, snap: dict) -> None:
        self.items = list(snap["items"])
        self.total = snap["total"]
