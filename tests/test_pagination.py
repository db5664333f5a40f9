"""Tests for cursor pagination on top of the cache."""

from dataclasses import dataclass

import pytest

from data.cache import CacheService
from data.pagination import CursorPaginator, PageResult, paginate_list


@dataclass
class Row:
    id: str
    label: str = ""


class ScriptedSource:
    """Returns pre-built pages and records every fetch."""

    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    def __call__(self, page, cursor):
        self.calls.append((page, cursor))
        return self.pages[page]


def _key(page):
    return f"rows-{page}"


@pytest.fixture
def source():
    return ScriptedSource({
        1: PageResult(items=[Row("a"), Row("b")], total=5, page=1, limit=2, total_pages=3, has_more=True, cursor="c1"),
        2: PageResult(items=[Row("b"), Row("c")], page=2, limit=2, has_more=True, cursor="c2"),
        3: PageResult(items=[Row("d")], page=3, limit=2, has_more=False, cursor="c3"),
    })


@pytest.fixture
def paginator(source, cache):
    return CursorPaginator(source, cache, key_fn=_key, cache_prefix="rows-", page_size=2)


class TestCursorPaginator:
    def test_load_first(self, paginator, source):
        items = paginator.load_first()
        assert [r.id for r in items] == ["a", "b"]
        assert paginator.page == 1
        assert paginator.total == 5
        assert paginator.total_pages == 3
        assert paginator.has_more is True
        assert paginator.cursor == "c1"
        assert source.calls == [(1, None)]

    def test_load_first_uses_cache_unless_forced(self, paginator, source):
        paginator.load_first()
        paginator.load_first()
        assert len(source.calls) == 1
        paginator.load_first(force=True)
        assert len(source.calls) == 2

    def test_load_more_appends_and_dedupes(self, paginator, source):
        paginator.load_first()
        fresh = paginator.load_more()
        assert [r.id for r in fresh] == ["c"]
        assert [r.id for r in paginator.items] == ["a", "b", "c"]
        assert source.calls[-1] == (2, "c1")
        assert paginator.page == 2

    def test_load_more_stops_when_exhausted(self, paginator, source):
        paginator.load_first()
        paginator.load_more()
        paginator.load_more()
        assert paginator.has_more is False
        calls = len(source.calls)
        assert paginator.load_more() == []
        assert len(source.calls) == calls

    def test_load_more_before_first_loads_first(self, paginator):
        items = paginator.load_more()
        assert [r.id for r in items] == ["a", "b"]
        assert paginator.page == 1

    def test_cached_next_page_skips_fetch(self, paginator, source, cache):
        paginator.load_first()
        cache.set(_key(2), PageResult(items=[Row("x")], page=2, has_more=False, cursor="cx"))
        fresh = paginator.load_more()
        assert [r.id for r in fresh] == ["x"]
        assert (2, "c1") not in source.calls
        assert paginator.has_more is False

    def test_refresh_invalidates_and_reloads(self, paginator, source, cache):
        paginator.load_first()
        paginator.load_more()
        cache.set("other-1", "keep")
        paginator.refresh()
        assert [r.id for r in paginator.items] == ["a", "b"]
        assert paginator.page == 1
        assert source.calls[-1] == (1, None)
        assert "other-1" in cache

    def test_hot_next_page_is_prefetched(self, source, clock):
        cache = CacheService(warmup_threshold=1, clock=clock)
        paginator = CursorPaginator(source, cache, key_fn=_key, cache_prefix="rows-", page_size=2)
        cache.set(_key(2), PageResult(items=[Row("stale")]))
        cache.get(_key(2))

        paginator.load_first()

        assert (2, "c1") in source.calls
        assert [r.id for r in cache.peek(_key(2)).data.items] == ["b", "c"]

    def test_current_loads_once(self, paginator, source):
        assert [r.id for r in paginator.current()] == ["a", "b"]
        assert [r.id for r in paginator.current()] == ["a", "b"]
        assert source.calls == [(1, None)]

    def test_current_reloads_after_invalidation(self, paginator, source, cache):
        paginator.load_first()
        paginator.load_more()
        cache.invalidate_pattern("rows-")
        assert paginator.is_stale()

        assert [r.id for r in paginator.current()] == ["a", "b"]
        assert paginator.page == 1
        assert source.calls[-1] == (1, None)

    def test_current_reloads_after_expiry(self, paginator, source, clock):
        paginator.load_first()
        clock.advance(300)
        paginator.current()
        assert len(source.calls) == 1
        clock.advance(1)
        paginator.current()
        assert source.calls == [(1, None), (1, None)]

    def test_loading_guard(self, paginator, source):
        paginator.loading = True
        assert paginator.load_first() == []
        assert paginator.load_more() == []
        assert source.calls == []


class TestOptimisticEdits:
    def test_prepend_replace_remove(self, paginator):
        paginator.load_first()
        paginator.prepend(Row("z"))
        assert paginator.items[0].id == "z"
        assert paginator.total == 6

        assert paginator.replace("a", Row("a", label="edited")) is True
        assert paginator.items[1].label == "edited"
        assert paginator.replace("missing", Row("q")) is False

        assert paginator.remove("z") is True
        assert paginator.total == 5
        assert paginator.remove("z") is False

    def test_snapshot_restore(self, paginator):
        paginator.load_first()
        snap = paginator.snapshot()
        paginator.remove("a")
        paginator.remove("b")
        paginator.restore(snap)
        assert [r.id for r in paginator.items] == ["a", "b"]
        assert paginator.total == 5


class TestPaginateList:
    def test_slices_pages(self):
        rows = list(range(25))
        last = paginate_list(rows, 3, 10)
        assert last.items == [20, 21, 22, 23, 24]
        assert last.total == 25
        assert last.total_pages == 3
        assert last.has_more is False
        assert paginate_list(rows, 1, 10).has_more is True

    def test_page_below_one_is_first_page(self):
        assert paginate_list([1, 2, 3], 0, 2).items == [1, 2]

    def test_empty(self):
        result = paginate_list([], 1, 10)
        assert result.items == []
        assert result.total_pages == 0
