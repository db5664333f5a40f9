"""Tests for the client-side read cache."""

import pytest

from data.cache import CacheService, animals_key, expenses_key, payload_size, search_key
from data.models import Animal
from data.pagination import PageResult


def _page(n, cursor=None):
    return PageResult(items=[Animal(id=f"A{i}", type="cattle", breed="Angus") for i in range(n)], total=n, cursor=cursor)


class TestGetSet:
    def test_set_then_get_returns_entry(self, cache):
        cache.set("animals-1", ["a", "b"], cursor="c1")
        entry = cache.get("animals-1")
        assert entry is not None
        assert entry.data == ["a", "b"]
        assert entry.cursor == "c1"
        assert entry.version == 1
        assert entry.metadata.access_count == 1

    def test_miss_is_counted(self, cache):
        assert cache.get("nope") is None
        stats = cache.stats()
        assert stats.miss_count == 1
        assert stats.hit_count == 0

    def test_entry_expires_after_max_age(self, cache, clock):
        cache.set("k", 1)
        clock.advance(300)
        assert cache.get("k") is not None  # exactly max_age is still fresh
        clock.advance(1)
        assert cache.get("k") is None
        assert len(cache) == 0
        assert cache.stats().miss_count == 1

    def test_peek_leaves_stats_alone(self, cache):
        cache.set("k", 1)
        assert cache.peek("k") is not None
        assert "k" in cache
        stats = cache.stats()
        assert stats.hit_count == 0
        assert stats.miss_count == 0

    def test_empty_stats(self, cache):
        stats = cache.stats()
        assert stats.size == 0
        assert stats.oldest_entry is None
        assert stats.newest_entry is None
        assert stats.hit_rate == 0.0

    def test_stats_track_oldest_and_newest(self, cache, clock):
        cache.set("a", 1)
        clock.advance(10)
        cache.set("b", 2)
        cache.get("a")
        cache.get("missing")
        stats = cache.stats()
        assert stats.size == 2
        assert stats.oldest_entry == 1_000.0
        assert stats.newest_entry == 1_010.0
        assert stats.hit_rate == 0.5


class TestEviction:
    def test_evicts_highest_score_when_full(self, clock):
        cache = CacheService(max_size=3, clock=clock)
        cache.set("big", "x" * 500)
        cache.set("small", "y")
        cache.set("hot", "z" * 500)
        clock.advance(10)
        for _ in range(5):
            cache.get("hot")

        cache.set("new", 1)

        assert "big" not in cache
        assert all(k in cache for k in ("small", "hot", "new"))
        assert len(cache) == 3

    def test_ties_evict_oldest_insert(self, clock):
        cache = CacheService(max_size=2, clock=clock)
        cache.set("first", 1)
        cache.set("second", 1)
        cache.set("third", 1)  # all scores are 0 at age 0
        assert "first" not in cache
        assert "second" in cache
        assert "third" in cache

    def test_hot_page_outlives_large_cold_page(self, clock):
        cache = CacheService(max_size=2, clock=clock)
        cache.set("animals-1", _page(1))
        for _ in range(10):
            cache.get("animals-1")
        clock.advance(10)
        cache.set("animals-2", _page(20))
        clock.advance(10)

        cache.set("search-goat", [])

        assert "animals-1" in cache
        assert "animals-2" not in cache

    def test_eviction_drops_hit_counts(self, clock):
        cache = CacheService(max_size=1, clock=clock)
        cache.set("a", "x" * 50)
        cache.get("a")
        clock.advance(5)
        cache.set("b", 1)
        assert cache.stats().hit_count == 0

    def test_overwriting_existing_key_does_not_evict(self, clock):
        cache = CacheService(max_size=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 3)
        assert len(cache) == 2
        assert cache.get("a").data == 3


class TestWarmup:
    def test_below_threshold_does_not_fetch(self, cache):
        calls = []
        cache.set("k", "old")
        cache.get("k")
        assert cache.warmup("k", lambda: calls.append(1) or "new") is False
        assert calls == []

    def test_refetches_frequently_read_key(self, cache):
        cache.set("k", "old")
        cache.get("k")
        cache.get("k")
        assert cache.warmup("k", lambda: "new") is True
        assert cache.peek("k").data == "new"

    def test_failing_fetch_is_swallowed(self, cache):
        cache.set("k", "old")
        cache.get("k")
        cache.get("k")

        def boom():
            raise RuntimeError("store down")

        assert cache.warmup("k", boom) is False
        assert cache.peek("k").data == "old"


class TestInvalidation:
    def test_invalidate_pattern(self, cache):
        cache.set("animals-1--createdAt-desc", 1)
        cache.set("animals-2--createdAt-desc", 2)
        cache.set("search-goat", 3)
        assert cache.invalidate_pattern("animals-") == 2
        assert len(cache) == 1

    def test_bump_version_drops_old_generation(self, cache):
        cache.set("a", 1)
        cache.bump_version()
        cache.set("b", 2)
        assert "a" not in cache
        assert cache.get("b").version == 2

    def test_invalidate_by_version(self, cache):
        cache.set("a", 1)
        cache.version = 3
        cache.set("b", 2)
        assert cache.invalidate_by_version(3) == 1
        assert "b" in cache

    def test_removed_entries_take_their_hits_along(self, cache, clock):
        cache.set("animals-1", 1)
        cache.set("search-goat", 2)
        cache.get("animals-1")
        cache.get("search-goat")
        cache.invalidate_pattern("animals-")
        assert cache.stats().hit_count == 1

        clock.advance(301)
        assert cache.get("search-goat") is None
        assert cache.stats().hit_count == 0

    def test_clear_resets_stats(self, cache):
        cache.set("a", 1)
        cache.get("a")
        cache.get("zzz")
        cache.clear()
        stats = cache.stats()
        assert (stats.size, stats.hit_count, stats.miss_count) == (0, 0, 0)


class TestHelpers:
    def test_payload_size(self):
        assert payload_size({"a": 1}) == len('{"a": 1}')
        assert payload_size(object()) == 0

    def test_page_results_are_sized_by_their_rows(self):
        small = payload_size(_page(1))
        large = payload_size(_page(20))
        assert small > 0
        assert large > small * 10

    def test_opaque_cursor_does_not_zero_the_size(self):
        assert payload_size(_page(3, cursor=object())) == payload_size(_page(3))

    def test_keys(self):
        from datetime import datetime

        assert animals_key(2) == "animals-2--createdAt-desc"
        assert animals_key(1, "goat", "name", "asc") == "animals-1-goat-name-asc"
        assert search_key("  Goat ") == "search-goat"
        assert expenses_key(1) == "expenses-1-all"
        assert expenses_key(3, datetime(2026, 1, 1), datetime(2026, 1, 31)) == "expenses-3-20260101-20260131"


@pytest.mark.parametrize("max_size", [1, 3])
def test_never_exceeds_capacity(clock, max_size):
    cache = CacheService(max_size=max_size, clock=clock)
    for i in range(10):
        cache.set(f"k{i}", i)
        clock.advance(1)
    assert len(cache) == max_size
