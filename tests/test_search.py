"""Tests for debounced animal search."""

from datetime import datetime

import pytest

from data import queries
from data.models import Animal
from data.search import AnimalSearch, Debouncer, filter_animals


def _put(store, animal_id, kind, breed, minute=0):
    store.set(queries.ANIMALS, animal_id, {
        "id": animal_id,
        "type": kind,
        "breed": breed,
        "status": "active",
        "createdAt": datetime(2026, 10, 1, 9, minute),
    })


@pytest.fixture
def herd(store):
    _put(store, "CAT01", "cattle", "Angus", 1)
    _put(store, "CAT02", "cattle", "Holstein", 2)
    _put(store, "GOA01", "goat", "Boer", 3)
    _put(store, "SHE01", "sheep", "Merino", 4)
    return store


class TestDebouncer:
    def test_settles_after_quiet_period(self, clock):
        deb = Debouncer(delay_ms=250, initial="", clock=clock)
        deb.push("g")
        assert deb.settled() == ""
        assert deb.is_pending

        clock.advance(0.125)
        deb.push("go")  # typing again restarts the wait
        clock.advance(0.125)
        assert deb.settled() == ""
        assert deb.remaining() == pytest.approx(0.125)

        clock.advance(0.125)
        assert deb.settled() == "go"
        assert not deb.is_pending
        assert deb.remaining() == 0.0

    def test_pushing_same_value_does_not_restart(self, clock):
        deb = Debouncer(delay_ms=500, initial="", clock=clock)
        deb.push("cow")
        clock.advance(0.25)
        deb.push("cow")
        clock.advance(0.25)
        assert deb.settled() == "cow"


class TestAnimalSearch:
    def test_blank_term(self, herd, cache):
        assert AnimalSearch(herd, cache).search("   ") == []

    def test_exact_id_match_keeps_stored_casing(self, herd, cache):
        results = AnimalSearch(herd, cache).search("CAT01")
        assert [a.id for a in results] == ["CAT01"]

    def test_type_prefix_fallback(self, herd, cache):
        results = AnimalSearch(herd, cache).search("Cat")
        assert sorted(a.id for a in results) == ["CAT01", "CAT02"]

    def test_prefix_with_spaces_skips_id_lookup(self, herd, cache):
        assert AnimalSearch(herd, cache).search("sheep x") == []

    def test_results_are_cached_by_normalized_term(self, herd, cache):
        search = AnimalSearch(herd, cache)
        first = search.search("goat")
        herd.delete(queries.ANIMALS, "GOA01")
        again = search.search("  GOAT ")
        assert [a.id for a in again] == [a.id for a in first] == ["GOA01"]
        assert "search-goat" in cache

    def test_limit_applies_to_prefix_scan(self, herd, cache):
        assert len(AnimalSearch(herd, cache, limit=1).search("cattle")) == 1


def test_filter_animals_matches_id_type_and_breed():
    herd = [
        Animal(id="CAT01", type="cattle", breed="Angus"),
        Animal(id="GOA01", type="goat", breed="Boer"),
    ]
    assert [a.id for a in filter_animals(herd, "ang")] == ["CAT01"]
    assert [a.id for a in filter_animals(herd, "goa")] == ["GOA01"]
    assert len(filter_animals(herd, "  ")) == 2
