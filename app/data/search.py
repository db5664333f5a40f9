from __future__ import annotations

import re
import time
from typing import Callable, Generic, Iterable, List, Optional, TypeVar

from core.logging import get_logger
from data import queries
from data.cache import CacheService, search_key
from data.models import Animal
from data.store import DocumentStore

logger = get_logger(__name__)

T = TypeVar("T")

_ID_LIKE = re.compile(r"^[a-zA-Z0-9]+$")


class Debouncer(Generic[T]):
    """
    Holds back a rapidly changing value until it has been quiet for `delay_ms`.

    Streamlit reruns the page on every keystroke-commit; the page pushes the
    raw input and only searches with `settled()`.
    """

    def __init__(self, delay_ms: int = 300, initial: Optional[T] = None, clock: Callable[[], float] = time.monotonic):
        self.delay = delay_ms / 1000.0
        self._clock = clock
        self._pending: Optional[T] = initial
        self._pending_since = clock()
        self._settled: Optional[T] = initial

    def push(self, value: T) -> None:
        if value != self._pending:
            self._pending = value
            self._pending_since = self._clock()

    def settled(self) -> Optional[T]:
        if self._pending != self._settled and self._clock() - self._pending_since >= self.delay:
            self._settled = self._pending
        return self._settled

    @property
    def is_pending(self) -> bool:
        return self._pending != self._settled

    def remaining(self) -> float:
        """Seconds left before the pending value settles (0 when nothing is pending)."""
        if not self.is_pending:
            return 0.0
        return max(0.0, self.delay - (self._clock() - self._pending_since))


def filter_animals(animals: Iterable[Animal], term: str) -> List[Animal]:
    """In-page filter on id, type and breed (case-insensitive substring)."""
    needle = term.lower().strip()
    if not needle:
        return list(animals)
    return [
        a for a in animals
        if needle in a.id.lower() or needle in a.type.lower() or needle in a.breed.lower()
    ]


class AnimalSearch:
    def __init__(self, store: DocumentStore, cache: CacheService, limit: int = 20):
        self.store = store
        self.cache = cache
        self.limit = limit

    def search(self, term: str) -> List[Animal]:
        """
        Exact id match first (for id-looking terms), otherwise a type prefix scan.

        Results are cached per normalized term.
        """
        needle = term.lower().strip()
        if not needle:
            return []

        key = search_key(needle)
        cached = self.cache.get(key)
        if cached is not None:
            return cached.data

        results: List[Animal] = []
        if _ID_LIKE.match(needle):
            page = self.store.query(queries.q_animal_by_id(needle))
            if not page.docs and needle != term.strip():
                # ids are stored as entered; retry with the original casing
                page = self.store.query(queries.q_animal_by_id(term.strip()))
            results = [Animal.from_document(d.id, d.data) for d in page.docs]

        if not results:
            page = self.store.query(queries.q_animals_by_type_prefix(needle, self.limit))
            results = [Animal.from_document(d.id, d.data) for d in page.docs]

        logger.info("animal_search", term=needle, count=len(results))
        self.cache.set(key, results)
        return results
