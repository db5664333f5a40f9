"""
Client-side read cache.

Entries expire after `max_age` seconds so a page never shows data staler than
that. When full, the entry with the lowest value is evicted, where value falls
with age and payload size and rises with hits:

    score = (age * size) / (access_count + 1)      # highest score goes first
"""

from __future__ import annotations

import dataclasses
import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class EntryMetadata:
    last_accessed: float
    access_count: int = 0
    size: int = 0


@dataclass
class CacheEntry(Generic[T]):
    data: T
    timestamp: float
    version: int
    cursor: Optional[Any] = None
    metadata: EntryMetadata = field(default_factory=lambda: EntryMetadata(last_accessed=0.0))


@dataclass(frozen=True)
class CacheStats:
    size: int
    hit_count: int
    miss_count: int
    oldest_entry: Optional[float]
    newest_entry: Optional[float]

    @property
    def hit_rate(self) -> float:
        total = self.hit_count + self.miss_count
        return self.hit_count / total if total else 0.0


def payload_size(data: Any) -> int:
    """Serialized byte length of a payload; 0 when it can't be serialized."""
    try:
        return len(json.dumps(data, default=_encode).encode("utf-8"))
    except (TypeError, ValueError):
        return 0


def _encode(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        # shallow, so nested models and dates still come through here; opaque fields (cursors) are skipped
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj) if f.metadata.get("sized", True)}
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    raise TypeError(f"not serializable: {type(obj).__name__}")


class CacheService:
    def __init__(
        self,
        max_size: int = 1000,
        max_age: float = 300.0,
        version: int = 1,
        warmup_threshold: int = 3,
        clock: Callable[[], float] = time.time,
    ):
        self.max_size = max_size
        self.max_age = max_age
        self.version = version
        self.warmup_threshold = warmup_threshold
        self._clock = clock
        self._entries: Dict[str, CacheEntry[Any]] = {}
        self._access_stats: Dict[str, int] = {}
        self._misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.peek(key) is not None

    def set(self, key: str, data: Any, cursor: Optional[Any] = None) -> None:
        now = self._clock()
        if key not in self._entries and len(self._entries) >= self.max_size:
            self._evict_least_valuable()
        self._entries[key] = CacheEntry(
            data=data,
            timestamp=now,
            version=self.version,
            cursor=cursor,
            metadata=EntryMetadata(last_accessed=now, access_count=0, size=payload_size(data)),
        )

    def get(self, key: str) -> Optional[CacheEntry[Any]]:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        if self._is_expired(entry):
            self._drop(key)
            self._misses += 1
            logger.debug("cache_expired", cache_key=key)
            return None
        self._access_stats[key] = self._access_stats.get(key, 0) + 1
        entry.metadata.last_accessed = self._clock()
        entry.metadata.access_count += 1
        return entry

    def peek(self, key: str) -> Optional[CacheEntry[Any]]:
        """Like get() but leaves hit/miss statistics untouched."""
        entry = self._entries.get(key)
        if entry is None or self._is_expired(entry):
            return None
        return entry

    def warmup(self, key: str, fetch: Callable[[], Any]) -> bool:
        """
        Refetch a frequently accessed key ahead of time.

        Only keys read at least `warmup_threshold` times qualify. Warmup is
        best-effort: a failing fetch is logged and the cache stays as it was.
        """
        if self._access_stats.get(key, 0) < self.warmup_threshold:
            return False
        try:
            data = fetch()
        except Exception as e:  # noqa: BLE001 - never let a prefetch break a page load
            logger.warning("cache_warmup_failed", cache_key=key, error=str(e))
            return False
        self.set(key, data)
        return True

    def invalidate_pattern(self, pattern: str) -> int:
        doomed = [k for k in self._entries if pattern in k]
        for k in doomed:
            self._drop(k)
        if doomed:
            logger.debug("cache_invalidated", pattern=pattern, count=len(doomed))
        return len(doomed)

    def invalidate_by_version(self, version: int) -> int:
        doomed = [k for k, e in self._entries.items() if e.version < version]
        for k in doomed:
            self._drop(k)
        return len(doomed)

    def bump_version(self) -> int:
        """Start a new cache generation and drop everything from older ones."""
        self.version += 1
        self.invalidate_by_version(self.version)
        return self.version

    def clear(self) -> None:
        self._entries.clear()
        self._access_stats.clear()
        self._misses = 0

    def stats(self) -> CacheStats:
        stamps = [e.timestamp for e in self._entries.values()]
        return CacheStats(
            size=len(self._entries),
            hit_count=sum(self._access_stats.values()),
            miss_count=self._misses,
            oldest_entry=min(stamps) if stamps else None,
            newest_entry=max(stamps) if stamps else None,
        )

    def _drop(self, key: str) -> None:
        # hit counts live only as long as the entry, so stats() describes what is cached now
        self._entries.pop(key, None)
        self._access_stats.pop(key, None)

    def _is_expired(self, entry: CacheEntry[Any]) -> bool:
        return self._clock() - entry.timestamp > self.max_age

    def _score(self, entry: CacheEntry[Any]) -> float:
        age = self._clock() - entry.timestamp
        return (age * entry.metadata.size) / (entry.metadata.access_count + 1)

    def _evict_least_valuable(self) -> None:
        victim: Optional[str] = None
        highest = -1.0
        # dicts iterate in insertion order, so ties fall on the oldest insert
        for key, entry in self._entries.items():
            score = self._score(entry)
            if score > highest:
                highest = score
                victim = key
        if victim is not None:
            self._drop(victim)
            logger.debug("cache_evicted", cache_key=victim, score=highest)


def animals_key(page: int, search: str = "", sort_key: str = "createdAt", sort_dir: str = "desc") -> str:
    return f"animals-{page}-{search}-{sort_key}-{sort_dir}"


def search_key(term: str) -> str:
    return f"search-{term.lower().strip()}"


def expenses_key(page: int, start: Optional[Any] = None, end: Optional[Any] = None) -> str:
    span = f"{start:%Y%m%d}-{end:%Y%m%d}" if start is not None and end is not None else "all"
    return f"expenses-{page}-{span}"
