"""Document-store contract shared by the live client and the mock store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Protocol

from data.queries import Query


class Snapshot(NamedTuple):
    id: str
    data: Dict[str, Any]


@dataclass
class Page:
    docs: List[Snapshot] = field(default_factory=list)
    # opaque marker for the last document; pass back as start_after to continue
    cursor: Optional[Any] = None

    def __len__(self) -> int:
        return len(self.docs)


class DocumentStore(Protocol):
    source: str

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]: ...

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None: ...

    def add(self, collection: str, data: Dict[str, Any]) -> str: ...

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None: ...

    def delete(self, collection: str, doc_id: str) -> None: ...

    def query(self, q: Query, start_after: Optional[Any] = None) -> Page: ...

    def count(self, q: Query) -> int: ...
