from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Optional, Tuple

ANIMALS = "animals"
EXPENSES = "expenses"
HEALTH_RECORDS = "health_records"
VACCINATIONS = "vaccinations"
INCOME = "income"
USERS = "users"

# upper bound for prefix range scans (highest BMP private-use code point)
PREFIX_END = "\uf8ff"

Filter = Tuple[str, str, Any]


@dataclass(frozen=True)
class Query:
    """Store-agnostic description of a collection read."""

    collection: str
    filters: Tuple[Filter, ...] = field(default_factory=tuple)
    order_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = None

    def where(self, name: str, op: str, value: Any) -> "Query":
        return replace(self, filters=self.filters + ((name, op, value),))

    def with_limit(self, limit: Optional[int]) -> "Query":
        return replace(self, limit=limit)


def q_animals_page(limit: int) -> Query:
    return Query(ANIMALS, order_by="createdAt", descending=True, limit=limit)


def q_all_animals() -> Query:
    return Query(ANIMALS, order_by="createdAt", descending=True)


def q_animals_by_status(status: str) -> Query:
    return Query(ANIMALS).where("status", "==", status)


def q_animal_by_id(animal_id: str) -> Query:
    return Query(ANIMALS, limit=1).where("id", "==", animal_id)


def q_animals_by_type_prefix(prefix: str, limit: int) -> Query:
    return (
        Query(ANIMALS, limit=limit)
        .where("type", ">=", prefix)
        .where("type", "<=", prefix + PREFIX_END)
    )


def q_sold_animals_between(start: datetime, end: datetime) -> Query:
    return (
        Query(ANIMALS)
        .where("status", "==", "sold")
        .where("soldDate", ">=", start)
        .where("soldDate", "<=", end)
    )


def q_expenses_page(limit: Optional[int], start: Optional[datetime] = None, end: Optional[datetime] = None) -> Query:
    q = Query(EXPENSES, order_by="date", descending=True, limit=limit)
    if start is not None and end is not None:
        q = q.where("date", ">=", start).where("date", "<=", end)
    return q


def q_expenses_since(start: datetime) -> Query:
    return Query(EXPENSES, order_by="date", descending=True).where("date", ">=", start)


def q_last_days_expenses(now: datetime, days: int = 7) -> Query:
    return q_expenses_since(now - timedelta(days=days))


def q_related(collection: str, animal_id: str) -> Query:
    """Records in `collection` that point at an animal (health, vaccinations, expenses)."""
    return Query(collection).where("animalId", "==", animal_id)


def q_health_records() -> Query:
    return Query(HEALTH_RECORDS, order_by="date", descending=True)


def q_vaccinations() -> Query:
    return Query(VACCINATIONS, order_by="date", descending=True)


def q_income() -> Query:
    return Query(INCOME, order_by="date", descending=True)


def q_users() -> Query:
    return Query(USERS)
