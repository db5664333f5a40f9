from __future__ import annotations

import copy
import random
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from faker import Faker

from core.exceptions import NotFoundError
from data.queries import ANIMALS, EXPENSES, HEALTH_RECORDS, INCOME, USERS, VACCINATIONS, Query
from data.store import Page, Snapshot


fake = Faker()


ANIMAL_TYPES = {
    "cattle": ["Angus", "Hereford", "Holstein", "Brahman"],
    "goat": ["Boer", "Saanen", "Nubian"],
    "sheep": ["Merino", "Dorper", "Suffolk"],
    "pig": ["Large White", "Duroc", "Landrace"],
    "chicken": ["Rhode Island Red", "Leghorn", "Sussex"],
}
BASE_PRICE = {"cattle": 1200, "goat": 180, "sheep": 150, "pig": 260, "chicken": 12}
BASE_WEIGHT = {"cattle": 450, "goat": 45, "sheep": 55, "pig": 110, "chicken": 2.5}
MONTHLY_COSTS = {"Feed": 900, "Labor": 1400, "Utilities": 220, "Transport": 160, "Maintenance": 140, "Equipment": 300}
CONDITIONS = ["healthy", "sick", "injured", "pregnant"]
TREATMENTS = ["Deworming", "Antibiotics", "Wound dressing", "Vitamin boost", "Routine check"]
VACCINES = ["FMD", "Anthrax", "Brucellosis", "Newcastle", "PPR", "Clostridial"]

DEMO_USERS = [
    {"uid": "admin123", "email": "admin@example.com", "role": "admin", "name": "Admin User"},
    {"uid": "user123", "email": "user@example.com", "role": "user", "name": "Regular User"},
]


_MISSING = object()


def _field(data: Dict[str, Any], name: str) -> Any:
    return data.get(name, _MISSING)


def _matches(data: Dict[str, Any], name: str, op: str, value: Any) -> bool:
    actual = _field(data, name)
    if actual is _MISSING:
        return False
    try:
        if op == "==":
            return actual == value
        if op == "!=":
            return actual != value
        if op == "in":
            return actual in value
        if op == "array-contains":
            return value in (actual or [])
        if actual is None:
            return False
        if op == ">=":
            return actual >= value
        if op == "<=":
            return actual <= value
        if op == ">":
            return actual > value
        if op == "<":
            return actual < value
    except TypeError:
        # mixed types never match, same as the hosted store
        return False
    raise ValueError(f"Unsupported filter operator: {op}")


@dataclass(frozen=True)
class MemoryCursor:
    doc_id: str
    order_value: Any


class MemoryStore:
    """
    In-memory stand-in for the hosted document store.

    Mirrors the parts of its query contract the app relies on: equality and
    range filters, a single order_by (documents missing that field are
    skipped), start_after cursors, limit and count.
    """

    source = "mock"

    def __init__(self, id_factory: Optional[Callable[[], str]] = None):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex[:20])

    def _col(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        data = self._col(collection).get(doc_id)
        return copy.deepcopy(data) if data is not None else None

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._col(collection)[doc_id] = copy.deepcopy(data)

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = self._id_factory()
        self.set(collection, doc_id, data)
        return doc_id

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        col = self._col(collection)
        if doc_id not in col:
            raise NotFoundError("Document", doc_id, collection=collection)
        col[doc_id].update(copy.deepcopy(data))

    def delete(self, collection: str, doc_id: str) -> None:
        self._col(collection).pop(doc_id, None)

    def _select(self, q: Query) -> List[Snapshot]:
        rows = [
            Snapshot(doc_id, data)
            for doc_id, data in self._col(q.collection).items()
            if all(_matches(data, name, op, value) for name, op, value in q.filters)
        ]
        if q.order_by:
            rows = [r for r in rows if r.data.get(q.order_by) is not None]
            rows.sort(key=lambda r: (r.data[q.order_by], r.id), reverse=q.descending)
        return rows

    def query(self, q: Query, start_after: Optional[Any] = None) -> Page:
        rows = self._select(q)
        if isinstance(start_after, MemoryCursor):
            ids = [r.id for r in rows]
            if start_after.doc_id in ids:
                rows = rows[ids.index(start_after.doc_id) + 1:]
            elif q.order_by:
                # cursor document was deleted; continue from its ordering value
                if q.descending:
                    rows = [r for r in rows if r.data[q.order_by] < start_after.order_value]
                else:
                    rows = [r for r in rows if r.data[q.order_by] > start_after.order_value]
        if q.limit:
            rows = rows[: q.limit]
        docs = [Snapshot(r.id, copy.deepcopy(r.data)) for r in rows]
        cursor = None
        if docs:
            last = docs[-1]
            cursor = MemoryCursor(last.id, last.data.get(q.order_by) if q.order_by else None)
        return Page(docs=docs, cursor=cursor)

    def count(self, q: Query) -> int:
        return len(self._select(q))

    def collection_size(self, collection: str) -> int:
        return len(self._col(collection))


def _months_back(today: date, n: int) -> List[date]:
    firsts = []
    y, m = today.year, today.month
    for _ in range(n):
        firsts.append(date(y, m, 1))
        m -= 1
        if m == 0:
            y, m = y - 1, 12
    return firsts[::-1]


def _at(d: date, hour: int = 9) -> datetime:
    return datetime(d.year, d.month, d.day, hour, 0)


def seed_store(store: MemoryStore, today: Optional[date] = None, n_animals: int = 60, n_months: int = 12) -> MemoryStore:
    """Fill a store with a believable farm: herd, running costs, vet work and sales."""
    random.seed(7)
    Faker.seed(7)
    today = today or date.today()

    for u in DEMO_USERS:
        store.set(USERS, u["uid"], {"email": u["email"], "role": u["role"], "name": u["name"]})

    animals = []
    for i in range(n_animals):
        kind = random.choice(list(ANIMAL_TYPES))
        breed = random.choice(ANIMAL_TYPES[kind])
        purchased = today - timedelta(days=random.randint(20, 30 * n_months))
        price = round(BASE_PRICE[kind] * random.uniform(0.8, 1.3), 2)
        animal_id = f"{kind[:2].upper()}{i + 1:03d}"
        doc = {
            "id": animal_id,
            "name": fake.first_name(),
            "type": kind,
            "breed": breed,
            "age": round(random.uniform(0.5, 8.0), 1),
            "health": random.choice(["Good", "Good", "Good", "Fair", "Poor"]),
            "purchaseDate": _at(purchased),
            "purchasePrice": price,
            "weight": round(BASE_WEIGHT[kind] * random.uniform(0.7, 1.2), 1),
            "gender": random.choice(["male", "female"]),
            "status": "active",
            "isVaccinated": random.random() < 0.6,
            "description": fake.sentence(nb_words=8),
            "createdAt": _at(purchased, hour=10) + timedelta(minutes=i),
        }
        expense_id = store.add(EXPENSES, {
            "category": "Animal Purchase",
            "amount": price,
            "date": _at(purchased),
            "description": f"Purchase of {kind} ({breed})",
            "paymentMethod": "Cash",
            "animalRelated": True,
            "animalId": animal_id,
            "animalName": doc["name"],
            "createdAt": _at(purchased, hour=10),
        })
        doc["expenseId"] = expense_id
        animals.append(doc)

    # a handful sold (some this month so the dashboard has income) and a few deceased
    for doc in random.sample(animals, k=max(1, n_animals // 6)):
        sold_on = today - timedelta(days=random.randint(0, 90))
        if sold_on < doc["purchaseDate"].date():
            sold_on = today
        selling = round(doc["purchasePrice"] * random.uniform(1.1, 1.6), 2)
        income_id = store.add(INCOME, {
            "type": "Animal Sale",
            "amount": selling,
            "date": _at(sold_on, hour=14),
            "description": f"Sale of animal {doc['id']}",
            "paymentMethod": random.choice(["Cash", "Bank Transfer"]),
            "animalRelated": True,
            "animalId": doc["id"],
            "status": "completed",
            "batchId": f"sale-{fake.random_int(100000, 999999)}",
            "totalBatchAmount": selling,
            "animalsInBatch": 1,
            "createdAt": _at(sold_on, hour=14),
        })
        doc.update({"status": "sold", "sellingPrice": selling, "soldDate": _at(sold_on, hour=14), "incomeId": income_id})
    for doc in random.sample([a for a in animals if a["status"] == "active"], k=max(1, n_animals // 20)):
        doc["status"] = "deceased"

    for doc in animals:
        store.set(ANIMALS, doc["id"], doc)

    # running costs: a few entries per category per month, plus something today
    for first in _months_back(today, n_months):
        for category, base in MONTHLY_COSTS.items():
            for _ in range(random.randint(1, 3)):
                day = first + timedelta(days=random.randint(0, 27))
                if day > today:
                    day = today
                store.add(EXPENSES, {
                    "category": category,
                    "amount": round(base / 2 * random.uniform(0.6, 1.4), 2),
                    "date": _at(day, hour=random.randint(7, 17)),
                    "description": f"{category} - {fake.word()}",
                    "paymentMethod": random.choice(["Cash", "Bank Transfer", "Card"]),
                    "animalRelated": False,
                    "createdAt": _at(day, hour=18),
                })
    store.add(EXPENSES, {
        "category": "Feed",
        "amount": 85.0,
        "date": _at(today, hour=8),
        "description": "Hay bales",
        "paymentMethod": "Cash",
        "animalRelated": False,
        "createdAt": _at(today, hour=8),
    })

    live = [a for a in animals if a["status"] == "active"]
    for _ in range(min(40, len(live) * 2)):
        a = random.choice(live)
        when = today - timedelta(days=random.randint(0, 180))
        store.add(HEALTH_RECORDS, {
            "animalId": a["id"],
            "animalName": a["name"],
            "animalType": a["type"],
            "condition": random.choice(CONDITIONS),
            "treatment": random.choice(TREATMENTS),
            "status": random.choice(["ongoing", "resolved"]),
            "date": _at(when),
            "cost": round(random.uniform(10, 120), 2),
            "notes": fake.sentence(nb_words=6),
            "createdAt": _at(when, hour=11),
        })
    for _ in range(min(30, len(live))):
        a = random.choice(live)
        when = today - timedelta(days=random.randint(0, 200))
        store.add(VACCINATIONS, {
            "animalId": a["id"],
            "animalName": a["name"],
            "vaccineName": random.choice(VACCINES),
            "date": _at(when),
            "nextDueDate": _at(when + timedelta(days=random.choice([90, 180, 365]))),
            "administered": True,
            "notes": "",
            "createdAt": _at(when, hour=12),
        })
    return store


def mock_store(today: Optional[date] = None) -> MemoryStore:
    return seed_store(MemoryStore(), today=today)
