from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from core.exceptions import NotFoundError, ValidationError
from core.logging import get_logger
from data import queries
from data.models import Animal, Expense, to_store_fields
from data.pagination import PageResult
from data.search import filter_animals
from data.store import DocumentStore

logger = get_logger(__name__)

# collections whose documents carry an animalId
RELATED = (queries.HEALTH_RECORDS, queries.VACCINATIONS, queries.EXPENSES)
BULK_STATUSES = ("active", "deceased")


class AnimalRepository:
    def __init__(self, store: DocumentStore, now: Callable[[], datetime] = datetime.now):
        self.store = store
        self._now = now

    def get(self, animal_id: str) -> Animal:
        data = self.store.get(queries.ANIMALS, animal_id)
        if data is None:
            raise NotFoundError("Animal", animal_id, collection=queries.ANIMALS)
        return Animal.from_document(animal_id, data)

    def exists(self, animal_id: str) -> bool:
        return self.store.get(queries.ANIMALS, animal_id) is not None

    def add(self, animal: Animal) -> Animal:
        """
        Create an animal under its own tag id.

        A purchase price above zero also books an "Animal Purchase" expense and
        links it back through `expenseId`.
        """
        animal_id = animal.id.strip()
        if not animal_id:
            raise ValidationError("Animal ID cannot be empty", errors={"id": "Animal ID is required"})
        if self.exists(animal_id):
            raise ValidationError(
                f"Animal with ID {animal_id} already exists",
                errors={"id": "An animal with this ID already exists"},
            )

        now = self._now()
        animal = animal.model_copy(update={
            "id": animal_id,
            "created_at": now,
            "status": animal.status or "active",
            "health": animal.health or "Good",
        })
        logger.info("animal_add", doc_id=animal_id, type=animal.type)
        self.store.set(queries.ANIMALS, animal_id, animal.to_document())

        if animal.purchase_price and animal.purchase_price > 0:
            expense = Expense(
                category="Animal Purchase",
                amount=animal.purchase_price,
                date=animal.purchase_date or now,
                description=f"Purchase of {animal.type or 'Animal'} ({animal.breed or 'Unknown Breed'})",
                payment_method="Cash",
                animal_related=True,
                animal_id=animal_id,
                animal_name=animal.name or animal_id,
                created_at=now,
            )
            expense_id = self.store.add(queries.EXPENSES, expense.to_document())
            self.store.update(queries.ANIMALS, animal_id, {"expenseId": expense_id})
            animal = animal.model_copy(update={"expense_id": expense_id})
            logger.info("purchase_expense_created", doc_id=animal_id, expense_id=expense_id)
        return animal

    def list_page(self, page: int = 1, limit: int = 20, search: str = "", cursor: Optional[Any] = None) -> PageResult[Animal]:
        """Newest first; the total is only counted on the first page."""
        total = self.store.count(queries.q_all_animals()) if page == 1 else 0
        start_after = cursor if page > 1 else None
        result = self.store.query(queries.q_animals_page(limit), start_after=start_after)
        animals = [Animal.from_document(d.id, d.data) for d in result.docs]
        if search:
            animals = filter_animals(animals, search)
        has_more = len(result.docs) == limit
        logger.debug("animals_page", page=page, count=len(animals), has_more=has_more)
        return PageResult(
            items=animals,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if page == 1 else 0,
            has_more=has_more,
            cursor=result.cursor,
        )

    def all(self) -> List[Animal]:
        page = self.store.query(queries.q_all_animals())
        return [Animal.from_document(d.id, d.data) for d in page.docs]

    def by_status(self, status: str) -> List[Animal]:
        page = self.store.query(queries.q_animals_by_status(status))
        return [Animal.from_document(d.id, d.data) for d in page.docs]

    def active(self) -> List[Animal]:
        return self.by_status("active")

    def update(self, animal_id: str, changes: Dict[str, Any]) -> Animal:
        """
        Merge `changes` (snake_case) into an animal.

        Changing the id moves the document: the new one is written, the old
        one deleted, and related records are re-pointed at the new id.
        """
        current = self.store.get(queries.ANIMALS, animal_id)
        if current is None:
            raise NotFoundError("Animal", animal_id, collection=queries.ANIMALS)

        fields = to_store_fields({k: v for k, v in changes.items() if k not in ("created_at",)})
        new_id = str(fields.get("id") or animal_id).strip()

        if new_id == animal_id:
            fields.pop("id", None)
            if fields:
                self.store.update(queries.ANIMALS, animal_id, fields)
            logger.info("animal_update", doc_id=animal_id, fields=sorted(fields))
            return self.get(animal_id)

        if self.exists(new_id):
            raise ValidationError(
                f"Animal with ID {new_id} already exists",
                errors={"id": "An animal with this ID already exists"},
            )
        merged = {**current, **fields, "id": new_id, "createdAt": self._now()}
        self.store.set(queries.ANIMALS, new_id, merged)
        self.store.delete(queries.ANIMALS, animal_id)
        moved = 0
        for collection in RELATED:
            for doc in self.store.query(queries.q_related(collection, animal_id)).docs:
                self.store.update(collection, doc.id, {"animalId": new_id})
                moved += 1
        logger.info("animal_renamed", doc_id=animal_id, new_id=new_id, related=moved)
        return self.get(new_id)

    def delete(self, animal_id: str) -> str:
        """Delete an animal together with its health records, vaccinations and expenses."""
        if not self.exists(animal_id):
            raise NotFoundError("Animal", animal_id, collection=queries.ANIMALS)
        for collection in RELATED:
            docs = self.store.query(queries.q_related(collection, animal_id)).docs
            for doc in docs:
                self.store.delete(collection, doc.id)
            if docs:
                logger.info("related_deleted", doc_id=animal_id, collection=collection, count=len(docs))
        self.store.delete(queries.ANIMALS, animal_id)
        logger.info("animal_deleted", doc_id=animal_id)
        return animal_id

    def bulk_delete(self, ids: List[str]) -> List[str]:
        return [self.delete(animal_id) for animal_id in ids]

    def bulk_status(self, ids: List[str], status: str) -> int:
        if status not in BULK_STATUSES:
            raise ValidationError(f"Unsupported status {status!r}", errors={"status": "must be active or deceased"})
        now = self._now()
        for animal_id in ids:
            self.update(animal_id, {"status": status, "updated_at": now})
        logger.info("animal_bulk_status", count=len(ids), status=status)
        return len(ids)
