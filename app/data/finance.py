from __future__ import annotations

from datetime import datetime
from typing import Callable, List

from core.exceptions import NotFoundError, ValidationError
from core.logging import get_logger
from data import queries
from data.models import Animal, Income
from data.store import DocumentStore

logger = get_logger(__name__)


class FinanceRepository:
    def __init__(self, store: DocumentStore, now: Callable[[], datetime] = datetime.now):
        self.store = store
        self._now = now

    def income(self) -> List[Income]:
        page = self.store.query(queries.q_income())
        return [Income.from_document(d.id, d.data) for d in page.docs]

    def add_income(self, income: Income) -> Income:
        now = self._now()
        income = income.model_copy(update={"created_at": now, "date": income.date or now})
        income_id = self.store.add(queries.INCOME, income.to_document())
        logger.info("income_add", doc_id=income_id, type=income.type, amount=income.amount)
        return income.model_copy(update={"id": income_id})

    def delete_income(self, income_id: str) -> str:
        if self.store.get(queries.INCOME, income_id) is None:
            raise NotFoundError("Income record", income_id, collection=queries.INCOME)
        self.store.delete(queries.INCOME, income_id)
        logger.info("income_deleted", doc_id=income_id)
        return income_id

    def sell_animals(self, animal_ids: List[str], total_price: float, payment_method: str = "Cash") -> List[Income]:
        """
        Sell a batch of animals for one total price.

        The price is split evenly; every animal gets its own income record
        carrying the shared batch id, and is marked sold. All animals are
        checked to exist before anything is written.
        """
        if not animal_ids:
            raise ValidationError("No animals selected", errors={"selected_animals": "Select at least one animal"})
        if total_price is None or total_price <= 0:
            raise ValidationError("Invalid selling price", errors={"total_price": "Total price must be greater than 0"})

        animals: List[Animal] = []
        for animal_id in animal_ids:
            data = self.store.get(queries.ANIMALS, animal_id)
            if data is None:
                raise NotFoundError("Animal", animal_id, collection=queries.ANIMALS)
            animals.append(Animal.from_document(animal_id, data))

        sold_at = self._now()
        batch_id = f"sale-{int(sold_at.timestamp() * 1000)}"
        each = total_price / len(animals)
        created: List[Income] = []
        for animal in animals:
            income = Income(
                type="Animal Sale",
                amount=each,
                date=sold_at,
                description=f"Sale of animal {animal.id}",
                payment_method=payment_method,
                animal_related=True,
                animal_id=animal.id,
                animal_name=animal.name or None,
                status="completed",
                batch_id=batch_id,
                total_batch_amount=total_price,
                animals_in_batch=len(animals),
                created_at=sold_at,
            )
            income_id = self.store.add(queries.INCOME, income.to_document())
            self.store.update(queries.ANIMALS, animal.id, {
                "status": "sold",
                "sellingPrice": each,
                "soldDate": sold_at,
                "incomeId": income_id,
            })
            created.append(income.model_copy(update={"id": income_id}))
        logger.info("animals_sold", batch_id=batch_id, count=len(created), total=total_price)
        return created
