from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from core.exceptions import NotFoundError
from core.logging import get_logger
from data import queries
from data.models import Expense, to_store_fields
from data.pagination import PageResult
from data.store import DocumentStore

logger = get_logger(__name__)


class ExpenseRepository:
    def __init__(self, store: DocumentStore, now: Callable[[], datetime] = datetime.now):
        self.store = store
        self._now = now

    def add(self, expense: Expense) -> Expense:
        now = self._now()
        update: Dict[str, Any] = {"created_at": now, "date": expense.date or now}
        if not expense.animal_related:
            update.update({"animal_id": None, "animal_name": ""})
        expense = expense.model_copy(update=update)
        doc = expense.to_document()
        if not expense.animal_related:
            doc.pop("animalName", None)
        expense_id = self.store.add(queries.EXPENSES, doc)
        logger.info("expense_add", doc_id=expense_id, category=expense.category, amount=expense.amount)
        return expense.model_copy(update={"id": expense_id})

    def get(self, expense_id: str) -> Expense:
        data = self.store.get(queries.EXPENSES, expense_id)
        if data is None:
            raise NotFoundError("Expense", expense_id, collection=queries.EXPENSES)
        return Expense.from_document(expense_id, data)

    def list_page(
        self,
        page: int = 1,
        limit: int = 10,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        cursor: Optional[Any] = None,
    ) -> PageResult[Expense]:
        """
        Newest first, optionally restricted to [start, end].

        Without a cursor, pages after the first are reached by reading the
        preceding (page - 1) * limit documents and continuing after the last.
        """
        base = queries.q_expenses_page(None, start, end)
        total = self.store.count(base)
        total_pages = math.ceil(total / limit) if limit else 0

        start_after = cursor
        if page > 1 and start_after is None:
            previous = self.store.query(base.with_limit((page - 1) * limit))
            start_after = previous.cursor
            if start_after is None:
                return PageResult(items=[], total=total, page=page, limit=limit, total_pages=total_pages)

        result = self.store.query(base.with_limit(limit), start_after=start_after if page > 1 else None)
        expenses = [Expense.from_document(d.id, d.data) for d in result.docs]
        logger.debug("expenses_page", page=page, count=len(expenses), total=total)
        return PageResult(
            items=expenses,
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_more=page < total_pages,
            cursor=result.cursor,
        )

    def all(self) -> List[Expense]:
        page = self.store.query(queries.q_expenses_page(None))
        return [Expense.from_document(d.id, d.data) for d in page.docs]

    def since(self, start: datetime) -> List[Expense]:
        page = self.store.query(queries.q_expenses_since(start))
        return [Expense.from_document(d.id, d.data) for d in page.docs]

    def update(self, expense_id: str, changes: Dict[str, Any]) -> Expense:
        if self.store.get(queries.EXPENSES, expense_id) is None:
            raise NotFoundError("Expense", expense_id, collection=queries.EXPENSES)
        fields = to_store_fields({k: v for k, v in changes.items() if k not in ("id", "created_at")})
        if fields:
            self.store.update(queries.EXPENSES, expense_id, fields)
        logger.info("expense_update", doc_id=expense_id, fields=sorted(fields))
        return self.get(expense_id)

    def delete(self, expense_id: str) -> str:
        if self.store.get(queries.EXPENSES, expense_id) is None:
            raise NotFoundError("Expense", expense_id, collection=queries.EXPENSES)
        self.store.delete(queries.EXPENSES, expense_id)
        logger.info("expense_deleted", doc_id=expense_id)
        return expense_id
