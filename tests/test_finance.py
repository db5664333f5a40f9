"""Tests for income records and animal sales."""

from datetime import datetime

import pytest

from core.exceptions import NotFoundError, ValidationError
from data import queries
from data.models import Animal, Income

SOLD_AT = datetime(2026, 10, 15, 12, 0)


@pytest.fixture
def herd(animals):
    animals.add(Animal(id="GO001", name="Billy", type="goat"))
    animals.add(Animal(id="GO002", type="goat"))
    animals.add(Animal(id="GO003", type="goat"))
    return animals


class TestSellAnimals:
    def test_splits_price_and_marks_sold(self, herd, finance, store):
        rows = finance.sell_animals(["GO001", "GO002"], 300, payment_method="Bank Transfer")

        batch_id = f"sale-{int(SOLD_AT.timestamp() * 1000)}"
        assert len(rows) == 2
        for income in rows:
            assert income.amount == 150
            assert income.type == "Animal Sale"
            assert income.batch_id == batch_id
            assert income.total_batch_amount == 300
            assert income.animals_in_batch == 2
            assert income.payment_method == "Bank Transfer"
            assert income.status == "completed"

        sold = herd.get("GO001")
        assert sold.status == "sold"
        assert sold.selling_price == 150
        assert sold.sold_date == SOLD_AT
        assert sold.income_id == rows[0].id
        assert store.get(queries.INCOME, rows[0].id)["description"] == "Sale of animal GO001"
        assert herd.get("GO003").status == "active"

    def test_empty_selection(self, finance):
        with pytest.raises(ValidationError):
            finance.sell_animals([], 100)

    @pytest.mark.parametrize("price", [0, -5])
    def test_non_positive_price(self, herd, finance, price):
        with pytest.raises(ValidationError):
            finance.sell_animals(["GO001"], price)

    def test_unknown_animal_writes_nothing(self, herd, finance, store):
        with pytest.raises(NotFoundError):
            finance.sell_animals(["GO001", "ghost"], 100)
        assert store.collection_size(queries.INCOME) == 0
        assert herd.get("GO001").status == "active"


class TestIncome:
    def test_add_list_delete(self, finance):
        added = finance.add_income(Income(type="Milk", amount=80, date=datetime(2026, 10, 1), description="Weekly milk"))
        finance.add_income(Income(type="Eggs", amount=20, date=datetime(2026, 10, 3)))

        listed = finance.income()
        assert [i.type for i in listed] == ["Eggs", "Milk"]

        assert finance.delete_income(added.id) == added.id
        assert [i.type for i in finance.income()] == ["Eggs"]
        with pytest.raises(NotFoundError):
            finance.delete_income(added.id)
