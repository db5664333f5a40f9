"""Tests for view models and form validation."""

from datetime import date, datetime, timezone

import pytest

from core.exceptions import ValidationError
from data.models import (
    Animal,
    AnimalEditForm,
    AnimalForm,
    BatchVaccinationForm,
    Expense,
    HealthRecordForm,
    SaleForm,
    User,
    to_datetime,
    to_store_fields,
    validate_form,
)

VALID_ANIMAL = {
    "id": "CA100",
    "type": "cattle",
    "gender": "female",
    "purchase_price": 950,
}


class TestValidateForm:
    def test_valid_animal(self):
        form = validate_form(AnimalForm, {**VALID_ANIMAL, "name": "  Daisy ", "purchase_date": date(2026, 3, 1)})
        assert form.name == "Daisy"
        assert form.status == "active"
        assert form.purchase_date == date(2026, 3, 1)

    def test_missing_required_fields(self):
        with pytest.raises(ValidationError) as exc:
            validate_form(AnimalForm, {})
        errors = exc.value.errors
        assert errors["id"] == "Id is required"
        assert errors["type"] == "Type is required"
        assert errors["gender"] == "Gender is required"
        assert errors["purchase_price"] == "Purchase price is required"

    def test_blank_strings_count_as_empty(self):
        with pytest.raises(ValidationError) as exc:
            validate_form(AnimalForm, {**VALID_ANIMAL, "id": "   ", "type": ""})
        assert set(exc.value.errors) == {"id", "type"}

    def test_short_name(self):
        with pytest.raises(ValidationError) as exc:
            validate_form(AnimalForm, {**VALID_ANIMAL, "name": "D"})
        assert exc.value.errors == {"name": "Name must be at least 2 characters"}

    def test_numeric_bounds(self):
        with pytest.raises(ValidationError) as exc:
            validate_form(AnimalForm, {**VALID_ANIMAL, "age": -1, "purchase_price": 0})
        assert exc.value.errors["age"] == "Age must be a positive number"
        assert exc.value.errors["purchase_price"] == "Purchase price must be greater than 0"

    def test_edit_accepts_zero_price(self):
        form = validate_form(AnimalEditForm, {**VALID_ANIMAL, "purchase_price": 0})
        assert form.purchase_price == 0
        with pytest.raises(ValidationError) as exc:
            validate_form(AnimalEditForm, {**VALID_ANIMAL, "purchase_price": -5, "name": "D"})
        assert set(exc.value.errors) == {"purchase_price", "name"}

    def test_condition_must_be_known(self):
        values = {"animal_id": "CA1", "condition": "grumpy", "status": "ongoing",
                  "date": date(2026, 1, 1), "treatment": "Rest"}
        with pytest.raises(ValidationError) as exc:
            validate_form(HealthRecordForm, values)
        assert exc.value.errors == {"condition": "Condition has an unsupported value"}

    def test_batch_needs_an_animal(self):
        values = {"vaccine_name": "FMD", "date": date(2026, 1, 1), "next_due_date": date(2026, 7, 1),
                  "selected_animals": []}
        with pytest.raises(ValidationError) as exc:
            validate_form(BatchVaccinationForm, values)
        assert exc.value.errors["selected_animals"] == "Selected animals must include at least one item"

    def test_sale_price_positive(self):
        with pytest.raises(ValidationError) as exc:
            validate_form(SaleForm, {"selected_animals": ["CA1"], "total_price": 0})
        assert "total_price" in exc.value.errors


class TestDocuments:
    def test_animal_from_document_defaults_and_coercion(self):
        animal = Animal.from_document("CA1", {
            "type": "cattle",
            "purchaseDate": "2026-02-03T10:00:00",
            "isVaccinated": "yes",
            "breed": None,
            "unknownField": 1,
        })
        assert animal.id == "CA1"
        assert animal.purchase_date == datetime(2026, 2, 3, 10, 0)
        assert animal.is_vaccinated is True
        assert animal.breed == ""
        assert animal.health == "Good"
        assert animal.status == "active"
        assert animal.display_name == "CA1"

    def test_animal_document_keeps_id_field(self):
        doc = Animal(id="CA1", type="cattle", purchase_price=10).to_document()
        assert doc["id"] == "CA1"
        assert doc["purchasePrice"] == 10
        assert "soldDate" not in doc

    def test_expense_document_drops_id(self):
        doc = Expense(id="x", category="Feed", amount=5, animal_related=False).to_document()
        assert "id" not in doc
        assert doc["animalRelated"] is False
        assert doc["paymentMethod"] == ""

    def test_user_role(self):
        assert User.from_document("u1", {"role": "ADMIN"}).is_admin
        assert User.from_document("u2", {"role": "owner"}).role == "user"
        assert User.from_document("u3", {}).role == "user"


class TestToDatetime:
    def test_variants(self):
        assert to_datetime(None) is None
        assert to_datetime("") is None
        assert to_datetime("not a date") is None
        assert to_datetime(42) is None
        assert to_datetime(date(2026, 1, 2)) == datetime(2026, 1, 2)
        naive = datetime(2026, 1, 2, 3, 4)
        assert to_datetime(naive) is naive

    def test_aware_becomes_naive_local(self):
        aware = datetime(2026, 1, 2, 12, 0, tzinfo=timezone.utc)
        result = to_datetime(aware)
        assert result.tzinfo is None
        assert result == aware.astimezone().replace(tzinfo=None)

    def test_zulu_strings(self):
        result = to_datetime("2026-01-02T12:00:00Z")
        assert result == datetime(2026, 1, 2, 12, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)


def test_to_store_fields():
    fields = to_store_fields({"purchase_price": 5, "purchase_date": date(2026, 1, 2), "id": "X"})
    assert fields == {"purchasePrice": 5, "purchaseDate": datetime(2026, 1, 2), "id": "X"}
