"""
View models and form schemas.

Stored documents use the hosted service's camelCase field names; the models
expose snake_case attributes and read/write the camelCase aliases. Reads only
default optional fields for display, nothing else is enforced here.
"""

from __future__ import annotations

import datetime as dt
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator
from pydantic.alias_generators import to_camel

from core.exceptions import ValidationError

ANIMAL_STATUSES = ("active", "sold", "deceased")
HEALTH_CONDITIONS = ("healthy", "sick", "injured", "pregnant")
PAYMENT_METHODS = ("Cash", "Bank Transfer", "Card", "Mobile Money", "Cheque")
EXPENSE_CATEGORIES = (
    "Feed",
    "Veterinary",
    "Animal Purchase",
    "Labor",
    "Equipment",
    "Utilities",
    "Transport",
    "Maintenance",
    "Other",
)


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Normalize a stored date to a naive local datetime.

    The live store returns timezone-aware timestamps, the mock store and form
    inputs give naive datetimes, dates or ISO strings. Anything unparseable is
    treated as missing.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, dt.date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return to_datetime(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


class Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = ""
    created_at: Optional[datetime] = None

    # whether the doc id is also written as a field of the stored document
    id_in_document: ClassVar[bool] = False

    @field_validator("created_at", mode="before")
    @classmethod
    def _coerce_created(cls, v: Any) -> Optional[datetime]:
        return to_datetime(v)

    @classmethod
    def from_document(cls: Type[D], doc_id: str, data: Dict[str, Any]) -> D:
        payload = dict(data or {})
        payload["id"] = doc_id
        return cls.model_validate(payload)

    def to_document(self) -> Dict[str, Any]:
        exclude = None if self.id_in_document else {"id"}
        return self.model_dump(by_alias=True, exclude=exclude, exclude_none=True)


D = TypeVar("D", bound=Document)


class Animal(Document):
    name: str = ""
    type: str = ""
    breed: str = ""
    age: float = 0
    health: str = "Good"
    purchase_date: Optional[datetime] = None
    purchase_price: float = 0
    weight: float = 0
    gender: str = ""
    status: str = "active"
    description: Optional[str] = None
    image_url: Optional[str] = None
    photo_url: Optional[str] = None
    is_vaccinated: bool = False
    selling_price: Optional[float] = None
    sold_date: Optional[datetime] = None
    expense_id: Optional[str] = None
    income_id: Optional[str] = None
    updated_at: Optional[datetime] = None

    # exact-id search queries the `id` field, so it is stored on the document too
    id_in_document: ClassVar[bool] = True

    @field_validator("purchase_date", "sold_date", "updated_at", mode="before")
    @classmethod
    def _coerce_dates(cls, v: Any) -> Optional[datetime]:
        return to_datetime(v)

    @field_validator("is_vaccinated", mode="before")
    @classmethod
    def _coerce_vaccinated(cls, v: Any) -> bool:
        if isinstance(v, str):
            return v.strip().lower() in ("true", "yes", "1", "vaccinated")
        return bool(v)

    @field_validator("name", "type", "breed", "health", "gender", "status", mode="before")
    @classmethod
    def _none_to_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def display_name(self) -> str:
        return self.name or self.id


class Expense(Document):
    category: str = ""
    amount: float = 0
    date: Optional[datetime] = None
    description: str = ""
    payment_method: str = ""
    animal_related: bool = False
    animal_id: Optional[str] = None
    animal_name: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, v: Any) -> Optional[datetime]:
        return to_datetime(v)

    @field_validator("category", "description", "payment_method", "animal_name", mode="before")
    @classmethod
    def _none_to_blank(cls, v: Any) -> Any:
        return "" if v is None else v


class HealthRecord(Document):
    animal_id: str = ""
    animal_name: str = ""
    animal_type: str = ""
    condition: str = ""
    treatment: str = ""
    status: str = ""
    date: Optional[datetime] = None
    cost: float = 0
    notes: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, v: Any) -> Optional[datetime]:
        return to_datetime(v)


class Vaccination(Document):
    animal_id: str = ""
    animal_name: str = ""
    vaccine_name: str = ""
    date: Optional[datetime] = None
    next_due_date: Optional[datetime] = None
    administered: bool = False
    notes: str = ""

    @field_validator("date", "next_due_date", mode="before")
    @classmethod
    def _coerce_dates(cls, v: Any) -> Optional[datetime]:
        return to_datetime(v)


class Income(Document):
    type: str = "Other"
    amount: float = 0
    date: Optional[datetime] = None
    description: str = ""
    payment_method: str = "Cash"
    animal_related: bool = False
    animal_id: Optional[str] = None
    animal_name: Optional[str] = None
    status: str = "completed"
    batch_id: Optional[str] = None
    total_batch_amount: Optional[float] = None
    animals_in_batch: Optional[int] = None

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, v: Any) -> Optional[datetime]:
        return to_datetime(v)


class User(Document):
    name: str = ""
    email: str = ""
    role: Literal["admin", "user"] = "user"

    @field_validator("role", mode="before")
    @classmethod
    def _coerce_role(cls, v: Any) -> str:
        return "admin" if str(v or "").lower() == "admin" else "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class ChartPoint(BaseModel):
    name: str
    amount: float


# --- form schemas ---------------------------------------------------------


class Form(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class AnimalForm(Form):
    id: str = Field(min_length=1)
    name: str = ""
    type: str = Field(min_length=1)
    breed: str = ""
    age: float = Field(default=0, ge=0)
    weight: float = Field(default=0, ge=0)
    gender: str = Field(min_length=1)
    health: str = "Good"
    status: Literal["active", "sold", "deceased"] = "active"
    purchase_date: Optional[dt.date] = None
    purchase_price: float = Field(gt=0)
    is_vaccinated: bool = False
    description: Optional[str] = None
    photo_url: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name_length(cls, v: str) -> str:
        if v and len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class AnimalEditForm(AnimalForm):
    """Edits may keep a zero price; only new purchases must carry one."""

    purchase_price: float = Field(default=0, ge=0)


class ExpenseForm(Form):
    category: str = Field(min_length=1)
    description: str = Field(min_length=1)
    amount: float = Field(ge=0)
    date: dt.date
    payment_method: str = Field(min_length=1)
    animal_related: bool = False
    animal_id: Optional[str] = None
    animal_name: Optional[str] = None


class HealthRecordForm(Form):
    animal_id: str = Field(min_length=1)
    condition: Literal["healthy", "sick", "injured", "pregnant"]
    status: str = Field(min_length=1)
    date: dt.date
    treatment: str = Field(min_length=1)
    cost: float = Field(default=0, ge=0)
    notes: Optional[str] = None


class VaccinationForm(Form):
    animal_id: str = Field(min_length=1)
    vaccine_name: str = Field(min_length=1)
    date: dt.date
    next_due_date: dt.date
    administered: bool = False
    notes: Optional[str] = None


class BatchHealthRecordForm(Form):
    condition: str = Field(min_length=1)
    treatment: str = Field(min_length=1)
    cost: float = Field(ge=0)
    date: dt.date
    selected_animals: List[str] = Field(min_length=1)
    notes: Optional[str] = None


class BatchVaccinationForm(Form):
    vaccine_name: str = Field(min_length=1)
    date: dt.date
    next_due_date: dt.date
    selected_animals: List[str] = Field(min_length=1)
    notes: Optional[str] = None


class IncomeForm(Form):
    source: str = Field(min_length=1)
    description: str = Field(min_length=1)
    amount: float = Field(ge=0)
    date: dt.date
    payment_method: str = "Cash"
    animal_related: bool = False
    animal_name: Optional[str] = None


class SaleForm(Form):
    selected_animals: List[str] = Field(min_length=1)
    total_price: float = Field(gt=0)
    payment_method: str = "Cash"


F = TypeVar("F", bound=Form)

_MESSAGES = {
    "missing": "is required",
    "string_too_short": "is required",
    "too_short": "must include at least one item",
    "greater_than": "must be greater than 0",
    "greater_than_equal": "must be a positive number",
    "literal_error": "has an unsupported value",
    "date_from_datetime_parsing": "must be a date",
    "date_parsing": "must be a date",
    "float_parsing": "must be a number",
}


def validate_form(schema: Type[F], values: Dict[str, Any]) -> F:
    """
    Validate raw widget values against a form schema.

    Blank strings count as empty. Raises ValidationError with a
    field -> message map on failure.
    """
    cleaned = {k: v for k, v in values.items() if not (v is None or (isinstance(v, str) and not v.strip()))}
    try:
        return schema.model_validate(cleaned)
    except PydanticValidationError as e:
        errors: Dict[str, str] = {}
        for err in e.errors():
            field = str(err["loc"][0]) if err["loc"] else "__root__"
            if err["type"] == "value_error":
                message = str(err.get("ctx", {}).get("error", err["msg"]))
            else:
                label = field.replace("_", " ").capitalize()
                message = f"{label} {_MESSAGES.get(err['type'], err['msg'])}"
            errors.setdefault(field, message)
        raise ValidationError(f"{schema.__name__} is invalid", errors=errors) from e


def to_store_fields(changes: Dict[str, Any]) -> Dict[str, Any]:
    """snake_case partial update -> camelCase document fields (dates become datetimes)."""
    out: Dict[str, Any] = {}
    for key, value in changes.items():
        if isinstance(value, dt.date) and not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day)
        out[to_camel(key)] = value
    return out
