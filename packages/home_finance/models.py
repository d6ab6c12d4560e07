"""Domain enums and JSON contracts for ``home_finance``.

The enums are closed sets stored as small integers (``Expense=0``,
``Income=1`` and, for category purpose, ``Both=2``). The Pydantic models are the
request/response contracts shared by the HTTP layer and the CLI:

- field names serialize in camelCase (inputs accept either spelling);
- money serializes as a string with exactly two fractional digits;
- ``type``/``purpose`` serialize as integers.

Partial-update inputs (:class:`PersonUpdate`, :class:`TransactionUpdate`) rely
on Pydantic's ``model_fields_set``: a field that was never supplied is absent,
which is distinct from a field explicitly supplied as ``null``.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import IntEnum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    PlainSerializer,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .errors import ValidationError

MINOR_AGE_LIMIT = 18

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


def _parse_enum(enum_cls: type[IntEnum], value: Any, *, field: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}: {value!r}", field=field)
    if isinstance(value, str):
        s = value.strip()
        if s.lstrip("-").isdigit():
            value = int(s)
        else:
            try:
                return enum_cls[s.upper()]
            except KeyError:
                raise ValidationError(f"Invalid {field}: {value!r}", field=field) from None
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        allowed = ", ".join(f"{m.name.capitalize()}={m.value}" for m in enum_cls)
        raise ValidationError(
            f"Invalid {field}: {value!r} (expected one of {allowed})", field=field
        ) from None


class TransactionType(IntEnum):
    EXPENSE = 0
    INCOME = 1

    @classmethod
    def parse(cls, value: Any) -> TransactionType:
        """Coerce an enum member, integer code, or case-insensitive name."""
        return _parse_enum(cls, value, field="type")

    @property
    def label(self) -> str:
        return self.name.capitalize()


class CategoryPurpose(IntEnum):
    EXPENSE = 0
    INCOME = 1
    BOTH = 2

    @classmethod
    def parse(cls, value: Any) -> CategoryPurpose:
        """Coerce an enum member, integer code, or case-insensitive name."""
        return _parse_enum(cls, value, field="purpose")

    @property
    def label(self) -> str:
        return self.name.capitalize()


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------


def _format_money(value: Decimal) -> str:
    return f"{value:.2f}"


Money = Annotated[Decimal, PlainSerializer(_format_money, return_type=str, when_used="json")]
"""A 2-decimal fixed-point amount; JSON form is a string such as ``"5000.00"``."""


def _assume_utc(value: dt.datetime) -> dt.datetime:
    # SQLite drops tzinfo on DateTime(timezone=True); stored values are UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.UTC)
    return value


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _PartialUpdate(_Schema):
    def supplied(self) -> dict[str, Any]:
        """Return only the fields the caller explicitly supplied (``None`` included)."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------


class PersonCreate(_Schema):
    name: str
    age: int


class PersonUpdate(_PartialUpdate):
    name: str | None = None
    age: int | None = None


class PersonOut(_Schema):
    id: int
    name: str
    age: int

    @computed_field(alias="isMinor")  # type: ignore[prop-decorator]
    @property
    def is_minor(self) -> bool:
        return self.age < MINOR_AGE_LIMIT


class TransactionSummary(_Schema):
    id: int
    description: str
    amount: Money
    date: dt.date
    type: TransactionType
    category_description: str


class PersonDetailOut(PersonOut):
    transactions: list[TransactionSummary] = []


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class CategoryCreate(_Schema):
    description: str
    purpose: CategoryPurpose


class CategoryOut(_Schema):
    id: int
    description: str
    # Raw stored code; unmapped codes are reported via purpose_description.
    purpose: int
    purpose_description: str


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class TransactionCreate(_Schema):
    description: str
    amount: Decimal
    date: dt.date
    type: TransactionType
    category_id: int
    person_id: int


class TransactionUpdate(_PartialUpdate):
    description: str | None = None
    amount: Decimal | None = None
    date: dt.date | None = None
    type: TransactionType | None = None
    category_id: int | None = None


class TransactionOut(_Schema):
    id: int
    description: str
    amount: Money
    date: dt.date
    type: TransactionType
    category_id: int
    category_description: str
    person_id: int
    person_name: str
    created_at: dt.datetime
    updated_at: dt.datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: dt.datetime) -> dt.datetime:
        return _assume_utc(value)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


class PersonTotals(_Schema):
    person_id: int
    person_name: str
    age: int
    total_income: Money
    total_expense: Money
    balance: Money


class PersonTotalsReport(_Schema):
    people: list[PersonTotals]
    grand_total_income: Money
    grand_total_expense: Money
    grand_balance: Money


class CategoryTotals(_Schema):
    category_id: int
    category_name: str
    purpose: str
    total_income: Money
    total_expense: Money
    balance: Money


class CategoryTotalsReport(_Schema):
    categories: list[CategoryTotals]
    grand_total_income: Money
    grand_total_expense: Money
    grand_balance: Money


__all__ = [
    "MINOR_AGE_LIMIT",
    "TransactionType",
    "CategoryPurpose",
    "Money",
    "PersonCreate",
    "PersonUpdate",
    "PersonOut",
    "PersonDetailOut",
    "TransactionSummary",
    "CategoryCreate",
    "CategoryOut",
    "TransactionCreate",
    "TransactionUpdate",
    "TransactionOut",
    "PersonTotals",
    "PersonTotalsReport",
    "CategoryTotals",
    "CategoryTotalsReport",
]
