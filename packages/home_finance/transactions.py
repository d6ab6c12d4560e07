"""Transaction service operations and monetary-amount rules.

Create order of checks (first failure wins):

1. amount is a finite number that stays positive after rounding to cents;
2. description is non-empty and at most 500 characters;
3. the person exists; a minor may not record income;
4. the category exists and its purpose accepts the transaction type.

Updates validate every supplied field the same way and then re-check both
business rules against the *effective* row (supplied value, else the stored
one), so a type change is checked against the current category and a
category change against the current (or newly supplied) type.
"""

from __future__ import annotations

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from db.models.finance import HfCategory, HfPerson, HfTransaction
from sqlalchemy import select
from sqlalchemy.orm import Session

from .categories import is_compatible, load_category
from .errors import BusinessRuleError, NotFoundError, ValidationError
from .logging_setup import get_logger
from .models import MINOR_AGE_LIMIT, TransactionOut, TransactionType, TransactionUpdate
from .people import load_person

logger = get_logger("home_finance.transactions")

DESCRIPTION_MAX_LEN = 500
_CENTS = Decimal("0.01")
# NUMERIC(18, 2) leaves 16 integer digits.
_AMOUNT_LIMIT = Decimal("1e16")


# ---------------------------
# Field coercion/validation
# ---------------------------


def to_amount(raw: Any) -> Decimal:
    """Return ``raw`` as a positive ``Decimal`` rounded half-up to cents.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.10")`` rather than
    its binary expansion. Amounts that round to zero are rejected.
    """

    if raw is None or isinstance(raw, bool):
        raise ValidationError("Amount is required", field="amount")
    try:
        d = raw if isinstance(raw, Decimal) else Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Amount is not a number: {raw!r}", field="amount") from None
    if not d.is_finite():
        raise ValidationError("Amount must be a finite number", field="amount")
    d = d.quantize(_CENTS, rounding=ROUND_HALF_UP)
    if d <= 0:
        raise ValidationError("Amount must be greater than zero", field="amount")
    if d >= _AMOUNT_LIMIT:
        raise ValidationError("Amount exceeds the supported precision", field="amount")
    return d


def _validate_description(description: Any) -> str:
    if not isinstance(description, str) or not description.strip():
        raise ValidationError("Transaction description cannot be empty", field="description")
    d = description.strip()
    if len(d) > DESCRIPTION_MAX_LEN:
        raise ValidationError(
            f"Transaction description must be at most {DESCRIPTION_MAX_LEN} characters",
            field="description",
        )
    return d


def _validate_date(value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            return dt.date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"Date must be a calendar date (YYYY-MM-DD): {value!r}", field="date")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


# ---------------------------
# Business rules
# ---------------------------


def _check_minor_rule(person: HfPerson, transaction_type: TransactionType) -> None:
    if person.age < MINOR_AGE_LIMIT and transaction_type is TransactionType.INCOME:
        raise BusinessRuleError(
            f"'{person.name}' is a minor (under {MINOR_AGE_LIMIT}); "
            "minors can only record expenses",
            rule=BusinessRuleError.MINOR_INCOME,
        )


def _check_category_rule(category: HfCategory, transaction_type: TransactionType) -> None:
    if not is_compatible(category.purpose, transaction_type):
        kind = "expenses" if transaction_type is TransactionType.EXPENSE else "income"
        raise BusinessRuleError(
            f"Category '{category.description}' cannot be used for {kind}",
            rule=BusinessRuleError.CATEGORY_TYPE,
        )


# ---------------------------
# Read model
# ---------------------------


def to_transaction_out(row: HfTransaction) -> TransactionOut:
    return TransactionOut(
        id=row.id,
        description=row.description,
        amount=row.amount,
        date=row.date,
        type=TransactionType(row.type),
        category_id=row.category_id,
        category_description=row.category.description,
        person_id=row.person_id,
        person_name=row.person.name,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _load(session: Session, transaction_id: int) -> HfTransaction:
    row = session.get(HfTransaction, transaction_id)
    if row is None:
        raise NotFoundError("Transaction", transaction_id)
    return row


# ---------------------------
# Service operations
# ---------------------------


def create_transaction(
    session: Session,
    *,
    description: str,
    amount: Decimal | int | str,
    transaction_date: dt.date | str,
    transaction_type: TransactionType | int | str,
    category_id: int,
    person_id: int,
) -> TransactionOut:
    """Validate and record a transaction; see the module docstring for check order.

    Returns the stored transaction with the person's name and the category's
    description attached for display.
    """

    amount_d = to_amount(amount)
    desc = _validate_description(description)
    date_v = _validate_date(transaction_date)
    type_v = TransactionType.parse(transaction_type)

    person = load_person(session, person_id, field="person_id")
    _check_minor_rule(person, type_v)

    category = load_category(session, category_id, field="category_id")
    _check_category_rule(category, type_v)

    now = _utcnow()
    row = HfTransaction(
        description=desc,
        amount=amount_d,
        date=date_v,
        type=int(type_v),
        person=person,
        category=category,
        created_at=now,
        updated_at=now,
    )
    session.add(row)
    session.flush()

    logger.info(
        "created transaction id=%s person_id=%s category_id=%s type=%s",
        row.id,
        person.id,
        category.id,
        type_v.label,
    )
    return to_transaction_out(row)


def update_transaction(
    session: Session, transaction_id: int, changes: TransactionUpdate
) -> TransactionOut:
    """Apply a partial update and re-check both business rules on the result.

    Fields absent from ``changes`` keep their stored values; a field supplied
    as ``null`` is a validation error since none of them can be cleared.
    """

    row = _load(session, transaction_id)
    supplied = changes.supplied()

    # Resolve the effective row first; nothing is assigned until every check passes.
    description = row.description
    if "description" in supplied:
        description = _validate_description(supplied["description"])
    amount = row.amount
    if "amount" in supplied:
        amount = to_amount(supplied["amount"])
    date_v = row.date
    if "date" in supplied:
        date_v = _validate_date(supplied["date"])

    effective_type = TransactionType(row.type)
    if "type" in supplied:
        if supplied["type"] is None:
            raise ValidationError("Transaction type cannot be null", field="type")
        effective_type = TransactionType.parse(supplied["type"])

    category = row.category
    if "category_id" in supplied:
        if supplied["category_id"] is None:
            raise ValidationError("Category cannot be null", field="category_id")
        category = load_category(session, supplied["category_id"], field="category_id")

    _check_minor_rule(row.person, effective_type)
    _check_category_rule(category, effective_type)

    row.description = description
    row.amount = amount
    row.date = date_v
    row.type = int(effective_type)
    row.category = category
    row.updated_at = _utcnow()
    session.flush()

    logger.info("updated transaction id=%s fields=%s", row.id, sorted(supplied))
    return to_transaction_out(row)


def delete_transaction(session: Session, transaction_id: int) -> bool:
    row = _load(session, transaction_id)
    session.delete(row)
    session.flush()
    logger.info("deleted transaction id=%s", transaction_id)
    return True


def get_transaction(session: Session, transaction_id: int) -> TransactionOut:
    return to_transaction_out(_load(session, transaction_id))


def list_transactions(session: Session) -> list[TransactionOut]:
    """Return every transaction in store order (by id); no chronology implied."""

    rows = session.execute(select(HfTransaction).order_by(HfTransaction.id)).scalars().all()
    return [to_transaction_out(r) for r in rows]


__all__ = [
    "DESCRIPTION_MAX_LEN",
    "to_amount",
    "to_transaction_out",
    "create_transaction",
    "update_transaction",
    "delete_transaction",
    "get_transaction",
    "list_transactions",
]
