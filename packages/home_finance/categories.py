"""Category domain helpers and service operations.

This module owns the ``hf_categories`` reference table rules:

- ``create_category(...)``: validated creation with case-insensitive conflict
  detection on the description.
- ``list_categories(...)`` / ``list_categories_by_purpose(...)``: ordered reads.
- ``is_compatible(...)``: the single purpose/transaction-type compatibility
  predicate used by :mod:`home_finance.transactions`.

Categories are immutable once created; there is no update or delete here. The
database refuses to delete a category still referenced by a transaction.
"""

from __future__ import annotations

from typing import Any

from db.models.finance import HfCategory
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import ConflictError, NotFoundError, ValidationError
from .logging_setup import get_logger
from .models import CategoryOut, CategoryPurpose, TransactionType

logger = get_logger("home_finance.categories")

DESCRIPTION_MAX_LEN = 200

# ---------------------------
# Description normalization/validation
# ---------------------------


def normalize_description(description: str) -> str:
    """Return ``description`` with leading/trailing whitespace removed.

    Case is preserved; uniqueness is decided on :func:`description_key`.
    """

    return description.strip()


def description_key(description: str) -> str:
    """Case-insensitive comparison key for category descriptions."""

    return normalize_description(description).casefold()


def _validate_description(description: Any) -> str:
    if not isinstance(description, str) or not description.strip():
        raise ValidationError("Category description cannot be empty", field="description")
    d = normalize_description(description)
    if len(d) > DESCRIPTION_MAX_LEN:
        raise ValidationError(
            f"Category description must be at most {DESCRIPTION_MAX_LEN} characters",
            field="description",
        )
    return d


# ---------------------------
# Compatibility
# ---------------------------


def is_compatible(purpose: CategoryPurpose | int, transaction_type: TransactionType | int) -> bool:
    """Return whether a category with ``purpose`` may hold a ``transaction_type``.

    ``Both`` accepts every type; ``Expense`` and ``Income`` accept only their
    own type. Unknown purpose codes (corrupt rows) are never compatible.
    """

    try:
        p = CategoryPurpose(purpose)
    except ValueError:
        return False
    if p is CategoryPurpose.BOTH:
        return True
    if p is CategoryPurpose.EXPENSE:
        return transaction_type == TransactionType.EXPENSE
    return transaction_type == TransactionType.INCOME


def purpose_label(purpose: CategoryPurpose | int) -> str:
    """Human-readable purpose label; ``"Unknown"`` for unmapped codes."""

    try:
        return CategoryPurpose(purpose).label
    except ValueError:
        return "Unknown"


# ---------------------------
# Read model
# ---------------------------


def to_category_out(row: HfCategory) -> CategoryOut:
    return CategoryOut(
        id=row.id,
        description=row.description,
        purpose=row.purpose,
        purpose_description=purpose_label(row.purpose),
    )


def _find_by_key(session: Session, key: str) -> HfCategory | None:
    return (
        session.execute(select(HfCategory).where(HfCategory.description_key == key))
        .scalars()
        .first()
    )


def load_category(session: Session, category_id: int, *, field: str | None = None) -> HfCategory:
    """Return the ORM row for ``category_id`` or raise :class:`NotFoundError`."""

    row = session.get(HfCategory, category_id)
    if row is None:
        raise NotFoundError("Category", category_id, field=field)
    return row


# ---------------------------
# Service operations
# ---------------------------


def create_category(
    session: Session,
    *,
    description: str,
    purpose: CategoryPurpose | int | str,
) -> CategoryOut:
    """Create a new category.

    Parameters
    ----------
    session:
        SQLAlchemy session to use (callers own the transaction scope).
    description:
        Display text; trimmed before storage, unique case-insensitively.
    purpose:
        ``Expense``, ``Income`` or ``Both`` as enum member, code or name.

    Raises
    ------
    ValidationError
        Empty/over-long description or unknown purpose.
    ConflictError
        Another category already uses the description (any casing).
    """

    desc = _validate_description(description)
    purpose_v = CategoryPurpose.parse(purpose)
    key = description_key(desc)

    if _find_by_key(session, key) is not None:
        raise ConflictError(
            f"A category with description '{desc}' already exists", field="description"
        )

    row = HfCategory(description=desc, description_key=key, purpose=int(purpose_v))
    try:
        session.add(row)
        session.flush()  # obtain the store-assigned id
    except IntegrityError:
        # Lost a race against a concurrent create of the same description.
        session.rollback()
        raise ConflictError(
            f"A category with description '{desc}' already exists", field="description"
        ) from None

    logger.info("created category id=%s purpose=%s", row.id, purpose_v.label)
    return to_category_out(row)


def get_category(session: Session, category_id: int) -> CategoryOut:
    return to_category_out(load_category(session, category_id))


def list_categories(session: Session) -> list[CategoryOut]:
    """Return all categories ordered by description."""

    rows = (
        session.execute(select(HfCategory).order_by(HfCategory.description, HfCategory.id))
        .scalars()
        .all()
    )
    return [to_category_out(r) for r in rows]


def list_categories_by_purpose(
    session: Session, purpose: CategoryPurpose | int | str
) -> list[CategoryOut]:
    """Return categories whose purpose is exactly ``purpose`` (``Both`` is not a wildcard)."""

    purpose_v = CategoryPurpose.parse(purpose)
    rows = (
        session.execute(
            select(HfCategory)
            .where(HfCategory.purpose == int(purpose_v))
            .order_by(HfCategory.description, HfCategory.id)
        )
        .scalars()
        .all()
    )
    return [to_category_out(r) for r in rows]


__all__ = [
    "DESCRIPTION_MAX_LEN",
    "normalize_description",
    "description_key",
    "is_compatible",
    "purpose_label",
    "to_category_out",
    "load_category",
    "create_category",
    "get_category",
    "list_categories",
    "list_categories_by_purpose",
]
