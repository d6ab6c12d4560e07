"""Person service operations.

Names are normalized before they are checked or stored: surrounding whitespace
is removed, the name is split on whitespace, each token is lowercased and its
first character uppercased, and tokens are rejoined with single spaces
(``"  joão   da SILVA "`` → ``"João Da Silva"``). Uniqueness is decided on the
``casefold()`` of the normalized name and backed by a unique constraint.

``is_minor`` is never stored; it is derived from ``age`` on every read.

Deleting a person deletes their transactions first, in the caller's
transaction, so the cascade holds whether or not the database enforces
``ON DELETE CASCADE``.
"""

from __future__ import annotations

from typing import Any

from db.models.finance import HfPerson, HfTransaction
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import ConflictError, NotFoundError, ValidationError
from .logging_setup import get_logger
from .models import (
    MINOR_AGE_LIMIT,
    PersonDetailOut,
    PersonOut,
    PersonUpdate,
    TransactionSummary,
    TransactionType,
)

logger = get_logger("home_finance.people")

NAME_MIN_LEN = 3
NAME_MAX_LEN = 200
AGE_MIN = 1
AGE_MAX = 150


# ---------------------------
# Name normalization/validation
# ---------------------------


def normalize_name(name: str) -> str:
    """Return ``name`` trimmed, whitespace-collapsed and title-cased per token."""

    tokens = name.strip().split()
    return " ".join(t.lower()[:1].upper() + t.lower()[1:] for t in tokens)


def name_key(name: str) -> str:
    """Case-insensitive comparison key for a (normalized) person name."""

    return normalize_name(name).casefold()


def _validate_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name cannot be empty", field="name")
    n = normalize_name(name)
    if len(n) < NAME_MIN_LEN:
        raise ValidationError(
            f"Name must be at least {NAME_MIN_LEN} characters", field="name"
        )
    if len(n) > NAME_MAX_LEN:
        raise ValidationError(f"Name must be at most {NAME_MAX_LEN} characters", field="name")
    return n


def _validate_age(age: Any) -> int:
    # bool is an int subclass; True is not an age.
    if isinstance(age, bool) or not isinstance(age, int):
        raise ValidationError("Age must be an integer", field="age")
    if age < AGE_MIN or age > AGE_MAX:
        raise ValidationError(f"Age must be between {AGE_MIN} and {AGE_MAX}", field="age")
    return age


# ---------------------------
# Read models
# ---------------------------


def to_person_out(row: HfPerson) -> PersonOut:
    return PersonOut(id=row.id, name=row.name, age=row.age)


def load_person(session: Session, person_id: int, *, field: str | None = None) -> HfPerson:
    """Return the ORM row for ``person_id`` or raise :class:`NotFoundError`."""

    row = session.get(HfPerson, person_id)
    if row is None:
        raise NotFoundError("Person", person_id, field=field)
    return row


def _find_by_key(session: Session, key: str, *, exclude_id: int | None = None) -> HfPerson | None:
    stmt = select(HfPerson).where(HfPerson.name_key == key)
    if exclude_id is not None:
        stmt = stmt.where(HfPerson.id != exclude_id)
    return session.execute(stmt).scalars().first()


def _flush_or_conflict(session: Session, name: str) -> None:
    try:
        session.flush()
    except IntegrityError:
        # A concurrent writer committed the same name between check and flush.
        session.rollback()
        raise ConflictError(f"A person named '{name}' already exists", field="name") from None


# ---------------------------
# Service operations
# ---------------------------


def create_person(session: Session, *, name: str, age: int) -> PersonOut:
    """Create a person after validation and name normalization.

    Raises ``ValidationError`` for an empty/short/long name or an age outside
    1..150, and ``ConflictError`` when the normalized name is already taken.
    """

    n = _validate_name(name)
    a = _validate_age(age)
    key = name_key(n)

    if _find_by_key(session, key) is not None:
        raise ConflictError(f"A person named '{n}' already exists", field="name")

    row = HfPerson(name=n, name_key=key, age=a)
    session.add(row)
    _flush_or_conflict(session, n)

    logger.info("created person id=%s minor=%s", row.id, a < MINOR_AGE_LIMIT)
    return to_person_out(row)


def update_person(session: Session, person_id: int, changes: PersonUpdate) -> PersonOut:
    """Apply a partial update; only fields present in ``changes`` are touched.

    Changing ``age`` across the minor boundary does not revisit the person's
    existing transactions; the minor/income rule is enforced when transactions
    are created or updated.
    """

    row = load_person(session, person_id)
    supplied = changes.supplied()

    name, key, age = row.name, row.name_key, row.age
    if "name" in supplied:
        name = _validate_name(supplied["name"])
        key = name_key(name)
    if "age" in supplied:
        age = _validate_age(supplied["age"])
    if "name" in supplied and _find_by_key(session, key, exclude_id=row.id) is not None:
        raise ConflictError(f"Another person is already named '{name}'", field="name")

    row.name, row.name_key, row.age = name, key, age
    _flush_or_conflict(session, name)
    logger.info("updated person id=%s fields=%s", row.id, sorted(supplied))
    return to_person_out(row)


def delete_person(session: Session, person_id: int) -> bool:
    """Delete a person and every transaction they own."""

    row = load_person(session, person_id)
    result = session.execute(
        delete(HfTransaction)
        .where(HfTransaction.person_id == row.id)
        .execution_options(synchronize_session="fetch")
    )
    session.delete(row)
    session.flush()
    logger.info("deleted person id=%s transactions=%s", person_id, result.rowcount)
    return True


def get_person(session: Session, person_id: int) -> PersonOut:
    return to_person_out(load_person(session, person_id))


def get_person_detail(session: Session, person_id: int) -> PersonDetailOut:
    """Return a person with summaries of their transactions (by date, then id)."""

    row = load_person(session, person_id)
    txs = (
        session.execute(
            select(HfTransaction)
            .where(HfTransaction.person_id == row.id)
            .order_by(HfTransaction.date, HfTransaction.id)
        )
        .scalars()
        .all()
    )
    return PersonDetailOut(
        id=row.id,
        name=row.name,
        age=row.age,
        transactions=[
            TransactionSummary(
                id=t.id,
                description=t.description,
                amount=t.amount,
                date=t.date,
                type=TransactionType(t.type),
                category_description=t.category.description,
            )
            for t in txs
        ],
    )


def _list(session: Session, *criteria) -> list[PersonOut]:
    rows = (
        session.execute(select(HfPerson).where(*criteria).order_by(HfPerson.name, HfPerson.id))
        .scalars()
        .all()
    )
    return [to_person_out(r) for r in rows]


def list_people(session: Session) -> list[PersonOut]:
    return _list(session)


def list_minors(session: Session) -> list[PersonOut]:
    return _list(session, HfPerson.age < MINOR_AGE_LIMIT)


def list_adults(session: Session) -> list[PersonOut]:
    return _list(session, HfPerson.age >= MINOR_AGE_LIMIT)


__all__ = [
    "NAME_MIN_LEN",
    "NAME_MAX_LEN",
    "AGE_MIN",
    "AGE_MAX",
    "normalize_name",
    "name_key",
    "to_person_out",
    "load_person",
    "create_person",
    "update_person",
    "delete_person",
    "get_person",
    "get_person_detail",
    "list_people",
    "list_minors",
    "list_adults",
]
