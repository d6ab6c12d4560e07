from __future__ import annotations

# Seeder for the household demo data set.
#
# Usage (example):
#   uv run python -m home_finance.seed \
#     --database-url sqlite:///home_finance.db --reset
#
# This script:
#   1) Optionally clears hf_transactions, hf_people and hf_categories (in that
#      order, so no foreign key is ever left dangling).
#   2) Inserts 5 categories, 6 people and 9 transactions through the rule
#      engines, so every seeded row satisfies the same checks as user input.
#   3) Does nothing when the store already holds data and --reset is not given.
import argparse
import datetime as dt
from decimal import Decimal

from db.client import session_scope
from db.models.finance import HfCategory, HfPerson, HfTransaction
from dotenv import load_dotenv
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from .categories import create_category
from .logging_setup import configure_logging, get_logger
from .models import CategoryPurpose, TransactionType
from .people import create_person
from .transactions import create_transaction

logger = get_logger("home_finance.seed")

DEMO_CATEGORIES: list[tuple[str, CategoryPurpose]] = [
    ("Salary", CategoryPurpose.INCOME),
    ("Groceries", CategoryPurpose.EXPENSE),
    ("Utilities", CategoryPurpose.EXPENSE),
    ("Entertainment", CategoryPurpose.EXPENSE),
    ("Other", CategoryPurpose.BOTH),
]

DEMO_PEOPLE: list[tuple[str, int]] = [
    ("Pedro", 20),
    ("Nathalia", 19),
    ("Isac", 16),
    ("Luiz", 30),
    ("Paulo", 60),
    ("Dielle", 23),
]

_IN = TransactionType.INCOME
_OUT = TransactionType.EXPENSE

# (description, amount, date, type, person, category)
DEMO_TRANSACTIONS: list[tuple[str, str, dt.date, TransactionType, str, str]] = [
    ("Pedro's salary", "5000.00", dt.date(2026, 1, 5), _IN, "Pedro", "Salary"),
    ("Nathalia's salary", "1000.00", dt.date(2026, 1, 5), _IN, "Nathalia", "Salary"),
    ("Monthly groceries", "1000.00", dt.date(2026, 1, 8), _OUT, "Pedro", "Groceries"),
    ("Hygiene products", "200.00", dt.date(2026, 1, 9), _OUT, "Nathalia", "Groceries"),
    ("Electricity bill", "80.50", dt.date(2026, 1, 10), _OUT, "Pedro", "Utilities"),
    ("Cinema", "100.00", dt.date(2026, 1, 12), _OUT, "Pedro", "Entertainment"),
    ("Car tire replacement", "2000.00", dt.date(2026, 1, 15), _OUT, "Pedro", "Other"),
    ("Medicine for Paulo", "750.00", dt.date(2026, 1, 18), _OUT, "Pedro", "Groceries"),
    ("Barbecue drinks", "400.00", dt.date(2026, 1, 20), _OUT, "Dielle", "Other"),
]


def _has_data(session: Session) -> bool:
    for model in (HfCategory, HfPerson, HfTransaction):
        if session.execute(select(func.count()).select_from(model)).scalar_one():
            return True
    return False


def clear_all(session: Session) -> None:
    """Delete every row, dependents first."""

    session.execute(delete(HfTransaction))
    session.execute(delete(HfPerson))
    session.execute(delete(HfCategory))
    session.flush()


def reseed_demo_data(session: Session, *, reset: bool = False) -> dict[str, int] | None:
    """Insert the demo set; return the inserted counts, or ``None`` when skipped."""

    if reset:
        clear_all(session)
    elif _has_data(session):
        logger.info("store already has data; demo seed skipped")
        return None

    category_ids = {
        desc: create_category(session, description=desc, purpose=purpose).id
        for desc, purpose in DEMO_CATEGORIES
    }
    person_ids = {name: create_person(session, name=name, age=age).id for name, age in DEMO_PEOPLE}
    for desc, amount, day, tx_type, person, category in DEMO_TRANSACTIONS:
        create_transaction(
            session,
            description=desc,
            amount=Decimal(amount),
            transaction_date=day,
            transaction_type=tx_type,
            category_id=category_ids[category],
            person_id=person_ids[person],
        )

    counts = {
        "categories": len(DEMO_CATEGORIES),
        "people": len(DEMO_PEOPLE),
        "transactions": len(DEMO_TRANSACTIONS),
    }
    logger.info("seeded demo data %s", counts)
    return counts


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Seed the household demo data set")
    ap.add_argument(
        "--database-url",
        required=False,
        default=None,
        help=("SQLAlchemy database URL; falls back to $DATABASE_URL when not set"),
    )
    ap.add_argument(
        "--reset",
        action="store_true",
        help="Delete all existing rows before seeding",
    )
    args = ap.parse_args(argv)

    load_dotenv(override=False)
    configure_logging()
    db_url: str | None = args.database_url or None
    with session_scope(database_url=db_url) as session:
        reseed_demo_data(session, reset=args.reset)
    return 0


if __name__ == "__main__":  # pragma: no cover - manual utility
    raise SystemExit(main())
