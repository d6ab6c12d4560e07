from __future__ import annotations

import datetime as dt
from decimal import Decimal

from db.client import session_scope
from sqlalchemy.orm import Session

from home_finance.categories import create_category
from home_finance.models import CategoryPurpose, TransactionType
from home_finance.people import create_person, delete_person
from home_finance.reports import category_totals_report, person_totals_report
from home_finance.seed import reseed_demo_data
from home_finance.transactions import create_transaction


def _add(session: Session, *, person_id: int, category_id: int, amount: str, tx_type):
    return create_transaction(
        session,
        description="entry",
        amount=amount,
        transaction_date=dt.date(2026, 1, 1),
        transaction_type=tx_type,
        category_id=category_id,
        person_id=person_id,
    )


def test_reports_on_empty_store_are_all_zero(session: Session):
    people = person_totals_report(session)
    cats = category_totals_report(session)

    assert people.people == []
    assert cats.categories == []
    for report in (people, cats):
        assert report.grand_total_income == Decimal("0")
        assert report.grand_total_expense == Decimal("0")
        assert report.grand_balance == Decimal("0")


def test_person_balance_scenario(session: Session):
    pedro = create_person(session, name="Pedro", age=20)
    other = create_category(session, description="Other", purpose=CategoryPurpose.BOTH)
    _add(session, person_id=pedro.id, category_id=other.id, amount="5000.00",
         tx_type=TransactionType.INCOME)
    _add(session, person_id=pedro.id, category_id=other.id, amount="1000.00",
         tx_type=TransactionType.EXPENSE)

    report = person_totals_report(session)

    (row,) = report.people
    assert row.person_name == "Pedro"
    assert row.total_income == Decimal("5000.00")
    assert row.total_expense == Decimal("1000.00")
    assert row.balance == Decimal("4000.00")
    assert report.grand_balance == Decimal("4000.00")


def test_people_without_transactions_show_zeros_and_order_by_name(session: Session):
    create_person(session, name="Zelia", age=40)
    create_person(session, name="Ana", age=30)

    report = person_totals_report(session)

    assert [p.person_name for p in report.people] == ["Ana", "Zelia"]
    assert all(p.total_income == 0 and p.total_expense == 0 for p in report.people)


def test_seeded_demo_totals(db_url: str):
    with session_scope(database_url=db_url) as session:
        reseed_demo_data(session)

    with session_scope(database_url=db_url) as session:
        people = {p.person_name: p for p in person_totals_report(session).people}
        report = person_totals_report(session)
        cats = category_totals_report(session)

    assert people["Pedro"].total_income == Decimal("5000.00")
    assert people["Pedro"].total_expense == Decimal("3930.50")
    assert people["Pedro"].balance == Decimal("1069.50")
    assert people["Nathalia"].balance == Decimal("800.00")
    assert people["Dielle"].balance == Decimal("-400.00")
    assert people["Isac"].balance == Decimal("0")

    assert report.grand_total_income == Decimal("6000.00")
    assert report.grand_total_expense == Decimal("4530.50")
    assert report.grand_balance == Decimal("1469.50")

    by_cat = {c.category_name: c for c in cats.categories}
    assert [c.category_name for c in cats.categories] == sorted(by_cat)
    assert by_cat["Groceries"].total_expense == Decimal("1950.00")
    assert by_cat["Groceries"].purpose == "Expense"
    assert by_cat["Other"].purpose == "Both"
    assert by_cat["Salary"].balance == Decimal("6000.00")
    assert cats.grand_total_income == report.grand_total_income
    assert cats.grand_total_expense == report.grand_total_expense


def test_grand_balance_is_exact_difference(session: Session):
    p = create_person(session, name="Luiz", age=30)
    c = create_category(session, description="Other", purpose=CategoryPurpose.BOTH)
    for amount in ("0.10", "0.20", "0.30"):
        _add(session, person_id=p.id, category_id=c.id, amount=amount,
             tx_type=TransactionType.INCOME)
    _add(session, person_id=p.id, category_id=c.id, amount="0.60",
         tx_type=TransactionType.EXPENSE)

    report = category_totals_report(session)

    assert report.grand_total_income == Decimal("0.60")
    assert report.grand_balance == report.grand_total_income - report.grand_total_expense
    assert report.grand_balance == 0


def test_deleted_person_drops_out_of_reports(session: Session):
    p = create_person(session, name="Pedro", age=20)
    c = create_category(session, description="Other", purpose=CategoryPurpose.BOTH)
    _add(session, person_id=p.id, category_id=c.id, amount="50", tx_type=TransactionType.INCOME)

    delete_person(session, p.id)

    assert person_totals_report(session).people == []
    (cat,) = category_totals_report(session).categories
    assert cat.total_income == 0
