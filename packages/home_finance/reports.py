"""Income/expense rollups per person and per category.

Each report is computed from a single SELECT (owners outer-joined to their
transactions), so every figure in a report comes from the same statement
snapshot. Sums use ``Decimal`` throughout; grand balances are derived once
from the grand totals rather than accumulated separately.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from db.models.finance import HfCategory, HfPerson, HfTransaction
from sqlalchemy import select
from sqlalchemy.orm import Session

from .categories import purpose_label
from .models import (
    CategoryTotals,
    CategoryTotalsReport,
    PersonTotals,
    PersonTotalsReport,
    TransactionType,
)

ZERO = Decimal("0.00")


@dataclass(slots=True)
class _Totals:
    income: Decimal = field(default=ZERO)
    expense: Decimal = field(default=ZERO)

    def add(self, tx_type: int | None, amount: Decimal | None) -> None:
        if amount is None:  # owner without transactions (outer join)
            return
        if tx_type == TransactionType.INCOME:
            self.income += amount
        elif tx_type == TransactionType.EXPENSE:
            self.expense += amount

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense


def _grand(totals: Iterable[_Totals]) -> tuple[Decimal, Decimal, Decimal]:
    income = ZERO
    expense = ZERO
    for t in totals:
        income += t.income
        expense += t.expense
    return income, expense, income - expense


def person_totals_report(session: Session) -> PersonTotalsReport:
    """Totals for every person ordered by name; people without transactions show zeros."""

    rows = session.execute(
        select(HfPerson.id, HfPerson.name, HfPerson.age, HfTransaction.type, HfTransaction.amount)
        .outerjoin(HfTransaction, HfTransaction.person_id == HfPerson.id)
        .order_by(HfPerson.name, HfPerson.id)
    ).all()

    owners: dict[int, tuple[str, int]] = {}
    totals: dict[int, _Totals] = {}
    for person_id, name, age, tx_type, amount in rows:
        if person_id not in totals:
            owners[person_id] = (name, age)
            totals[person_id] = _Totals()
        totals[person_id].add(tx_type, amount)

    grand_income, grand_expense, grand_balance = _grand(totals.values())
    return PersonTotalsReport(
        people=[
            PersonTotals(
                person_id=pid,
                person_name=owners[pid][0],
                age=owners[pid][1],
                total_income=t.income,
                total_expense=t.expense,
                balance=t.balance,
            )
            for pid, t in totals.items()
        ],
        grand_total_income=grand_income,
        grand_total_expense=grand_expense,
        grand_balance=grand_balance,
    )


def category_totals_report(session: Session) -> CategoryTotalsReport:
    """Totals for every category ordered by description, with a purpose label."""

    rows = session.execute(
        select(
            HfCategory.id,
            HfCategory.description,
            HfCategory.purpose,
            HfTransaction.type,
            HfTransaction.amount,
        )
        .outerjoin(HfTransaction, HfTransaction.category_id == HfCategory.id)
        .order_by(HfCategory.description, HfCategory.id)
    ).all()

    owners: dict[int, tuple[str, int]] = {}
    totals: dict[int, _Totals] = {}
    for category_id, description, purpose, tx_type, amount in rows:
        if category_id not in totals:
            owners[category_id] = (description, purpose)
            totals[category_id] = _Totals()
        totals[category_id].add(tx_type, amount)

    grand_income, grand_expense, grand_balance = _grand(totals.values())
    return CategoryTotalsReport(
        categories=[
            CategoryTotals(
                category_id=cid,
                category_name=owners[cid][0],
                purpose=purpose_label(owners[cid][1]),
                total_income=t.income,
                total_expense=t.expense,
                balance=t.balance,
            )
            for cid, t in totals.items()
        ],
        grand_total_income=grand_income,
        grand_total_expense=grand_expense,
        grand_balance=grand_balance,
    )


__all__ = ["person_totals_report", "category_totals_report"]
