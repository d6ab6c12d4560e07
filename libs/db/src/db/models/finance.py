from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    SmallInteger,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
_ID = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    pass


# ---------------------------
# Reference: hf_people
# ---------------------------


class HfPerson(Base):
    __tablename__ = "hf_people"

    id: Mapped[int] = mapped_column(_ID, primary_key=True, autoincrement=True)
    # Stored already normalized to title case by the service layer.
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    # casefold(name); the unique key behind case-insensitive name collisions.
    # Kept as a plain column (not a generated one) because SQLite's LOWER()
    # only folds ASCII and names are routinely accented ("João").
    name_key: Mapped[str] = mapped_column(String(200), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("name_key", name="uq_hf_people_name_key"),
        CheckConstraint("age >= 1 AND age <= 150", name="ck_hf_people_age"),
    )


# ---------------------------
# Reference: hf_categories
# ---------------------------


class HfCategory(Base):
    __tablename__ = "hf_categories"

    id: Mapped[int] = mapped_column(_ID, primary_key=True, autoincrement=True)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    description_key: Mapped[str] = mapped_column(String(200), nullable=False)
    # 0 = expense, 1 = income, 2 = both. Fixed at creation.
    purpose: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint("description_key", name="uq_hf_categories_description_key"),
        CheckConstraint("purpose in (0, 1, 2)", name="ck_hf_categories_purpose"),
    )


# ---------------------------
# Core: hf_transactions
# ---------------------------


class HfTransaction(Base):
    __tablename__ = "hf_transactions"

    id: Mapped[int] = mapped_column(_ID, primary_key=True, autoincrement=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    # 0 = expense, 1 = income
    type: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    person_id: Mapped[int] = mapped_column(
        _ID,
        ForeignKey("hf_people.id", ondelete="CASCADE", name="fk_hf_tx_person"),
        nullable=False,
    )
    category_id: Mapped[int] = mapped_column(
        _ID,
        ForeignKey("hf_categories.id", ondelete="RESTRICT", name="fk_hf_tx_category"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Many-to-one only: owners carry no collections, so deleting a person never
    # makes the ORM touch child rows behind the service layer's back.
    person: Mapped[HfPerson] = relationship(lazy="joined", innerjoin=True)
    category: Mapped[HfCategory] = relationship(lazy="joined", innerjoin=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_hf_tx_amount_positive"),
        CheckConstraint("type in (0, 1)", name="ck_hf_tx_type"),
        Index("ix_hf_transactions_person_id", "person_id"),
        Index("ix_hf_transactions_category_id", "category_id"),
        Index("ix_hf_transactions_date", "date"),
    )


__all__ = [
    "Base",
    "HfPerson",
    "HfCategory",
    "HfTransaction",
]
