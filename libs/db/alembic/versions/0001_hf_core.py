# ruff: noqa: I001
"""Household finance core tables: people, categories, transactions.

Revision ID: 0001_hf_core
Revises: None
Create Date: 2026-01-12
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_hf_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# SQLite only autoincrements INTEGER PRIMARY KEY.
_ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    # hf_people
    op.create_table(
        "hf_people",
        sa.Column("id", _ID, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("name_key", sa.String(200), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.UniqueConstraint("name_key", name="uq_hf_people_name_key"),
        sa.CheckConstraint("age >= 1 AND age <= 150", name="ck_hf_people_age"),
    )

    # hf_categories
    op.create_table(
        "hf_categories",
        sa.Column("id", _ID, primary_key=True, autoincrement=True),
        sa.Column("description", sa.String(200), nullable=False),
        sa.Column("description_key", sa.String(200), nullable=False),
        sa.Column("purpose", sa.SmallInteger(), nullable=False),
        sa.UniqueConstraint("description_key", name="uq_hf_categories_description_key"),
        sa.CheckConstraint("purpose in (0, 1, 2)", name="ck_hf_categories_purpose"),
    )

    # hf_transactions
    op.create_table(
        "hf_transactions",
        sa.Column("id", _ID, primary_key=True, autoincrement=True),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("type", sa.SmallInteger(), nullable=False),
        sa.Column("person_id", sa.BigInteger(), nullable=False),
        sa.Column("category_id", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        # Deleting a person removes their transactions; a category in use
        # cannot be deleted.
        sa.ForeignKeyConstraint(
            ["person_id"],
            ["hf_people.id"],
            name="fk_hf_tx_person",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["category_id"],
            ["hf_categories.id"],
            name="fk_hf_tx_category",
            ondelete="RESTRICT",
        ),
        sa.CheckConstraint("amount > 0", name="ck_hf_tx_amount_positive"),
        sa.CheckConstraint("type in (0, 1)", name="ck_hf_tx_type"),
    )

    op.create_index("ix_hf_transactions_person_id", "hf_transactions", ["person_id"], unique=False)
    op.create_index(
        "ix_hf_transactions_category_id", "hf_transactions", ["category_id"], unique=False
    )
    op.create_index("ix_hf_transactions_date", "hf_transactions", ["date"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_hf_transactions_date", table_name="hf_transactions")
    op.drop_index("ix_hf_transactions_category_id", table_name="hf_transactions")
    op.drop_index("ix_hf_transactions_person_id", table_name="hf_transactions")
    op.drop_table("hf_transactions")
    op.drop_table("hf_categories")
    op.drop_table("hf_people")
