"""Public interface for the ``home_finance`` package.

This module exposes the rule-engine operations, error types and JSON contracts
as the stable import surface. There is no runtime logic here, only symbol
re-exports. Every operation takes a SQLAlchemy ``Session`` as its first
argument; callers own the transaction (see :func:`db.client.session_scope`).
"""

from .categories import (
    create_category,
    get_category,
    is_compatible,
    list_categories,
    list_categories_by_purpose,
)
from .errors import (
    BusinessRuleError,
    ConflictError,
    HomeFinanceError,
    NotFoundError,
    ValidationError,
)
from .models import (
    MINOR_AGE_LIMIT,
    CategoryCreate,
    CategoryOut,
    CategoryPurpose,
    CategoryTotals,
    CategoryTotalsReport,
    PersonCreate,
    PersonDetailOut,
    PersonOut,
    PersonTotals,
    PersonTotalsReport,
    PersonUpdate,
    TransactionCreate,
    TransactionOut,
    TransactionType,
    TransactionUpdate,
)
from .people import (
    create_person,
    delete_person,
    get_person,
    get_person_detail,
    list_adults,
    list_minors,
    list_people,
    update_person,
)
from .reports import category_totals_report, person_totals_report
from .transactions import (
    create_transaction,
    delete_transaction,
    get_transaction,
    list_transactions,
    update_transaction,
)

__all__ = [
    # Categories
    "create_category",
    "get_category",
    "list_categories",
    "list_categories_by_purpose",
    "is_compatible",
    # People
    "create_person",
    "update_person",
    "delete_person",
    "get_person",
    "get_person_detail",
    "list_people",
    "list_minors",
    "list_adults",
    # Transactions
    "create_transaction",
    "update_transaction",
    "delete_transaction",
    "get_transaction",
    "list_transactions",
    # Reports
    "person_totals_report",
    "category_totals_report",
    # Errors
    "HomeFinanceError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "BusinessRuleError",
    # Models / types
    "MINOR_AGE_LIMIT",
    "TransactionType",
    "CategoryPurpose",
    "PersonCreate",
    "PersonUpdate",
    "PersonOut",
    "PersonDetailOut",
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
