"""Error taxonomy for the household finance rule engines.

Every rule violation raised by ``home_finance`` derives from
:class:`HomeFinanceError`. The outer layers (HTTP routes, CLI) translate them
to client errors; anything else (SQLAlchemy failures included) is an internal
error and propagates unchanged.

- :class:`ValidationError`: malformed or out-of-range input (``field`` names it).
- :class:`ConflictError`: duplicate person name / category description.
- :class:`NotFoundError`: an id does not resolve. ``field`` is set when the id
  came from a request field (``person_id``, ``category_id``) rather than from
  the resource being addressed.
- :class:`BusinessRuleError`: minor/income and category/type rules; ``rule``
  carries a stable identifier.
"""

from __future__ import annotations


class HomeFinanceError(Exception):
    """Base class for rule-engine errors surfaced to callers."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"message": self.message, "error": self.code}


class ValidationError(HomeFinanceError, ValueError):
    code = "validation_error"

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict[str, str]:
        out = super().to_dict()
        if self.field:
            out["field"] = self.field
        return out


class ConflictError(HomeFinanceError):
    code = "conflict"

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict[str, str]:
        out = super().to_dict()
        if self.field:
            out["field"] = self.field
        return out


class NotFoundError(HomeFinanceError, LookupError):
    code = "not_found"

    def __init__(self, entity: str, entity_id: int, *, field: str | None = None) -> None:
        super().__init__(f"{entity} with id {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id
        self.field = field

    def to_dict(self) -> dict[str, str]:
        out = super().to_dict()
        if self.field:
            out["field"] = self.field
        return out


class BusinessRuleError(HomeFinanceError):
    code = "business_rule"

    # Stable rule identifiers
    MINOR_INCOME = "minor_income"
    CATEGORY_TYPE = "category_type"

    def __init__(self, message: str, *, rule: str) -> None:
        super().__init__(message)
        self.rule = rule

    def to_dict(self) -> dict[str, str]:
        out = super().to_dict()
        out["rule"] = self.rule
        return out


__all__ = [
    "HomeFinanceError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "BusinessRuleError",
]
