"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the household finance models used by ``home_finance``.
"""

from .finance import Base, HfCategory, HfPerson, HfTransaction

__all__ = [
    "Base",
    "HfCategory",
    "HfPerson",
    "HfTransaction",
]
