"""Pytest configuration for test isolation.

Every test gets its own file-backed SQLite database under ``tmp_path``. The
workspace keeps one process-wide engine (``db.client``), so the fixture
disposes it on teardown and the next test can bind a fresh URL.

Logging is left unconfigured during tests: entrypoints call
``configure_logging()``, which would otherwise attach a handler bound to the
stderr stream of whichever test ran first.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import dispose_engine, session_scope
from sqlalchemy.orm import Session

from tests.helpers.db import bootstrap_sqlite_db


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """Mark package logging as configured so entrypoints skip handler setup."""

    monkeypatch.setattr("home_finance.logging_setup._CONFIGURED", True)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # A developer's .env/DATABASE_URL must never leak into tests.
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("HOME_FINANCE_CORS_ORIGINS", raising=False)


@pytest.fixture()
def db_url(tmp_path: Path) -> Iterator[str]:
    dispose_engine()
    url = bootstrap_sqlite_db(tmp_path / "home_finance.db")
    yield url
    dispose_engine()


@pytest.fixture()
def session(db_url: str) -> Iterator[Session]:
    """A session committed on success, like the outer layers use."""

    with session_scope(database_url=db_url) as s:
        yield s
