"""Engine and session lifecycle for the ``hf_*`` tables.

One engine per process, created lazily from ``database_url`` or
``DATABASE_URL``::

    from db.client import session_scope

    with session_scope() as session:
        create_person(session, name="Pedro", age=20)

``session_scope`` is the unit of work used by every entrypoint: it commits
when the block finishes and rolls back when it raises. SQLite connections get
``PRAGMA foreign_keys = ON`` so the ``ON DELETE CASCADE``/``RESTRICT`` rules
on ``hf_transactions`` hold there as they do on Postgres.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

_ENGINE: Engine | None = None
_SESSION_MAKER: sessionmaker[Session] | None = None
_BOUND_URL: str | None = None


def _require_url(explicit: str | None) -> str:
    url = explicit or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set; pass --database-url or export DATABASE_URL"
        )
    return url


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _record):  # pragma: no cover - tiny bridge
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the process engine, creating it on first use.

    Passing a URL different from the one already bound is an error; call
    :func:`dispose_engine` first to switch databases.
    """

    global _ENGINE, _SESSION_MAKER, _BOUND_URL
    if _ENGINE is not None:
        if database_url is not None and database_url != _BOUND_URL:
            raise RuntimeError(
                f"engine already bound to {_BOUND_URL!r}; dispose_engine() before "
                "binding another database"
            )
        return _ENGINE

    url = _require_url(database_url)
    engine = create_engine(url, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_foreign_keys(engine)
    _ENGINE = engine
    _SESSION_MAKER = sessionmaker(bind=engine, expire_on_commit=False)
    _BOUND_URL = url
    return engine


def dispose_engine() -> None:
    """Close pooled connections and forget the bound URL."""

    global _ENGINE, _SESSION_MAKER, _BOUND_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = _SESSION_MAKER = _BOUND_URL = None


def get_session(*, database_url: str | None = None) -> Session:
    get_engine(database_url=database_url)
    assert _SESSION_MAKER is not None
    return _SESSION_MAKER()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Yield a session; commit on success, roll back and re-raise on error."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_schema(*, database_url: str | None = None) -> None:
    """Create every table from the ORM metadata (quickstart and tests; Alembic migrates)."""

    from .models.finance import Base

    Base.metadata.create_all(bind=get_engine(database_url=database_url))


__all__ = [
    "get_engine",
    "dispose_engine",
    "get_session",
    "session_scope",
    "create_schema",
]
