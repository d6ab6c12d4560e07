# ruff: noqa: I001
"""Alembic environment for the ``db`` library (``hf_*`` tables).

The URL comes from ``DATABASE_URL`` (a ``.env`` found from the working
directory is loaded first, without overriding the environment) and falls back
to ``sqlalchemy.url`` in ``alembic.ini``. SQLite runs in batch mode because it
cannot alter constraints in place.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from dotenv import find_dotenv, load_dotenv
from sqlalchemy import engine_from_config, pool

import db as _db_pkg

config = context.config
target_metadata = _db_pkg.metadata

# Only when run through an ini file; programmatic callers keep their logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _resolve_url() -> str:
    # Works from the repo root and from libs/db alike.
    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(dotenv_path=env_file, override=False)
    url = os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError(
            "No database URL: export DATABASE_URL or set sqlalchemy.url in alembic.ini"
        )
    return url


DB_URL = _resolve_url()


def run_migrations_offline() -> None:
    """Emit SQL for ``DB_URL``'s dialect without connecting."""
    context.configure(
        url=DB_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        render_as_batch=DB_URL.startswith("sqlite"),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a throwaway (unpooled) connection."""
    options = dict(config.get_section(config.config_ini_section) or {})
    options["sqlalchemy.url"] = DB_URL
    engine = engine_from_config(options, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
