"""Logging for ``home_finance``.

Entrypoints (the CLI root callback, :func:`home_finance.api.create_app` and the
seeder) call :func:`configure_logging` once; it gives the ``home_finance``
logger a single stderr handler and stops propagation so records are not
printed twice under uvicorn or alembic. Library modules only ever call
:func:`get_logger` with a dotted ``home_finance.<module>`` name.

The level is taken from the ``level`` argument, then ``HOME_FINANCE_LOG_LEVEL``,
then ``INFO``. Unknown level names fall back to ``INFO`` rather than failing
startup.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

ROOT_LOGGER = "home_finance"
LEVEL_ENV = "HOME_FINANCE_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_CONFIGURED = False


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or the env var when ``None``) into a numeric level."""

    if level is None:
        level = os.getenv(LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    value = logging.getLevelName(name)
    # getLevelName returns "Level X" for names it does not know.
    return value if isinstance(value, int) else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Attach the package handler; later calls are no-ops.

    ``stream`` defaults to ``sys.stderr`` and ``fmt`` to :data:`DEFAULT_FORMAT`.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    numeric = resolve_level(level)
    root = logging.getLogger(ROOT_LOGGER)
    # Placeholders added by get_logger() before configuration are dropped.
    root.handlers = [h for h in root.handlers if not isinstance(h, logging.NullHandler)]

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    handler.setLevel(numeric)
    root.addHandler(handler)
    root.setLevel(numeric)
    root.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``; unconfigured, the package stays silent."""

    root = logging.getLogger(ROOT_LOGGER)
    if not _CONFIGURED and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
