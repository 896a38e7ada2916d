"""Logging configuration for the ``political_fund_report`` package.

Two helpers are exported:

- ``configure_logging(...)``: attach one ``StreamHandler`` to the package root
  logger (``"political_fund_report"``). Entrypoints such as the CLI call this
  once at startup; calling it again is a no-op.
- ``get_logger(name)``: return a named logger. Until an application configures
  logging, the package root logger carries a ``NullHandler`` so library use
  stays silent.

Engine modules never attach handlers themselves. They call
``get_logger("political_fund_report.<module>")`` and emit short
``event key=value`` messages that are easy to grep.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "political_fund_report"
_LEVEL_ENV = "POLITICAL_FUND_REPORT_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str) and level.strip():
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelName(name)
        if isinstance(numeric, int):
            return numeric
        raise ValueError(f"unknown log level: {level!r}")
    env_val = os.getenv(_LEVEL_ENV)
    if env_val:
        return _parse_level(env_val)
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once.

    Parameters
    ----------
    level:
        ``int`` level or level name (``"DEBUG"``, ``"info"``...). When
        ``None``, ``POLITICAL_FUND_REPORT_LOG_LEVEL`` is consulted and
        ``logging.INFO`` is the fallback.
    fmt:
        Optional format string for the handler.
    stream:
        Destination of the single ``StreamHandler``.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved = _parse_level(level)
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)`` with a silent package default."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
