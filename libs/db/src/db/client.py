"""SQLAlchemy engine/session helpers shared by the report tooling.

Usage
-----
from db.client import session_scope

with session_scope() as s:
    source = SqlReportSource(s)

The URL comes from ``DATABASE_URL`` unless one is passed explicitly. One
engine is kept per process; :func:`dispose_engine` drops it so a different
URL can be used (tests point every case at its own SQLite file).
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

_ENGINE: Engine | None = None
_SESSION_MAKER: sessionmaker[Session] | None = None
_DB_URL: str | None = None


def _database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; pass --database-url or set it in .env")
    return url


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the process-wide engine, creating it on first use.

    Asking for a different URL once an engine exists raises ``RuntimeError``.
    """

    global _ENGINE, _SESSION_MAKER, _DB_URL
    url = _database_url(database_url)
    if _ENGINE is None:
        _ENGINE = create_engine(url, pool_pre_ping=True)
        _SESSION_MAKER = sessionmaker(bind=_ENGINE, expire_on_commit=False, class_=Session)
        _DB_URL = url
        return _ENGINE
    if url != _DB_URL:
        raise RuntimeError(
            f"engine already bound to a different database; call dispose_engine() first "
            f"(current={_DB_URL!r}, requested={url!r})"
        )
    return _ENGINE


def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""

    global _ENGINE, _SESSION_MAKER, _DB_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _SESSION_MAKER = None
    _DB_URL = None


def get_session(*, database_url: str | None = None) -> Session:
    get_engine(database_url=database_url)
    assert _SESSION_MAKER is not None  # bound by get_engine
    return _SESSION_MAKER()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Session that commits on success and rolls back on error."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "dispose_engine",
    "get_engine",
    "get_session",
    "session_scope",
]
