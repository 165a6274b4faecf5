"""Engine and session access for the ERP tables.

One engine per process, bound on first use to ``DATABASE_URL`` (or the
``database_url`` passed by the caller). Statement loading commits row by row
and the match pass wraps every line in a savepoint, so the engine is set up to
support both on each backend it may run on:

- PostgreSQL and friends need nothing extra.
- SQLite gets ``PRAGMA foreign_keys = ON`` on every connection, and the
  pysqlite driver's implicit transaction handling is switched off so
  SQLAlchemy emits ``BEGIN`` itself and ``SAVEPOINT`` nests correctly.

Usage
-----
from db.client import session_scope

with session_scope(database_url=url) as s:
    s.add(...)
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

_ENGINE: Engine | None = None
_SESSION_MAKER: sessionmaker[Session] | None = None
_DB_URL: str | None = None


def _database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; cannot initialize database client")
    return url


def _enable_sqlite_fks_and_savepoints(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _record) -> None:
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys = ON")
        finally:
            cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")


def _build_engine(url: str) -> Engine:
    engine = create_engine(url, pool_pre_ping=True)
    if make_url(url).get_backend_name() == "sqlite":
        _enable_sqlite_fks_and_savepoints(engine)
    return engine


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the process-wide engine, creating it on first use.

    Asking for a different URL once bound raises ``RuntimeError``; call
    :func:`reset_engine` first to switch databases.
    """

    global _ENGINE, _SESSION_MAKER, _DB_URL
    url = _database_url(database_url)
    if _ENGINE is None:
        _ENGINE = _build_engine(url)
        _SESSION_MAKER = sessionmaker(bind=_ENGINE, expire_on_commit=False, class_=Session)
        _DB_URL = url
    elif url != _DB_URL:
        raise RuntimeError(
            "get_engine() already initialized with a different DATABASE_URL; "
            "call reset_engine() before binding another database"
        )
    return _ENGINE


def get_session(*, database_url: str | None = None) -> Session:
    """Return a new session on the shared engine. The caller commits and closes it."""

    get_engine(database_url=database_url)
    if _SESSION_MAKER is None:
        raise RuntimeError("session factory missing after engine initialization")
    return _SESSION_MAKER()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Commit on success, roll back on any exception, always close."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def reset_engine() -> None:
    """Dispose the shared engine so the next call may bind a different URL."""

    global _ENGINE, _SESSION_MAKER, _DB_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _SESSION_MAKER = None
    _DB_URL = None


__all__ = [
    "get_engine",
    "get_session",
    "reset_engine",
    "session_scope",
]
