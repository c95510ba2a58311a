"""
cashbook_kernel.db.engine -- Database connection, sessions and schema setup.

Responsibility:
    Hold the process-wide SQLAlchemy engine and session factory, create the
    schema on request and provide a commit-or-rollback session scope.

Architecture position:
    Kernel > DB.  Imports ``db/base.py``; ``initialize()`` additionally
    imports ``cashbook_kernel.models`` so every table is registered.

Invariants enforced:
    - Tables are created only by an explicit ``initialize()`` call at
      process start.  Opening a session never touches the schema.
    - An in-memory SQLite database is served over one shared connection,
      otherwise each session would see its own empty database.
    - ``session_scope()`` commits when the block succeeds and rolls back
      when it raises.

Failure modes:
    - RuntimeError from ``get_engine``, ``get_session`` and ``initialize``
      when ``init_engine_from_url()`` has not been called.
"""

import atexit
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cashbook_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Database not initialized; call init_engine_from_url() first."


def _engine_options(database_url: str, echo: bool) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": echo}
    if database_url.startswith("sqlite"):
        in_memory = ":memory:" in database_url or database_url.rstrip("/").endswith(":")
        if in_memory:
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_pre_ping"] = True
    return options


def init_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """
    Create the engine and session factory for ``database_url``.

    Calling it again disposes the previous engine first.

    Args:
        database_url: SQLAlchemy URL, e.g. ``sqlite:///cashbook.db``, or
            ``sqlite://`` for an in-memory database.
        echo: Log every SQL statement.
    """
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()

    _engine = create_engine(database_url, **_engine_options(database_url, echo))
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info("engine_initialized", extra={"dialect": _engine.dialect.name, "echo": echo})
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    """A new session bound to the current engine."""
    if _session_factory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _session_factory()


def initialize() -> None:
    """
    Create any missing tables.

    Existing tables are not altered; changing them is a migration concern.
    """
    from cashbook_kernel.db.base import Base
    import cashbook_kernel.models  # noqa: F401

    Base.metadata.create_all(get_engine())
    logger.info("schema_initialized", extra={"table_count": len(Base.metadata.tables)})


def drop_tables() -> None:
    """Drop every table.  Tests and local resets only."""
    from cashbook_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Session that commits on success and rolls back on error.

    Usage:
        with session_scope() as session:
            BookkeepingService(session, config).create_income(...)
    """
    session = get_session()
    try:
        yield session
        session.commit()
        logger.debug("session_committed")
    except Exception:
        session.rollback()
        logger.warning("session_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def reset_engine() -> None:
    """Dispose the engine and forget it.  Used by test teardown."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


@atexit.register
def _dispose_on_exit() -> None:
    if _engine is not None:
        _engine.dispose()
