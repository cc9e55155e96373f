"""
Module: billing_kernel.db.engine
Responsibility: Builds engines for the billing database, holds the one
    process-wide engine the CLI uses, and provides session_scope(), the
    commit-or-rollback boundary every load runs inside.
Architecture position: Kernel > DB.  May import from db/base.py.
    MUST NOT import from selectors/ or outer layers (create_tables and
    drop_tables import models/ lazily so the metadata is complete).

Invariants enforced:
    - Server databases get a QueuePool with pre-ping and READ COMMITTED.
    - SQLite connections switch on PRAGMA foreign_keys, otherwise the
      customer -> invoice -> transaction links would go unchecked.
    - session_scope() commits only on normal exit.  Any exception rolls the
      whole unit back and is re-raised as it was raised.

Failure modes:
    - RuntimeError from get_engine/get_session_factory before
      init_engine_from_url().
    - sqlalchemy.exc.TimeoutError when pool_size + max_overflow connections
      are all checked out for longer than pool_timeout.
"""

import atexit
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from billing_kernel.logging_config import get_logger

logger = get_logger("db.engine")

# Process-wide engine, set by init_engine_from_url()
_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _server_pool_options(
    pool_size: int,
    max_overflow: int,
    pool_pre_ping: bool,
    pool_timeout: int,
    pool_recycle: int,
) -> dict[str, Any]:
    return {
        "poolclass": QueuePool,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": pool_pre_ping,
        "pool_timeout": pool_timeout,
        "pool_recycle": pool_recycle,
        "isolation_level": "READ COMMITTED",
    }


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 60,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create an engine for ``database_url`` without touching module state.

    SQLite URLs keep the dialect's own pool (the sizing arguments are
    ignored); every other URL is pooled with the given sizing.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(database_url, echo=echo)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        database_url,
        echo=echo,
        **_server_pool_options(pool_size, max_overflow, pool_pre_ping, pool_timeout, pool_recycle),
    )


def init_engine_from_url(database_url: str, echo: bool = False, **pool_options: Any) -> Engine:
    """
    Build the process-wide engine and its session factory.

    A second call disposes the previous engine first.  ``pool_options`` are
    passed through to build_engine() (pool_size, max_overflow,
    pool_pre_ping, pool_timeout, pool_recycle).

    Sessions from the factory keep attribute values after commit, so a
    LoadResult can still be read once its unit of work has closed.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    _engine = build_engine(database_url, echo=echo, **pool_options)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "echo": echo, **pool_options},
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory


@contextmanager
def session_scope(
    session_factory: sessionmaker[Session] | None = None,
) -> Generator[Session, None, None]:
    """
    One unit of work: commit on normal exit, roll back on any exception.

    Uses the process-wide factory when ``session_factory`` is omitted.  The
    session is always closed; a rollback is logged as
    ``transaction_rolled_back`` before the exception propagates.

    Usage:
        with session_scope(factory) as session:
            session.add_all(rows)
    """
    session = (session_factory or get_session_factory())()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(engine: Engine | None = None) -> None:
    """
    Create the six billing tables where missing.

    Bootstraps test and demo databases; deployed schemas are managed
    outside this package.
    """
    from billing_kernel.db.base import Base
    import billing_kernel.models  # noqa: F401

    Base.metadata.create_all(engine or get_engine())


def drop_tables(engine: Engine | None = None) -> None:
    """Drop the billing tables.  Tests only."""
    from billing_kernel.db.base import Base
    import billing_kernel.models  # noqa: F401

    Base.metadata.drop_all(engine or get_engine())


def reset_engine() -> None:
    """Dispose and forget the process-wide engine."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        _engine = None
    _SessionFactory = None


atexit.register(reset_engine)
