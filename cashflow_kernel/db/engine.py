"""
Module: cashflow_kernel.db.engine
Responsibility: Process-wide engine and session factory for the CLI and any
    embedding service, plus the commit-or-rollback ``session_scope``.
Architecture position: Kernel > DB.  Table helpers import
    ``cashflow_schedule.models`` lazily so Base.metadata is complete.

Invariants enforced:
    - Non-SQLite URLs get a pre-pinged QueuePool at READ COMMITTED.
    - SQLite URLs keep the driver's own pooling.
    - session_scope() commits on clean exit and rolls back otherwise.

Failure modes:
    - RuntimeError from any accessor used before init_engine_from_url().
"""

import atexit
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from cashflow_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."


def _engine_options(
    database_url: str,
    *,
    pool_size: int,
    max_overflow: int,
    pool_pre_ping: bool,
    pool_timeout: int,
) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {}
    return {
        "poolclass": QueuePool,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": pool_pre_ping,
        "pool_timeout": pool_timeout,
        "isolation_level": "READ COMMITTED",
    }


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
) -> Engine:
    """
    Create the process engine for ``database_url``, replacing any previous one.

    Pool arguments only apply to server databases; SQLite ignores them.
    """
    global _engine, _SessionFactory

    reset_engine()

    options = _engine_options(
        database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=pool_pre_ping,
        pool_timeout=pool_timeout,
    )
    _engine = create_engine(database_url, echo=echo, **options)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "pooled": bool(options),
            "echo": echo,
        },
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory


def get_session() -> Session:
    """New session from the process factory; the caller closes it."""
    return get_session_factory()()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    One unit of work: commit on success, roll back and re-raise on error.

    Usage:
        with session_scope() as session:
            ScheduleOrchestrator.from_session(session).engine.run()
    """
    session = get_session()
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


def _schedule_metadata() -> MetaData:
    from cashflow_kernel.db.base import Base

    # Importing the models registers their tables on Base.metadata.
    import cashflow_schedule.models  # noqa: F401

    return Base.metadata


def create_tables() -> None:
    """Create the commitment and ledger tables if they do not exist."""
    metadata = _schedule_metadata()
    metadata.create_all(get_engine())
    logger.info("tables_created", extra={"tables": sorted(metadata.tables)})


def drop_tables() -> None:
    """Drop every scheduler table. Tests and local resets only."""
    _schedule_metadata().drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


atexit.register(reset_engine)
