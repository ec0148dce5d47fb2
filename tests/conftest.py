"""
Pytest fixtures for the cashflow test suite.

Provides:
- In-memory SQLite sessions (no PostgreSQL required)
- A DeterministicClock pinned to a known day
- Commitment factories for the SQL store
- Captured structured log records
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import cashflow_schedule.models  # noqa: F401  (registers tables on Base)
from cashflow_kernel.db.base import Base
from cashflow_kernel.domain.clock import DeterministicClock
from cashflow_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

from cashflow_schedule.domain.types import Commitment, EntryKind, RecurrencePattern
from cashflow_schedule.stores.commitment_store import SqlCommitmentStore
from cashflow_schedule.stores.ledger import SqlLedger

TEST_OWNER = "user-1"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture cashflow logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, engine):
            engine.run()
            logs = captured_logs()
            assert any(r["message"] == "sweep_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("cashflow")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_session():
    """In-memory SQLite session for fast unit tests."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def clock():
    return DeterministicClock.on(date(2024, 1, 1))


@pytest.fixture
def store(db_session):
    return SqlCommitmentStore(db_session)


@pytest.fixture
def ledger(db_session):
    return SqlLedger(db_session)


def build_commitment(**overrides) -> Commitment:
    """Commitment DTO with sensible defaults; any field can be overridden."""
    values = {
        "id": uuid4(),
        "owner_id": TEST_OWNER,
        "description": "Rent",
        "category": "housing",
        "kind": EntryKind.EXPENSE,
        "amount": Decimal("100"),
        "next_due_date": date(2024, 1, 10),
        "recurrence_pattern": RecurrencePattern.ONCE,
    }
    values.update(overrides)
    return Commitment(**values)


@pytest.fixture
def make_commitment(store):
    """Persist a commitment through the SQL store and return its DTO."""

    def _make(**overrides) -> Commitment:
        return store.create(build_commitment(**overrides))

    return _make


@pytest.fixture
def commitment_dto():
    """Unpersisted Commitment factory for fakes and pure-function tests."""
    return build_commitment
