"""
cashflow_schedule.domain.types -- Pure frozen dataclasses for commitments.

ZERO I/O.

Frozen dataclasses with ``str``-valued enum fields and tuples for
immutable collections.  ORM models convert to and from these DTOs; the
engine, projector and request layer only ever see the DTOs.

Invariants enforced:
    - All DTOs are frozen (immutable snapshots).
    - Amounts on commitments are magnitudes; ``signed_amount`` is the single
      place where ``kind`` turns a magnitude into money in or money out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


# =============================================================================
# Enums
# =============================================================================


class EntryKind(str, Enum):
    """Direction of money for commitments and ledger entries."""

    EXPENSE = "expense"
    INCOME = "income"


class RecurrencePattern(str, Enum):
    """How a commitment repeats."""

    ONCE = "once"  # Single occurrence, terminal after execution
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class CommitmentState(str, Enum):
    """Recurrence state machine."""

    PENDING = "pending"  # Active with a next due date
    TERMINAL = "terminal"  # Exhausted, past end date, or retired by owner


class SweepStatus(str, Enum):
    """Run-level outcome of one sweep."""

    COMPLETED = "completed"  # Every due commitment handled
    PARTIALLY_COMPLETED = "partially_completed"  # Some commitments errored
    FAILED = "failed"  # Due fetch failed, or every commitment errored
    ALREADY_RUNNING = "already_running"  # Reentrancy guard tripped


class ExecutionOutcome(str, Enum):
    """Per-commitment outcome within a sweep."""

    ADVANCED = "advanced"  # Entry created, next_due_date moved forward
    RETIRED = "retired"  # Entry created, commitment became terminal
    DUPLICATE_SKIPPED = "duplicate_skipped"  # Entry already existed, advance replayed
    FAILED = "failed"  # Left untouched; retried next sweep


def coerce_pattern(value: RecurrencePattern | str) -> RecurrencePattern | str:
    """Return the enum member for ``value``, or the raw string if unknown.

    Unknown patterns are kept as-is so the calculator can treat them as
    terminal instead of failing when a row is read.
    """
    if isinstance(value, RecurrencePattern):
        return value
    try:
        return RecurrencePattern(value)
    except ValueError:
        return value


def signed_amount(kind: EntryKind, amount: Decimal) -> Decimal:
    """Income is money in (+), expense is money out (-)."""
    magnitude = abs(amount)
    return magnitude if kind == EntryKind.INCOME else -magnitude


# =============================================================================
# Commitment / ledger DTOs
# =============================================================================


@dataclass(frozen=True)
class Commitment:
    """Immutable snapshot of a recurring (or one-time) planned transaction.

    ``next_due_date`` is None only once the commitment is terminal.
    ``recurrence_pattern`` may hold a raw string if storage contains a value
    this version does not know; such commitments retire on execution.
    """

    id: UUID
    owner_id: str
    description: str
    category: str
    kind: EntryKind
    amount: Decimal  # Magnitude; sign comes from kind
    next_due_date: date | None
    recurrence_pattern: RecurrencePattern | str = RecurrencePattern.ONCE
    recurrence_interval: int = 1
    recurrence_end_date: date | None = None
    last_executed_date: date | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def signed_amount(self) -> Decimal:
        return signed_amount(self.kind, self.amount)


@dataclass(frozen=True)
class LedgerEntry:
    """Immutable record of realized money movement.

    ``idempotency_key`` is UNIQUE in storage: one entry per occurrence.
    """

    id: UUID
    owner_id: str
    description: str
    category: str
    kind: EntryKind
    amount: Decimal  # Signed: income > 0, expense < 0
    entry_date: date
    commitment_id: UUID | None = None
    idempotency_key: str | None = None
    created_at: datetime | None = None


# =============================================================================
# Sweep result DTOs
# =============================================================================


@dataclass(frozen=True)
class CommitmentExecution:
    """Outcome of executing one due commitment inside a sweep."""

    commitment_id: UUID
    owner_id: str
    due_date: date | None
    outcome: ExecutionOutcome
    next_due_date: date | None = None
    ledger_entry_id: UUID | None = None
    error_code: str | None = None
    error_message: str | None = None
    duration_ms: int = 0


@dataclass(frozen=True)
class SweepResult:
    """Summary returned by ``ExecutionEngine.run()``.

    ``processed`` counts commitments whose occurrence was newly
    materialized, ``skipped`` those whose occurrence already existed,
    ``errors`` those left due for the next sweep.
    """

    status: SweepStatus
    as_of: date
    total_due: int = 0
    processed: int = 0
    skipped: int = 0
    errors: int = 0
    item_results: tuple[CommitmentExecution, ...] = ()
    run_id: UUID | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0
    error_summary: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status in (SweepStatus.COMPLETED, SweepStatus.PARTIALLY_COMPLETED)


# =============================================================================
# Projection DTOs
# =============================================================================


@dataclass(frozen=True)
class CalendarDay:
    """One day of a balance projection.

    ``income`` and ``expenses`` are both non-negative totals of the
    commitments due that day; ``balance`` is the baseline plus that day's
    own net movement.
    """

    date: date
    balance: Decimal
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    occurring_commitments: tuple[Commitment, ...] = field(default_factory=tuple)
