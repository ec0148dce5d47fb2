"""
cashflow_schedule.domain -- Pure types and recurrence evaluation.

ZERO I/O.  All types are frozen dataclasses.
"""

from cashflow_schedule.domain.recurrence import (
    add_months,
    commitment_state,
    is_due,
    next_occurrence,
)
from cashflow_schedule.domain.types import (
    CalendarDay,
    Commitment,
    CommitmentExecution,
    CommitmentState,
    EntryKind,
    ExecutionOutcome,
    LedgerEntry,
    RecurrencePattern,
    SweepResult,
    SweepStatus,
    coerce_pattern,
    signed_amount,
)

__all__ = [
    "CalendarDay",
    "Commitment",
    "CommitmentExecution",
    "CommitmentState",
    "EntryKind",
    "ExecutionOutcome",
    "LedgerEntry",
    "RecurrencePattern",
    "SweepResult",
    "SweepStatus",
    "add_months",
    "coerce_pattern",
    "commitment_state",
    "is_due",
    "next_occurrence",
    "signed_amount",
]
