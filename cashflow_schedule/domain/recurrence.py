"""
Pure recurrence evaluation.

Contract:
    ``next_occurrence()``, ``is_due()`` and ``commitment_state()`` are PURE --
    no I/O, no clock, no side effects.  The engine passes in the dates.

Architecture: cashflow_schedule/domain.  ZERO I/O.

Month arithmetic:
    Adding months clamps to the last valid day of the target month
    (Jan 31 + 1 month -> Feb 28/29, Feb 29 + 1 year -> Feb 28).  The
    following occurrence is computed from the clamped date, so a commitment
    anchored on the 31st settles on the shorter day after February.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta

from cashflow_schedule.domain.types import (
    Commitment,
    CommitmentState,
    RecurrencePattern,
    coerce_pattern,
)


def add_months(d: date, months: int) -> date:
    """Add calendar months to ``d``, clamping the day to the month's end."""
    month_index = (d.year * 12) + (d.month - 1) + months
    year = month_index // 12
    month = (month_index % 12) + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def next_occurrence(
    current_due_date: date,
    pattern: RecurrencePattern | str,
    interval: int = 1,
    end_date: date | None = None,
) -> date | None:
    """Compute the due date following ``current_due_date``.

    Args:
        current_due_date: The occurrence being executed.
        pattern: Recurrence pattern; unknown values are terminal.
        interval: Multiplier (every N days/weeks/...); values below 1 act as 1.
        end_date: Optional last permissible date (inclusive).

    Returns:
        The next due date, or None when there is no further occurrence
        (``once``, unknown pattern, or the computed date is after
        ``end_date``).
    """
    pattern = coerce_pattern(pattern)
    step = interval if interval and interval >= 1 else 1

    if pattern == RecurrencePattern.DAILY:
        candidate = current_due_date + timedelta(days=step)
    elif pattern == RecurrencePattern.WEEKLY:
        candidate = current_due_date + timedelta(weeks=step)
    elif pattern == RecurrencePattern.MONTHLY:
        candidate = add_months(current_due_date, step)
    elif pattern == RecurrencePattern.QUARTERLY:
        candidate = add_months(current_due_date, 3 * step)
    elif pattern == RecurrencePattern.YEARLY:
        candidate = add_months(current_due_date, 12 * step)
    else:
        # ONCE and anything unrecognized
        return None

    if end_date is not None and candidate > end_date:
        return None

    return candidate


def is_due(commitment: Commitment, as_of: date) -> bool:
    """True if the commitment would be picked up by a sweep on ``as_of``."""
    if not commitment.is_active or commitment.next_due_date is None:
        return False
    return commitment.next_due_date <= as_of


def commitment_state(commitment: Commitment) -> CommitmentState:
    """Map a commitment snapshot onto the PENDING / TERMINAL state machine."""
    if commitment.is_active and commitment.next_due_date is not None:
        return CommitmentState.PENDING
    return CommitmentState.TERMINAL
