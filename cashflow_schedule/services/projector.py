"""
CalendarProjector -- per-day balance projection for one owner.

Contract:
    ``project(owner_id, start, end)`` returns one CalendarDay per calendar
    day in ``[start, end]``, ascending.

Balance rule:
    baseline = signed ledger total of the owner up to ``end``.
    Each day's balance is the baseline plus ONLY that day's scheduled
    movement.  Movements of earlier days in the range are not carried
    forward.  Only a commitment's current ``next_due_date`` is projected;
    later occurrences of a recurring commitment are not expanded.

Non-goals:
    - Read-only.  Never writes to the store or the ledger.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal

from cashflow_kernel.exceptions import InvalidDateRangeError
from cashflow_kernel.logging_config import get_logger

from cashflow_schedule.domain.types import CalendarDay, Commitment, EntryKind
from cashflow_schedule.stores.commitment_store import CommitmentStore
from cashflow_schedule.stores.ledger import Ledger

logger = get_logger("schedule.projector")

DEFAULT_MAX_PROJECTION_DAYS = 366


class CalendarProjector:
    """Read-only projection over the commitment store and the ledger."""

    def __init__(
        self,
        commitment_store: CommitmentStore,
        ledger: Ledger,
        max_projection_days: int = DEFAULT_MAX_PROJECTION_DAYS,
    ):
        self._store = commitment_store
        self._ledger = ledger
        self._max_days = max_projection_days

    def project(
        self, owner_id: str, start: date, end: date,
    ) -> tuple[CalendarDay, ...]:
        """Project daily balances for ``owner_id`` between ``start`` and ``end``.

        Raises:
            InvalidDateRangeError: ``start`` after ``end``, or the range is
                longer than the configured maximum.
        """
        if start > end:
            raise InvalidDateRangeError(start, end, "start date is after end date")
        span = (end - start).days + 1
        if span > self._max_days:
            raise InvalidDateRangeError(
                start, end, f"range of {span} days exceeds maximum of {self._max_days}",
            )

        baseline = self._ledger.sum_by_owner_up_to(owner_id, end)
        commitments = self._store.get_by_date_range(owner_id, start, end)

        by_day: dict[date, list[Commitment]] = defaultdict(list)
        for commitment in commitments:
            by_day[commitment.next_due_date].append(commitment)

        days: list[CalendarDay] = []
        for offset in range(span):
            day = start + timedelta(days=offset)
            occurring = by_day.get(day, [])
            income = sum(
                (abs(c.amount) for c in occurring if c.kind == EntryKind.INCOME),
                Decimal("0"),
            )
            expenses = sum(
                (abs(c.amount) for c in occurring if c.kind == EntryKind.EXPENSE),
                Decimal("0"),
            )
            days.append(CalendarDay(
                date=day,
                balance=baseline + income - expenses,
                income=income,
                expenses=expenses,
                occurring_commitments=tuple(occurring),
            ))

        logger.info(
            "calendar_projected",
            extra={
                "owner_id": owner_id,
                "start": start,
                "end": end,
                "days": span,
                "commitments": len(commitments),
                "baseline": baseline,
            },
        )
        return tuple(days)
