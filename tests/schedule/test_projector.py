"""
Tests for cashflow_schedule.services.projector.

Validates CalendarProjector: one day per calendar day, the
baseline-plus-own-day balance rule (no carry-forward between days) and
range validation.  Uses in-memory SQLite.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from cashflow_kernel.exceptions import InvalidDateRangeError

from cashflow_schedule.domain.types import EntryKind, LedgerEntry
from cashflow_schedule.services.projector import CalendarProjector

MARCH_START = date(2024, 3, 1)
MARCH_END = date(2024, 3, 31)


@pytest.fixture
def projector(store, ledger):
    return CalendarProjector(store, ledger)


def _historical(ledger, amount, entry_date, kind=EntryKind.EXPENSE, owner_id="user-1"):
    return ledger.create(LedgerEntry(
        id=uuid4(),
        owner_id=owner_id,
        description="History",
        category="misc",
        kind=kind,
        amount=amount,
        entry_date=entry_date,
    ))


# =============================================================================
# Shape
# =============================================================================


class TestShape:
    def test_one_day_per_calendar_day(self, projector):
        days = projector.project("user-1", MARCH_START, MARCH_END)
        assert len(days) == 31
        assert days[0].date == MARCH_START
        assert days[-1].date == MARCH_END

    def test_single_day_range(self, projector):
        days = projector.project("user-1", MARCH_START, MARCH_START)
        assert [d.date for d in days] == [MARCH_START]

    def test_empty_owner_is_all_zero(self, projector):
        days = projector.project("user-1", MARCH_START, date(2024, 3, 3))
        assert all(d.balance == Decimal("0") for d in days)
        assert all(d.occurring_commitments == () for d in days)


# =============================================================================
# Balances
# =============================================================================


class TestBalances:
    def test_day_balance_does_not_carry_forward(self, projector, ledger, make_commitment):
        _historical(ledger, Decimal("-50"), date(2024, 2, 20))
        rent = make_commitment(
            kind=EntryKind.EXPENSE,
            amount=Decimal("20"),
            next_due_date=date(2024, 3, 10),
        )

        days = {d.date: d for d in projector.project("user-1", MARCH_START, MARCH_END)}

        assert days[date(2024, 3, 10)].balance == Decimal("-70")
        assert days[date(2024, 3, 11)].balance == Decimal("-50")
        assert days[date(2024, 3, 9)].balance == Decimal("-50")
        assert days[date(2024, 3, 10)].expenses == Decimal("20")
        assert [c.id for c in days[date(2024, 3, 10)].occurring_commitments] == [rent.id]

    def test_income_and_expense_on_same_day(self, projector, make_commitment):
        make_commitment(kind=EntryKind.INCOME, amount=Decimal("300"), next_due_date=date(2024, 3, 5))
        make_commitment(kind=EntryKind.EXPENSE, amount=Decimal("120"), next_due_date=date(2024, 3, 5))

        day = projector.project("user-1", date(2024, 3, 5), date(2024, 3, 5))[0]

        assert day.income == Decimal("300")
        assert day.expenses == Decimal("120")
        assert day.balance == Decimal("180")

    def test_baseline_includes_entries_inside_range(self, projector, ledger):
        _historical(ledger, Decimal("500"), date(2024, 3, 20), kind=EntryKind.INCOME)

        days = projector.project("user-1", MARCH_START, MARCH_END)

        assert days[0].balance == Decimal("500")

    def test_entries_after_range_excluded_from_baseline(self, projector, ledger):
        _historical(ledger, Decimal("-75"), date(2024, 4, 2))
        days = projector.project("user-1", MARCH_START, MARCH_END)
        assert days[0].balance == Decimal("0")

    def test_other_owner_ignored(self, projector, ledger, make_commitment):
        _historical(ledger, Decimal("-40"), date(2024, 2, 1), owner_id="user-2")
        make_commitment(owner_id="user-2", next_due_date=date(2024, 3, 10))

        days = projector.project("user-1", MARCH_START, MARCH_END)

        assert all(d.balance == Decimal("0") for d in days)

    def test_inactive_commitments_not_projected(self, projector, make_commitment):
        make_commitment(next_due_date=date(2024, 3, 10), is_active=False)
        days = {d.date: d for d in projector.project("user-1", MARCH_START, MARCH_END)}
        assert days[date(2024, 3, 10)].balance == Decimal("0")


# =============================================================================
# Range validation
# =============================================================================


class TestRangeValidation:
    def test_start_after_end_raises(self, projector):
        with pytest.raises(InvalidDateRangeError) as exc_info:
            projector.project("user-1", MARCH_END, MARCH_START)
        assert exc_info.value.code == "INVALID_DATE_RANGE"

    def test_range_longer_than_maximum_raises(self, store, ledger):
        projector = CalendarProjector(store, ledger, max_projection_days=31)
        with pytest.raises(InvalidDateRangeError):
            projector.project("user-1", MARCH_START, date(2024, 4, 1))

    def test_range_at_maximum_allowed(self, store, ledger):
        projector = CalendarProjector(store, ledger, max_projection_days=31)
        assert len(projector.project("user-1", MARCH_START, MARCH_END)) == 31
