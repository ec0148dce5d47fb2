"""
Tests for cashflow_schedule.domain.recurrence.

Validates the pure recurrence calculator: per-pattern stepping, month-end
clamping, end-date cutoff, unknown patterns, is_due() and the
PENDING / TERMINAL state mapping.  Property tests use hypothesis.
"""

from datetime import date, timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from cashflow_schedule.domain.recurrence import (
    add_months,
    commitment_state,
    is_due,
    next_occurrence,
)
from cashflow_schedule.domain.types import CommitmentState, RecurrencePattern

REPEATING = [p for p in RecurrencePattern if p != RecurrencePattern.ONCE]

dates = st.dates(min_value=date(1900, 1, 1), max_value=date(2900, 12, 31))
intervals = st.integers(min_value=1, max_value=24)


# =============================================================================
# add_months
# =============================================================================


class TestAddMonths:
    def test_simple(self):
        assert add_months(date(2024, 1, 15), 1) == date(2024, 2, 15)

    def test_year_rollover(self):
        assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)

    def test_clamps_to_leap_february(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)

    def test_clamps_to_common_february(self):
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_clamps_to_thirty_day_month(self):
        assert add_months(date(2024, 3, 31), 1) == date(2024, 4, 30)

    def test_zero_months(self):
        assert add_months(date(2024, 5, 31), 0) == date(2024, 5, 31)


# =============================================================================
# next_occurrence -- per pattern
# =============================================================================


class TestNextOccurrence:
    def test_once_is_terminal(self):
        assert next_occurrence(date(2024, 1, 1), RecurrencePattern.ONCE) is None

    def test_daily(self):
        assert next_occurrence(date(2024, 1, 31), RecurrencePattern.DAILY) == date(2024, 2, 1)

    def test_daily_interval(self):
        assert next_occurrence(date(2024, 1, 1), RecurrencePattern.DAILY, 10) == date(2024, 1, 11)

    def test_weekly(self):
        assert next_occurrence(date(2024, 1, 1), RecurrencePattern.WEEKLY) == date(2024, 1, 8)

    def test_biweekly(self):
        assert next_occurrence(date(2024, 1, 1), RecurrencePattern.WEEKLY, 2) == date(2024, 1, 15)

    def test_monthly(self):
        assert next_occurrence(date(2024, 1, 15), RecurrencePattern.MONTHLY) == date(2024, 2, 15)

    def test_monthly_clamps_month_end(self):
        assert next_occurrence(date(2024, 1, 31), RecurrencePattern.MONTHLY) == date(2024, 2, 29)

    def test_monthly_drifts_after_clamp(self):
        feb = next_occurrence(date(2024, 1, 31), RecurrencePattern.MONTHLY)
        assert next_occurrence(feb, RecurrencePattern.MONTHLY) == date(2024, 3, 29)

    def test_quarterly(self):
        assert next_occurrence(date(2024, 1, 15), RecurrencePattern.QUARTERLY) == date(2024, 4, 15)

    def test_quarterly_interval(self):
        assert next_occurrence(date(2024, 1, 15), RecurrencePattern.QUARTERLY, 2) == date(2024, 7, 15)

    def test_yearly(self):
        assert next_occurrence(date(2024, 6, 1), RecurrencePattern.YEARLY) == date(2025, 6, 1)

    def test_yearly_from_leap_day(self):
        assert next_occurrence(date(2024, 2, 29), RecurrencePattern.YEARLY) == date(2025, 2, 28)

    def test_accepts_raw_string_pattern(self):
        assert next_occurrence(date(2024, 1, 1), "weekly") == date(2024, 1, 8)

    def test_unknown_pattern_is_terminal(self):
        assert next_occurrence(date(2024, 1, 1), "fortnightly") is None

    @pytest.mark.parametrize("interval", [0, -3, None])
    def test_interval_below_one_acts_as_one(self, interval):
        assert next_occurrence(date(2024, 1, 1), RecurrencePattern.DAILY, interval) == date(2024, 1, 2)


# =============================================================================
# next_occurrence -- end date
# =============================================================================


class TestEndDate:
    def test_candidate_after_end_is_terminal(self):
        result = next_occurrence(
            date(2024, 1, 10), RecurrencePattern.MONTHLY, 1, date(2024, 2, 5),
        )
        assert result is None

    def test_candidate_on_end_is_kept(self):
        result = next_occurrence(
            date(2024, 1, 10), RecurrencePattern.MONTHLY, 1, date(2024, 2, 10),
        )
        assert result == date(2024, 2, 10)

    def test_once_ignores_end_date(self):
        result = next_occurrence(
            date(2024, 1, 10), RecurrencePattern.ONCE, 1, date(2030, 1, 1),
        )
        assert result is None


# =============================================================================
# Properties
# =============================================================================


class TestRecurrenceProperties:
    @given(d=dates, pattern=st.sampled_from(REPEATING), interval=intervals)
    def test_repeating_pattern_moves_strictly_forward(self, d, pattern, interval):
        result = next_occurrence(d, pattern, interval)
        assert result is not None
        assert result > d

    @given(d=dates, interval=intervals, end=st.one_of(st.none(), dates))
    def test_once_is_always_terminal(self, d, interval, end):
        assert next_occurrence(d, RecurrencePattern.ONCE, interval, end) is None

    @given(
        d=dates,
        pattern=st.sampled_from(REPEATING),
        interval=intervals,
        lag=st.integers(min_value=0, max_value=400),
    )
    def test_never_returns_date_after_end(self, d, pattern, interval, lag):
        end = d + timedelta(days=lag)
        result = next_occurrence(d, pattern, interval, end)
        assert result is None or d < result <= end

    @given(d=dates, months=st.integers(min_value=0, max_value=120))
    def test_add_months_lands_in_target_month(self, d, months):
        result = add_months(d, months)
        assert (result.year * 12 + result.month) - (d.year * 12 + d.month) == months
        assert result.day <= d.day


# =============================================================================
# is_due / commitment_state
# =============================================================================


class TestIsDue:
    def test_due_on_the_day(self, commitment_dto):
        c = commitment_dto(next_due_date=date(2024, 1, 10))
        assert is_due(c, date(2024, 1, 10))

    def test_not_due_the_day_before(self, commitment_dto):
        c = commitment_dto(next_due_date=date(2024, 1, 10))
        assert not is_due(c, date(2024, 1, 9))

    def test_overdue(self, commitment_dto):
        c = commitment_dto(next_due_date=date(2024, 1, 10))
        assert is_due(c, date(2024, 3, 1))

    def test_inactive_never_due(self, commitment_dto):
        c = commitment_dto(next_due_date=date(2024, 1, 10), is_active=False)
        assert not is_due(c, date(2024, 3, 1))


class TestCommitmentState:
    def test_active_with_date_is_pending(self, commitment_dto):
        assert commitment_state(commitment_dto()) == CommitmentState.PENDING

    def test_inactive_is_terminal(self, commitment_dto):
        c = commitment_dto(is_active=False, next_due_date=None)
        assert commitment_state(c) == CommitmentState.TERMINAL

    def test_missing_date_is_terminal(self, commitment_dto):
        c = commitment_dto(next_due_date=None)
        assert commitment_state(c) == CommitmentState.TERMINAL
