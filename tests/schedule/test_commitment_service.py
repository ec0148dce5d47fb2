"""
Tests for cashflow_schedule.services.commitment_service.

Validates request-level rules on create and update, and the owner-scoped
read/delete/deactivate pass-throughs.  The clock is pinned to 2024-01-01.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from cashflow_kernel.exceptions import CommitmentNotFoundError, CommitmentValidationError

from cashflow_schedule.domain.types import CommitmentState, EntryKind, RecurrencePattern
from cashflow_schedule.domain.recurrence import commitment_state
from cashflow_schedule.services.commitment_service import CommitmentService

TOMORROW = date(2024, 1, 2)


@pytest.fixture
def service(store, clock):
    return CommitmentService(store, clock=clock)


def _create(service, **overrides):
    values = {
        "owner_id": "user-1",
        "description": "Rent",
        "amount": "1200.00",
        "category": "housing",
        "kind": "expense",
        "next_due_date": TOMORROW,
        "recurrence_pattern": "monthly",
    }
    values.update(overrides)
    return service.create_commitment(**values)


# =============================================================================
# create_commitment
# =============================================================================


class TestCreateCommitment:
    def test_valid_request_is_persisted(self, service, store):
        created = _create(service)

        stored = store.get_by_id(created.id, "user-1")
        assert stored.amount == Decimal("1200.00")
        assert stored.kind == EntryKind.EXPENSE
        assert stored.recurrence_pattern == RecurrencePattern.MONTHLY
        assert stored.recurrence_interval == 1
        assert commitment_state(stored) == CommitmentState.PENDING

    def test_strings_are_trimmed(self, service):
        created = _create(service, description="  Rent  ", category=" housing ")
        assert created.description == "Rent"
        assert created.category == "housing"

    def test_iso_string_dates_accepted(self, service):
        created = _create(service, next_due_date="2024-02-01", recurrence_end_date="2024-12-31")
        assert created.next_due_date == date(2024, 2, 1)
        assert created.recurrence_end_date == date(2024, 12, 31)

    def test_datetime_due_date_is_reduced_to_date(self, service):
        created = _create(
            service, next_due_date=datetime(2024, 1, 5, 9, 30, tzinfo=timezone.utc),
        )
        assert created.next_due_date == date(2024, 1, 5)

    def test_pattern_defaults_to_once(self, service):
        created = service.create_commitment(
            owner_id="user-1",
            description="Car repair",
            amount=350,
            category="auto",
            kind=EntryKind.EXPENSE,
            next_due_date=TOMORROW,
        )
        assert created.recurrence_pattern == RecurrencePattern.ONCE

    @pytest.mark.parametrize("field", ["description", "category"])
    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_blank_text_rejected(self, service, field, value):
        with pytest.raises(CommitmentValidationError) as exc_info:
            _create(service, **{field: value})
        assert exc_info.value.field == field

    @pytest.mark.parametrize("amount", [None, "", "abc", "NaN", "Infinity", True])
    def test_unparseable_amount_rejected(self, service, amount):
        with pytest.raises(CommitmentValidationError) as exc_info:
            _create(service, amount=amount)
        assert exc_info.value.field == "amount"

    @pytest.mark.parametrize("amount", [0, "-5", Decimal("-0.01")])
    def test_non_positive_amount_rejected(self, service, amount):
        with pytest.raises(CommitmentValidationError) as exc_info:
            _create(service, amount=amount)
        assert exc_info.value.reason == "must be positive"

    @pytest.mark.parametrize("kind", [None, "", "transfer"])
    def test_invalid_kind_rejected(self, service, kind):
        with pytest.raises(CommitmentValidationError) as exc_info:
            _create(service, kind=kind)
        assert exc_info.value.field == "kind"

    def test_unknown_pattern_rejected(self, service):
        with pytest.raises(CommitmentValidationError) as exc_info:
            _create(service, recurrence_pattern="fortnightly")
        assert exc_info.value.field == "recurrence_pattern"

    @pytest.mark.parametrize("pattern", ["once", "monthly"])
    def test_due_date_required(self, service, pattern):
        with pytest.raises(CommitmentValidationError) as exc_info:
            _create(service, next_due_date=None, recurrence_pattern=pattern)
        assert exc_info.value.field == "next_due_date"

    def test_same_day_rejected(self, service):
        with pytest.raises(CommitmentValidationError):
            _create(service, next_due_date=date(2024, 1, 1))

    def test_past_date_rejected(self, service):
        with pytest.raises(CommitmentValidationError):
            _create(service, next_due_date=date(2023, 12, 31))

    def test_malformed_date_rejected(self, service):
        with pytest.raises(CommitmentValidationError) as exc_info:
            _create(service, next_due_date="01/02/2024")
        assert exc_info.value.field == "next_due_date"

    @pytest.mark.parametrize("interval", [0, -1, 1.5, "2", True])
    def test_invalid_interval_rejected(self, service, interval):
        with pytest.raises(CommitmentValidationError) as exc_info:
            _create(service, recurrence_interval=interval)
        assert exc_info.value.field == "recurrence_interval"

    def test_end_before_due_rejected(self, service):
        with pytest.raises(CommitmentValidationError) as exc_info:
            _create(service, next_due_date=date(2024, 2, 1), recurrence_end_date=date(2024, 1, 31))
        assert exc_info.value.field == "recurrence_end_date"

    def test_end_on_due_date_allowed(self, service):
        created = _create(service, recurrence_end_date=TOMORROW)
        assert created.recurrence_end_date == TOMORROW

    def test_validation_error_code(self, service):
        with pytest.raises(CommitmentValidationError) as exc_info:
            _create(service, amount="0")
        assert exc_info.value.code == "COMMITMENT_VALIDATION_FAILED"


# =============================================================================
# Reads, update, delete
# =============================================================================


class TestManageCommitment:
    def test_get_missing_raises(self, service):
        with pytest.raises(CommitmentNotFoundError):
            service.get_commitment(uuid4(), "user-1")

    def test_get_is_owner_scoped(self, service):
        created = _create(service)
        with pytest.raises(CommitmentNotFoundError):
            service.get_commitment(created.id, "user-2")

    def test_list_active(self, service):
        created = _create(service)
        _create(service, owner_id="user-2")
        assert [c.id for c in service.list_active("user-1")] == [created.id]

    def test_update_revalidates_amount(self, service):
        created = _create(service)
        with pytest.raises(CommitmentValidationError):
            service.update_commitment(created.id, "user-1", {"amount": "-10"})

    def test_update_applies_clean_values(self, service):
        created = _create(service)
        updated = service.update_commitment(
            created.id, "user-1", {"amount": "99.95", "recurrence_pattern": "weekly"},
        )
        assert updated.amount == Decimal("99.95")
        assert updated.recurrence_pattern == RecurrencePattern.WEEKLY

    def test_update_checks_end_date_against_stored_due_date(self, service):
        created = _create(service, next_due_date=date(2024, 3, 1))
        with pytest.raises(CommitmentValidationError) as exc_info:
            service.update_commitment(
                created.id, "user-1", {"recurrence_end_date": date(2024, 2, 1)},
            )
        assert exc_info.value.field == "recurrence_end_date"

    def test_update_rejects_engine_owned_field(self, service):
        created = _create(service)
        with pytest.raises(CommitmentValidationError) as exc_info:
            service.update_commitment(
                created.id, "user-1", {"last_executed_date": date(2024, 1, 1)},
            )
        assert exc_info.value.field == "last_executed_date"

    def test_reactivating_terminal_needs_due_date(self, service):
        created = _create(service)
        service.deactivate_commitment(created.id, "user-1")
        with pytest.raises(CommitmentValidationError):
            service.update_commitment(created.id, "user-1", {"is_active": True})

    def test_update_inactive_clears_due_date(self, service):
        created = _create(service, next_due_date=date(2024, 2, 1))

        retired = service.update_commitment(created.id, "user-1", {"is_active": False})

        assert retired.is_active is False
        assert retired.next_due_date is None
        assert commitment_state(retired) == CommitmentState.TERMINAL
        assert service.get_commitment(created.id, "user-1").next_due_date is None

    def test_update_inactive_with_due_date_rejected(self, service):
        created = _create(service)
        with pytest.raises(CommitmentValidationError) as exc_info:
            service.update_commitment(
                created.id,
                "user-1",
                {"is_active": False, "next_due_date": date(2024, 3, 1)},
            )
        assert exc_info.value.field == "next_due_date"
        assert service.get_commitment(created.id, "user-1").next_due_date == TOMORROW

    def test_deactivate_makes_terminal(self, service):
        created = _create(service)
        retired = service.deactivate_commitment(created.id, "user-1")
        assert commitment_state(retired) == CommitmentState.TERMINAL
        assert service.list_active("user-1") == ()

    def test_delete(self, service):
        created = _create(service)
        service.delete_commitment(created.id, "user-1")
        with pytest.raises(CommitmentNotFoundError):
            service.get_commitment(created.id, "user-1")
