"""
CommitmentService -- request-level validation in front of the store.

Contract:
    Every create/update request is validated here before it reaches the
    CommitmentStore.  Reads and deletes are scoped by owner and turn a
    missing row into CommitmentNotFoundError.

Validation rules:
    - description, amount, category and kind are required; blank strings
      are rejected.
    - amount must parse to a positive, finite Decimal.
    - kind must be a known EntryKind, pattern a known RecurrencePattern.
    - a due date is required for one-time and recurring commitments and
      must be strictly after the clock's today.
    - interval must be an integer >= 1.
    - an end date, when given, must not be before the due date.

Non-goals:
    - Does NOT call ``session.commit()``.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from cashflow_kernel.db.types import money_from_value
from cashflow_kernel.domain.clock import Clock, SystemClock
from cashflow_kernel.exceptions import CommitmentNotFoundError, CommitmentValidationError
from cashflow_kernel.logging_config import get_logger

from cashflow_schedule.domain.types import Commitment, EntryKind, RecurrencePattern
from cashflow_schedule.stores.commitment_store import UPDATABLE_FIELDS, CommitmentStore

logger = get_logger("schedule.commitment_service")

# Fields callers may change; the engine owns last_executed_date.
REQUEST_UPDATABLE_FIELDS = UPDATABLE_FIELDS - {"last_executed_date"}


class CommitmentService:
    """Validated create/read/update/delete of commitments for one owner."""

    def __init__(self, store: CommitmentStore, clock: Clock | None = None):
        self._store = store
        self._clock = clock or SystemClock()

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def create_commitment(
        self,
        owner_id: str,
        description: str,
        amount: Decimal | int | float | str,
        category: str,
        kind: EntryKind | str,
        next_due_date: date | str | None,
        recurrence_pattern: RecurrencePattern | str = RecurrencePattern.ONCE,
        recurrence_interval: int = 1,
        recurrence_end_date: date | str | None = None,
    ) -> Commitment:
        """Validate and persist a new commitment.

        Raises:
            CommitmentValidationError: On the first rule violated.
        """
        owner_id = _require_text("owner_id", owner_id)
        description = _require_text("description", description)
        category = _require_text("category", category)
        parsed_amount = _parse_amount(amount)
        parsed_kind = _parse_kind(kind)
        pattern = _parse_pattern(recurrence_pattern)
        due = self._parse_future_date("next_due_date", next_due_date)
        interval = _parse_interval(recurrence_interval)
        end = _parse_date("recurrence_end_date", recurrence_end_date)
        _check_end_date(due, end)

        commitment = Commitment(
            id=uuid4(),
            owner_id=owner_id,
            description=description,
            category=category,
            kind=parsed_kind,
            amount=parsed_amount,
            next_due_date=due,
            recurrence_pattern=pattern,
            recurrence_interval=interval,
            recurrence_end_date=end,
        )
        return self._store.create(commitment)

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def get_commitment(self, commitment_id: UUID, owner_id: str) -> Commitment:
        commitment = self._store.get_by_id(commitment_id, owner_id)
        if commitment is None:
            raise CommitmentNotFoundError(str(commitment_id), owner_id)
        return commitment

    def list_active(self, owner_id: str) -> tuple[Commitment, ...]:
        return self._store.get_all_active(owner_id)

    # -------------------------------------------------------------------------
    # Update / delete
    # -------------------------------------------------------------------------

    def update_commitment(
        self, commitment_id: UUID, owner_id: str, fields: dict[str, Any],
    ) -> Commitment:
        """Re-validate the touched fields, then apply them.

        The end-date rule is checked against the merged result, so moving
        only the due date past an existing end date is rejected.  Setting
        ``is_active`` to False retires the commitment like
        ``deactivate_commitment``: its next_due_date is cleared.
        """
        unknown = set(fields) - REQUEST_UPDATABLE_FIELDS
        if unknown:
            raise CommitmentValidationError(sorted(unknown)[0], "field cannot be updated")

        current = self.get_commitment(commitment_id, owner_id)
        clean: dict[str, Any] = {}

        for name, value in fields.items():
            if name in ("description", "category"):
                clean[name] = _require_text(name, value)
            elif name == "amount":
                clean[name] = _parse_amount(value)
            elif name == "kind":
                clean[name] = _parse_kind(value)
            elif name == "recurrence_pattern":
                clean[name] = _parse_pattern(value)
            elif name == "recurrence_interval":
                clean[name] = _parse_interval(value)
            elif name == "next_due_date":
                clean[name] = self._parse_future_date(name, value)
            elif name == "recurrence_end_date":
                clean[name] = _parse_date(name, value)
            elif name == "is_active":
                if not isinstance(value, bool):
                    raise CommitmentValidationError(name, "must be a boolean")
                clean[name] = value

        if clean.get("is_active") is False:
            if "next_due_date" in clean:
                raise CommitmentValidationError(
                    "next_due_date", "cannot be set while deactivating",
                )
            clean["next_due_date"] = None

        due = clean.get("next_due_date", current.next_due_date)
        end = clean.get("recurrence_end_date", current.recurrence_end_date)
        if due is not None:
            _check_end_date(due, end)

        if clean.get("is_active") is True and due is None:
            raise CommitmentValidationError(
                "is_active", "a terminal commitment needs a new next_due_date",
            )

        updated = self._store.update(commitment_id, owner_id, clean)
        logger.info(
            "commitment_updated",
            extra={
                "commitment_id": str(commitment_id),
                "owner_id": owner_id,
                "fields": sorted(clean),
            },
        )
        return updated

    def delete_commitment(self, commitment_id: UUID, owner_id: str) -> Commitment:
        return self._store.delete(commitment_id, owner_id)

    def deactivate_commitment(self, commitment_id: UUID, owner_id: str) -> Commitment:
        """Retire the commitment without deleting it (TERMINAL)."""
        commitment = self._store.deactivate(commitment_id, owner_id)
        logger.info(
            "commitment_deactivated",
            extra={"commitment_id": str(commitment_id), "owner_id": owner_id},
        )
        return commitment

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _parse_future_date(self, field: str, value: date | str | None) -> date:
        parsed = _parse_date(field, value)
        if parsed is None:
            raise CommitmentValidationError(field, "is required")
        today = self._clock.today()
        if parsed <= today:
            raise CommitmentValidationError(
                field, f"must be after today ({today.isoformat()})",
            )
        return parsed


def _require_text(field: str, value: Any) -> str:
    if value is None or not isinstance(value, str) or not value.strip():
        raise CommitmentValidationError(field, "is required")
    return value.strip()


def _parse_amount(value: Any) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise CommitmentValidationError("amount", "is required")
    try:
        amount = money_from_value(value)
    except ValueError:
        raise CommitmentValidationError("amount", "must be a number") from None
    if amount <= 0:
        raise CommitmentValidationError("amount", "must be positive")
    return amount


def _parse_kind(value: Any) -> EntryKind:
    if value is None or value == "":
        raise CommitmentValidationError("kind", "is required")
    try:
        return EntryKind(value)
    except ValueError:
        allowed = ", ".join(k.value for k in EntryKind)
        raise CommitmentValidationError("kind", f"must be one of: {allowed}") from None


def _parse_pattern(value: Any) -> RecurrencePattern:
    try:
        return RecurrencePattern(value)
    except ValueError:
        allowed = ", ".join(p.value for p in RecurrencePattern)
        raise CommitmentValidationError(
            "recurrence_pattern", f"must be one of: {allowed}",
        ) from None


def _parse_interval(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise CommitmentValidationError("recurrence_interval", "must be an integer")
    if value < 1:
        raise CommitmentValidationError("recurrence_interval", "must be at least 1")
    return value


def _parse_date(field: str, value: date | str | None) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise CommitmentValidationError(field, "must be an ISO date (YYYY-MM-DD)")


def _check_end_date(due: date, end: date | None) -> None:
    if end is not None and end < due:
        raise CommitmentValidationError(
            "recurrence_end_date", "must not be before next_due_date",
        )
