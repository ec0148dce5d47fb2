"""
Ledger -- the money-movement collaborator.

Contract:
    ``create(entry)`` appends an entry; ``sum_by_owner_up_to()`` is the
    single aggregate read the projector needs.  Entries are never updated
    or deleted through this interface.

Idempotency:
    An entry carrying an ``idempotency_key`` that is already stored is not
    written again; ``create`` raises DuplicateLedgerEntryError with the id
    of the existing entry.  The key is also UNIQUE in the table, so a
    concurrent writer that slips past the check fails on flush instead of
    duplicating money.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol, runtime_checkable

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cashflow_kernel.exceptions import DuplicateLedgerEntryError, LedgerError
from cashflow_kernel.logging_config import get_logger

from cashflow_schedule.domain.types import EntryKind, LedgerEntry
from cashflow_schedule.models.commitment import LedgerEntryModel

logger = get_logger("schedule.ledger")


@runtime_checkable
class Ledger(Protocol):
    """Ledger collaborator used by the engine (write) and projector (read)."""

    def create(self, entry: LedgerEntry) -> LedgerEntry: ...

    def sum_by_owner_up_to(self, owner_id: str, up_to: date) -> Decimal:
        """Signed total of the owner's entries dated on or before ``up_to``."""
        ...


class SqlLedger:
    """SQLAlchemy implementation of the Ledger collaborator."""

    def __init__(self, session: Session):
        self._session = session

    def create(self, entry: LedgerEntry) -> LedgerEntry:
        """Append an entry.

        Raises:
            DuplicateLedgerEntryError: If the idempotency key is already used.
            LedgerError: On any storage failure.
        """
        try:
            if entry.idempotency_key is not None:
                existing = self._session.execute(
                    select(LedgerEntryModel.id).where(
                        LedgerEntryModel.idempotency_key == entry.idempotency_key,
                    )
                ).scalar_one_or_none()
                if existing is not None:
                    raise DuplicateLedgerEntryError(entry.idempotency_key, str(existing))

            model = LedgerEntryModel.from_dto(entry)
            self._session.add(model)
            self._session.flush()
            dto = model.to_dto()
        except SQLAlchemyError as exc:
            raise LedgerError("create", str(exc)) from exc

        logger.info(
            "ledger_entry_created",
            extra={
                "entry_id": str(dto.id),
                "owner_id": dto.owner_id,
                "entry_date": dto.entry_date,
                "amount": dto.amount,
                "commitment_id": str(dto.commitment_id) if dto.commitment_id else None,
            },
        )
        return dto

    def sum_by_owner_up_to(self, owner_id: str, up_to: date) -> Decimal:
        """Income adds its magnitude, expense subtracts its magnitude."""
        magnitude = func.abs(LedgerEntryModel.amount)
        signed = case(
            (LedgerEntryModel.kind == EntryKind.INCOME.value, magnitude),
            else_=-magnitude,
        )
        try:
            total = self._session.execute(
                select(func.coalesce(func.sum(signed), 0)).where(
                    LedgerEntryModel.owner_id == owner_id,
                    LedgerEntryModel.entry_date <= up_to,
                )
            ).scalar_one()
        except SQLAlchemyError as exc:
            raise LedgerError("sum_by_owner_up_to", str(exc)) from exc
        return Decimal(str(total))

    def get_by_idempotency_key(self, idempotency_key: str) -> LedgerEntry | None:
        try:
            model = self._session.execute(
                select(LedgerEntryModel).where(
                    LedgerEntryModel.idempotency_key == idempotency_key,
                )
            ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise LedgerError("get_by_idempotency_key", str(exc)) from exc
        return model.to_dto() if model is not None else None

    def list_for_owner(self, owner_id: str) -> tuple[LedgerEntry, ...]:
        """All entries of one owner, oldest first."""
        try:
            models = self._session.execute(
                select(LedgerEntryModel)
                .where(LedgerEntryModel.owner_id == owner_id)
                .order_by(LedgerEntryModel.entry_date, LedgerEntryModel.id)
            ).scalars().all()
        except SQLAlchemyError as exc:
            raise LedgerError("list_for_owner", str(exc)) from exc
        return tuple(m.to_dto() for m in models)
