"""
ORM models for commitments and ledger entries.

Contract:
    CommitmentModel and LedgerEntryModel persist recurring commitments and
    the entries materialized from them.  Each has ``to_dto()`` /
    ``from_dto()`` round-trip methods; nothing outside the stores touches
    the models directly.

Architecture: cashflow_schedule/models. Imports from cashflow_kernel.db only.

Invariants enforced:
    - ``recurrence_interval >= 1`` (CHECK constraint).
    - ``amount >= 0`` on commitments (magnitude; kind carries the sign).
    - ``idempotency_key`` is UNIQUE on LedgerEntryModel: one entry per
      (commitment, due date) occurrence.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Date, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cashflow_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from cashflow_schedule.domain.types import Commitment, LedgerEntry


class CommitmentModel(TrackedBase):
    """Persistent recurring commitment."""

    __tablename__ = "commitments"

    __table_args__ = (
        Index("ix_commitments_due", "is_active", "next_due_date"),
        Index("ix_commitments_owner", "owner_id", "is_active"),
        CheckConstraint("recurrence_interval >= 1", name="ck_commitments_interval"),
        CheckConstraint("amount >= 0", name="ck_commitments_amount"),
    )

    owner_id: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(200), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    next_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_executed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    recurrence_pattern: Mapped[str] = mapped_column(String(20), nullable=False)
    recurrence_interval: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    recurrence_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def to_dto(self) -> Commitment:
        from cashflow_schedule.domain.types import Commitment, EntryKind, coerce_pattern

        return Commitment(
            id=self.id,
            owner_id=self.owner_id,
            description=self.description,
            category=self.category,
            kind=EntryKind(self.kind),
            amount=self.amount,
            next_due_date=self.next_due_date,
            recurrence_pattern=coerce_pattern(self.recurrence_pattern),
            recurrence_interval=self.recurrence_interval,
            recurrence_end_date=self.recurrence_end_date,
            last_executed_date=self.last_executed_date,
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_dto(cls, dto: Commitment) -> CommitmentModel:
        pattern = dto.recurrence_pattern
        return cls(
            id=dto.id,
            owner_id=dto.owner_id,
            description=dto.description,
            category=dto.category,
            kind=dto.kind.value,
            amount=dto.amount,
            next_due_date=dto.next_due_date,
            last_executed_date=dto.last_executed_date,
            recurrence_pattern=getattr(pattern, "value", pattern),
            recurrence_interval=dto.recurrence_interval,
            recurrence_end_date=dto.recurrence_end_date,
            is_active=dto.is_active,
        )


class LedgerEntryModel(TrackedBase):
    """Realized money movement. Append-only from the engine's perspective."""

    __tablename__ = "ledger_entries"

    __table_args__ = (
        Index("ix_ledger_entries_owner_date", "owner_id", "entry_date"),
        Index("ix_ledger_entries_commitment", "commitment_id"),
    )

    owner_id: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(200), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    commitment_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    idempotency_key: Mapped[str | None] = mapped_column(
        String(200), nullable=True, unique=True,
    )

    def to_dto(self) -> LedgerEntry:
        from cashflow_schedule.domain.types import EntryKind, LedgerEntry

        return LedgerEntry(
            id=self.id,
            owner_id=self.owner_id,
            description=self.description,
            category=self.category,
            kind=EntryKind(self.kind),
            amount=self.amount,
            entry_date=self.entry_date,
            commitment_id=self.commitment_id,
            idempotency_key=self.idempotency_key,
            created_at=self.created_at,
        )

    @classmethod
    def from_dto(cls, dto: LedgerEntry) -> LedgerEntryModel:
        return cls(
            id=dto.id,
            owner_id=dto.owner_id,
            description=dto.description,
            category=dto.category,
            kind=dto.kind.value,
            amount=dto.amount,
            entry_date=dto.entry_date,
            commitment_id=dto.commitment_id,
            idempotency_key=dto.idempotency_key,
        )
