"""
CommitmentStore -- persistence collaborator consumed by the engine.

Contract:
    ``CommitmentStore`` is the protocol the engine, projector and request
    layer depend on.  ``SqlCommitmentStore`` implements it over a
    caller-owned SQLAlchemy ``Session``.

Architecture: cashflow_schedule/stores.  Imports from cashflow_schedule.domain,
    cashflow_schedule.models and the kernel.

Ordering:
    ``get_all_due``, ``get_all_active`` and ``get_by_date_range`` return
    rows ordered by ascending ``next_due_date``, then ``id``.  A sweep that
    is interrupted has therefore always handled the oldest occurrences first.

Non-goals:
    - Does NOT call ``session.commit()`` -- the caller controls boundaries.
    - Does NOT validate request input -- see CommitmentService.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from typing import Any, Iterator, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cashflow_kernel.exceptions import (
    CommitmentNotFoundError,
    CommitmentStoreError,
    CommitmentValidationError,
)
from cashflow_kernel.logging_config import get_logger

from cashflow_schedule.domain.types import Commitment
from cashflow_schedule.models.commitment import CommitmentModel

logger = get_logger("schedule.commitment_store")

UPDATABLE_FIELDS: frozenset[str] = frozenset({
    "description",
    "category",
    "kind",
    "amount",
    "next_due_date",
    "last_executed_date",
    "recurrence_pattern",
    "recurrence_interval",
    "recurrence_end_date",
    "is_active",
})


@runtime_checkable
class CommitmentStore(Protocol):
    """Persistence interface for commitments."""

    def create(self, commitment: Commitment) -> Commitment: ...

    def get_by_id(self, commitment_id: UUID, owner_id: str) -> Commitment | None: ...

    def get_all_active(self, owner_id: str) -> tuple[Commitment, ...]: ...

    def get_all_due(self, as_of: date) -> tuple[Commitment, ...]:
        """Active commitments across ALL owners with next_due_date <= as_of."""
        ...

    def get_by_date_range(
        self, owner_id: str, start_date: date, end_date: date,
    ) -> tuple[Commitment, ...]:
        """Active commitments of one owner with next_due_date in [start, end]."""
        ...

    def update(
        self, commitment_id: UUID, owner_id: str, fields: dict[str, Any],
    ) -> Commitment: ...

    def delete(self, commitment_id: UUID, owner_id: str) -> Commitment: ...

    def deactivate(
        self,
        commitment_id: UUID,
        owner_id: str,
        last_executed_date: date | None = None,
    ) -> Commitment:
        """Make the commitment terminal: inactive, no next due date."""
        ...


class SqlCommitmentStore:
    """SQLAlchemy implementation of CommitmentStore.

    Every SQLAlchemyError surfaces as CommitmentStoreError so callers can
    tell persistence failures apart from validation or lookup errors.
    """

    def __init__(self, session: Session):
        self._session = session

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create(self, commitment: Commitment) -> Commitment:
        with self._wrap("create"):
            model = CommitmentModel.from_dto(commitment)
            self._session.add(model)
            self._session.flush()
            dto = model.to_dto()

        pattern = dto.recurrence_pattern
        logger.info(
            "commitment_created",
            extra={
                "commitment_id": str(dto.id),
                "owner_id": dto.owner_id,
                "next_due_date": dto.next_due_date,
                "recurrence_pattern": getattr(pattern, "value", pattern),
            },
        )
        return dto

    def update(
        self, commitment_id: UUID, owner_id: str, fields: dict[str, Any],
    ) -> Commitment:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise CommitmentValidationError(
                sorted(unknown)[0], "field cannot be updated",
            )

        with self._wrap("update"):
            model = self._load(commitment_id, owner_id)
            for name, value in fields.items():
                setattr(model, name, getattr(value, "value", value))
            self._session.flush()
            return model.to_dto()

    def delete(self, commitment_id: UUID, owner_id: str) -> Commitment:
        with self._wrap("delete"):
            model = self._load(commitment_id, owner_id)
            dto = model.to_dto()
            self._session.delete(model)
            self._session.flush()

        logger.info(
            "commitment_deleted",
            extra={"commitment_id": str(commitment_id), "owner_id": owner_id},
        )
        return dto

    def deactivate(
        self,
        commitment_id: UUID,
        owner_id: str,
        last_executed_date: date | None = None,
    ) -> Commitment:
        with self._wrap("deactivate"):
            model = self._load(commitment_id, owner_id)
            model.is_active = False
            model.next_due_date = None
            if last_executed_date is not None:
                model.last_executed_date = last_executed_date
            self._session.flush()
            return model.to_dto()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_by_id(self, commitment_id: UUID, owner_id: str) -> Commitment | None:
        with self._wrap("get_by_id"):
            model = self._find(commitment_id, owner_id)
            return model.to_dto() if model is not None else None

    def get_all_active(self, owner_id: str) -> tuple[Commitment, ...]:
        with self._wrap("get_all_active"):
            models = self._session.execute(
                select(CommitmentModel)
                .where(
                    CommitmentModel.owner_id == owner_id,
                    CommitmentModel.is_active == True,  # noqa: E712
                )
                .order_by(CommitmentModel.next_due_date, CommitmentModel.id)
            ).scalars().all()
            return tuple(m.to_dto() for m in models)

    def get_all_due(self, as_of: date) -> tuple[Commitment, ...]:
        with self._wrap("get_all_due"):
            models = self._session.execute(
                select(CommitmentModel)
                .where(
                    CommitmentModel.is_active == True,  # noqa: E712
                    CommitmentModel.next_due_date.is_not(None),
                    CommitmentModel.next_due_date <= as_of,
                )
                .order_by(CommitmentModel.next_due_date, CommitmentModel.id)
            ).scalars().all()
            return tuple(m.to_dto() for m in models)

    def get_by_date_range(
        self, owner_id: str, start_date: date, end_date: date,
    ) -> tuple[Commitment, ...]:
        with self._wrap("get_by_date_range"):
            models = self._session.execute(
                select(CommitmentModel)
                .where(
                    CommitmentModel.owner_id == owner_id,
                    CommitmentModel.is_active == True,  # noqa: E712
                    CommitmentModel.next_due_date >= start_date,
                    CommitmentModel.next_due_date <= end_date,
                )
                .order_by(CommitmentModel.next_due_date, CommitmentModel.id)
            ).scalars().all()
            return tuple(m.to_dto() for m in models)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _find(self, commitment_id: UUID, owner_id: str) -> CommitmentModel | None:
        return self._session.execute(
            select(CommitmentModel).where(
                CommitmentModel.id == commitment_id,
                CommitmentModel.owner_id == owner_id,
            )
        ).scalar_one_or_none()

    def _load(self, commitment_id: UUID, owner_id: str) -> CommitmentModel:
        model = self._find(commitment_id, owner_id)
        if model is None:
            raise CommitmentNotFoundError(str(commitment_id), owner_id)
        return model

    @contextmanager
    def _wrap(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            raise CommitmentStoreError(operation, str(exc)) from exc
