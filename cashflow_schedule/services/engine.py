"""
ExecutionEngine -- the due-commitment sweep.

Contract:
    ``run(as_of)`` reads every commitment due on or before ``as_of``,
    materializes one ledger entry per commitment dated on its due date,
    then advances the commitment to its next occurrence or retires it.

Architecture: cashflow_schedule/services.  Depends only on the
    CommitmentStore and Ledger protocols, the pure recurrence calculator and
    the kernel (clock, logging, exceptions).

Guarantees:
    - Reentrancy guard: an overlapping ``run()`` in the same process
      returns ALREADY_RUNNING immediately and touches nothing.  The lock
      is module-level, so it holds across every ExecutionEngine instance.
    - Per-item isolation: a failure on one commitment is logged and
      counted; the rest of the batch continues.  When an ``item_scope`` is
      wired (SAVEPOINT with the SQL stores), the ledger entry and the
      advance of one commitment commit or roll back together.
    - A failed commitment keeps its next_due_date, so the next sweep
      retries it.  There is no other retry and no max-retry cutoff.
    - A failure while fetching the due set aborts the run with a FAILED
      result and zero items processed.

Non-goals:
    - Does NOT call ``session.commit()`` -- caller controls boundaries.
    - Does NOT decide when to run -- an external scheduler calls ``run()``.
    - The guard is per process.  Several replicas sweeping the same store
      need a distributed lock or lease in front of ``run()``.
"""

from __future__ import annotations

import threading
import time
from contextlib import AbstractContextManager, nullcontext
from datetime import date
from typing import Any, Callable
from uuid import UUID, uuid4

from cashflow_kernel.domain.clock import Clock, SystemClock
from cashflow_kernel.exceptions import DuplicateLedgerEntryError
from cashflow_kernel.logging_config import LogContext, get_logger
from cashflow_kernel.utils.idempotency import occurrence_key

from cashflow_schedule.domain.recurrence import next_occurrence
from cashflow_schedule.domain.types import (
    Commitment,
    CommitmentExecution,
    ExecutionOutcome,
    LedgerEntry,
    SweepResult,
    SweepStatus,
)
from cashflow_schedule.stores.commitment_store import CommitmentStore
from cashflow_schedule.stores.ledger import Ledger

logger = get_logger("schedule.engine")

ItemScope = Callable[[], AbstractContextManager[Any]]

# One sweep per process, however many engines the orchestrator builds.
_SWEEP_LOCK = threading.Lock()


class ExecutionEngine:
    """Sweep engine that promotes due commitments into ledger entries.

    Contract:
        - ``initialize()`` is an idempotent setup marker.
        - ``run()`` performs one sweep and returns a SweepResult.
        - ``is_running`` reports whether any sweep in this process is in progress.
    """

    def __init__(
        self,
        commitment_store: CommitmentStore,
        ledger: Ledger,
        clock: Clock | None = None,
        item_scope: ItemScope | None = None,
    ):
        self._store = commitment_store
        self._ledger = ledger
        self._clock = clock or SystemClock()
        self._item_scope = item_scope or nullcontext
        self._initialized = False

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def initialize(self) -> None:
        """Mark the engine ready. Safe to call any number of times."""
        if self._initialized:
            logger.info("engine_already_initialized")
            return
        self._initialized = True
        logger.info(
            "engine_initialized",
            extra={"trigger": "external", "guard": "in_process"},
        )

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_running(self) -> bool:
        return _SWEEP_LOCK.locked()

    # -------------------------------------------------------------------------
    # Sweep
    # -------------------------------------------------------------------------

    def run(self, as_of: date | None = None) -> SweepResult:
        """Execute every commitment due on or before ``as_of`` (default: today)."""
        as_of = as_of or self._clock.today()

        if not _SWEEP_LOCK.acquire(blocking=False):
            logger.warning("sweep_skipped_already_running", extra={"as_of": as_of})
            return SweepResult(
                status=SweepStatus.ALREADY_RUNNING,
                as_of=as_of,
                error_summary="Sweep already in progress",
            )

        try:
            run_id = uuid4()
            with LogContext.bind(run_id=str(run_id)):
                return self._sweep(as_of, run_id)
        finally:
            _SWEEP_LOCK.release()

    def _sweep(self, as_of: date, run_id: UUID) -> SweepResult:
        start_time = time.monotonic()
        started_at = self._clock.now()

        try:
            due = self._store.get_all_due(as_of)
        except Exception as exc:
            logger.exception("sweep_due_fetch_failed", extra={"as_of": as_of})
            return SweepResult(
                status=SweepStatus.FAILED,
                as_of=as_of,
                run_id=run_id,
                started_at=started_at,
                completed_at=self._clock.now(),
                duration_ms=int((time.monotonic() - start_time) * 1000),
                error_summary=f"get_all_due failed: {exc}",
            )

        logger.info("sweep_started", extra={"as_of": as_of, "due_count": len(due)})

        processed = 0
        skipped = 0
        errors = 0
        item_results: list[CommitmentExecution] = []

        for commitment in due:
            result = self._execute_one(commitment)
            item_results.append(result)
            if result.outcome == ExecutionOutcome.FAILED:
                errors += 1
            elif result.outcome == ExecutionOutcome.DUPLICATE_SKIPPED:
                skipped += 1
            else:
                processed += 1

        if errors == 0:
            status = SweepStatus.COMPLETED
        elif processed == 0 and skipped == 0:
            status = SweepStatus.FAILED
        else:
            status = SweepStatus.PARTIALLY_COMPLETED

        completed_at = self._clock.now()
        duration_ms = int((time.monotonic() - start_time) * 1000)

        logger.info(
            "sweep_completed",
            extra={
                "as_of": as_of,
                "status": status.value,
                "processed": processed,
                "skipped": skipped,
                "errors": errors,
                "duration_ms": duration_ms,
            },
        )

        return SweepResult(
            status=status,
            as_of=as_of,
            total_due=len(due),
            processed=processed,
            skipped=skipped,
            errors=errors,
            item_results=tuple(item_results),
            run_id=run_id,
            started_at=started_at,
            completed_at=completed_at,
            duration_ms=duration_ms,
            error_summary=f"{errors} commitment(s) failed" if errors else None,
        )

    # -------------------------------------------------------------------------
    # Single commitment
    # -------------------------------------------------------------------------

    def _execute_one(self, commitment: Commitment) -> CommitmentExecution:
        item_start = time.monotonic()
        due_date = commitment.next_due_date

        with LogContext.bind(
            commitment_id=str(commitment.id), owner_id=commitment.owner_id,
        ):
            try:
                with self._item_scope():
                    entry_id, duplicate = self._materialize(commitment)
                    next_date = next_occurrence(
                        due_date,
                        commitment.recurrence_pattern,
                        commitment.recurrence_interval,
                        commitment.recurrence_end_date,
                    )
                    if next_date is not None:
                        self._store.update(
                            commitment.id,
                            commitment.owner_id,
                            {
                                "last_executed_date": due_date,
                                "next_due_date": next_date,
                            },
                        )
                    else:
                        self._store.deactivate(
                            commitment.id,
                            commitment.owner_id,
                            last_executed_date=due_date,
                        )
            except Exception as exc:
                logger.exception(
                    "commitment_execution_failed",
                    extra={"due_date": due_date},
                )
                return CommitmentExecution(
                    commitment_id=commitment.id,
                    owner_id=commitment.owner_id,
                    due_date=due_date,
                    outcome=ExecutionOutcome.FAILED,
                    error_code=getattr(exc, "code", "UNHANDLED_EXCEPTION"),
                    error_message=str(exc),
                    duration_ms=int((time.monotonic() - item_start) * 1000),
                )

            if duplicate:
                outcome = ExecutionOutcome.DUPLICATE_SKIPPED
            elif next_date is None:
                outcome = ExecutionOutcome.RETIRED
            else:
                outcome = ExecutionOutcome.ADVANCED

            logger.info(
                "commitment_retired" if next_date is None else "commitment_advanced",
                extra={
                    "due_date": due_date,
                    "next_due_date": next_date,
                    "duplicate": duplicate,
                },
            )

        return CommitmentExecution(
            commitment_id=commitment.id,
            owner_id=commitment.owner_id,
            due_date=due_date,
            outcome=outcome,
            next_due_date=next_date,
            ledger_entry_id=entry_id,
            duration_ms=int((time.monotonic() - item_start) * 1000),
        )

    def _materialize(self, commitment: Commitment) -> tuple[UUID, bool]:
        """Create the ledger entry for the occurrence due on next_due_date.

        Returns (entry_id, duplicate).  A duplicate means an earlier sweep
        wrote the entry but never advanced the commitment.
        """
        key = occurrence_key(commitment.id, commitment.next_due_date)
        entry = LedgerEntry(
            id=uuid4(),
            owner_id=commitment.owner_id,
            description=commitment.description,
            category=commitment.category,
            kind=commitment.kind,
            amount=commitment.signed_amount,
            entry_date=commitment.next_due_date,
            commitment_id=commitment.id,
            idempotency_key=key,
        )
        try:
            created = self._ledger.create(entry)
        except DuplicateLedgerEntryError as exc:
            logger.warning(
                "occurrence_already_materialized",
                extra={
                    "idempotency_key": key,
                    "existing_entry_id": exc.existing_entry_id,
                },
            )
            return UUID(str(exc.existing_entry_id)), True
        return created.id, False
