"""
ScheduleOrchestrator -- DI container for the commitment scheduler.

Contract:
    Wires SqlCommitmentStore, SqlLedger, ExecutionEngine, CalendarProjector
    and CommitmentService around one session and one clock.  Single place
    where the scheduler's dependencies are composed.

Architecture: cashflow_schedule (top-level).  The canonical entry point for
    running sweeps and projections against a database.

Non-goals:
    - Does NOT commit -- the caller owns transaction boundaries.
    - Does NOT trigger sweeps -- cron or another external scheduler does.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from cashflow_config import CashflowConfig
from cashflow_kernel.domain.clock import Clock, SystemClock
from cashflow_kernel.logging_config import get_logger

from cashflow_schedule.services.commitment_service import CommitmentService
from cashflow_schedule.services.engine import ExecutionEngine
from cashflow_schedule.services.projector import (
    DEFAULT_MAX_PROJECTION_DAYS,
    CalendarProjector,
)
from cashflow_schedule.stores.commitment_store import SqlCommitmentStore
from cashflow_schedule.stores.ledger import SqlLedger

logger = get_logger("schedule.orchestrator")


class ScheduleOrchestrator:
    """DI container for the scheduler.

    Contract:
        - ``from_session()`` factory creates a fully wired orchestrator.
        - ``engine``, ``projector`` and ``commitments`` share the session
          and the clock.
    """

    def __init__(
        self,
        session: Session,
        engine: ExecutionEngine,
        projector: CalendarProjector,
        commitments: CommitmentService,
        clock: Clock,
    ) -> None:
        self._session = session
        self._engine = engine
        self._projector = projector
        self._commitments = commitments
        self._clock = clock

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def from_session(
        cls,
        session: Session,
        clock: Clock | None = None,
        config: CashflowConfig | None = None,
    ) -> ScheduleOrchestrator:
        """Create a fully wired ScheduleOrchestrator from a session.

        Args:
            session: SQLAlchemy session for persistence.
            clock: Optional clock for deterministic testing.
            config: Optional runtime config; supplies the projection bound.
        """
        effective_clock = clock or SystemClock()
        max_days = (
            config.projection.max_projection_days
            if config is not None
            else DEFAULT_MAX_PROJECTION_DAYS
        )

        store = SqlCommitmentStore(session)
        ledger = SqlLedger(session)

        # Ledger insert and commitment advance share one SAVEPOINT per item.
        engine = ExecutionEngine(
            commitment_store=store,
            ledger=ledger,
            clock=effective_clock,
            item_scope=session.begin_nested,
        )
        engine.initialize()

        return cls(
            session=session,
            engine=engine,
            projector=CalendarProjector(store, ledger, max_projection_days=max_days),
            commitments=CommitmentService(store, clock=effective_clock),
            clock=effective_clock,
        )

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def session(self) -> Session:
        return self._session

    @property
    def engine(self) -> ExecutionEngine:
        return self._engine

    @property
    def projector(self) -> CalendarProjector:
        return self._projector

    @property
    def commitments(self) -> CommitmentService:
        return self._commitments

    @property
    def clock(self) -> Clock:
        return self._clock
