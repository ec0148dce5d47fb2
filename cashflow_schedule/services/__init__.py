"""Services: sweep engine, calendar projection and request validation."""

from cashflow_schedule.services.commitment_service import CommitmentService
from cashflow_schedule.services.engine import ExecutionEngine
from cashflow_schedule.services.projector import (
    DEFAULT_MAX_PROJECTION_DAYS,
    CalendarProjector,
)

__all__ = [
    "DEFAULT_MAX_PROJECTION_DAYS",
    "CalendarProjector",
    "CommitmentService",
    "ExecutionEngine",
]
