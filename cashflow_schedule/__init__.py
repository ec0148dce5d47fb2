"""
cashflow_schedule -- Recurring commitments, due sweeps and balance projection.

Promotes planned, possibly recurring money movements ("commitments") into
realized ledger entries once they fall due, advances each commitment to its
next occurrence, and projects a per-day balance calendar from the ledger
and the pending commitments.

Architecture:
    cashflow_schedule/ sits on top of cashflow_kernel/ (clock, logging,
    exceptions, database plumbing).  Nothing in cashflow_kernel/ imports
    from cashflow_schedule, except ``create_tables`` which imports the
    models to register them.

    domain/    pure types and the recurrence calculator (zero I/O)
    models/    SQLAlchemy ORM rows with DTO round-trips
    stores/    CommitmentStore and Ledger protocols plus SQL implementations
    services/  ExecutionEngine, CalendarProjector, CommitmentService
"""
