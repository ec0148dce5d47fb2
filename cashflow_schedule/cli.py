"""
Command-line trigger for the commitment scheduler.

The CLI never schedules itself: cron (or any external scheduler) invokes
``cashflow run`` once per period.

Usage:
    cashflow [--config PATH] [--db-url URL] init-db
    cashflow [--config PATH] [--db-url URL] run [--as-of YYYY-MM-DD]
    cashflow [--config PATH] [--db-url URL] project OWNER_ID START END

Examples:
    # Create tables in the configured database
    cashflow --db-url sqlite:///cashflow.db init-db

    # Sweep everything due today (UTC)
    cashflow run

    # Replay the sweep for a past day
    cashflow run --as-of 2024-03-31

    # Daily balances for one owner
    cashflow project user-1 2024-04-01 2024-04-30

Exit codes (run):
    0  completed or partially completed
    1  failed (due fetch failed, or every due commitment errored)
    2  another sweep is already running in this process
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path
from typing import Any, Sequence

from sqlalchemy.exc import SQLAlchemyError

from cashflow_config import CashflowConfig, get_active_config
from cashflow_kernel.db.engine import create_tables, init_engine_from_url, session_scope
from cashflow_kernel.db.types import round_money
from cashflow_kernel.exceptions import CashflowError
from cashflow_kernel.logging_config import configure_logging, get_logger

from cashflow_schedule.domain.types import CalendarDay, SweepResult, SweepStatus
from cashflow_schedule.orchestrator import ScheduleOrchestrator

logger = get_logger("schedule.cli")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ALREADY_RUNNING = 2

_EXIT_CODES = {
    SweepStatus.COMPLETED: EXIT_OK,
    SweepStatus.PARTIALLY_COMPLETED: EXIT_OK,
    SweepStatus.FAILED: EXIT_FAILED,
    SweepStatus.ALREADY_RUNNING: EXIT_ALREADY_RUNNING,
}


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a date (YYYY-MM-DD): {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cashflow",
        description="Execute due commitments and project daily balances.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file (default: packaged defaults.yaml).",
    )
    parser.add_argument(
        "--db-url",
        default=None,
        help="Database URL; overrides database.url from the configuration.",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create the commitment and ledger tables.")

    run = commands.add_parser("run", help="Execute every commitment due on or before a day.")
    run.add_argument(
        "--as-of",
        type=_iso_date,
        default=None,
        help="Sweep date (YYYY-MM-DD). Default: today (UTC).",
    )

    project = commands.add_parser("project", help="Print daily projected balances as JSON.")
    project.add_argument("owner_id", help="Owner whose balances to project.")
    project.add_argument("start", type=_iso_date, help="First day (YYYY-MM-DD).")
    project.add_argument("end", type=_iso_date, help="Last day (YYYY-MM-DD), inclusive.")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = get_active_config(args.config)
    except (FileNotFoundError, CashflowError) as e:
        print(f"ERROR: Failed to load config: {e}", file=sys.stderr)
        return EXIT_FAILED

    configure_logging(level=config.logging.level)
    logger.info("cli_command_started", extra={"command": args.command})
    try:
        _init_database(config, args.db_url)
        if args.command == "init-db":
            create_tables()
            print("Tables created.")
            return EXIT_OK
        if args.command == "run":
            return _run(config, args.as_of)
        return _project(config, args.owner_id, args.start, args.end)
    except CashflowError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FAILED
    except SQLAlchemyError as e:
        logger.error("cli_database_error", extra={"command": args.command, "error": str(e)})
        print(f"ERROR: Database error: {e}", file=sys.stderr)
        return EXIT_FAILED


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _init_database(config: CashflowConfig, db_url: str | None) -> None:
    db = config.database
    init_engine_from_url(
        db_url or db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
    )


def _run(config: CashflowConfig, as_of: date | None) -> int:
    with session_scope() as session:
        orchestrator = ScheduleOrchestrator.from_session(session, config=config)
        result = orchestrator.engine.run(as_of)

    print(json.dumps(sweep_summary(result), indent=2))
    return _EXIT_CODES[result.status]


def _project(config: CashflowConfig, owner_id: str, start: date, end: date) -> int:
    with session_scope() as session:
        orchestrator = ScheduleOrchestrator.from_session(session, config=config)
        days = orchestrator.projector.project(owner_id, start, end)

    print(json.dumps([calendar_day_summary(day) for day in days], indent=2))
    return EXIT_OK


# ---------------------------------------------------------------------------
# JSON rendering
# ---------------------------------------------------------------------------


def sweep_summary(result: SweepResult) -> dict[str, Any]:
    return {
        "status": result.status.value,
        "as_of": result.as_of.isoformat(),
        "run_id": str(result.run_id) if result.run_id else None,
        "total_due": result.total_due,
        "processed": result.processed,
        "skipped": result.skipped,
        "errors": result.errors,
        "duration_ms": result.duration_ms,
        "error_summary": result.error_summary,
        "failures": [
            {
                "commitment_id": str(item.commitment_id),
                "error_code": item.error_code,
                "error_message": item.error_message,
            }
            for item in result.item_results
            if item.error_code is not None
        ],
    }


def calendar_day_summary(day: CalendarDay) -> dict[str, Any]:
    return {
        "date": day.date.isoformat(),
        "balance": str(round_money(day.balance)),
        "income": str(round_money(day.income)),
        "expenses": str(round_money(day.expenses)),
        "commitments": [
            {
                "id": str(c.id),
                "description": c.description,
                "kind": c.kind.value,
                "amount": str(round_money(c.amount)),
            }
            for c in day.occurring_commitments
        ],
    }


if __name__ == "__main__":
    sys.exit(main())
