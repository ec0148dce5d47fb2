"""
Idempotency key generation for materialized occurrences.

One occurrence of a commitment is identified by the commitment and the due
date being executed.  The key is stored on the ledger entry under a unique
constraint, so a retried sweep that already materialized an occurrence can
detect the duplicate instead of writing it twice.
"""

from datetime import date
from uuid import UUID


def occurrence_key(commitment_id: UUID | str, due_date: date) -> str:
    """
    Generate the idempotency key for one occurrence.

    Format: commitment_id:YYYY-MM-DD

    Example:
        >>> occurrence_key("550e8400-e29b-41d4-a716-446655440000", date(2024, 1, 15))
        "550e8400-e29b-41d4-a716-446655440000:2024-01-15"
    """
    return f"{commitment_id}:{due_date.isoformat()}"


def parse_occurrence_key(key: str) -> tuple[str, date]:
    """
    Parse an occurrence key into (commitment_id, due_date).

    Raises:
        ValueError: If key format is invalid.
    """
    commitment_id, sep, due = key.rpartition(":")
    if not sep or not commitment_id:
        raise ValueError(f"Invalid occurrence key format: {key}")
    return commitment_id, date.fromisoformat(due)
