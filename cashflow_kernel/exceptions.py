"""
Typed Exception Hierarchy for the cashflow packages.

Every error has a typed class (catch by type, not by message), a ``code``
class attribute (machine-readable, API-safe) and structured attributes
instead of data buried in the message string.

    CashflowError (base)
    |
    +-- ValidationError
    |   +-- CommitmentValidationError
    |   +-- InvalidDateRangeError
    |
    +-- PersistenceError
    |   +-- CommitmentStoreError
    |   +-- LedgerError
    |       +-- DuplicateLedgerEntryError
    |
    +-- CommitmentNotFoundError
    |
    +-- ConfigurationError

Handling policy inside a sweep:

    - ValidationError is raised by the request layer and never retried.
    - A PersistenceError while fetching the due set aborts the run; the
      engine turns it into a FAILED run result.
    - A PersistenceError while processing one commitment is logged and
      counted; the batch continues and the commitment stays due.
    - DuplicateLedgerEntryError is not a failure: the occurrence was already
      materialized by an interrupted run and only the advance is replayed.
"""

from datetime import date


class CashflowError(Exception):
    """
    Base exception for all cashflow errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "CASHFLOW_ERROR"


# Validation


class ValidationError(CashflowError):
    """Bad input rejected before anything is persisted."""

    code: str = "VALIDATION_ERROR"


class CommitmentValidationError(ValidationError):
    """A commitment create/update request failed validation."""

    code: str = "COMMITMENT_VALIDATION_FAILED"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid commitment field '{field}': {reason}")


class InvalidDateRangeError(ValidationError):
    """A projection range is inverted or exceeds the configured bound."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start_date: date, end_date: date, reason: str):
        self.start_date = start_date
        self.end_date = end_date
        self.reason = reason
        super().__init__(
            f"Invalid date range {start_date.isoformat()}..{end_date.isoformat()}: {reason}"
        )


# Persistence


class PersistenceError(CashflowError):
    """Base exception for storage failures."""

    code: str = "PERSISTENCE_ERROR"


class CommitmentStoreError(PersistenceError):
    """The commitment store could not complete an operation."""

    code: str = "COMMITMENT_STORE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Commitment store '{operation}' failed: {detail}")


class LedgerError(PersistenceError):
    """The ledger collaborator could not complete an operation."""

    code: str = "LEDGER_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Ledger '{operation}' failed: {detail}")


class DuplicateLedgerEntryError(LedgerError):
    """An entry with the same idempotency key was already materialized."""

    code: str = "DUPLICATE_LEDGER_ENTRY"

    def __init__(self, idempotency_key: str, existing_entry_id: str):
        self.idempotency_key = idempotency_key
        self.existing_entry_id = existing_entry_id
        super().__init__(
            "create",
            f"idempotency key '{idempotency_key}' already used by entry {existing_entry_id}",
        )


# Lookup


class CommitmentNotFoundError(CashflowError):
    """Commitment does not exist or belongs to another owner."""

    code: str = "COMMITMENT_NOT_FOUND"

    def __init__(self, commitment_id: str, owner_id: str):
        self.commitment_id = commitment_id
        self.owner_id = owner_id
        super().__init__(f"Commitment not found: {commitment_id} (owner {owner_id})")


# Configuration


class ConfigurationError(CashflowError):
    """Runtime configuration is malformed."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration '{key}': {reason}")
