"""
cashflow_schedule.stores -- Persistence collaborators (protocols + SQL implementations).
"""

from cashflow_schedule.stores.commitment_store import (
    UPDATABLE_FIELDS,
    CommitmentStore,
    SqlCommitmentStore,
)
from cashflow_schedule.stores.ledger import Ledger, SqlLedger

__all__ = [
    "UPDATABLE_FIELDS",
    "CommitmentStore",
    "Ledger",
    "SqlCommitmentStore",
    "SqlLedger",
]
