"""
cashflow_schedule.models -- ORM models for commitment persistence.

Architecture: cashflow_schedule/models. Imports from cashflow_kernel.db only.
"""

from cashflow_schedule.models.commitment import CommitmentModel, LedgerEntryModel

__all__ = [
    "CommitmentModel",
    "LedgerEntryModel",
]
