"""Kernel utilities."""

from cashflow_kernel.utils.idempotency import occurrence_key, parse_occurrence_key

__all__ = [
    "occurrence_key",
    "parse_occurrence_key",
]
