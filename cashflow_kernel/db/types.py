"""
Module: cashflow_kernel.db.types
Responsibility: Parsing and rounding rules for money amounts.
    Commitments, ledger entries and rendered projections all go through
    these two helpers so they agree on precision.

Invariants enforced:
    - No floats for money.  ``money_from_value`` goes through ``str`` so a
      float input like 0.1 becomes Decimal("0.1"), not its binary expansion.
    - Stored precision is Numeric(38, 9) (see db.base); ``round_money`` is
      only for presentation.

Failure modes:
    - ValueError on values that cannot be parsed as a finite number.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

DISPLAY_DECIMAL_PLACES = 2


def money_from_value(value: Decimal | int | float | str) -> Decimal:
    """
    Parse a Decimal, int, float or numeric string into a money Decimal.

    Raises:
        ValueError: If value is a bool, unparseable, NaN or infinite.
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot parse money from {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Cannot parse money from {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"Money must be finite, got {value!r}")
    return result


def round_money(
    value: Decimal,
    decimal_places: int = DISPLAY_DECIMAL_PLACES,
    rounding: str = ROUND_HALF_UP,
) -> Decimal:
    """Quantize ``value`` to ``decimal_places`` (half-up by default)."""
    return value.quantize(Decimal(1).scaleb(-decimal_places), rounding=rounding)
