"""
Module: register_kernel.db.types
Responsibility: Precision constants and rounding helpers for ledger
    columns.  Centralizes precision so that every model and service uses
    identical definitions.

Invariants enforced:
    - No floats for money.  Amounts, hours and hourly rates are Decimal with
      explicit precision; round_money() is the only sanctioned rounding
      function before persistence.
    - A value that does not fit its column is treated as unreadable (None),
      never as a write error.
"""

from decimal import ROUND_HALF_UP, Decimal, DecimalException

DEFAULT_CURRENCY = "GBP"
MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

# Total digits of the Numeric columns on payments.
AMOUNT_PRECISION = 12
HOURS_PRECISION = 8
RATE_PRECISION = 10

_QUANTUM = Decimal(1).scaleb(-MONEY_DECIMAL_PLACES)


def fits_precision(value: Decimal, precision: int) -> bool:
    """True when ``value`` rounds into Numeric(precision, 2)."""
    if not value.is_finite():
        return False
    limit = Decimal(10) ** (precision - MONEY_DECIMAL_PLACES)
    return value.copy_abs() < limit - _QUANTUM / 2


def bounded(value: Decimal | None, precision: int) -> Decimal | None:
    """``value``, or None when it cannot be stored at ``precision``."""
    if value is None or not fits_precision(value, precision):
        return None
    return value


def round_money(
    value: Decimal | None,
    precision: int = AMOUNT_PRECISION,
) -> Decimal | None:
    """Round a monetary value (or hours / hourly rate) to storage precision."""
    value = bounded(value, precision)
    if value is None:
        return None
    try:
        return value.quantize(_QUANTUM, rounding=DEFAULT_ROUNDING)
    except DecimalException:
        return None
