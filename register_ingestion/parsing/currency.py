"""
Currency parser: raw register value to Decimal amount.

Pure and total.  Malformed input is a normal case and yields None; nothing
here raises.

Accepted shapes:
    5000, 5000.5, Decimal("5000")       -> passed through as Decimal
    "£5,000"                            -> 5000
    "5000 per annum"                    -> 5000 (leading number only)
    "Estimated value: £1,250.50"        -> 1250.50
    "10000-15000"                       -> 12500 (midpoint)
"""

from __future__ import annotations

import math
import re
from decimal import Decimal, DecimalException
from typing import Any

_ESTIMATED_VALUE = re.compile(
    r"estimated\s+value\s*[:\s]*[£$€]?([\d,]+(?:\.\d+)?)",
    re.IGNORECASE,
)
_STRIP = re.compile(r"[£$€,\s]")
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_TWO = Decimal(2)


def _parse_number(text: str) -> Decimal | None:
    """Leading numeric prefix of ``text`` as Decimal, or None."""
    match = _LEADING_NUMBER.match(text)
    if match is None:
        return None
    try:
        value = Decimal(match.group(0))
    except DecimalException:
        return None
    return value if value.is_finite() else None


def parse_currency(value: Any) -> Decimal | None:
    """
    Parse a monetary amount from a raw field value.

    Args:
        value: A number, a string, or anything else (-> None).

    Returns:
        The amount as Decimal, the midpoint for a dash-separated range, or
        None when no number can be read.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return Decimal(str(value))
    if not isinstance(value, str):
        return None

    estimated = _ESTIMATED_VALUE.search(value)
    if estimated:
        return _parse_number(estimated.group(1).replace(",", ""))

    cleaned = _STRIP.sub("", value)
    if not cleaned:
        return None

    if "-" in cleaned.lstrip("-"):
        parts = cleaned.split("-")
        if len(parts) >= 2 and parts[0] and parts[1]:
            low = _parse_number(parts[0])
            high = _parse_number(parts[1])
            if low is not None and high is not None:
                try:
                    return (low + high) / _TWO
                except DecimalException:
                    return None

    return _parse_number(cleaned)
