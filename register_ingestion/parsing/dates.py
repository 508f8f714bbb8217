"""
Date and hours parsing for interest fields.

Pure and total: anything that does not look like a date or a number of
hours yields None.  The register sometimes sends ``false`` in empty date
slots; booleans and boolean-like strings are rejected, never coerced.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

_ISO = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T\s].*)?$")
_DAY_FIRST = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
_DAY_MONTH_NAME = re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\s+(\d{4})$")

_MONTHS = {
    "january": 1, "february": 2, "march": 3, "april": 4,
    "may": 5, "june": 6, "july": 7, "august": 8,
    "september": 9, "october": 10, "november": 11, "december": 12,
}
_MONTH_ABBREVIATIONS = {name[:3]: number for name, number in _MONTHS.items()}
_MONTH_ABBREVIATIONS["sept"] = 9

_NON_NUMERIC = re.compile(r"[^\d.]")
_LEADING_DECIMAL = re.compile(r"\d+\.?\d*|\.\d+")


def _month_number(name: str) -> int | None:
    key = name.lower()
    return _MONTHS.get(key) or _MONTH_ABBREVIATIONS.get(key)


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date_field(value: Any) -> date | None:
    """
    Parse a register date slot.

    Accepts ``YYYY-MM-DD`` (optionally followed by a time part),
    ``DD/MM/YYYY`` and ``D Month YYYY`` / ``D Mon YYYY``.  The result must
    be a real calendar date.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.lower() in ("true", "false"):
        return None

    match = _ISO.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    match = _DAY_FIRST.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    match = _DAY_MONTH_NAME.match(text)
    if match:
        month = _month_number(match.group(2))
        if month is None:
            return None
        return _safe_date(int(match.group(3)), month, int(match.group(1)))

    return None


def parse_hours(value: Any) -> Decimal | None:
    """
    Parse an hours value such as ``"7.5 hours"`` or ``"10 hrs per month"``.

    Non-numeric characters are stripped before the leading number is read.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return None
        return result if result.is_finite() else None
    if not isinstance(value, str):
        return None

    match = _LEADING_DECIMAL.match(_NON_NUMERIC.sub("", value))
    if match is None:
        return None
    return Decimal(match.group(0))
