"""register_ingestion.parsing -- Pure value parsers (currency, dates, hours)."""

from register_ingestion.parsing.currency import parse_currency
from register_ingestion.parsing.dates import parse_date_field, parse_hours

__all__ = [
    "parse_currency",
    "parse_date_field",
    "parse_hours",
]
