"""register_ingestion.extraction -- Interest field lists to canonical payments."""

from register_ingestion.extraction.donors import extract_donor_summary
from register_ingestion.extraction.extractor import (
    calculate_hourly_rate,
    extract_all_payments,
    extract_payment,
)
from register_ingestion.extraction.fields import (
    FIELD_SYNONYMS,
    find_field,
    get_field_value,
)

__all__ = [
    "FIELD_SYNONYMS",
    "calculate_hourly_rate",
    "extract_all_payments",
    "extract_donor_summary",
    "extract_payment",
    "find_field",
    "get_field_value",
]
