"""
Synonym-driven field lookup over an interest's open-ended field list.

The register names the same attribute differently from category to
category ("Payer", "Name of donor", "Organisation" ...).  Each logical
attribute has a priority-ordered synonym list; lookup tries an exact
case-insensitive name match for every synonym before falling back to
substring matching in either direction.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from register_ingestion.domain.types import InterestField

FIELD_SYNONYMS: dict[str, tuple[str, ...]] = {
    "amount": (
        "Payment",
        "Amount, or estimate of the probable value",
        "Estimated value",
        "Value",
        "Amount",
        "Sum",
        "Total",
    ),
    "payer": (
        "Payer",
        "Donor",
        "Source",
        "Name of donor",
        "Name of payer",
        "Organisation",
        "Company",
    ),
    "role": (
        "Job title",
        "Role",
        "Position",
        "Work",
        "Service",
        "Description",
        "Nature of work",
    ),
    "hours": ("Hours worked", "Hours", "Time spent", "Duration"),
    "hours_period": ("Period for hours worked", "Period", "Frequency"),
    "address": ("Address", "Address of payer", "Address of donor", "Registered address"),
    "nature": ("Nature of business", "Business", "Sector"),
    "start_date": ("Start date", "From", "Date started", "Commencement date"),
    "end_date": ("End date", "To", "Date ended", "Completion date"),
    "received_date": ("Date received", "Received", "Date of receipt", "Date of donation"),
    "regularity": ("Regularity of payment", "Regularity", "Payment frequency"),
    "payment_type": ("Payment type", "Type", "Kind"),
    "donor_status": ("DonorStatus", "Donor status", "Status"),
    "donor_name": ("DonorName", "Donor name", "Name of donor", "Name"),
}

# A field whose name carries one of these words only satisfies synonyms
# that carry it too ("PaymentType" is not "Payment").
_GUARD_WORDS = ("type", "description")


def _partial_match(field_name: str, synonym: str) -> bool:
    for word in _GUARD_WORDS:
        if word in field_name and word not in synonym:
            return False
    return field_name in synonym or synonym in field_name


def find_field(
    fields: Sequence[InterestField],
    synonyms: Iterable[str],
) -> InterestField | None:
    """
    Find the field best matching a synonym list.

    Pass 1: exact case-insensitive match, synonyms in priority order.
    Pass 2: substring match in either direction, with the type/description
    guards applied.
    """
    synonyms = [s.lower() for s in synonyms]
    names = [(f, f.name.lower()) for f in fields]

    for synonym in synonyms:
        for field, name in names:
            if name == synonym:
                return field

    for synonym in synonyms:
        for field, name in names:
            if _partial_match(name, synonym):
                return field

    return None


def get_field_value(field: InterestField | None) -> Any:
    """
    Scalar value of a field, or None.

    A flat nested ``values`` list wins over the field's own value: the first
    nested field with a value is used.  Booleans are never values.  Donor
    groups (list of lists) are ignored here, including groups mixed into a
    flat list; see extraction.donors.
    """
    if field is None:
        return None

    if field.values and not field.has_group_values:
        for nested in field.values:
            if not isinstance(nested, InterestField) or nested.value is None:
                continue
            if isinstance(nested.value, bool):
                return None
            return nested.value

    if field.value is None or isinstance(field.value, bool):
        return None
    return field.value


def as_text(value: Any) -> str | None:
    """Render a field value as text; empty strings and booleans become None."""
    if value is None or isinstance(value, bool):
        return None
    text = value if isinstance(value, str) else str(value)
    return text or None


def lookup(fields: Sequence[InterestField], attribute: str) -> Any:
    """Value of the field matching ``attribute``'s synonym list."""
    return get_field_value(find_field(fields, FIELD_SYNONYMS[attribute]))


def has_usable_field(fields: Sequence[InterestField]) -> bool:
    """True if any field carries a non-boolean value or nested values."""
    for field in fields:
        if field.values:
            return True
        if field.value is not None and not isinstance(field.value, bool):
            return True
    return False
