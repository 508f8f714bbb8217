"""
Donor-array pass.

Visits, gifts and donations list their funders as a ``Donors`` (or
Payers / Sources / Funders) field whose nested values are one field list
per donor.  Values across donors are summed; name, address and payment
type come from the first donor that has them.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from register_ingestion.domain.types import DonorSummary, InterestField
from register_ingestion.parsing.currency import parse_currency

DONOR_FIELD_NAMES = frozenset({"Donors", "Payers", "Sources", "Funders"})

_NAME_KEYS = ("name", "donorname")
_ADDRESS_KEYS = ("publicaddress", "address")


def _first_text(current: str | None, value: object) -> str | None:
    if current or not value or isinstance(value, bool):
        return current
    return str(value)


def extract_donor_summary(fields: Sequence[InterestField]) -> DonorSummary | None:
    """
    Aggregate the first donor-array field in ``fields``.

    Returns None when there is no donor array or no donor carries a
    parseable value.
    """
    donors_field = next((f for f in fields if f.name in DONOR_FIELD_NAMES), None)
    if donors_field is None or not donors_field.values:
        return None

    total = Decimal(0)
    has_value = False
    value_raw: str | None = None
    name: str | None = None
    address: str | None = None
    payment_type: str | None = None
    donor_count = 0

    for group in donors_field.values:
        if not isinstance(group, tuple):
            continue
        donor_count += 1
        for field in group:
            key = (field.name or "").lower()

            if key == "value" and field.value is not None:
                parsed = parse_currency(field.value)
                if parsed is not None:
                    total += parsed
                    has_value = True
                    if value_raw is None:
                        value_raw = str(field.value)

            if key in _NAME_KEYS:
                name = _first_text(name, field.value)
            elif key in _ADDRESS_KEYS:
                address = _first_text(address, field.value)
            elif key == "paymenttype":
                payment_type = _first_text(payment_type, field.value)

    if not has_value:
        return None

    return DonorSummary(
        value=total,
        value_raw=value_raw,
        name=name,
        address=address,
        payment_type=payment_type,
        donor_count=donor_count,
    )
