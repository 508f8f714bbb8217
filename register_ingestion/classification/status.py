"""Mapping of the register's own donor/payer status text to a PayerType."""

from __future__ import annotations

from register_ingestion.domain.types import PayerType

_INDIVIDUAL_STATUSES = frozenset({"individual", "private individual"})
_COMPANY_STATUSES = frozenset({"company", "corporate"})
_GOVERNMENT_WORDS = ("government", "public")


def map_reported_status(status: str | None) -> PayerType | None:
    """
    PayerType for a reported status, or None when the status is unknown.

    None means the caller should fall back to name classification.
    """
    if not status:
        return None
    key = status.lower().strip()
    if key in _INDIVIDUAL_STATUSES:
        return PayerType.INDIVIDUAL
    if key in _COMPANY_STATUSES:
        return PayerType.COMPANY
    if any(word in key for word in _GOVERNMENT_WORDS):
        return PayerType.GOVERNMENT
    return None
