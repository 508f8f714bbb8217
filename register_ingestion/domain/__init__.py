"""
register_ingestion.domain -- Pure types and value objects for ingestion.

ZERO I/O.
"""

from register_ingestion.domain.types import (
    CategoryRecord,
    CategoryRef,
    DonorSummary,
    ExtractedPayment,
    InterestField,
    InterestRecord,
    MemberRecord,
    MemberRef,
    PayerClassification,
    PayerOverride,
    PayerType,
)

__all__ = [
    "CategoryRecord",
    "CategoryRef",
    "DonorSummary",
    "ExtractedPayment",
    "InterestField",
    "InterestRecord",
    "MemberRecord",
    "MemberRef",
    "PayerClassification",
    "PayerOverride",
    "PayerType",
]
