"""
register_ingestion.domain.types -- Pure frozen dataclasses for register ingestion.

ZERO I/O.  These are the shapes the extractor, classifier and sync
orchestrator exchange; the source adapters build them from API payloads.

The interest field list is deliberately open-ended: a field is a
(name, value, values) triple and attributes are resolved through synonym
lookups, never static field access, so upstream schema drift needs no
code change.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Union


# =============================================================================
# Payer classification
# =============================================================================


class PayerType(str, Enum):
    """Closed set of payer types.  Anything not Government or Individual is a Company."""

    GOVERNMENT = "Government"
    COMPANY = "Company"
    INDIVIDUAL = "Individual"


@dataclass(frozen=True)
class PayerClassification:
    """Result of classifying one payer name."""

    payer_type: PayerType
    subtype: str | None = None
    # Set when a manual override matched the name.
    override_reason: str | None = None


@dataclass(frozen=True)
class PayerOverride:
    """Manual correction: names equal to or containing ``pattern`` get this classification."""

    pattern: str
    payer_type: PayerType
    subtype: str | None = None
    reason: str | None = None


# =============================================================================
# Source records
# =============================================================================


@dataclass(frozen=True)
class InterestField:
    """
    One named field of an interest.

    ``values`` is either a flat tuple of InterestField or a tuple of tuples
    of InterestField (one inner tuple per donor / payer group).
    """

    name: str
    value: Any = None
    values: tuple[Union["InterestField", tuple["InterestField", ...]], ...] = ()
    description: str | None = None
    type_name: str | None = None

    @property
    def has_group_values(self) -> bool:
        """True when ``values`` holds donor groups (list of lists)."""
        return bool(self.values) and isinstance(self.values[0], tuple)


@dataclass(frozen=True)
class CategoryRef:
    id: int
    name: str


@dataclass(frozen=True)
class MemberRef:
    id: int
    name_display: str | None = None


@dataclass(frozen=True)
class InterestRecord:
    """A published interest as returned by the register (read-only)."""

    id: int
    member: MemberRef
    category: CategoryRef
    summary: str | None = None
    registration_date: str | None = None
    published_date: str | None = None
    fields: tuple[InterestField, ...] = ()
    child_interests: tuple["InterestRecord", ...] = ()
    parent_interest_id: int | None = None
    raw_fields: tuple[dict[str, Any], ...] = ()

    def pooled_fields(self) -> list[InterestField]:
        """Own fields followed by every child interest's fields."""
        pool = list(self.fields)
        for child in self.child_interests:
            pool.extend(child.fields)
        return pool


@dataclass(frozen=True)
class CategoryRecord:
    """An interest category with its place in the hierarchy."""

    id: int
    name: str
    parent_id: int | None = None
    sort_order: int | None = None


@dataclass(frozen=True)
class MemberRecord:
    """A member as returned by the members API (party name not yet normalized)."""

    id: int
    name_display: str
    name_list_as: str
    party_name: str
    party_id: int | None = None
    party_abbreviation: str | None = None
    party_color: str | None = None
    constituency: str | None = None
    thumbnail_url: str | None = None


# =============================================================================
# Extraction output
# =============================================================================


@dataclass(frozen=True)
class ExtractedPayment:
    """Best-effort canonical payment for one interest.  Transient; never persisted directly."""

    interest_id: int
    member_id: int
    category_id: int
    amount: Decimal | None = None
    amount_raw: str | None = None
    payment_type: str | None = None
    regularity: str | None = None
    role_description: str | None = None
    hours_worked: Decimal | None = None
    hours_period: str | None = None
    hourly_rate: Decimal | None = None
    payer_name: str | None = None
    payer_address: str | None = None
    payer_nature_of_business: str | None = None
    payer_status: str | None = None  # As reported by the source, unclassified
    start_date: date | None = None
    end_date: date | None = None
    received_date: date | None = None
    is_donated: bool = False


@dataclass(frozen=True)
class DonorSummary:
    """Aggregate of a Donors/Payers group array: summed value, first name/address/type."""

    value: Decimal
    value_raw: str | None = None
    name: str | None = None
    address: str | None = None
    payment_type: str | None = None
    donor_count: int = 0
