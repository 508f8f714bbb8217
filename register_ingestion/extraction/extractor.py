"""
Field extractor: one InterestRecord -> at most one ExtractedPayment.

Pure and total.  Every attribute is resolved independently; anything that
cannot be resolved is None.  The pool searched is the interest's own
fields followed by all child-interest fields.

Order of resolution:
    1. Donor-array pass (summed value, first name/address/type).
    2. Direct synonym lookup per attribute.
    3. Fallbacks: amount, payer name, address and payment type fall back to
       the donor pass; role falls back to the interest summary; payer name
       finally falls back to a DonorName-style field.
    4. Derived: hours, hourly rate, dates, donation flag.

Amounts, hours and rates that cannot be stored at ledger precision are
unreadable and resolve to None.
"""

from __future__ import annotations

from decimal import Decimal, DecimalException
from typing import Iterable

from register_kernel.db.types import (
    AMOUNT_PRECISION,
    HOURS_PRECISION,
    RATE_PRECISION,
    bounded,
)
from register_kernel.logging_config import LogContext, get_logger

from register_ingestion.domain.types import ExtractedPayment, InterestRecord
from register_ingestion.extraction.donors import extract_donor_summary
from register_ingestion.extraction.fields import (
    as_text,
    has_usable_field,
    lookup,
)
from register_ingestion.parsing.currency import parse_currency
from register_ingestion.parsing.dates import parse_date_field, parse_hours

logger = get_logger("ingestion.extractor")

_DONATION_WORDS = ("donation", "gift")


def calculate_hourly_rate(
    amount: Decimal | None,
    hours: Decimal | None,
) -> Decimal | None:
    """amount / hours, or None unless amount is non-zero and hours positive."""
    if not amount or hours is None or hours <= 0:
        return None
    try:
        return amount / hours
    except DecimalException:
        return None


def is_donation_category(category_name: str | None) -> bool:
    name = (category_name or "").lower()
    return any(word in name for word in _DONATION_WORDS)


def extract_payment(interest: InterestRecord) -> ExtractedPayment | None:
    """
    Extract the canonical payment for one interest.

    Returns None when the field pool has nothing usable; never a
    zero-amount placeholder.
    """
    fields = interest.pooled_fields()
    if not has_usable_field(fields):
        return None

    donor = extract_donor_summary(fields)

    amount_value = lookup(fields, "amount")
    amount = parse_currency(amount_value)
    amount_raw = as_text(amount_value)
    if amount is None and donor is not None:
        amount = donor.value
        amount_raw = donor.value_raw
    parsed_amount = amount
    amount = bounded(amount, AMOUNT_PRECISION)
    if amount is None and parsed_amount is not None:
        logger.warning("amount_out_of_range", extra={"amount_raw": amount_raw})

    payer_name = as_text(lookup(fields, "payer"))
    if not payer_name and donor is not None and donor.name:
        payer_name = donor.name

    role_description = as_text(lookup(fields, "role"))
    if not role_description and interest.summary:
        role_description = interest.summary

    hours_worked = bounded(parse_hours(lookup(fields, "hours")), HOURS_PRECISION)
    hours_period = as_text(lookup(fields, "hours_period"))
    hourly_rate = bounded(calculate_hourly_rate(amount, hours_worked), RATE_PRECISION)

    payer_address = as_text(lookup(fields, "address"))
    if not payer_address and donor is not None and donor.address:
        payer_address = donor.address

    nature = as_text(lookup(fields, "nature"))
    regularity = as_text(lookup(fields, "regularity"))

    payment_type = as_text(lookup(fields, "payment_type"))
    if not payment_type and donor is not None and donor.payment_type:
        payment_type = donor.payment_type

    start_date = parse_date_field(lookup(fields, "start_date"))
    end_date = parse_date_field(lookup(fields, "end_date"))
    received_date = parse_date_field(lookup(fields, "received_date"))

    payer_status = as_text(lookup(fields, "donor_status"))

    if not payer_name:
        payer_name = as_text(lookup(fields, "donor_name"))

    return ExtractedPayment(
        interest_id=interest.id,
        member_id=interest.member.id,
        category_id=interest.category.id,
        amount=amount,
        amount_raw=amount_raw,
        payment_type=payment_type,
        regularity=regularity,
        role_description=role_description,
        hours_worked=hours_worked,
        hours_period=hours_period,
        hourly_rate=hourly_rate,
        payer_name=payer_name,
        payer_address=payer_address,
        payer_nature_of_business=nature,
        payer_status=payer_status,
        start_date=start_date,
        end_date=end_date,
        received_date=received_date,
        is_donated=is_donation_category(interest.category.name),
    )


def extract_all_payments(interests: Iterable[InterestRecord]) -> list[ExtractedPayment]:
    """Extract payments for every interest, skipping those with no usable fields."""
    payments: list[ExtractedPayment] = []
    skipped = 0
    for interest in interests:
        with LogContext.bind(
            interest_id=str(interest.id), member_id=str(interest.member.id),
        ):
            payment = extract_payment(interest)
        if payment is None:
            skipped += 1
            continue
        payments.append(payment)

    logger.debug(
        "payments_extracted",
        extra={"extracted": len(payments), "skipped": skipped},
    )
    return payments
