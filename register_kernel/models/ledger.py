"""
Module: register_kernel.models.ledger
Responsibility: ORM persistence for the derived payment ledger: payers
    (identity by normalized name) and payments (one row per extracted
    payment).
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - payers.normalized_name is UNIQUE.  It is produced by the single
      normalize_name() function used for classification lookups, so two
      spellings of the same payer always collapse to one row.
    - A payer with is_manual_override=True is never reclassified by
      automation.
    - payments has no stable external identity and is rebuilt wholesale on
      every sync.  If payments.payer_id is set, the referenced payer's
      normalized_name equals normalize_name(payments.payer_name).
    - Payments denormalize payer name/address/nature so they survive later
      edits to the payer table.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from register_kernel.db.base import SurrogateKeyMixin, TimestampedBase, UUIDString
from register_kernel.db.types import (
    AMOUNT_PRECISION,
    DEFAULT_CURRENCY,
    HOURS_PRECISION,
    MONEY_DECIMAL_PLACES,
    RATE_PRECISION,
)


class Payer(SurrogateKeyMixin, TimestampedBase):
    """An organisation, government body or person that paid a member."""

    __tablename__ = "payers"

    __table_args__ = (
        Index("ix_payers_type", "payer_type"),
    )

    name: Mapped[str] = mapped_column(Text, nullable=False)
    normalized_name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    payer_type: Mapped[str] = mapped_column(String(50), nullable=False)
    payer_subtype: Mapped[str | None] = mapped_column(String(100), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    nature_of_business: Mapped[str | None] = mapped_column(Text, nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_manual_override: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False,
    )
    override_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Payer {self.normalized_name!r} {self.payer_type}>"


class Payment(SurrogateKeyMixin, TimestampedBase):
    """One extracted payment.  Rebuilt on every sync."""

    __tablename__ = "payments"

    __table_args__ = (
        Index("ix_payments_member", "member_id"),
        Index("ix_payments_payer", "payer_id"),
        Index("ix_payments_interest", "interest_id"),
    )

    interest_id: Mapped[int] = mapped_column(
        ForeignKey("interests.id", ondelete="CASCADE"),
        nullable=False,
    )
    member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id"),
        nullable=False,
    )
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"),
        nullable=False,
    )
    amount: Mapped[Decimal | None] = mapped_column(
        Numeric(AMOUNT_PRECISION, MONEY_DECIMAL_PLACES), nullable=True,
    )
    amount_raw: Mapped[str | None] = mapped_column(Text, nullable=True)
    currency: Mapped[str] = mapped_column(
        String(3), default=DEFAULT_CURRENCY, nullable=False,
    )
    payment_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    regularity: Mapped[str | None] = mapped_column(Text, nullable=True)
    role_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    hours_worked: Mapped[Decimal | None] = mapped_column(
        Numeric(HOURS_PRECISION, MONEY_DECIMAL_PLACES), nullable=True,
    )
    hours_period: Mapped[str | None] = mapped_column(Text, nullable=True)
    hourly_rate: Mapped[Decimal | None] = mapped_column(
        Numeric(RATE_PRECISION, MONEY_DECIMAL_PLACES), nullable=True,
    )
    payer_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("payers.id"),
        nullable=True,
    )
    payer_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    payer_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    payer_nature_of_business: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    received_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_donated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<Payment interest={self.interest_id} amount={self.amount} payer={self.payer_name!r}>"
