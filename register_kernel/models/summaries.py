"""
Module: register_kernel.models.summaries
Responsibility: Pre-aggregated summary tables read by the reporting layer.
    Rebuilt from members/payers/payments after every sync; they may be
    stale if a rebuild fails, the payments table itself never is.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from register_kernel.db.base import Base, UUIDString


class PartyTotalSummary(Base):
    """Payment totals per party (current members only)."""

    __tablename__ = "summary_party_totals"

    party_name: Mapped[str] = mapped_column(String(100), primary_key=True)
    party_color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    mp_count: Mapped[int] = mapped_column(Integer, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    avg_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    payment_count: Mapped[int] = mapped_column(Integer, nullable=False)


class TopPayerSummary(Base):
    """Total paid per payer."""

    __tablename__ = "summary_top_payers"

    payer_id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    payer_type: Mapped[str] = mapped_column(String(50), nullable=False)
    payer_subtype: Mapped[str | None] = mapped_column(String(100), nullable=True)
    total_paid: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    mp_count: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_count: Mapped[int] = mapped_column(Integer, nullable=False)


class HourlyRateSummary(Base):
    """Payments with a derived hourly rate."""

    __tablename__ = "summary_hourly_rates"

    payment_id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True)
    member_id: Mapped[int] = mapped_column(nullable=False)
    name_display: Mapped[str] = mapped_column(String(255), nullable=False)
    party_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    hours_worked: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    hours_period: Mapped[str | None] = mapped_column(Text, nullable=True)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payer_name: Mapped[str | None] = mapped_column(Text, nullable=True)


class TopEarnerSummary(Base):
    """Total earned per member and role."""

    __tablename__ = "summary_top_earners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(nullable=False)
    name_display: Mapped[str] = mapped_column(String(255), nullable=False)
    party_name: Mapped[str] = mapped_column(String(100), nullable=False)
    constituency: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role_description: Mapped[str] = mapped_column(Text, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    payment_count: Mapped[int] = mapped_column(Integer, nullable=False)
