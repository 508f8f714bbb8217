"""
Module: register_kernel.models.register
Responsibility: ORM persistence for the register reference data that is
    upserted by external id on every sync: members, interest categories and
    interests.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Primary keys are the external register ids (never generated here), so
      repeated syncs update rows in place rather than duplicating them.
    - Member.party_name holds the normalized party name (e.g. every
      "Labour (Co-op)" variant is stored as "Labour").
    - Interest.raw_fields keeps the source field list verbatim (JSON) so
      extraction can be replayed without refetching.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from register_kernel.db.base import TimestampedBase


class Member(TimestampedBase):
    """A current Member of Parliament."""

    __tablename__ = "members"

    __table_args__ = (
        Index("ix_members_party_name", "party_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    name_display: Mapped[str] = mapped_column(String(255), nullable=False)
    name_list_as: Mapped[str] = mapped_column(String(255), nullable=False)
    constituency: Mapped[str | None] = mapped_column(String(255), nullable=True)
    party_id: Mapped[int | None] = mapped_column(nullable=True)
    party_name: Mapped[str] = mapped_column(String(100), nullable=False)
    party_abbreviation: Mapped[str | None] = mapped_column(String(20), nullable=True)
    party_color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_current: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Member {self.id}: {self.name_display} ({self.party_name})>"


class Category(TimestampedBase):
    """An interest category (e.g. "Employment and earnings")."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id"),
        nullable=True,
    )
    category_number: Mapped[int | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Category {self.id}: {self.name}>"


class Interest(TimestampedBase):
    """A published register interest belonging to one member."""

    __tablename__ = "interests"

    __table_args__ = (
        Index("ix_interests_member", "member_id"),
        Index("ix_interests_category", "category_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"),
        nullable=False,
    )
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    registration_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    published_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    parent_interest_id: Mapped[int | None] = mapped_column(
        ForeignKey("interests.id"),
        nullable=True,
    )
    raw_fields: Mapped[list[Any] | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<Interest {self.id} member={self.member_id} category={self.category_id}>"
