"""
RegisterWriter -- the two persistence strategies of a sync run.

Contract:
    - Members, categories and interests are upserted by external id
      (``Session.merge``): repeated runs update rows in place.
    - Payments have no stable identity and are replaced wholesale:
      delete every row, then insert the freshly extracted set.
    - Rows are written in fixed-size batches, each in its own SAVEPOINT.
      A failing batch is rolled back and reported as
      ``"<table> batch <n>/<total>: <message>"``; later batches still run.

Non-goals:
    - Does NOT call ``session.commit()`` -- caller controls boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from register_kernel.db.types import (
    DEFAULT_CURRENCY,
    HOURS_PRECISION,
    RATE_PRECISION,
    round_money,
)
from register_kernel.logging_config import get_logger
from register_kernel.models import Category, Interest, Member, Payment

from register_ingestion.classification.names import normalize_name, normalize_party_name
from register_ingestion.domain.types import (
    CategoryRecord,
    ExtractedPayment,
    InterestRecord,
    MemberRecord,
)
from register_ingestion.parsing.dates import parse_date_field

logger = get_logger("sync.writer")

T = TypeVar("T")


@dataclass(frozen=True)
class BatchOutcome:
    """Rows written and per-batch error strings for one table."""

    written: int
    errors: tuple[str, ...] = ()


def chunked(items: Sequence[T], size: int) -> list[Sequence[T]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def describe_error(exc: Exception) -> str:
    text = str(getattr(exc, "orig", None) or exc)
    return text.splitlines()[0] if text else type(exc).__name__


def order_categories(categories: Iterable[CategoryRecord]) -> list[CategoryRecord]:
    """Parents before children; parents missing from the set are dropped to None."""
    by_id = {c.id: c for c in categories}
    ordered: list[CategoryRecord] = []
    placed: set[int] = set()

    def place(category: CategoryRecord, trail: frozenset[int]) -> None:
        if category.id in placed:
            return
        parent_id = category.parent_id
        if parent_id is not None and parent_id in by_id and parent_id not in trail:
            place(by_id[parent_id], trail | {category.id})
        placed.add(category.id)
        ordered.append(category)

    for category in by_id.values():
        place(category, frozenset())
    return ordered


def order_interests(interests: Sequence[InterestRecord]) -> list[InterestRecord]:
    """Parents before children so the self-referencing FK is satisfied per batch."""
    by_id = {i.id: i for i in interests}

    def depth(interest: InterestRecord) -> int:
        seen = {interest.id}
        level = 0
        parent_id = interest.parent_interest_id
        while parent_id in by_id and parent_id not in seen:
            seen.add(parent_id)
            level += 1
            parent_id = by_id[parent_id].parent_interest_id
        return level

    return sorted(interests, key=depth)


def build_payment(extracted: ExtractedPayment, payer_id: UUID | None) -> Payment:
    return Payment(
        interest_id=extracted.interest_id,
        member_id=extracted.member_id,
        category_id=extracted.category_id,
        amount=round_money(extracted.amount),
        amount_raw=extracted.amount_raw,
        currency=DEFAULT_CURRENCY,
        payment_type=extracted.payment_type,
        regularity=extracted.regularity,
        role_description=extracted.role_description,
        hours_worked=round_money(extracted.hours_worked, HOURS_PRECISION),
        hours_period=extracted.hours_period,
        hourly_rate=round_money(extracted.hourly_rate, RATE_PRECISION),
        payer_id=payer_id,
        payer_name=extracted.payer_name,
        payer_address=extracted.payer_address,
        payer_nature_of_business=extracted.payer_nature_of_business,
        start_date=extracted.start_date,
        end_date=extracted.end_date,
        received_date=extracted.received_date,
        is_donated=extracted.is_donated,
    )


class RegisterWriter:
    """Batch writer for one sync run's session."""

    def __init__(
        self,
        session: Session,
        batch_size: int = 100,
        checkpoint: Callable[[], None] | None = None,
    ):
        self._session = session
        self._batch_size = batch_size
        self._checkpoint = checkpoint

    # -------------------------------------------------------------------------
    # Batching
    # -------------------------------------------------------------------------

    def _run_batches(
        self,
        table: str,
        items: Sequence[T],
        apply: Callable[[Sequence[T]], None],
    ) -> BatchOutcome:
        batches = chunked(items, self._batch_size)
        written = 0
        errors: list[str] = []

        for number, batch in enumerate(batches, start=1):
            if self._checkpoint is not None:
                self._checkpoint()

            savepoint = self._session.begin_nested()
            try:
                apply(batch)
                self._session.flush()
                savepoint.commit()
                written += len(batch)
            except Exception as exc:
                savepoint.rollback()
                message = f"{table} batch {number}/{len(batches)}: {describe_error(exc)}"
                errors.append(message)
                logger.warning(
                    "batch_failed",
                    extra={"table": table, "batch": number, "batches": len(batches), "error": message},
                )

        logger.info(
            "table_written",
            extra={"table": table, "rows": written, "failed_batches": len(errors)},
        )
        return BatchOutcome(written=written, errors=tuple(errors))

    def _preload(self, model: type, ids: list[int]) -> None:
        # Pulls existing rows into the identity map so merge() skips its per-row SELECT
        self._session.execute(select(model).where(model.id.in_(ids))).scalars().all()

    # -------------------------------------------------------------------------
    # Upserts
    # -------------------------------------------------------------------------

    def upsert_categories(self, categories: Iterable[CategoryRecord]) -> BatchOutcome:
        ordered = order_categories(categories)
        known = {c.id for c in ordered}

        def apply(batch: Sequence[CategoryRecord]) -> None:
            self._preload(Category, [c.id for c in batch])
            for c in batch:
                self._session.merge(Category(
                    id=c.id,
                    name=c.name,
                    parent_id=c.parent_id if c.parent_id in known else None,
                    category_number=c.sort_order,
                ))

        return self._run_batches("categories", ordered, apply)

    def upsert_members(self, members: Sequence[MemberRecord]) -> BatchOutcome:
        def apply(batch: Sequence[MemberRecord]) -> None:
            self._preload(Member, [m.id for m in batch])
            for m in batch:
                self._session.merge(Member(
                    id=m.id,
                    name_display=m.name_display,
                    name_list_as=m.name_list_as,
                    constituency=m.constituency,
                    party_id=m.party_id,
                    party_name=normalize_party_name(m.party_name),
                    party_abbreviation=m.party_abbreviation,
                    party_color=m.party_color,
                    thumbnail_url=m.thumbnail_url,
                    is_current=True,
                ))

        return self._run_batches("members", members, apply)

    def upsert_interests(self, interests: Sequence[InterestRecord]) -> BatchOutcome:
        """Upsert interests; parent links to interests outside the set become None."""
        ordered = order_interests(interests)
        known = {i.id for i in ordered}

        def apply(batch: Sequence[InterestRecord]) -> None:
            self._preload(Interest, [i.id for i in batch])
            for i in batch:
                parent_id = i.parent_interest_id
                self._session.merge(Interest(
                    id=i.id,
                    member_id=i.member.id,
                    category_id=i.category.id,
                    summary=i.summary,
                    registration_date=parse_date_field(i.registration_date),
                    published_date=parse_date_field(i.published_date),
                    parent_interest_id=parent_id if parent_id in known else None,
                    raw_fields=[dict(f) for f in i.raw_fields],
                ))

        return self._run_batches("interests", ordered, apply)

    # -------------------------------------------------------------------------
    # Full replace
    # -------------------------------------------------------------------------

    def replace_payments(
        self,
        payments: Sequence[ExtractedPayment],
        payer_ids: dict[str, UUID],
    ) -> BatchOutcome:
        """
        Delete every payment row and insert ``payments``.

        payer_id is set only when the payment's normalized payer name is in
        ``payer_ids``; the name used is the same normalize_name() key the
        payers table is unique on.
        """
        deleted = self._session.execute(delete(Payment)).rowcount
        logger.info("payments_cleared", extra={"deleted": deleted})

        def apply(batch: Sequence[ExtractedPayment]) -> None:
            for extracted in batch:
                payer_id = None
                if extracted.payer_name:
                    payer_id = payer_ids.get(normalize_name(extracted.payer_name))
                self._session.add(build_payment(extracted, payer_id))

        return self._run_batches("payments", payments, apply)
