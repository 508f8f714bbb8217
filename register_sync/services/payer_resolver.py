"""
PayerResolver -- payer names on extracted payments to payer rows.

Contract:
    - Identity is normalize_name(payer_name).  Within one run the first
      spelling seen for a key is the one classified and, for new payers,
      stored as the display name.
    - Classification: the source's reported status when it maps to a type
      (no subtype), otherwise the injected PayerClassifier.
    - New keys create a payer row.  Existing non-manual payers are
      reclassified in place; address and nature of business are refreshed
      when the new value is non-empty.  Manual-override payers are never
      modified.
    - Returns ``normalized_name -> payer id`` for every payer that exists
      after resolution.

Non-goals:
    - Does NOT call ``session.commit()`` -- caller controls boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from register_kernel.logging_config import get_logger
from register_kernel.models import Payer

from register_ingestion.classification.classifier import PayerClassifier
from register_ingestion.classification.names import normalize_name
from register_ingestion.classification.status import map_reported_status
from register_ingestion.domain.types import ExtractedPayment, PayerClassification

from register_sync.services.writer import chunked, describe_error

logger = get_logger("sync.payer_resolver")


@dataclass
class PayerResolution:
    """Outcome of resolving one run's payer names."""

    payer_ids: dict[str, UUID] = field(default_factory=dict)
    created: int = 0
    updated: int = 0
    skipped_manual: int = 0
    errors: list[str] = field(default_factory=list)


def classify_payer(
    classifier: PayerClassifier,
    payer_name: str,
    reported_status: str | None,
) -> PayerClassification:
    """Reported status first, name classification as the fallback."""
    reported = map_reported_status(reported_status)
    if reported is not None:
        return PayerClassification(payer_type=reported)
    return classifier.classify(payer_name)


def first_seen_payers(payments: Iterable[ExtractedPayment]) -> dict[str, ExtractedPayment]:
    """normalized_name -> first payment naming that payer (insertion-ordered)."""
    seen: dict[str, ExtractedPayment] = {}
    for payment in payments:
        if not payment.payer_name:
            continue
        key = normalize_name(payment.payer_name)
        if key and key not in seen:
            seen[key] = payment
    return seen


class PayerResolver:
    """Creates and reclassifies payer rows for a set of extracted payments."""

    def __init__(
        self,
        session: Session,
        classifier: PayerClassifier,
        batch_size: int = 100,
        checkpoint: Callable[[], None] | None = None,
    ):
        self._session = session
        self._classifier = classifier
        self._batch_size = batch_size
        self._checkpoint = checkpoint

    def resolve(self, payments: Sequence[ExtractedPayment]) -> PayerResolution:
        result = PayerResolution()
        candidates = list(first_seen_payers(payments).items())
        batches = chunked(candidates, self._batch_size)

        for number, batch in enumerate(batches, start=1):
            if self._checkpoint is not None:
                self._checkpoint()

            savepoint = self._session.begin_nested()
            try:
                created, updated, skipped = self._apply_batch(batch)
                self._session.flush()
                savepoint.commit()
            except Exception as exc:
                savepoint.rollback()
                message = f"payers batch {number}/{len(batches)}: {describe_error(exc)}"
                result.errors.append(message)
                logger.warning("batch_failed", extra={"table": "payers", "error": message})
                continue
            result.created += created
            result.updated += updated
            result.skipped_manual += skipped

        rows = self._session.execute(select(Payer.normalized_name, Payer.id)).all()
        result.payer_ids = {name: payer_id for name, payer_id in rows}

        logger.info(
            "payers_resolved",
            extra={
                "candidates": len(candidates),
                "payers_created": result.created,
                "payers_updated": result.updated,
                "skipped_manual": result.skipped_manual,
                "failed_batches": len(result.errors),
            },
        )
        return result

    def _apply_batch(
        self,
        batch: Sequence[tuple[str, ExtractedPayment]],
    ) -> tuple[int, int, int]:
        keys = [key for key, _ in batch]
        existing = {
            payer.normalized_name: payer
            for payer in self._session.execute(
                select(Payer).where(Payer.normalized_name.in_(keys))
            ).scalars()
        }

        created = updated = skipped = 0
        for key, payment in batch:
            classification = classify_payer(
                self._classifier, payment.payer_name, payment.payer_status,
            )
            payer = existing.get(key)

            if payer is None:
                self._session.add(Payer(
                    name=payment.payer_name,
                    normalized_name=key,
                    payer_type=classification.payer_type.value,
                    payer_subtype=classification.subtype,
                    override_reason=classification.override_reason,
                    address=payment.payer_address,
                    nature_of_business=payment.payer_nature_of_business,
                    is_manual_override=False,
                ))
                created += 1
                continue

            if payer.is_manual_override:
                skipped += 1
                continue

            if self._refresh(payer, classification, payment):
                updated += 1

        return created, updated, skipped

    @staticmethod
    def _refresh(
        payer: Payer,
        classification: PayerClassification,
        payment: ExtractedPayment,
    ) -> bool:
        changes = {
            "payer_type": classification.payer_type.value,
            "payer_subtype": classification.subtype,
            "override_reason": classification.override_reason,
        }
        if payment.payer_address:
            changes["address"] = payment.payer_address
        if payment.payer_nature_of_business:
            changes["nature_of_business"] = payment.payer_nature_of_business

        changed = False
        for attribute, value in changes.items():
            if getattr(payer, attribute) != value:
                setattr(payer, attribute, value)
                changed = True
        return changed
