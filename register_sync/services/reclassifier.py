"""
PayerReclassifier -- re-run classification over every persisted payer.

Used after the rule table or the override list changes.  Classifies by
payer display name with a freshly constructed classifier; reported
statuses from earlier syncs are not replayed.  Manual-override payers are
skipped and only rows whose type or subtype changed are written.  Summary
tables are rebuilt afterwards; a refresh failure is reported, not raised.

Non-goals:
    - Does NOT call ``session.commit()`` -- caller controls boundaries.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from register_kernel.logging_config import get_logger
from register_kernel.models import Payer

from register_ingestion.classification.classifier import PayerClassifier

from register_sync.domain.types import ReclassificationResult
from register_sync.services.summaries import SummaryRefresher

logger = get_logger("sync.reclassifier")


class PayerReclassifier:
    """Applies a classifier to all non-manual payers."""

    def __init__(self, session: Session, classifier: PayerClassifier):
        self._session = session
        self._classifier = classifier

    def reclassify_all(self, refresh_summaries: bool = True) -> ReclassificationResult:
        payers = self._session.execute(select(Payer).order_by(Payer.name)).scalars().all()

        updated = skipped_manual = unchanged = 0
        for payer in payers:
            if payer.is_manual_override:
                skipped_manual += 1
                continue

            classification = self._classifier.classify(payer.name)
            new_type = classification.payer_type.value
            current = (payer.payer_type, payer.payer_subtype, payer.override_reason)
            if current == (new_type, classification.subtype, classification.override_reason):
                unchanged += 1
                continue

            logger.debug(
                "payer_reclassified",
                extra={
                    "payer": payer.normalized_name,
                    "from_type": payer.payer_type,
                    "to_type": new_type,
                    "to_subtype": classification.subtype,
                },
            )
            payer.payer_type = new_type
            payer.payer_subtype = classification.subtype
            payer.override_reason = classification.override_reason
            updated += 1

        self._session.flush()

        errors: list[str] = []
        if refresh_summaries:
            errors = SummaryRefresher(self._session).refresh_all()

        result = ReclassificationResult(
            total_payers=len(payers),
            updated=updated,
            skipped_manual=skipped_manual,
            unchanged=unchanged,
            errors=tuple(errors),
        )
        logger.info(
            "payers_reclassified",
            extra={
                "total_payers": result.total_payers,
                "updated": updated,
                "skipped_manual": skipped_manual,
            },
        )
        return result
