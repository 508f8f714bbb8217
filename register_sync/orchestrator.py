"""
SyncOrchestrator -- one full ingestion pass of the register.

Contract:
    ``run()`` drives a run through
        started -> categories_synced -> members_synced -> interests_synced
        -> payments_processed -> views_refreshed -> completed
    committing at the end of every stage, and returns a SyncResult.

Invariants enforced:
    - At most one live run: a run refuses to start while another
      non-terminal run younger than the stale window exists.
    - Members, categories and interests are upserted by external id;
      payments are deleted and reinserted in one transaction.
    - Interests in the employment category are replaced by their
      category-filtered counterparts (which carry child interests) before
      extraction.
    - Interests of members outside the fetched member set are dropped.
    - payer_id on a payment always points at the payer whose
      normalized_name equals normalize_name(payment.payer_name).

Failure modes:
    - Source errors, deadline overrun (SyncTimeoutError) and unexpected
      exceptions roll back the current stage, mark the run failed and
      propagate.  Earlier stages stay committed.
    - Batch and summary-refresh failures are collected on the run's error
      list; the run continues.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from register_kernel.domain.clock import Clock, SystemClock
from register_kernel.exceptions import SyncTimeoutError
from register_kernel.logging_config import LogContext, get_logger

from register_config.overrides import load_overrides
from register_config.settings import SyncSettings
from register_ingestion.classification.classifier import PayerClassifier
from register_ingestion.domain.types import InterestRecord, PayerOverride
from register_ingestion.extraction.extractor import extract_all_payments
from register_ingestion.sources.base import RegisterSource

from register_sync.domain.lifecycle import SyncStatus
from register_sync.domain.types import SyncResult, SyncStats
from register_sync.services.payer_resolver import PayerResolver
from register_sync.services.run_log import SyncRunLog
from register_sync.services.summaries import SummaryRefresher
from register_sync.services.writer import BatchOutcome, RegisterWriter

logger = get_logger("sync.orchestrator")


def merge_category_interests(
    interests: Iterable[InterestRecord],
    category_interests: Iterable[InterestRecord],
    category_id: int,
) -> list[InterestRecord]:
    """Replace bulk interests of ``category_id`` with their richer counterparts."""
    richer = {i.id: i for i in category_interests}
    return [
        richer.get(i.id, i) if i.category.id == category_id else i
        for i in interests
    ]


class SyncOrchestrator:
    """Runs register syncs against one database.

    Non-goals:
        - Does NOT schedule runs -- callers (cron, scripts/run_sync.py) do.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        source: RegisterSource,
        settings: SyncSettings | None = None,
        classifier: PayerClassifier | None = None,
        clock: Clock | None = None,
        overrides_loader: Callable[[], Sequence[PayerOverride]] | None = None,
    ):
        self._session_factory = session_factory
        self._source = source
        self._settings = settings or SyncSettings()
        self._classifier = classifier
        self._clock = clock or SystemClock()
        self._overrides_loader = overrides_loader or (
            lambda: load_overrides(self._settings.overrides_path)
        )

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def run(self, sync_type: str = "full") -> SyncResult:
        """
        Execute one full sync.

        Raises:
            SyncAlreadyRunningError: If another live run holds the lock.
            SourceFetchError: If the register cannot be read (run marked failed).
            SyncTimeoutError: If the deadline passes (run marked failed).
        """
        started = time.monotonic()
        classifier = self._classifier or PayerClassifier()
        classifier.load_overrides(self._overrides_loader())

        with self._session_factory() as session:
            run_log = SyncRunLog(session, self._clock)
            run = run_log.start_run(sync_type, self._settings.stale_run_after_seconds)
            session.commit()

            LogContext.set(run_id=str(run.id), source=self._source.name)
            stats = SyncStats()
            try:
                self._execute(session, run_log, run.id, classifier, stats)
            except Exception as exc:
                session.rollback()
                run_log.fail_run(run.id, f"{type(exc).__name__}: {exc}", stats)
                session.commit()
                raise
            finally:
                LogContext.clear()

        result = SyncResult(
            run_id=run.id,
            status=SyncStatus.COMPLETED,
            categories_processed=stats.categories_processed,
            members_processed=stats.members_processed,
            interests_processed=stats.interests_processed,
            payments_created=stats.payments_created,
            payers_created=stats.payers_created,
            payers_updated=stats.payers_updated,
            errors=tuple(stats.errors),
            duration_seconds=time.monotonic() - started,
        )
        logger.info(
            "sync_completed",
            extra={
                "run_id": str(run.id),
                "members": result.members_processed,
                "interests": result.interests_processed,
                "payments": result.payments_created,
                "payers_created": result.payers_created,
                "errors": len(result.errors),
                "duration_seconds": round(result.duration_seconds, 3),
            },
        )
        return result

    def _execute(
        self,
        session: Session,
        run_log: SyncRunLog,
        run_id: UUID,
        classifier: PayerClassifier,
        stats: SyncStats,
    ) -> None:
        run_started_at = self._clock.now()
        stage = SyncStatus.STARTED.value

        def checkpoint() -> None:
            deadline = self._settings.deadline_seconds
            if deadline is None:
                return
            elapsed = (self._clock.now() - run_started_at).total_seconds()
            if elapsed > deadline:
                raise SyncTimeoutError(str(run_id), stage, deadline)

        writer = RegisterWriter(session, self._settings.batch_size, checkpoint)

        def finish(outcome: BatchOutcome) -> None:
            stats.errors.extend(outcome.errors)

        def advance(target: SyncStatus) -> None:
            nonlocal stage
            checkpoint()
            run_log.advance(run_id, target, stats)
            session.commit()
            stage = target.value
            LogContext.set(stage=stage)

        LogContext.set(stage=stage)

        # Categories
        categories = self._source.fetch_categories()
        stats.categories_processed = len(categories)
        finish(writer.upsert_categories(categories))
        advance(SyncStatus.CATEGORIES_SYNCED)

        # Members
        members = self._source.fetch_members()
        stats.members_processed = len(members)
        finish(writer.upsert_members(members))
        advance(SyncStatus.MEMBERS_SYNCED)

        # Interests
        member_ids = frozenset(m.id for m in members)
        interests = [i for i in self._fetch_interests(member_ids) if i.member.id in member_ids]
        stats.interests_processed = len(interests)
        finish(writer.upsert_interests(interests))
        advance(SyncStatus.INTERESTS_SYNCED)

        # Payments
        extracted = extract_all_payments(interests)
        checkpoint()
        resolver = PayerResolver(session, classifier, self._settings.batch_size, checkpoint)
        resolution = resolver.resolve(extracted)
        stats.payers_created = resolution.created
        stats.payers_updated = resolution.updated
        stats.errors.extend(resolution.errors)

        outcome = writer.replace_payments(extracted, resolution.payer_ids)
        stats.payments_created = outcome.written
        finish(outcome)
        advance(SyncStatus.PAYMENTS_PROCESSED)

        # Summaries
        stats.errors.extend(SummaryRefresher(session).refresh_all())
        advance(SyncStatus.VIEWS_REFRESHED)

        run_log.complete_run(run_id, stats)
        session.commit()

    def _fetch_interests(self, member_ids: frozenset[int]) -> list[InterestRecord]:
        """Bulk fetch plus the employment-category fetch, merged."""
        category_id = self._settings.employment_category_id

        if self._settings.concurrent_fetches:
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="register-fetch") as pool:
                bulk_future = pool.submit(self._source.fetch_interests, member_ids)
                category_future = pool.submit(
                    self._source.fetch_interests, member_ids, category_id,
                )
                bulk = bulk_future.result()
                by_category = category_future.result()
        else:
            bulk = self._source.fetch_interests(member_ids)
            by_category = self._source.fetch_interests(member_ids, category_id)

        merged = merge_category_interests(bulk, by_category, category_id)
        logger.info(
            "interests_merged",
            extra={
                "bulk": len(bulk),
                "category_id": category_id,
                "category_fetched": len(by_category),
            },
        )
        return merged
