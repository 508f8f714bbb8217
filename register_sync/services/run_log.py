"""
SyncRunLog -- persistence of sync run rows and the run-level lock.

Contract:
    - ``start_run()`` refuses to start while another non-terminal run
      younger than the stale window exists; older non-terminal runs are
      marked failed ("abandoned") first.  Two starts racing past that
      check are separated by the uq_sync_runs_live index.
    - ``advance()`` moves a run along the lifecycle and writes its counters.
    - ``complete_run()`` / ``fail_run()`` close a run.

Non-goals:
    - Does NOT call ``session.commit()`` -- caller controls boundaries.
      The orchestrator writes each run-log change in its own short
      transaction so a failed run is always visible as failed.
"""

from __future__ import annotations

from datetime import timedelta
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from register_kernel.domain.clock import Clock, SystemClock
from register_kernel.exceptions import SyncAlreadyRunningError, SyncRunNotFoundError
from register_kernel.logging_config import get_logger
from register_kernel.models.sync_run import SyncRunModel

from register_sync.domain.lifecycle import (
    NON_TERMINAL_STATUSES,
    SyncStatus,
    require_transition,
)
from register_sync.domain.types import SyncRun, SyncStats

logger = get_logger("sync.run_log")

ABANDONED_MESSAGE = "abandoned: no progress within the stale-run window"


def to_dto(model: SyncRunModel) -> SyncRun:
    return SyncRun(
        id=model.id,
        sync_type=model.sync_type,
        status=SyncStatus(model.status),
        started_at=model.started_at,
        completed_at=model.completed_at,
        categories_processed=model.categories_processed,
        members_processed=model.members_processed,
        interests_processed=model.interests_processed,
        payments_created=model.payments_created,
        payers_created=model.payers_created,
        payers_updated=model.payers_updated,
        errors=tuple(model.errors or ()),
        error_message=model.error_message,
    )


class SyncRunLog:
    """Reads and writes sync_runs rows."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()

    # -------------------------------------------------------------------------
    # Lock
    # -------------------------------------------------------------------------

    def abandon_stale_runs(self, stale_after_seconds: float) -> int:
        """Mark non-terminal runs older than the stale window as failed."""
        now = self._clock.now()
        cutoff = now - timedelta(seconds=stale_after_seconds)
        result = self._session.execute(
            update(SyncRunModel)
            .where(
                SyncRunModel.status.in_(NON_TERMINAL_STATUSES),
                SyncRunModel.started_at < cutoff,
            )
            .values(
                status=SyncStatus.FAILED.value,
                completed_at=now,
                error_message=ABANDONED_MESSAGE,
            )
            .execution_options(synchronize_session=False)
        )
        abandoned = result.rowcount or 0
        if abandoned:
            logger.warning(
                "sync_runs_abandoned",
                extra={"abandoned": abandoned, "stale_after_seconds": stale_after_seconds},
            )
        return abandoned

    def start_run(self, sync_type: str = "full", stale_after_seconds: float = 3600) -> SyncRun:
        """
        Create a new run in status started.

        Raises:
            SyncAlreadyRunningError: If a non-stale non-terminal run exists.
        """
        self.abandon_stale_runs(stale_after_seconds)

        active = self._active_run()
        if active is not None:
            raise SyncAlreadyRunningError(str(active.id), active.status)

        model = SyncRunModel(
            sync_type=sync_type,
            status=SyncStatus.STARTED.value,
            started_at=self._clock.now(),
            errors=[],
        )
        # A concurrent start that passed the check above trips uq_sync_runs_live
        try:
            with self._session.begin_nested():
                self._session.add(model)
                self._session.flush()
        except IntegrityError:
            active = self._active_run()
            if active is None:
                raise
            logger.warning(
                "concurrent_sync_start_conflict",
                extra={"run_id": str(active.id), "status": active.status},
            )
            raise SyncAlreadyRunningError(str(active.id), active.status) from None

        logger.info(
            "sync_run_started",
            extra={"run_id": str(model.id), "sync_type": sync_type},
        )
        return to_dto(model)

    def _active_run(self) -> SyncRunModel | None:
        return self._session.execute(
            select(SyncRunModel)
            .where(SyncRunModel.status.in_(NON_TERMINAL_STATUSES))
            .order_by(SyncRunModel.started_at.desc())
            .limit(1)
            .with_for_update()
        ).scalar_one_or_none()

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    def _load(self, run_id: UUID) -> SyncRunModel:
        model = self._session.get(SyncRunModel, run_id)
        if model is None:
            raise SyncRunNotFoundError(str(run_id))
        return model

    @staticmethod
    def _write_stats(model: SyncRunModel, stats: SyncStats) -> None:
        model.categories_processed = stats.categories_processed
        model.members_processed = stats.members_processed
        model.interests_processed = stats.interests_processed
        model.payments_created = stats.payments_created
        model.payers_created = stats.payers_created
        model.payers_updated = stats.payers_updated
        model.errors = list(stats.errors)

    def advance(self, run_id: UUID, target: SyncStatus, stats: SyncStats) -> SyncRun:
        """
        Move the run to ``target`` and record the counters so far.

        Raises:
            SyncRunNotFoundError: If the run does not exist.
            InvalidSyncTransitionError: If the move is not allowed.
        """
        model = self._load(run_id)
        require_transition(SyncStatus(model.status), target)

        model.status = target.value
        self._write_stats(model, stats)
        if target.is_terminal:
            model.completed_at = self._clock.now()
        self._session.flush()

        logger.info(
            "sync_run_advanced",
            extra={"run_id": str(run_id), "status": target.value},
        )
        return to_dto(model)

    def complete_run(self, run_id: UUID, stats: SyncStats) -> SyncRun:
        return self.advance(run_id, SyncStatus.COMPLETED, stats)

    def fail_run(self, run_id: UUID, error_message: str, stats: SyncStats) -> SyncRun:
        """Mark the run failed.  A run that is already terminal is left as is."""
        model = self._load(run_id)
        if SyncStatus(model.status).is_terminal:
            return to_dto(model)

        model.error_message = error_message
        dto = self.advance(run_id, SyncStatus.FAILED, stats)
        logger.error(
            "sync_run_failed",
            extra={"run_id": str(run_id), "error": error_message},
        )
        return dto

    # -------------------------------------------------------------------------
    # Query
    # -------------------------------------------------------------------------

    def get_run(self, run_id: UUID) -> SyncRun:
        return to_dto(self._load(run_id))

    def latest_run(self) -> SyncRun | None:
        model = self._session.execute(
            select(SyncRunModel).order_by(SyncRunModel.started_at.desc()).limit(1)
        ).scalar_one_or_none()
        return to_dto(model) if model is not None else None
