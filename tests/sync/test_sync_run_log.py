"""Tests for SyncRunLog: the run lock, progress and closing a run."""

from datetime import timedelta
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from register_kernel.exceptions import (
    InvalidSyncTransitionError,
    SyncAlreadyRunningError,
    SyncRunNotFoundError,
)
from register_kernel.models import SyncRunModel
from register_sync.domain.lifecycle import SyncStatus
from register_sync.domain.types import SyncStats
from register_sync.services.run_log import ABANDONED_MESSAGE, SyncRunLog


@pytest.fixture
def run_log(session, clock):
    return SyncRunLog(session, clock)


class TestStartRun:
    def test_creates_started_run(self, run_log, clock):
        run = run_log.start_run()
        assert run.status is SyncStatus.STARTED
        assert run.sync_type == "full"
        assert run.errors == ()
        assert run.completed_at is None

    def test_refuses_while_live_run_exists(self, run_log):
        first = run_log.start_run()
        with pytest.raises(SyncAlreadyRunningError) as exc_info:
            run_log.start_run()
        assert exc_info.value.active_run_id == str(first.id)
        assert exc_info.value.status == "started"

    def test_starts_after_previous_completed(self, run_log):
        first = run_log.start_run()
        stats = SyncStats()
        for status in (
            SyncStatus.CATEGORIES_SYNCED,
            SyncStatus.MEMBERS_SYNCED,
            SyncStatus.INTERESTS_SYNCED,
            SyncStatus.PAYMENTS_PROCESSED,
            SyncStatus.VIEWS_REFRESHED,
        ):
            run_log.advance(first.id, status, stats)
        run_log.complete_run(first.id, stats)

        second = run_log.start_run()
        assert second.id != first.id

    def test_stale_run_abandoned(self, session, run_log, clock):
        stale = SyncRunModel(
            status=SyncStatus.MEMBERS_SYNCED.value,
            started_at=clock.now() - timedelta(hours=2),
            errors=[],
        )
        session.add(stale)
        session.flush()

        run = run_log.start_run(stale_after_seconds=3600)

        session.refresh(stale)
        assert stale.status == "failed"
        assert stale.error_message == ABANDONED_MESSAGE
        assert run.status is SyncStatus.STARTED

    def test_recent_run_not_abandoned(self, session, run_log, clock):
        session.add(SyncRunModel(
            status=SyncStatus.STARTED.value,
            started_at=clock.now() - timedelta(minutes=5),
            errors=[],
        ))
        session.flush()
        with pytest.raises(SyncAlreadyRunningError):
            run_log.start_run(stale_after_seconds=3600)

    def test_second_live_row_rejected_by_index(self, session, clock):
        session.add(SyncRunModel(status="started", started_at=clock.now(), errors=[]))
        session.flush()
        session.add(SyncRunModel(status="members_synced", started_at=clock.now(), errors=[]))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_terminal_rows_do_not_hold_the_lock(self, session, clock):
        for status in ("completed", "failed", "failed", "started"):
            session.add(SyncRunModel(status=status, started_at=clock.now(), errors=[]))
        session.flush()

    def test_racing_start_reported_as_already_running(self, run_log, monkeypatch):
        first = run_log.start_run()
        lookup = run_log._active_run
        calls = []

        def stale_lookup():
            calls.append(1)
            return None if len(calls) == 1 else lookup()

        monkeypatch.setattr(run_log, "_active_run", stale_lookup)
        with pytest.raises(SyncAlreadyRunningError) as exc_info:
            run_log.start_run()
        assert exc_info.value.active_run_id == str(first.id)
        assert run_log.latest_run().id == first.id


class TestProgress:
    def test_advance_writes_counters(self, run_log):
        run = run_log.start_run()
        stats = SyncStats(categories_processed=4, errors=["categories batch 1/1: boom"])

        advanced = run_log.advance(run.id, SyncStatus.CATEGORIES_SYNCED, stats)

        assert advanced.status is SyncStatus.CATEGORIES_SYNCED
        assert advanced.categories_processed == 4
        assert advanced.errors == ("categories batch 1/1: boom",)

    def test_out_of_order(self, run_log):
        run = run_log.start_run()
        with pytest.raises(InvalidSyncTransitionError):
            run_log.advance(run.id, SyncStatus.PAYMENTS_PROCESSED, SyncStats())

    def test_fail_run(self, run_log, clock):
        run = run_log.start_run()
        clock.advance(30)
        failed = run_log.fail_run(run.id, "SourceFetchError: boom", SyncStats())

        assert failed.status is SyncStatus.FAILED
        assert failed.error_message == "SourceFetchError: boom"
        assert failed.completed_at is not None

    def test_fail_run_leaves_terminal_run_alone(self, run_log):
        run = run_log.start_run()
        run_log.fail_run(run.id, "first", SyncStats())
        again = run_log.fail_run(run.id, "second", SyncStats())
        assert again.error_message == "first"

    def test_unknown_run(self, run_log):
        with pytest.raises(SyncRunNotFoundError):
            run_log.get_run(uuid4())

    def test_latest_run(self, run_log, clock):
        assert run_log.latest_run() is None
        first = run_log.start_run()
        run_log.fail_run(first.id, "x", SyncStats())
        clock.advance(60)
        second = run_log.start_run()
        assert run_log.latest_run().id == second.id
