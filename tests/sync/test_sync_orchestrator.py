"""
End-to-end tests for SyncOrchestrator against the in-memory register
(see ``fake_source`` in conftest) and an in-memory SQLite database.

Every database read happens in a short-lived session opened after the run
returns.
"""

from dataclasses import replace
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from register_config.settings import SyncSettings
from register_kernel.exceptions import (
    SourceFetchError,
    SyncAlreadyRunningError,
    SyncTimeoutError,
)
from register_kernel.models import (
    Category,
    HourlyRateSummary,
    Interest,
    Member,
    PartyTotalSummary,
    Payer,
    Payment,
    SyncRunModel,
    TopPayerSummary,
)
from register_ingestion.classification.classifier import PayerClassifier
from register_ingestion.classification.names import normalize_name
from register_ingestion.domain.types import InterestField, PayerOverride, PayerType
from register_sync.domain.lifecycle import SyncStatus
from register_sync.orchestrator import SyncOrchestrator, merge_category_interests
from register_sync.services import summaries

SETTINGS = SyncSettings(database_url="sqlite://", batch_size=2)


@pytest.fixture
def make_orchestrator(session_factory, fake_source, clock):
    def _make(source=None, settings=SETTINGS, overrides=(), classifier=None):
        return SyncOrchestrator(
            session_factory,
            source or fake_source,
            settings=settings,
            classifier=classifier,
            clock=clock,
            overrides_loader=lambda: list(overrides),
        )

    return _make


def _count(session_factory, model):
    with session_factory() as s:
        return s.execute(select(func.count()).select_from(model)).scalar_one()


def _payments(session_factory):
    with session_factory() as s:
        return {p.interest_id: p for p in s.execute(select(Payment)).scalars()}


def _payers(session_factory):
    with session_factory() as s:
        return {p.normalized_name: p for p in s.execute(select(Payer)).scalars()}


def _runs(session_factory):
    with session_factory() as s:
        return s.execute(select(SyncRunModel).order_by(SyncRunModel.started_at)).scalars().all()


class TestMergeCategoryInterests:
    def test_replaces_only_target_category(self, fake_source):
        merged = merge_category_interests(
            fake_source.interests,
            fake_source.category_interests[12],
            12,
        )
        by_id = {i.id: i for i in merged}
        assert len(merged) == len(fake_source.interests)
        assert by_id[1001].child_interests
        assert by_id[2001] is fake_source.interests[1]


class TestFullRun:
    def test_result_counts(self, make_orchestrator):
        result = make_orchestrator().run()

        assert result.success
        assert result.status is SyncStatus.COMPLETED
        assert result.categories_processed == 4
        assert result.members_processed == 3
        assert result.interests_processed == 4
        assert result.payments_created == 3
        assert result.payers_created == 3
        assert result.payers_updated == 0
        assert result.errors == ()
        assert result.duration_seconds >= 0

    def test_run_row_completed(self, make_orchestrator, session_factory):
        result = make_orchestrator().run()
        (run,) = _runs(session_factory)

        assert run.id == result.run_id
        assert run.status == "completed"
        assert run.completed_at is not None
        assert run.payments_created == 3
        assert run.errors == []

    def test_register_records_persisted(self, make_orchestrator, session_factory):
        make_orchestrator().run()

        assert _count(session_factory, Category) == 4
        assert _count(session_factory, Member) == 3
        assert _count(session_factory, Interest) == 4
        with session_factory() as s:
            assert s.get(Category, 13).parent_id == 12
            assert s.get(Interest, 9001) is None

    def test_party_names_normalized(self, make_orchestrator, session_factory):
        make_orchestrator().run()
        with session_factory() as s:
            assert s.get(Member, 101).party_name == "Labour"
            labour = s.get(PartyTotalSummary, "Labour")
            assert labour.mp_count == 2
            assert labour.total_amount == Decimal("4000")

    def test_employment_category_fetch_supplies_child_fields(self, make_orchestrator, session_factory):
        make_orchestrator().run()
        payment = _payments(session_factory)[1001]

        assert payment.amount == Decimal("1500.00")
        assert payment.hours_worked == Decimal("10.00")
        assert payment.hourly_rate == Decimal("150.00")
        assert payment.role_description == "Columnist"

    def test_sequential_fetches_match_concurrent(self, make_orchestrator, session_factory):
        make_orchestrator(settings=replace(SETTINGS, concurrent_fetches=False)).run()
        assert _payments(session_factory)[1001].amount == Decimal("1500.00")

    def test_donor_array_summed(self, make_orchestrator, session_factory):
        make_orchestrator().run()
        payment = _payments(session_factory)[2001]

        assert payment.amount == Decimal("3000.00")
        assert payment.payer_name == "Northshire Council"
        assert payment.payer_address == "1 High Street"
        assert payment.is_donated
        assert payment.role_description == "Conference tickets"

    def test_unstorable_amount_stored_as_null(self, make_orchestrator, fake_source, session_factory):
        visit = fake_source.interests[3]
        fake_source.interests.append(replace(
            visit,
            id=3002,
            fields=(
                InterestField(name="Payer", value="Big Spender Ltd"),
                InterestField(name="Payment", value="1e30"),
            ),
        ))

        result = make_orchestrator(settings=replace(SETTINGS, batch_size=100)).run()

        assert result.errors == ()
        assert result.payments_created == 4
        payments = _payments(session_factory)
        assert payments[3002].amount is None
        assert payments[3002].amount_raw == "1e30"
        assert payments[3001].amount == Decimal("2500.00")

    def test_reported_status_beats_name_rules(self, make_orchestrator, session_factory):
        make_orchestrator().run()
        payer = _payers(session_factory)["northshire council"]
        assert payer.payer_type == "Company"
        assert payer.payer_subtype is None

    def test_classification_from_rules(self, make_orchestrator, session_factory):
        make_orchestrator().run()
        payers = _payers(session_factory)

        assert (payers["acme media ltd"].payer_type, payers["acme media ltd"].payer_subtype) == (
            "Company", "Media",
        )
        government = payers["government of examplestan"]
        assert (government.payer_type, government.payer_subtype) == ("Government", "Foreign Government")

    def test_overrides_loaded_each_run(self, make_orchestrator, session_factory):
        overrides = [PayerOverride("acme media", PayerType.INDIVIDUAL, "Freelance")]
        make_orchestrator(overrides=overrides).run()
        payer = _payers(session_factory)["acme media ltd"]
        assert (payer.payer_type, payer.payer_subtype) == ("Individual", "Freelance")

    def test_injected_classifier_overrides_replaced(self, make_orchestrator):
        classifier = PayerClassifier(overrides=[PayerOverride("stale", PayerType.INDIVIDUAL)])
        make_orchestrator(classifier=classifier).run()
        assert classifier.override_count == 0

    def test_every_payment_links_to_matching_payer(self, make_orchestrator, session_factory):
        make_orchestrator().run()
        payers_by_id = {p.id: p for p in _payers(session_factory).values()}

        for payment in _payments(session_factory).values():
            assert payment.payer_id is not None
            assert payers_by_id[payment.payer_id].normalized_name == normalize_name(payment.payer_name)

    def test_summaries_built(self, make_orchestrator, session_factory):
        make_orchestrator().run()
        assert _count(session_factory, TopPayerSummary) == 3
        assert _count(session_factory, HourlyRateSummary) == 1

    def test_completion_logged(self, make_orchestrator, captured_logs):
        result = make_orchestrator().run()
        records = [r for r in captured_logs() if r["message"] == "sync_completed"]
        assert records[-1]["run_id"] == str(result.run_id)
        assert records[-1]["payments"] == 3

        advanced = [r["status"] for r in captured_logs() if r["message"] == "sync_run_advanced"]
        assert advanced == [
            "categories_synced",
            "members_synced",
            "interests_synced",
            "payments_processed",
            "views_refreshed",
            "completed",
        ]


class TestIdempotence:
    def test_second_run_identical(self, make_orchestrator, session_factory, clock):
        make_orchestrator().run()
        first_payments = {
            i: (p.amount, p.payer_id, p.payer_name) for i, p in _payments(session_factory).items()
        }
        first_payers = {k: p.id for k, p in _payers(session_factory).items()}

        clock.advance(60)
        result = make_orchestrator().run()

        assert result.payers_created == 0
        assert result.payers_updated == 0
        assert {
            i: (p.amount, p.payer_id, p.payer_name) for i, p in _payments(session_factory).items()
        } == first_payments
        assert {k: p.id for k, p in _payers(session_factory).items()} == first_payers
        assert _count(session_factory, Member) == 3

    def test_manual_payer_survives_runs(self, make_orchestrator, session_factory):
        with session_factory() as s:
            s.add(Payer(
                name="Government of Examplestan",
                normalized_name="government of examplestan",
                payer_type="Company",
                payer_subtype="Consultancy",
                is_manual_override=True,
                override_reason="Trading arm",
            ))
            s.commit()

        result = make_orchestrator().run()
        payer = _payers(session_factory)["government of examplestan"]

        assert result.payers_created == 2
        assert (payer.payer_type, payer.payer_subtype) == ("Company", "Consultancy")
        assert _payments(session_factory)[3001].payer_id == payer.id


class TestRunLock:
    def test_refuses_while_run_live(self, make_orchestrator, session_factory, clock):
        with session_factory() as s:
            s.add(SyncRunModel(status="interests_synced", started_at=clock.now(), errors=[]))
            s.commit()

        with pytest.raises(SyncAlreadyRunningError):
            make_orchestrator().run()
        assert _count(session_factory, Member) == 0

    def test_stale_run_abandoned_then_run_proceeds(self, make_orchestrator, session_factory, clock):
        with session_factory() as s:
            s.add(SyncRunModel(
                status="members_synced",
                started_at=clock.now() - timedelta(hours=3),
                errors=[],
            ))
            s.commit()

        result = make_orchestrator().run()

        assert result.success
        stale, current = _runs(session_factory)
        assert stale.status == "failed"
        assert stale.error_message.startswith("abandoned")
        assert current.status == "completed"


class TestFailures:
    def test_fetch_failure_marks_run_failed(self, make_orchestrator, fake_source, session_factory):
        fake_source.fail_on = "members"
        fake_source.error = SourceFetchError("https://members.test", "503 Service Unavailable", 503)

        with pytest.raises(SourceFetchError):
            make_orchestrator().run()

        (run,) = _runs(session_factory)
        assert run.status == "failed"
        assert run.error_message.startswith("SourceFetchError: ")
        assert run.categories_processed == 4
        assert _count(session_factory, Category) == 4
        assert _count(session_factory, Member) == 0

    def test_unexpected_error_marks_run_failed(self, make_orchestrator, fake_source, session_factory):
        fake_source.fail_on = "interests"
        fake_source.error = RuntimeError("socket closed")

        with pytest.raises(RuntimeError):
            make_orchestrator(settings=replace(SETTINGS, concurrent_fetches=False)).run()

        (run,) = _runs(session_factory)
        assert run.status == "failed"
        assert run.error_message == "RuntimeError: socket closed"
        assert _count(session_factory, Member) == 3

    def test_failed_run_releases_lock(self, make_orchestrator, fake_source, session_factory):
        fake_source.fail_on = "categories"
        fake_source.error = SourceFetchError("https://interests.test", "timed out")
        with pytest.raises(SourceFetchError):
            make_orchestrator().run()

        fake_source.fail_on = None
        assert make_orchestrator().run().success

    def test_deadline_exceeded(self, make_orchestrator, fake_source, session_factory, clock):
        def slow_members(fetch):
            if fetch == "members":
                clock.advance(120)

        fake_source.on_fetch = slow_members
        settings = replace(SETTINGS, deadline_seconds=60)

        with pytest.raises(SyncTimeoutError) as exc_info:
            make_orchestrator(settings=settings).run()

        assert exc_info.value.stage == "categories_synced"
        (run,) = _runs(session_factory)
        assert run.status == "failed"
        assert run.error_message.startswith("SyncTimeoutError: ")
        assert _count(session_factory, Category) == 4
        assert _count(session_factory, Member) == 0

    def test_no_deadline(self, make_orchestrator, fake_source, clock):
        fake_source.on_fetch = lambda fetch: clock.advance(10_000)
        settings = replace(SETTINGS, deadline_seconds=None, stale_run_after_seconds=100_000)
        assert make_orchestrator(settings=settings).run().success

    def test_batch_failure_collected_run_continues(self, make_orchestrator, fake_source, session_factory):
        orphan = replace(fake_source.interests[3], id=3002, category=replace(
            fake_source.interests[3].category, id=77,
        ))
        fake_source.interests.append(orphan)
        settings = replace(SETTINGS, batch_size=1)

        result = make_orchestrator(settings=settings).run()

        assert result.success
        assert any(e.startswith("interests batch ") for e in result.errors)
        assert any(e.startswith("payments batch ") for e in result.errors)
        assert result.payments_created == 3
        (run,) = _runs(session_factory)
        assert run.errors == list(result.errors)

    def test_summary_failure_collected_run_completes(self, make_orchestrator, monkeypatch, session_factory):
        def broken():
            raise RuntimeError("permission denied")

        model, columns, _ = summaries.SUMMARY_TABLES["summary_hourly_rates"]
        monkeypatch.setitem(summaries.SUMMARY_TABLES, "summary_hourly_rates", (model, columns, broken))

        result = make_orchestrator().run()

        assert result.success
        assert result.errors == ("summary refresh summary_hourly_rates: permission denied",)
        assert _count(session_factory, Payment) == 3
