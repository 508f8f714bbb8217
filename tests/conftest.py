"""
Pytest fixtures for the register ledger test suite.

Provides:
- In-memory SQLite database with all tables created per test
- A deterministic clock
- An in-memory RegisterSource with a small, realistic register
- Structured log capture

The SQLite engine shares one connection (StaticPool).  Tests that drive
the SyncOrchestrator must not hold a session with an open transaction
while a run executes: seed and assert inside short ``with
session_factory() as s:`` blocks.
"""

import json
import logging
from dataclasses import dataclass, field
from io import StringIO
from typing import Callable

import pytest

from register_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from register_kernel.domain.clock import DeterministicClock
from register_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

from register_ingestion.domain.types import (
    CategoryRecord,
    CategoryRef,
    InterestField,
    InterestRecord,
    MemberRecord,
    MemberRef,
)

EMPLOYMENT_CATEGORY_ID = 12


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture register logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            orchestrator.run()
            logs = captured_logs()
            assert any(r["message"] == "sync_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("register")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def session_factory():
    """Fresh in-memory database with every table created."""
    init_engine_from_url("sqlite://")
    create_tables()
    yield get_session_factory()
    drop_tables()
    reset_engine()


@pytest.fixture
def session(session_factory):
    """A session for service-level tests that never run the orchestrator."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def clock():
    return DeterministicClock()


# =============================================================================
# Register source
# =============================================================================


def text_field(name: str, value) -> InterestField:
    return InterestField(name=name, value=value)


def donors_field(*donors: dict) -> InterestField:
    """A Donors field with one group per donor mapping."""
    groups = tuple(
        tuple(InterestField(name=k, value=v) for k, v in donor.items())
        for donor in donors
    )
    return InterestField(name="Donors", values=groups)


def interest(
    interest_id: int,
    member_id: int,
    category: CategoryRecord,
    *fields: InterestField,
    summary: str | None = None,
    children: tuple = (),
    parent_interest_id: int | None = None,
) -> InterestRecord:
    return InterestRecord(
        id=interest_id,
        member=MemberRef(id=member_id),
        category=CategoryRef(id=category.id, name=category.name),
        summary=summary,
        registration_date="2024-03-01",
        published_date="2024-03-15T00:00:00",
        fields=tuple(fields),
        child_interests=children,
        parent_interest_id=parent_interest_id,
        raw_fields=tuple({"name": f.name, "value": f.value} for f in fields),
    )


EMPLOYMENT = CategoryRecord(id=EMPLOYMENT_CATEGORY_ID, name="Employment and earnings", sort_order=1)
AD_HOC = CategoryRecord(id=13, name="Ad hoc payments", parent_id=EMPLOYMENT_CATEGORY_ID, sort_order=2)
GIFTS = CategoryRecord(id=3, name="Gifts, benefits and hospitality from UK sources", sort_order=3)
VISITS = CategoryRecord(id=4, name="Visits outside the UK", sort_order=4)


@dataclass
class FakeRegisterSource:
    """
    In-memory RegisterSource.

    ``category_interests`` maps a category id to what the category-filtered
    fetch returns.  ``fail_on`` names a fetch ("categories", "members",
    "interests") that raises ``error``.  ``on_fetch`` is called with the
    fetch name before every fetch.
    """

    members: list = field(default_factory=list)
    categories: list = field(default_factory=list)
    interests: list = field(default_factory=list)
    category_interests: dict = field(default_factory=dict)
    fail_on: str | None = None
    error: Exception | None = None
    on_fetch: Callable[[str], None] | None = None
    calls: list = field(default_factory=list)

    name = "fake"

    def _enter(self, fetch: str) -> None:
        self.calls.append(fetch)
        if self.on_fetch is not None:
            self.on_fetch(fetch)
        if self.fail_on == fetch:
            raise self.error

    def fetch_categories(self):
        self._enter("categories")
        return list(self.categories)

    def fetch_members(self):
        self._enter("members")
        return list(self.members)

    def fetch_interests(self, member_ids=None, category_id=None):
        self._enter("interests")
        if category_id is not None:
            items = self.category_interests.get(category_id, [])
        else:
            items = self.interests
        return [i for i in items if member_ids is None or i.member.id in member_ids]


@pytest.fixture
def fake_source():
    """
    A small register:

    - Jane Smith (Labour (Co-op)): employment interest 1001 whose amount
      and hours only exist on a child interest, returned by the
      employment-category fetch.
    - John Doe (Conservative): donation 2001 from two donors with a
      reported status of Company, and interest 2002 with no usable fields.
    - Alex Brown (Labour): visit 3001 paid by a foreign government.
    - Interest 9001 belongs to a former member and is dropped.
    """
    members = [
        MemberRecord(
            id=101, name_display="Jane Smith", name_list_as="Smith, Jane",
            party_name="Labour (Co-op)", party_id=15, party_abbreviation="Lab/Co-op",
            party_color="#d50000", constituency="Northtown",
        ),
        MemberRecord(
            id=102, name_display="John Doe", name_list_as="Doe, John",
            party_name="Conservative", party_id=4, party_abbreviation="Con",
            party_color="#0087dc", constituency="Southvale",
        ),
        MemberRecord(
            id=103, name_display="Alex Brown", name_list_as="Brown, Alex",
            party_name="Labour", party_id=15, party_abbreviation="Lab",
            party_color="#e4003b", constituency="Eastport",
        ),
    ]

    employment_bulk = interest(
        1001, 101, EMPLOYMENT,
        text_field("Payer", "Acme Media Ltd"),
        summary="Acme Media Ltd - columnist",
    )
    employment_child = interest(
        1002, 101, EMPLOYMENT,
        text_field("Payment", "£1,500"),
        text_field("Hours worked", "10 hours"),
        text_field("Job title", "Columnist"),
        parent_interest_id=1001,
    )
    employment_full = interest(
        1001, 101, EMPLOYMENT,
        text_field("Payer", "Acme Media Ltd"),
        summary="Acme Media Ltd - columnist",
        children=(employment_child,),
    )

    interests = [
        employment_bulk,
        interest(
            2001, 102, GIFTS,
            donors_field(
                {"Name": "Northshire Council", "Value": "1000", "PublicAddress": "1 High Street"},
                {"Name": "Second Donor", "Value": "£2,000"},
            ),
            text_field("DonorStatus", "Company"),
            summary="Conference tickets",
        ),
        interest(2002, 102, GIFTS, text_field("Received", False)),
        interest(
            3001, 103, VISITS,
            text_field("Payer", "Government of Examplestan"),
            text_field("Payment", "£2,000-£3,000"),
            summary="Visit to Examplestan",
        ),
        interest(9001, 999, VISITS, text_field("Payment", "£100")),
    ]

    return FakeRegisterSource(
        members=members,
        categories=[AD_HOC, EMPLOYMENT, GIFTS, VISITS],
        interests=interests,
        category_interests={EMPLOYMENT_CATEGORY_ID: [employment_full]},
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )
