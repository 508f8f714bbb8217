"""Tests for the sync run lifecycle table."""

import pytest

from register_kernel.exceptions import InvalidSyncTransitionError
from register_sync.domain.lifecycle import (
    ALLOWED_TRANSITIONS,
    NON_TERMINAL_STATUSES,
    SyncStatus,
    require_transition,
    validate_transition,
)

LINEAR = [
    SyncStatus.STARTED,
    SyncStatus.CATEGORIES_SYNCED,
    SyncStatus.MEMBERS_SYNCED,
    SyncStatus.INTERESTS_SYNCED,
    SyncStatus.PAYMENTS_PROCESSED,
    SyncStatus.VIEWS_REFRESHED,
    SyncStatus.COMPLETED,
]


class TestTransitions:
    @pytest.mark.parametrize("current, target", list(zip(LINEAR, LINEAR[1:])))
    def test_linear_path(self, current, target):
        assert validate_transition(current, target)

    @pytest.mark.parametrize("current", LINEAR[:-1])
    def test_failed_reachable_from_every_live_state(self, current):
        assert validate_transition(current, SyncStatus.FAILED)

    def test_no_skipping(self):
        assert not validate_transition(SyncStatus.STARTED, SyncStatus.MEMBERS_SYNCED)

    def test_no_going_back(self):
        assert not validate_transition(SyncStatus.INTERESTS_SYNCED, SyncStatus.CATEGORIES_SYNCED)

    @pytest.mark.parametrize("terminal", [SyncStatus.COMPLETED, SyncStatus.FAILED])
    def test_terminal_states_have_no_exits(self, terminal):
        assert terminal.is_terminal
        assert ALLOWED_TRANSITIONS[terminal] == frozenset()

    def test_require_transition_raises(self):
        with pytest.raises(InvalidSyncTransitionError) as exc_info:
            require_transition(SyncStatus.COMPLETED, SyncStatus.FAILED)
        assert exc_info.value.current == "completed"
        assert exc_info.value.target == "failed"

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(SyncStatus)

    def test_non_terminal_values(self):
        assert "completed" not in NON_TERMINAL_STATUSES
        assert "failed" not in NON_TERMINAL_STATUSES
        assert len(NON_TERMINAL_STATUSES) == 6
