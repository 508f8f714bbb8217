"""
Sync run lifecycle status.

Linear, no branching back:

    started -> categories_synced -> members_synced -> interests_synced
            -> payments_processed -> views_refreshed -> completed

failed is reachable from every non-terminal state.  completed and failed
are terminal.
"""

from enum import Enum, unique

from register_kernel.exceptions import InvalidSyncTransitionError


@unique
class SyncStatus(str, Enum):
    """Lifecycle status for a sync run."""

    STARTED = "started"
    CATEGORIES_SYNCED = "categories_synced"
    MEMBERS_SYNCED = "members_synced"
    INTERESTS_SYNCED = "interests_synced"
    PAYMENTS_PROCESSED = "payments_processed"
    VIEWS_REFRESHED = "views_refreshed"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({SyncStatus.COMPLETED, SyncStatus.FAILED})

# Allowed status transitions (from -> set of valid next states)
ALLOWED_TRANSITIONS: dict[SyncStatus, frozenset[SyncStatus]] = {
    SyncStatus.STARTED: frozenset({SyncStatus.CATEGORIES_SYNCED, SyncStatus.FAILED}),
    SyncStatus.CATEGORIES_SYNCED: frozenset({SyncStatus.MEMBERS_SYNCED, SyncStatus.FAILED}),
    SyncStatus.MEMBERS_SYNCED: frozenset({SyncStatus.INTERESTS_SYNCED, SyncStatus.FAILED}),
    SyncStatus.INTERESTS_SYNCED: frozenset({SyncStatus.PAYMENTS_PROCESSED, SyncStatus.FAILED}),
    SyncStatus.PAYMENTS_PROCESSED: frozenset({SyncStatus.VIEWS_REFRESHED, SyncStatus.FAILED}),
    SyncStatus.VIEWS_REFRESHED: frozenset({SyncStatus.COMPLETED, SyncStatus.FAILED}),
    SyncStatus.COMPLETED: frozenset(),  # Terminal
    SyncStatus.FAILED: frozenset(),  # Terminal
}

NON_TERMINAL_STATUSES = tuple(s.value for s in SyncStatus if s not in TERMINAL_STATUSES)


def validate_transition(current: SyncStatus, target: SyncStatus) -> bool:
    """Check if a status transition is valid."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def require_transition(current: SyncStatus, target: SyncStatus) -> None:
    """Raise InvalidSyncTransitionError unless current -> target is allowed."""
    if not validate_transition(current, target):
        raise InvalidSyncTransitionError(current.value, target.value)
