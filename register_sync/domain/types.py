"""
register_sync.domain.types -- Run-level DTOs returned to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from register_sync.domain.lifecycle import SyncStatus


@dataclass(frozen=True)
class SyncRun:
    """Immutable snapshot of a sync_runs row."""

    id: UUID
    sync_type: str
    status: SyncStatus
    started_at: datetime
    completed_at: datetime | None
    categories_processed: int
    members_processed: int
    interests_processed: int
    payments_created: int
    payers_created: int
    payers_updated: int
    errors: tuple[str, ...]
    error_message: str | None


@dataclass
class SyncStats:
    """Mutable counters accumulated while a run progresses."""

    categories_processed: int = 0
    members_processed: int = 0
    interests_processed: int = 0
    payments_created: int = 0
    payers_created: int = 0
    payers_updated: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SyncResult:
    """Final report of one sync run."""

    run_id: UUID
    status: SyncStatus
    categories_processed: int
    members_processed: int
    interests_processed: int
    payments_created: int
    payers_created: int
    payers_updated: int
    errors: tuple[str, ...]
    duration_seconds: float

    @property
    def success(self) -> bool:
        return self.status is SyncStatus.COMPLETED


@dataclass(frozen=True)
class ReclassificationResult:
    """Totals from a reclassify-all pass."""

    total_payers: int
    updated: int
    skipped_manual: int
    unchanged: int
    errors: tuple[str, ...] = ()
