"""register_sync.domain -- Run lifecycle and run-level DTOs.  ZERO I/O."""

from register_sync.domain.lifecycle import (
    ALLOWED_TRANSITIONS,
    SyncStatus,
    require_transition,
    validate_transition,
)
from register_sync.domain.types import (
    ReclassificationResult,
    SyncResult,
    SyncRun,
    SyncStats,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ReclassificationResult",
    "SyncResult",
    "SyncRun",
    "SyncStats",
    "SyncStatus",
    "require_transition",
    "validate_transition",
]
