"""register_sync.services -- Database-facing services used by a sync run."""

from register_sync.services.payer_resolver import PayerResolution, PayerResolver
from register_sync.services.reclassifier import PayerReclassifier
from register_sync.services.run_log import SyncRunLog
from register_sync.services.summaries import SummaryRefresher
from register_sync.services.writer import BatchOutcome, RegisterWriter

__all__ = [
    "BatchOutcome",
    "PayerReclassifier",
    "PayerResolution",
    "PayerResolver",
    "RegisterWriter",
    "SummaryRefresher",
    "SyncRunLog",
]
