"""ORM models for the register ledger."""

from register_kernel.models.ledger import Payer, Payment
from register_kernel.models.register import Category, Interest, Member
from register_kernel.models.summaries import (
    HourlyRateSummary,
    PartyTotalSummary,
    TopEarnerSummary,
    TopPayerSummary,
)
from register_kernel.models.sync_run import SyncRunModel

__all__ = [
    "Category",
    "HourlyRateSummary",
    "Interest",
    "Member",
    "PartyTotalSummary",
    "Payer",
    "Payment",
    "SyncRunModel",
    "TopEarnerSummary",
    "TopPayerSummary",
]
