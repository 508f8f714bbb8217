"""
SummaryRefresher -- rebuilds the pre-aggregated summary tables.

Each table is rebuilt with DELETE + INSERT ... SELECT inside its own
SAVEPOINT.  A failed rebuild rolls back to the previous contents of that
table and is reported as ``"summary refresh <table>: <message>"``; the
other tables are still rebuilt.  Summaries may therefore be stale after a
failure; the payments table never is.

Non-goals:
    - Does NOT call ``session.commit()`` -- caller controls boundaries.
"""

from __future__ import annotations

from typing import Callable

from sqlalchemy import Select, and_, delete, func, insert, select
from sqlalchemy.orm import Session

from register_kernel.logging_config import get_logger
from register_kernel.models import (
    HourlyRateSummary,
    Member,
    PartyTotalSummary,
    Payer,
    Payment,
    TopEarnerSummary,
    TopPayerSummary,
)

from register_sync.services.writer import describe_error

logger = get_logger("sync.summaries")


def party_totals_query() -> Select:
    """Totals per party over current members; members without payments count."""
    return (
        select(
            Member.party_name,
            func.max(Member.party_color),
            func.count(func.distinct(Member.id)),
            func.coalesce(func.sum(Payment.amount), 0),
            func.round(func.coalesce(func.avg(Payment.amount), 0), 2),
            func.count(Payment.id),
        )
        .select_from(Member)
        .outerjoin(Payment, Payment.member_id == Member.id)
        .where(Member.is_current.is_(True))
        .group_by(Member.party_name)
    )


def top_payers_query() -> Select:
    return (
        select(
            Payer.id,
            Payer.name,
            Payer.payer_type,
            Payer.payer_subtype,
            func.coalesce(func.sum(Payment.amount), 0),
            func.count(func.distinct(Payment.member_id)),
            func.count(Payment.id),
        )
        .join(Payment, Payment.payer_id == Payer.id)
        .where(Payment.amount.is_not(None))
        .group_by(Payer.id, Payer.name, Payer.payer_type, Payer.payer_subtype)
    )


def hourly_rates_query() -> Select:
    return (
        select(
            Payment.id,
            Member.id,
            Member.name_display,
            Member.party_name,
            Payment.role_description,
            Payment.amount,
            Payment.hours_worked,
            Payment.hours_period,
            Payment.hourly_rate,
            Payment.payer_name,
        )
        .join(Member, Payment.member_id == Member.id)
        .where(
            and_(
                Member.is_current.is_(True),
                Payment.hourly_rate.is_not(None),
                Payment.hourly_rate > 0,
            )
        )
    )


def top_earners_query() -> Select:
    return (
        select(
            Member.id,
            Member.name_display,
            Member.party_name,
            Member.constituency,
            Payment.role_description,
            func.coalesce(func.sum(Payment.amount), 0),
            func.count(Payment.id),
        )
        .join(Payment, Payment.member_id == Member.id)
        .where(
            and_(
                Member.is_current.is_(True),
                Payment.role_description.is_not(None),
                Payment.amount.is_not(None),
            )
        )
        .group_by(
            Member.id,
            Member.name_display,
            Member.party_name,
            Member.constituency,
            Payment.role_description,
        )
    )


# table -> (model, target columns, query factory)
SUMMARY_TABLES: dict[str, tuple[type, tuple[str, ...], Callable[[], Select]]] = {
    "summary_party_totals": (
        PartyTotalSummary,
        ("party_name", "party_color", "mp_count", "total_amount", "avg_amount", "payment_count"),
        party_totals_query,
    ),
    "summary_top_payers": (
        TopPayerSummary,
        ("payer_id", "name", "payer_type", "payer_subtype", "total_paid", "mp_count", "payment_count"),
        top_payers_query,
    ),
    "summary_hourly_rates": (
        HourlyRateSummary,
        (
            "payment_id", "member_id", "name_display", "party_name", "role_description",
            "amount", "hours_worked", "hours_period", "hourly_rate", "payer_name",
        ),
        hourly_rates_query,
    ),
    "summary_top_earners": (
        TopEarnerSummary,
        ("member_id", "name_display", "party_name", "constituency", "role_description",
         "total_amount", "payment_count"),
        top_earners_query,
    ),
}


class SummaryRefresher:
    """Rebuilds every summary table from members, payers and payments."""

    def __init__(self, session: Session):
        self._session = session

    def refresh_table(self, table: str) -> int:
        """Rebuild one summary table and return its row count."""
        model, columns, query = SUMMARY_TABLES[table]
        self._session.execute(delete(model))
        self._session.execute(
            insert(model).from_select(list(columns), query())
        )
        return self._session.execute(select(func.count()).select_from(model)).scalar_one()

    def refresh_all(self) -> list[str]:
        """Rebuild all summary tables; returns error strings for those that failed."""
        errors: list[str] = []
        for table in SUMMARY_TABLES:
            savepoint = self._session.begin_nested()
            try:
                rows = self.refresh_table(table)
                savepoint.commit()
            except Exception as exc:
                savepoint.rollback()
                message = f"summary refresh {table}: {describe_error(exc)}"
                errors.append(message)
                logger.warning("summary_refresh_failed", extra={"table": table, "error": message})
                continue
            logger.info("summary_refreshed", extra={"table": table, "rows": rows})
        return errors
