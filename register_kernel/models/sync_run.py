"""
Module: register_kernel.models.sync_run
Responsibility: One row per sync run: lifecycle status, timestamps,
    statistics and the accumulated non-fatal error list.

Invariants enforced:
    - status follows the run lifecycle in register_sync.domain.lifecycle.
    - A run row is written in its own short transactions so that a failed
      run is always visible as "failed", never left "running".
    - At most one non-terminal run exists: uq_sync_runs_live is a partial
      unique index over lock_key for rows whose status is not terminal.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from register_kernel.db.base import Base, SurrogateKeyMixin


# Rows outside the terminal statuses hold the run lock.
LIVE_RUN_CLAUSE = text("status NOT IN ('completed', 'failed')")


class SyncRunModel(SurrogateKeyMixin, Base):
    """Persistent sync run record."""

    __tablename__ = "sync_runs"

    __table_args__ = (
        Index("ix_sync_runs_status", "status"),
        Index("ix_sync_runs_started_at", "started_at"),
        Index(
            "uq_sync_runs_live",
            "lock_key",
            unique=True,
            postgresql_where=LIVE_RUN_CLAUSE,
            sqlite_where=LIVE_RUN_CLAUSE,
        ),
    )

    sync_type: Mapped[str] = mapped_column(String(50), nullable=False, default="full")
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    lock_key: Mapped[str] = mapped_column(String(20), nullable=False, default="sync")
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    categories_processed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    members_processed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    interests_processed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    payments_created: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    payers_created: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    payers_updated: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    errors: Mapped[list | None] = mapped_column(JSON, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
