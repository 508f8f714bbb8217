"""
RegisterSource protocol -- the three inbound fetches the sync depends on.

Implementations raise SourceFetchError for transport and HTTP failures;
the orchestrator treats that as fatal to the run.
"""

from __future__ import annotations

from typing import Collection, Protocol, runtime_checkable

from register_ingestion.domain.types import (
    CategoryRecord,
    InterestRecord,
    MemberRecord,
)


@runtime_checkable
class RegisterSource(Protocol):
    """Read-only access to the published register."""

    @property
    def name(self) -> str:
        """Short identifier used in logs."""
        ...

    def fetch_members(self) -> list[MemberRecord]:
        """All current members of the House of Commons."""
        ...

    def fetch_categories(self) -> list[CategoryRecord]:
        ...

    def fetch_interests(
        self,
        member_ids: Collection[int] | None = None,
        category_id: int | None = None,
    ) -> list[InterestRecord]:
        """
        All published interests, child interests expanded.

        Args:
            member_ids: Keep only interests belonging to these members.
            category_id: Ask the register for this category only.
        """
        ...
