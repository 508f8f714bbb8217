"""
ParliamentRegisterSource -- HTTP client for the UK Parliament Members API
and Register of Interests API.

Pagination is sequential: each page is fully drained before the next is
requested, with a fixed pause between pages to respect the APIs' rate
limits.  Paging stops on an empty page or once ``skip`` reaches
``totalResults``.

Failure modes:
    - SourceFetchError on transport errors, timeouts, non-2xx responses
      and undecodable JSON.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Collection, Iterator, Mapping

import requests

from register_kernel.exceptions import SourceFetchError
from register_kernel.logging_config import get_logger

from register_ingestion.domain.types import (
    CategoryRecord,
    InterestRecord,
    MemberRecord,
)
from register_ingestion.sources.payloads import (
    parse_category,
    parse_interest,
    parse_member,
)

logger = get_logger("ingestion.parliament")

MEMBERS_API_BASE = "https://members-api.parliament.uk/api"
INTERESTS_API_BASE = "https://interests-api.parliament.uk/api/v1"
HOUSE_OF_COMMONS = 1
CATEGORY_PAGE_SIZE = 50


class ParliamentRegisterSource:
    """RegisterSource backed by the public Parliament APIs."""

    name = "parliament"

    def __init__(
        self,
        members_api_base: str = MEMBERS_API_BASE,
        interests_api_base: str = INTERESTS_API_BASE,
        page_size: int = 20,
        page_delay_seconds: float = 0.1,
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._members_api_base = members_api_base.rstrip("/")
        self._interests_api_base = interests_api_base.rstrip("/")
        self._page_size = page_size
        self._page_delay_seconds = page_delay_seconds
        self._timeout_seconds = timeout_seconds
        self._sleep = sleep
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    def _get_json(self, url: str, params: Mapping[str, Any]) -> dict[str, Any]:
        try:
            response = self._session.get(url, params=params, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise SourceFetchError(url, str(exc)) from exc

        if not response.ok:
            raise SourceFetchError(
                url,
                f"{response.status_code} {response.reason}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise SourceFetchError(url, f"invalid JSON: {exc}") from exc

    def _paginate(self, url: str, params: Mapping[str, Any]) -> Iterator[dict[str, Any]]:
        skip = 0
        pages = 0
        while True:
            page = self._get_json(url, {**params, "skip": skip, "take": self._page_size})
            items = page.get("items") or []
            if not items:
                break

            pages += 1
            yield from items
            skip += self._page_size

            if skip >= (page.get("totalResults") or 0):
                break
            if self._page_delay_seconds:
                self._sleep(self._page_delay_seconds)

        logger.debug("source_pages_fetched", extra={"url": url, "pages": pages})

    # -------------------------------------------------------------------------
    # RegisterSource
    # -------------------------------------------------------------------------

    def fetch_members(self) -> list[MemberRecord]:
        members = []
        for item in self._paginate(
            f"{self._members_api_base}/Members/Search",
            {"IsCurrentMember": "true", "House": HOUSE_OF_COMMONS},
        ):
            member = parse_member(item)
            if member is not None:
                members.append(member)

        logger.info("members_fetched", extra={"member_count": len(members)})
        return members

    def fetch_categories(self) -> list[CategoryRecord]:
        url = f"{self._interests_api_base}/Categories"
        page = self._get_json(url, {"take": CATEGORY_PAGE_SIZE})
        categories = []
        for item in page.get("items") or []:
            category = parse_category(item)
            if category is not None:
                categories.append(category)

        logger.info("categories_fetched", extra={"category_count": len(categories)})
        return categories

    def fetch_interests(
        self,
        member_ids: Collection[int] | None = None,
        category_id: int | None = None,
    ) -> list[InterestRecord]:
        params: dict[str, Any] = {"ExpandChildInterests": "true"}
        if category_id is not None:
            params["CategoryId"] = category_id

        interests = []
        dropped = 0
        for item in self._paginate(f"{self._interests_api_base}/Interests", params):
            interest = parse_interest(item)
            if interest is None:
                dropped += 1
                continue
            if member_ids is not None and interest.member.id not in member_ids:
                continue
            interests.append(interest)

        logger.info(
            "interests_fetched",
            extra={
                "interest_count": len(interests),
                "category_id": category_id,
                "malformed_dropped": dropped,
            },
        )
        return interests

    def close(self) -> None:
        self._session.close()
