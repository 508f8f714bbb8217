"""
JSON payload -> domain record conversion for the public register APIs.

Tolerant of missing keys: absent optional attributes become None.  A
record without the identity it needs (interest without member/category,
member without party) is skipped by returning None.
"""

from __future__ import annotations

from typing import Any, Mapping

from register_ingestion.domain.types import (
    CategoryRecord,
    CategoryRef,
    InterestField,
    InterestRecord,
    MemberRecord,
    MemberRef,
)


def parse_field(payload: Mapping[str, Any]) -> InterestField:
    """One interest field; ``values`` may be a flat list or a list of lists."""
    raw_values = payload.get("values") or []
    values: list[Any] = []
    for item in raw_values:
        if isinstance(item, list):
            values.append(tuple(parse_field(v) for v in item if isinstance(v, Mapping)))
        elif isinstance(item, Mapping):
            values.append(parse_field(item))

    return InterestField(
        name=payload.get("name") or "",
        value=payload.get("value"),
        values=tuple(values),
        description=payload.get("description"),
        type_name=payload.get("type"),
    )


def parse_interest(payload: Mapping[str, Any]) -> InterestRecord | None:
    member = payload.get("member") or {}
    category = payload.get("category") or {}
    if payload.get("id") is None or member.get("id") is None or category.get("id") is None:
        return None

    raw_fields = tuple(f for f in payload.get("fields") or [] if isinstance(f, Mapping))
    children = []
    for child in payload.get("childInterests") or []:
        parsed = parse_interest(child)
        if parsed is not None:
            children.append(parsed)

    return InterestRecord(
        id=int(payload["id"]),
        member=MemberRef(id=int(member["id"]), name_display=member.get("nameDisplayAs")),
        category=CategoryRef(id=int(category["id"]), name=category.get("name") or ""),
        summary=payload.get("summary"),
        registration_date=payload.get("registrationDate"),
        published_date=payload.get("publishedDate"),
        fields=tuple(parse_field(f) for f in raw_fields),
        child_interests=tuple(children),
        parent_interest_id=payload.get("parentInterestId"),
        raw_fields=tuple(dict(f) for f in raw_fields),
    )


def parse_category(payload: Mapping[str, Any]) -> CategoryRecord | None:
    if payload.get("id") is None:
        return None
    parent = payload.get("parentCategory") or {}
    return CategoryRecord(
        id=int(payload["id"]),
        name=payload.get("name") or "",
        parent_id=parent.get("id"),
        sort_order=payload.get("sortOrder"),
    )


def parse_member(payload: Mapping[str, Any]) -> MemberRecord | None:
    """A Members/Search item: the member itself sits under ``value``."""
    value = payload.get("value") or {}
    party = value.get("latestParty") or {}
    if value.get("id") is None or not party.get("name"):
        return None

    membership = value.get("latestHouseMembership") or {}
    colour = party.get("backgroundColour")

    return MemberRecord(
        id=int(value["id"]),
        name_display=value.get("nameDisplayAs") or "",
        name_list_as=value.get("nameListAs") or value.get("nameDisplayAs") or "",
        party_name=party["name"],
        party_id=party.get("id"),
        party_abbreviation=party.get("abbreviation"),
        party_color=f"#{colour}" if colour else None,
        constituency=membership.get("membershipFrom"),
        thumbnail_url=value.get("thumbnailUrl"),
    )
