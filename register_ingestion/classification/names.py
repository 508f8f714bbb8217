"""
Name normalization.

normalize_name() is the single identity key for payers: the classifier's
override lookups and the payers.normalized_name column both use it.  Any
second implementation would let differently punctuated spellings of one
payer land in separate rows.
"""

from __future__ import annotations

import re

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")

LABOUR = "Labour"


def normalize_name(name: str) -> str:
    """
    Canonical payer key: lower-cased, punctuation removed, whitespace collapsed.

    >>> normalize_name("  ACME   Ltd. ")
    'acme ltd'
    """
    key = _PUNCTUATION.sub("", name.lower().strip())
    return _WHITESPACE.sub(" ", key).strip()


def normalize_party_name(party_name: str) -> str:
    """Collapse every Labour variant ("Labour (Co-op)" ...) into "Labour"."""
    if party_name.lower().strip().startswith("labour"):
        return LABOUR
    return party_name
