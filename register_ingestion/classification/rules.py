"""
Payer classification rule table and the individual-name heuristic.

Rules are data.  They are evaluated in table order; the strictly highest
priority match wins and ties go to the earlier rule, so the order below is
part of the behavior and must not be re-sorted.

Priority bands:
    12      legal-entity suffixes (Ltd, Limited, PLC)
    11      "Friends of" advocacy groups
    9-10    unambiguous government / diplomatic / international markers
    5-8     company forms, media, education, unions, local government
    6       personal titles (Mr, Dr, Sir, Rt Hon ...)
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from register_ingestion.domain.types import PayerType

GOV = PayerType.GOVERNMENT
CO = PayerType.COMPANY
IND = PayerType.INDIVIDUAL


@dataclass(frozen=True)
class ClassificationRule:
    """
    One classification rule.

    ``pattern`` is a case-insensitive regular expression tested against the
    raw name, or, when ``is_regex`` is False, a literal substring tested
    against the lower-cased name.
    """

    pattern: str
    payer_type: PayerType
    priority: int
    subtype: str | None = None
    is_regex: bool = True


def _rule(pattern, payer_type, priority, subtype=None):
    return ClassificationRule(pattern, payer_type, priority, subtype)


DEFAULT_RULES: tuple[ClassificationRule, ...] = (
    # Governments
    _rule(r"\bgovernment of\b", GOV, 10, "Foreign Government"),
    _rule(r"\bembassy of\b", GOV, 10, "Embassy"),
    _rule(r"\broyal embassy\b", GOV, 10, "Embassy"),
    _rule(r"\b\w+ embassy\b", GOV, 9, "Embassy"),
    _rule(r"\bconsulate[- ]general\b", GOV, 10, "Consulate"),
    _rule(r"\bconsulate of\b", GOV, 10, "Consulate"),
    _rule(r"\bhigh commission\b", GOV, 10, "Embassy"),
    _rule(r"\bministry of\b", GOV, 10, "Ministry"),
    _rule(r"\bministerio\b", GOV, 10, "Ministry"),
    _rule(r"\bforeign (affairs|ministry)\b", GOV, 10, "Foreign Government"),
    _rule(r"\bmofa\b", GOV, 10, "Foreign Government"),
    _rule(r"\bfederal department\b", GOV, 10, "Foreign Government"),
    _rule(r"\bfederal government\b", GOV, 10, "Foreign Government"),
    _rule(r"\bstate department\b", GOV, 10, "Foreign Government"),
    _rule(r"\bparliament of\b", GOV, 10, "Parliament"),
    _rule(r"\bnational assembly\b", GOV, 10, "Parliament"),
    _rule(r"\b(uk|british|hm) government\b", GOV, 10, "UK Government"),
    _rule(r"\bdepartment (of|for)\b", GOV, 9, "UK Government"),
    _rule(r"\bhouse of (commons|lords)\b", GOV, 10, "UK Parliament"),
    _rule(r"\bEU\b|european (union|commission|parliament)", GOV, 9, "EU"),
    _rule(r"\bunited nations\b", GOV, 10, "International"),
    _rule(r"\bNATO\b", GOV, 10, "International"),
    _rule(r"\bworld bank\b", GOV, 10, "International"),
    _rule(r"\bIMF\b|\binternational monetary fund\b", GOV, 10, "International"),
    # Weaker government words; legal-entity suffixes must beat these
    _rule(r"\bcouncil\b", GOV, 6, "Local Government"),
    _rule(r"\bauthority\b", GOV, 5, "Public Authority"),
    # Companies
    _rule(r"\b(ltd|limited)\.?\s*$", CO, 12),
    _rule(r"\b(ltd|limited)\b\.?", CO, 12),
    _rule(r"\bplc\b\.?", CO, 12, "Public Company"),
    _rule(r"\bfriends of\b", CO, 11, "Advocacy Group"),
    _rule(r"\bllp\b\.?$", CO, 8, "Partnership"),
    _rule(r"\binc\.?\b$", CO, 8),
    _rule(r"\bcorp(oration)?\.?\b$", CO, 8),
    _rule(r"\bGmbH\b", CO, 8, "German Company"),
    _rule(r"\b(SA|AG)\b$", CO, 7),
    _rule(r"\bholdings\b", CO, 6, "Holding Company"),
    _rule(r"\bgroup\b$", CO, 5),
    _rule(r"\bpartners\b", CO, 5, "Partnership"),
    _rule(r"\bfoundation\b", CO, 5, "Foundation"),
    _rule(r"\btrust\b", CO, 5, "Trust"),
    _rule(r"\bcharity\b", CO, 5, "Charity"),
    # Media
    _rule(r"\b(bbc|itv|sky|channel\s*4)\b", CO, 8, "Media"),
    _rule(r"\b(times|guardian|telegraph|mail|sun|mirror)\b", CO, 7, "Media"),
    _rule(r"\b(news|media|broadcasting|radio)\b", CO, 5, "Media"),
    # Education and institutions
    _rule(r"\buniversity\b", CO, 7, "Education"),
    _rule(r"\bcollege\b", CO, 6, "Education"),
    _rule(r"\binstitute\b", CO, 5, "Institution"),
    # Trade unions
    _rule(r"\bunion\b", CO, 6, "Trade Union"),
    _rule(r"\bGMB\b|\bUnite\b|\bUnison\b", CO, 8, "Trade Union"),
    # Individuals (titles)
    _rule(
        r"^(mr|mrs|ms|miss|dr|sir|dame|lord|lady|baron|baroness|viscount|earl|duke|duchess)\s+",
        IND, 6,
    ),
    _rule(r"^(professor|prof\.?)\s+", IND, 6),
    _rule(r"^(the\s+)?(rt\s+)?hon(ourable)?\.?\s+", IND, 6),
)


# =============================================================================
# Individual-name heuristic
# =============================================================================

COMMON_FIRST_NAMES = frozenset({
    "james", "john", "robert", "michael", "william", "david", "richard", "joseph", "thomas", "charles",
    "christopher", "daniel", "matthew", "anthony", "mark", "donald", "steven", "paul", "andrew", "joshua",
    "kenneth", "kevin", "brian", "george", "edward", "ronald", "timothy", "jason", "jeffrey", "ryan",
    "jacob", "gary", "nicholas", "eric", "jonathan", "stephen", "larry", "justin", "scott", "brandon",
    "benjamin", "samuel", "raymond", "gregory", "frank", "alexander", "patrick", "jack", "dennis", "jerry",
    "mary", "patricia", "jennifer", "linda", "elizabeth", "barbara", "susan", "jessica", "sarah", "karen",
    "nancy", "lisa", "margaret", "betty", "sandra", "ashley", "dorothy", "kimberly", "emily", "donna",
    "michelle", "carol", "amanda", "melissa", "deborah", "stephanie", "rebecca", "sharon", "laura", "cynthia",
    "kathleen", "amy", "angela", "shirley", "anna", "brenda", "pamela", "emma", "nicole", "helen",
    "samantha", "katherine", "christine", "debra", "rachel", "carolyn", "janet", "catherine", "maria", "heather",
    "peter", "simon", "ian", "stuart", "alan", "martin", "graham", "colin", "philip", "keith",
    "barry", "trevor", "derek", "roger", "neil", "adrian", "gerald", "carl", "roy", "wayne",
    "adam", "harry", "joe", "luke", "oliver", "oscar", "charlie", "jake", "max", "alex",
    "kate", "jane", "anne", "claire", "clare", "julia", "victoria", "sophie", "charlotte", "lucy",
    "grace", "hannah", "olivia", "chloe", "megan", "natalie", "louise", "holly", "joanne", "marie",
    "mohammed", "muhammad", "ahmed", "ali", "omar", "hassan", "hussein", "abdul", "syed", "tariq",
    "raj", "ravi", "anil", "sunil", "vijay", "amit", "ashok", "rajesh", "sanjay", "vikram",
    "priya", "sunita", "anita", "neha", "pooja", "deepa", "kavita", "rekha", "meera", "anjali",
})

_ORGANISATION_WORDS = re.compile(
    r"\b(ltd|limited|plc|llp|inc|corp|gmbh|foundation|trust|charity|council|authority"
    r"|university|college|institute|union|media|news|group|holdings|partners|association"
    r"|society|organisation|organization|committee|board|agency|service|services|centre"
    r"|center|hospital|school|company|companies|enterprises|international|global|uk|british)\b",
    re.IGNORECASE,
)
_INITIAL_SURNAME = re.compile(r"^[a-z]\.?\s+[a-z]+$", re.IGNORECASE)
_NOT_LETTER = re.compile(r"[^a-z]")


def looks_like_individual_name(name: str) -> bool:
    """
    Heuristic for untitled personal names ("Jane Smith", "J. Brown").

    Rejects anything with an organisation word, then requires 2-4 words and
    either a common first name or an initial-plus-surname shape.
    """
    normalized = name.lower().strip()
    if _ORGANISATION_WORDS.search(normalized):
        return False

    words = normalized.split()
    if not 2 <= len(words) <= 4:
        return False

    if _NOT_LETTER.sub("", words[0]) in COMMON_FIRST_NAMES:
        return True

    return bool(_INITIAL_SURNAME.match(normalized))
