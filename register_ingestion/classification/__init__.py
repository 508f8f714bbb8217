"""register_ingestion.classification -- Payer names to payer types."""

from register_ingestion.classification.classifier import PayerClassifier
from register_ingestion.classification.names import (
    normalize_name,
    normalize_party_name,
)
from register_ingestion.classification.rules import (
    COMMON_FIRST_NAMES,
    DEFAULT_RULES,
    ClassificationRule,
    looks_like_individual_name,
)
from register_ingestion.classification.status import map_reported_status

__all__ = [
    "COMMON_FIRST_NAMES",
    "DEFAULT_RULES",
    "ClassificationRule",
    "PayerClassifier",
    "looks_like_individual_name",
    "map_reported_status",
    "normalize_name",
    "normalize_party_name",
]
