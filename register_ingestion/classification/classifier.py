"""
PayerClassifier -- prioritized rule engine for payer names.

Resolution order for classify(name):
    1. Override whose key equals the lower-cased, trimmed name.
    2. First override (in load order) whose key is a substring of the name.
    3. Highest-priority matching rule (ties: earlier rule).  When the
       winning rule has no subtype, the subtype comes from the
       highest-priority matching rule of the same type that has one.
    4. Individual-name heuristic.
    5. Company.

The rule table is fixed at construction.  Overrides are replaced wholesale
by load_overrides(); they are never merged with a previous load.  There is
no module-level instance: callers construct one per run.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from register_kernel.logging_config import get_logger

from register_ingestion.classification.rules import (
    DEFAULT_RULES,
    ClassificationRule,
    looks_like_individual_name,
)
from register_ingestion.domain.types import (
    PayerClassification,
    PayerOverride,
    PayerType,
)

logger = get_logger("ingestion.classifier")


@dataclass(frozen=True)
class _CompiledRule:
    rule: ClassificationRule
    regex: re.Pattern | None
    literal: str | None

    def matches(self, name: str, lowered: str) -> bool:
        if self.regex is not None:
            return self.regex.search(name) is not None
        return self.literal in lowered


def _compile(rule: ClassificationRule) -> _CompiledRule:
    if rule.is_regex:
        return _CompiledRule(rule, re.compile(rule.pattern, re.IGNORECASE), None)
    return _CompiledRule(rule, None, rule.pattern.lower())


class PayerClassifier:
    """Classifies payer names as Government, Company or Individual."""

    def __init__(
        self,
        rules: Sequence[ClassificationRule] = DEFAULT_RULES,
        overrides: Iterable[PayerOverride] = (),
    ):
        self._rules = tuple(_compile(rule) for rule in rules)
        self._overrides: dict[str, PayerClassification] = {}
        self.load_overrides(overrides)

    @property
    def override_count(self) -> int:
        return len(self._overrides)

    def clear_overrides(self) -> None:
        self._overrides.clear()

    def load_overrides(self, overrides: Iterable[PayerOverride]) -> None:
        """Replace all overrides.  Keys are lower-cased; order is kept."""
        self._overrides.clear()
        for override in overrides:
            self._overrides[override.pattern.lower()] = PayerClassification(
                payer_type=override.payer_type,
                subtype=override.subtype,
                override_reason=override.reason,
            )
        if self._overrides:
            logger.info(
                "payer_overrides_loaded",
                extra={"override_count": len(self._overrides)},
            )

    def classify(self, name: str) -> PayerClassification:
        lowered = name.lower().strip()

        exact = self._overrides.get(lowered)
        if exact is not None:
            return exact
        for pattern, result in self._overrides.items():
            if pattern in lowered:
                return result

        winner: ClassificationRule | None = None
        matches: list[ClassificationRule] = []
        for compiled in self._rules:
            if compiled.matches(name, lowered):
                matches.append(compiled.rule)
                if winner is None or compiled.rule.priority > winner.priority:
                    winner = compiled.rule

        if winner is not None:
            return PayerClassification(
                payer_type=winner.payer_type,
                subtype=self._refine_subtype(winner, matches),
            )

        if looks_like_individual_name(name):
            return PayerClassification(payer_type=PayerType.INDIVIDUAL)

        return PayerClassification(payer_type=PayerType.COMPANY)

    @staticmethod
    def _refine_subtype(
        winner: ClassificationRule,
        matches: list[ClassificationRule],
    ) -> str | None:
        if winner.subtype is not None:
            return winner.subtype
        best: ClassificationRule | None = None
        for rule in matches:
            if rule.payer_type is not winner.payer_type or rule.subtype is None:
                continue
            if best is None or rule.priority > best.priority:
                best = rule
        return best.subtype if best is not None else None
