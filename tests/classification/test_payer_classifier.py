"""
Tests for PayerClassifier: rule priority, subtype refinement, overrides
and the individual-name fallback.
"""

import pytest

from register_ingestion.classification.classifier import PayerClassifier
from register_ingestion.classification.rules import ClassificationRule
from register_ingestion.domain.types import (
    PayerClassification,
    PayerOverride,
    PayerType,
)

GOV = PayerType.GOVERNMENT
CO = PayerType.COMPANY
IND = PayerType.INDIVIDUAL


@pytest.fixture
def classifier():
    return PayerClassifier()


class TestRulePriority:
    def test_ltd_beats_council(self, classifier):
        assert classifier.classify("Borough Trading Ltd").payer_type is CO

    def test_council_alone_is_local_government(self, classifier):
        result = classifier.classify("Northshire County Council")
        assert result == PayerClassification(GOV, "Local Government")

    def test_friends_of_advocacy_group(self, classifier):
        result = classifier.classify("Friends of Example Ltd")
        assert result == PayerClassification(CO, "Advocacy Group")

    def test_plc_public_company(self, classifier):
        assert classifier.classify("Big Bank PLC") == PayerClassification(CO, "Public Company")

    def test_ltd_picks_up_more_specific_subtype(self, classifier):
        assert classifier.classify("Acme Media Ltd") == PayerClassification(CO, "Media")

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Government of Examplestan", PayerClassification(GOV, "Foreign Government")),
            ("Embassy of Examplestan", PayerClassification(GOV, "Embassy")),
            ("Ministry of Foreign Affairs of Examplestan", PayerClassification(GOV, "Ministry")),
            ("House of Commons", PayerClassification(GOV, "UK Parliament")),
            ("United Nations Development Programme", PayerClassification(GOV, "International")),
            ("University of Northtown", PayerClassification(CO, "Education")),
            ("BBC", PayerClassification(CO, "Media")),
            ("Unite the Union", PayerClassification(CO, "Trade Union")),
        ],
    )
    def test_table(self, classifier, name, expected):
        assert classifier.classify(name) == expected

    def test_ties_go_to_earlier_rule(self):
        rules = (
            ClassificationRule(r"\bfirst\b", CO, 5, "First"),
            ClassificationRule(r"\bsecond\b", CO, 5, "Second"),
        )
        assert PayerClassifier(rules=rules).classify("first second").subtype == "First"

    def test_literal_rule(self):
        rules = (ClassificationRule("acme", GOV, 1, "Literal", is_regex=False),)
        assert PayerClassifier(rules=rules).classify("The ACME Trust") == PayerClassification(
            GOV, "Literal",
        )


class TestIndividuals:
    @pytest.mark.parametrize("name", ["Sir John Smith", "Dr Jane Brown", "Rt Hon Pat Jones"])
    def test_titles(self, classifier, name):
        assert classifier.classify(name).payer_type is IND

    @pytest.mark.parametrize("name", ["Jane Smith", "J. Brown", "Mohammed Khan"])
    def test_untitled_names(self, classifier, name):
        assert classifier.classify(name) == PayerClassification(IND)

    def test_unknown_single_word_defaults_to_company(self, classifier):
        assert classifier.classify("Zyxwv") == PayerClassification(CO)


class TestOverrides:
    def test_exact_override_beats_rules(self, classifier):
        classifier.load_overrides([PayerOverride("acme corp ltd", IND)])
        assert classifier.classify("Acme Corp Ltd") == PayerClassification(IND)

    def test_substring_override_beats_rules(self, classifier):
        classifier.load_overrides([PayerOverride("acme corp", IND)])
        assert classifier.classify("Acme Corp Ltd") == PayerClassification(IND)

    def test_substring_override_first_in_load_order(self, classifier):
        classifier.load_overrides([
            PayerOverride("acme", CO, "General"),
            PayerOverride("acme corp", IND),
        ])
        assert classifier.classify("Acme Corp Ltd") == PayerClassification(CO, "General")

    def test_exact_beats_earlier_substring(self, classifier):
        classifier.load_overrides([
            PayerOverride("acme", CO, "General"),
            PayerOverride("acme corp", IND),
        ])
        assert classifier.classify("  ACME Corp ") == PayerClassification(IND)

    def test_override_reason_carried(self, classifier):
        classifier.load_overrides([PayerOverride("acme corp", IND, None, "sole trader")])
        assert classifier.classify("Acme Corp Ltd") == PayerClassification(
            IND, override_reason="sole trader",
        )
        assert classifier.classify("Other Corp Ltd").override_reason is None

    def test_reload_replaces_not_merges(self, classifier):
        classifier.load_overrides([PayerOverride("acme corp", IND)])
        classifier.load_overrides([PayerOverride("other", GOV)])
        assert classifier.override_count == 1
        assert classifier.classify("Acme Corp Ltd").payer_type is CO

    def test_clear(self, classifier):
        classifier.load_overrides([PayerOverride("acme corp", IND)])
        classifier.clear_overrides()
        assert classifier.override_count == 0
        assert classifier.classify("Acme Corp Ltd").payer_type is CO

    def test_constructor_overrides(self):
        classifier = PayerClassifier(overrides=[PayerOverride("Guardian Media Group", CO, "Media")])
        assert classifier.classify("Guardian Media Group plc") == PayerClassification(CO, "Media")

    def test_load_logged(self, classifier, captured_logs):
        classifier.load_overrides([PayerOverride("acme", IND)])
        records = [r for r in captured_logs() if r["message"] == "payer_overrides_loaded"]
        assert records[-1]["override_count"] == 1

    def test_instances_do_not_share_overrides(self):
        first = PayerClassifier()
        first.load_overrides([PayerOverride("acme corp", IND)])
        assert PayerClassifier().override_count == 0
