"""
Tests for the table-driven classifiers: institution, category and direction
"""

import pytest

from expense_engine.modules.category_classifier import CategoryClassifier
from expense_engine.modules.direction_classifier import DirectionClassifier
from expense_engine.modules.expense_data import TransactionType
from expense_engine.modules.institution_identifier import InstitutionIdentifier
from expense_engine.utils.extraction_rules import (
    DEFAULT_CATEGORY,
    UNKNOWN_BANK,
    ExtractionRules,
)


# ---------------------------------------------------------------------------
# InstitutionIdentifier
# ---------------------------------------------------------------------------


class TestInstitutionIdentifier:
    @pytest.mark.parametrize("sender,expected", [
        ("HDFC Bank InstaAlerts <ALERTS@HDFCBank.com>", "HDFC Bank"),
        ("alerts@sbi.co.in", "State Bank of India"),
        ("donotreply@alerts.sbi.co.in", "State Bank of India"),
        ("credit_cards@icicibank.com", "ICICI Bank"),
        ("noreply@kotak.com", "Kotak Mahindra Bank"),
    ])
    def test_known_senders(self, sender, expected):
        assert InstitutionIdentifier().identify(sender) == expected

    @pytest.mark.parametrize("sender", ["newsletter@example.com", "", None])
    def test_unknown_sender(self, sender):
        assert InstitutionIdentifier().identify(sender) == UNKNOWN_BANK

    def test_earlier_entry_wins_on_overlap(self):
        rules = ExtractionRules(institutions=(
            ("bank.com", "Generic Bank"),
            ("mybank.com", "My Bank"),
        ))
        assert InstitutionIdentifier(rules).identify("alerts@mybank.com") == "Generic Bank"


# ---------------------------------------------------------------------------
# CategoryClassifier
# ---------------------------------------------------------------------------


class TestCategoryClassifier:
    def setup_method(self):
        self.classifier = CategoryClassifier()

    def test_first_declared_category_wins(self):
        assert self.classifier.classify("AMAZON", "swiggy order") == "Shopping"

    def test_food(self):
        assert self.classifier.classify("SWIGGY", "") == "Food & Dining"

    def test_keyword_from_content(self):
        assert self.classifier.classify("NETFLIX", "netflix renewal") == "Entertainment"

    def test_no_keyword_is_others(self):
        assert self.classifier.classify("XYZ", "qwerty") == DEFAULT_CATEGORY

    def test_custom_table_order(self):
        rules = ExtractionRules(categories=(
            ("Coffee", ("coffee",)),
            ("Shopping", ("amazon",)),
        ))
        classifier = CategoryClassifier(rules)
        assert classifier.classify("Amazon", "coffee beans") == "Coffee"


# ---------------------------------------------------------------------------
# DirectionClassifier
# ---------------------------------------------------------------------------


class TestDirectionClassifier:
    def setup_method(self):
        self.classifier = DirectionClassifier()

    def test_structured_marker_beats_credit_phrase(self):
        body = '<td id="trantype">PURCHASE</td> cashback credited to your card'
        assert self.classifier.classify("Card Alert", body) is TransactionType.DEBIT

    def test_credit_phrase(self):
        result = self.classifier.classify("Alert", "Rs 500 has been credited to your account")
        assert result is TransactionType.CREDIT

    def test_credit_beats_generic_debit(self):
        result = self.classifier.classify("Refund", "refund for your payment processed")
        assert result is TransactionType.CREDIT

    def test_case_insensitive_subject(self):
        assert self.classifier.classify("SALARY CREDITED", "") is TransactionType.CREDIT

    def test_generic_debit(self):
        result = self.classifier.classify("Alert", "Rs 500 spent on your card")
        assert result is TransactionType.DEBIT

    def test_default_is_debit(self):
        assert self.classifier.classify("Hello", "world") is TransactionType.DEBIT
