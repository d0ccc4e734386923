"""
Merchant Extractor Module
Finds a short counterparty label for a transaction

Labelled fields and table cells are tried before free-text prepositions
("at AMAZON"), and the subject line is the last resort before the sentinel.
"""

import logging
from typing import Optional

from ..utils.extraction_rules import (
    DEFAULT_RULES,
    MAX_DESCRIPTION_LENGTH,
    MAX_MERCHANT_CANDIDATE,
    MAX_MERCHANT_LENGTH,
    MIN_MERCHANT_CANDIDATE,
    MIN_SUBJECT_TOKEN_LENGTH,
    UNKNOWN_MERCHANT,
    ExtractionRules,
)
from ..utils.pattern_compiler import compile_ordered_patterns, first_accepted
from ..utils.sanitization import (
    DESCRIPTION_DISALLOWED_PATTERN,
    MERCHANT_DISALLOWED_PATTERN,
    clean_text,
)

# Words that mark a capture as the sender's own institution or instrument
REJECTED_MERCHANT_WORDS = ("bank", "card")


def normalize_candidate(raw: str) -> Optional[str]:
    """Trim a capture and drop masking asterisks ("AMAZON****" -> "AMAZON")"""
    candidate = raw.strip().replace("*", "")
    return candidate or None


def is_acceptable_merchant(candidate: str) -> bool:
    """Length window, no bank/card wording, not a bare number"""
    if not MIN_MERCHANT_CANDIDATE < len(candidate) < MAX_MERCHANT_CANDIDATE:
        return False
    lowered = candidate.lower()
    if any(word in lowered for word in REJECTED_MERCHANT_WORDS):
        return False
    return not candidate.isdigit()


def clean_merchant_name(name: str) -> str:
    return clean_text(name, MERCHANT_DISALLOWED_PATTERN, MAX_MERCHANT_LENGTH)


class MerchantExtractor:
    """Extracts the merchant / counterparty name from a message"""

    def __init__(self, rules: ExtractionRules = DEFAULT_RULES):
        """
        Args:
            rules: Rule tables supplying ``merchant_patterns`` and
                   ``merchant_stopwords``
        """
        self.patterns = compile_ordered_patterns(rules.merchant_patterns)
        self.stopwords = frozenset(w.lower() for w in rules.merchant_stopwords)
        self.logger = logging.getLogger("MerchantExtractor")

    def extract(self, subject: str, body: str) -> str:
        """
        Extract the merchant name

        Args:
            subject: Message subject
            body: Resolved body text

        Returns:
            Cleaned merchant name (at most 30 chars) or "Unknown Merchant"
        """
        text = f"{subject} {body}"
        result = first_accepted(
            self.patterns, text, normalize_candidate, is_acceptable_merchant
        )
        if result is not None:
            index, candidate = result
            merchant = clean_merchant_name(candidate)
            if merchant:
                self.logger.debug(f"Merchant '{merchant}' matched by pattern {index}")
                return merchant

        merchant = self._from_subject(subject)
        if merchant:
            self.logger.debug(f"Merchant '{merchant}' taken from subject")
            return merchant

        return UNKNOWN_MERCHANT

    def _from_subject(self, subject: str) -> Optional[str]:
        """First subject token that is long enough and not a stopword"""
        for token in subject.split():
            if len(token) < MIN_SUBJECT_TOKEN_LENGTH or token.lower() in self.stopwords:
                continue
            merchant = clean_merchant_name(token)
            if merchant:
                return merchant
        return None

    @staticmethod
    def describe(subject: str) -> str:
        """
        Build the description field from the subject line

        The subject carries the transaction context ("Debit alert for card
        ending 1234") far more reliably than any body fragment.
        """
        return clean_text(subject, DESCRIPTION_DISALLOWED_PATTERN, MAX_DESCRIPTION_LENGTH)
