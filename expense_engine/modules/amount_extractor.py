"""
Amount Extractor Module
Finds the most plausible transaction amount in subject + body text
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from ..utils.extraction_rules import DEFAULT_RULES, MAX_AMOUNT, MIN_AMOUNT, ExtractionRules
from ..utils.pattern_compiler import compile_ordered_patterns, first_accepted

CENTS = Decimal("0.01")


def parse_amount(raw: str) -> Optional[Decimal]:
    """
    Parse a captured number such as "12,345.67" into a 2-dp Decimal

    Returns:
        The amount, or None if the capture is not a number
    """
    try:
        value = Decimal(raw.replace(",", "").strip())
        if not value.is_finite():
            return None
        # Digit runs too long for the context precision cannot be quantized
        return value.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None


def is_plausible_amount(value: Decimal) -> bool:
    """Reject zero and implausibly large values (account numbers, phone numbers)"""
    return MIN_AMOUNT < value < MAX_AMOUNT


class AmountExtractor:
    """
    Scans text with the ordered amount patterns

    The first pattern that yields an in-bounds value wins; a pattern whose
    matches are all out of bounds falls through to the next one.
    """

    def __init__(self, rules: ExtractionRules = DEFAULT_RULES):
        """
        Args:
            rules: Rule tables supplying ``amount_patterns``
        """
        self.patterns = compile_ordered_patterns(rules.amount_patterns)
        self.logger = logging.getLogger("AmountExtractor")

    def extract(self, text: str) -> Optional[Decimal]:
        """
        Extract the transaction amount

        Args:
            text: Subject and body text

        Returns:
            Amount as a 2-dp Decimal, or None if no pattern yields a plausible value
        """
        if not text:
            return None

        result = first_accepted(self.patterns, text, parse_amount, is_plausible_amount)
        if result is None:
            self.logger.debug(f"No amount found in {len(text)} chars of text")
            return None

        index, amount = result
        self.logger.debug(f"Amount {amount} matched by pattern {index}")
        return amount
