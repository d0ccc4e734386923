"""
Transaction-Direction Classifier Module
Decides whether a transaction is a debit (expense) or a credit (income)

Three keyword tiers are checked strictly in order:

1. structured debit markers from alert tables (``id="trantype">purchase``)
2. credit phrases ("credited", "refund", "salary", ...)
3. generic debit phrases ("debited", "spent", ...)

The first tier with a hit decides, even if a later tier would also match.  A
structured "purchase" marker therefore overrides a "cashback credited" line in
the same combined notification.  Nothing matching means debit: the tracker
treats an unclassifiable transaction as an outgoing expense.
"""

import logging
from typing import Tuple

from ..utils.extraction_rules import DEFAULT_RULES, ExtractionRules
from .expense_data import TransactionType


class DirectionClassifier:
    """Tiered keyword lookup for the transaction direction"""

    def __init__(self, rules: ExtractionRules = DEFAULT_RULES):
        self.tiers: Tuple[Tuple[str, TransactionType, Tuple[str, ...]], ...] = (
            ("structured_debit", TransactionType.DEBIT, _lowered(rules.structured_debit_markers)),
            ("credit", TransactionType.CREDIT, _lowered(rules.credit_keywords)),
            ("debit", TransactionType.DEBIT, _lowered(rules.debit_keywords)),
        )
        self.logger = logging.getLogger("DirectionClassifier")

    def classify(self, subject: str, body: str) -> TransactionType:
        """
        Classify the direction of a transaction

        Args:
            subject: Message subject
            body: Resolved body text

        Returns:
            TransactionType.DEBIT or TransactionType.CREDIT
        """
        text = f"{subject} {body}".lower()
        for tier, direction, keywords in self.tiers:
            for keyword in keywords:
                if keyword in text:
                    self.logger.debug(f"Matched {tier} keyword '{keyword}'")
                    return direction

        self.logger.debug("No direction keyword matched, defaulting to debit")
        return TransactionType.DEBIT


def _lowered(keywords) -> Tuple[str, ...]:
    return tuple(k.lower() for k in keywords)
