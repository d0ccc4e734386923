"""
Category Classifier Module
Keyword-table lookup over merchant and message text
"""

import logging

from ..utils.extraction_rules import DEFAULT_CATEGORY, DEFAULT_RULES, ExtractionRules


class CategoryClassifier:
    """
    Returns the first category whose keyword occurs in the text

    No scoring: categories are tried in table order, keywords in list order,
    and the first substring hit wins.  "amazon" therefore beats "swiggy"
    because Shopping is declared before Food & Dining.
    """

    def __init__(self, rules: ExtractionRules = DEFAULT_RULES):
        self.categories = tuple(
            (category, tuple(k.lower() for k in keywords))
            for category, keywords in rules.categories
        )
        self.logger = logging.getLogger("CategoryClassifier")

    def classify(self, merchant: str, content: str) -> str:
        """
        Classify a transaction

        Args:
            merchant: Extracted merchant name
            content: Subject and body text

        Returns:
            Category name or "Others"
        """
        text = f"{merchant} {content}".lower()
        for category, keywords in self.categories:
            for keyword in keywords:
                if keyword in text:
                    self.logger.debug(f"Category '{category}' from keyword '{keyword}'")
                    return category
        return DEFAULT_CATEGORY
