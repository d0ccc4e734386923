"""
Institution Identifier Module
Maps a sender address to the bank or payment provider that sent it
"""

import logging

from ..utils.extraction_rules import DEFAULT_RULES, UNKNOWN_BANK, ExtractionRules


class InstitutionIdentifier:
    """
    Substring lookup of the sender address against the institution table

    Entries are scanned in declaration order, so when a parent domain and one
    of its subdomains are both listed the earlier entry decides.
    """

    def __init__(self, rules: ExtractionRules = DEFAULT_RULES):
        self.institutions = tuple(
            (domain.lower(), name) for domain, name in rules.institutions
        )
        self.logger = logging.getLogger("InstitutionIdentifier")

    def identify(self, sender: str) -> str:
        """
        Identify the institution from a From header

        Args:
            sender: Sender address, with or without a display name

        Returns:
            Institution display name or "Unknown Bank"
        """
        sender_lower = (sender or "").lower()
        for domain, name in self.institutions:
            if domain in sender_lower:
                return name
        return UNKNOWN_BANK
