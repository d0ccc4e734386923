"""
Configuration Management Module
Handles loading and validation of environment variables and settings
"""

import os
from typing import List, Optional
from dataclasses import dataclass
from dotenv import load_dotenv

from .extraction_rules import DEFAULT_RULES, ExtractionRules
from .validators import validate_rules

DEFAULT_LINK_TEMPLATE = "https://mail.google.com/mail/u/0/#inbox/{message_id}"
MAX_BATCH_SIZE = 100
LOG_FORMATS = ("text", "json")


@dataclass
class ExtractionConfig:
    """Configuration for the extraction engine"""
    rules_file: Optional[str]
    max_part_depth: int
    timezone: Optional[str]
    link_template: str


@dataclass
class SystemConfig:
    """Configuration for system settings"""
    log_level: str
    log_file: str
    log_format: str
    max_messages_per_batch: int
    bank_filter: List[str]


class Config:
    """Main configuration class"""

    def __init__(self, env_file: str = ".env"):
        """
        Initialize configuration from environment file

        Args:
            env_file: Path to environment file (default: .env)
        """
        load_dotenv(env_file)

        self.extraction = self._load_extraction_config()
        self.system = self._load_system_config()

    def _load_extraction_config(self) -> ExtractionConfig:
        """Load extraction engine configuration"""
        return ExtractionConfig(
            rules_file=os.getenv("EXTRACTION_RULES_FILE") or None,
            max_part_depth=int(os.getenv("MAX_PART_DEPTH", "32")),
            timezone=os.getenv("EXPENSE_TIMEZONE") or None,
            link_template=os.getenv("GMAIL_LINK_TEMPLATE", DEFAULT_LINK_TEMPLATE),
        )

    def _load_system_config(self) -> SystemConfig:
        """Load system configuration"""
        return SystemConfig(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", ""),
            log_format=os.getenv("LOG_FORMAT", "text").lower(),
            max_messages_per_batch=int(os.getenv("MAX_MESSAGES_PER_BATCH", "50")),
            bank_filter=self._parse_list(os.getenv("BANK_FILTER", "")),
        )

    @staticmethod
    def _parse_list(value: str) -> List[str]:
        """Normalize a comma separated string into a clean list."""
        if not value:
            return []
        return [
            item.strip()
            for item in value.replace("\n", ",").split(",")
            if item.strip()
        ]

    def load_rules(self) -> ExtractionRules:
        """
        Return the rule tables the engine should use.

        Defaults are used unless EXTRACTION_RULES_FILE points at a JSON file,
        in which case each table present in the file replaces its default.

        Raises:
            ValueError: If the resulting tables are unusable
            OSError: If the rules file cannot be read
        """
        if self.extraction.rules_file:
            rules = ExtractionRules.from_file(self.extraction.rules_file)
        else:
            rules = DEFAULT_RULES
        return validate_rules(rules)

    def validate(self) -> bool:
        """
        Validate configuration

        Returns:
            True if configuration is valid

        Raises:
            ValueError: If configuration is invalid
        """
        batch = self.system.max_messages_per_batch
        if batch <= 0 or batch > MAX_BATCH_SIZE:
            raise ValueError(
                f"MAX_MESSAGES_PER_BATCH must be between 1 and {MAX_BATCH_SIZE}, got {batch}"
            )

        if self.extraction.max_part_depth <= 0:
            raise ValueError("MAX_PART_DEPTH must be a positive integer")

        if self.system.log_format not in LOG_FORMATS:
            raise ValueError(
                f"LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}, "
                f"got '{self.system.log_format}'"
            )

        if "{message_id}" not in self.extraction.link_template:
            raise ValueError("GMAIL_LINK_TEMPLATE must contain '{message_id}'")

        return True
