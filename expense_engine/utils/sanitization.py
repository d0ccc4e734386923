"""
Sanitization Utility Module
Text cleanup shared by log output and extracted record fields.
"""

import re
import unicodedata
from typing import Pattern

ANSI_ESCAPE_PATTERN = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')
WHITESPACE_RUN_PATTERN = re.compile(r"\s+")

# Characters kept in a merchant label: word chars, whitespace, hyphen, dot
MERCHANT_DISALLOWED_PATTERN = re.compile(r"[^\w\s\-.]")
# Description additionally keeps commas and colons
DESCRIPTION_DISALLOWED_PATTERN = re.compile(r"[^\w\s\-.,:]")


def sanitize_for_logging(text: str, max_length: int = 255) -> str:
    """
    Sanitize text for safe logging to prevent Log Injection (CRLF) and terminal manipulation.

    Email subjects and bodies are attacker-controlled, so anything echoed into
    a log line passes through here first.

    Args:
        text: The input string to sanitize.
        max_length: Maximum allowed length for the log entry (truncates if longer).

    Returns:
        Sanitized string safe for logging.
    """
    if not text:
        return ""

    text = unicodedata.normalize('NFKC', text)

    text = text.replace('\n', '\\n').replace('\r', '\\r')

    # Remove ANSI escape sequences (for terminal colors/cursor movement)
    text = ANSI_ESCAPE_PATTERN.sub('', text)

    # Remove other non-printable control characters (ASCII 0-31 except tab)
    text = "".join(ch for ch in text if ch == '\t' or ord(ch) >= 32)

    if len(text) > max_length:
        text = text[:max_length] + "..."

    return text


def clean_text(text: str, disallowed: Pattern, max_length: int) -> str:
    """
    Strip disallowed characters, collapse whitespace runs and truncate.

    Args:
        text: Raw extracted text.
        disallowed: Pattern matching every character to drop.
        max_length: Maximum length of the result.

    Returns:
        Cleaned text, possibly empty.
    """
    if not text:
        return ""
    text = disallowed.sub("", text)
    text = WHITESPACE_RUN_PATTERN.sub(" ", text).strip()
    return text[:max_length]
