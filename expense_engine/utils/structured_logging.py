"""
Structured Logging Module
Provides JSON-formatted logging for better integration with log aggregation tools
"""

import json
import logging
from typing import Any


class JSONFormatter(logging.Formatter):
    """
    Custom formatter that outputs log records as JSON.

    Fields passed through ``log_with_fields`` become top-level keys.
    """

    # Fields that might contain sensitive data - never log their full values
    SENSITIVE_FIELDS = {
        'password', 'token', 'api_key', 'secret', 'credential',
        'client_secret', 'auth_code'
    }

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record as JSON.

        Args:
            record: Python logging.LogRecord to format

        Returns:
            JSON string with structured log data
        """
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Extra fields added via log_with_fields(...) or
        # logger.info("msg", extra={"extra_fields": {...}})
        if hasattr(record, "extra_fields"):
            filtered_extra = {
                k: self._sanitize_value(k, v)
                for k, v in record.extra_fields.items()
            }
            log_data.update(filtered_extra)

        return json.dumps(log_data, default=str)

    def _sanitize_value(self, key: str, value: Any) -> Any:
        """
        Replace values of credential-like keys with "[REDACTED]".

        Args:
            key: Field name
            value: Field value

        Returns:
            Original value or "[REDACTED]" for sensitive fields
        """
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in self.SENSITIVE_FIELDS):
            return "[REDACTED]"
        return value


def log_with_fields(logger: logging.Logger, level: int, msg: str, **fields: Any) -> None:
    """Log ``msg`` with structured context picked up by JSONFormatter."""
    logger.log(level, msg, extra={"extra_fields": fields})
