#!/usr/bin/env python3
"""
Expense Extraction Pipeline
Main orchestrator that runs the extraction engine over batches of messages
"""

import sys
import time
import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from expense_engine.utils.config import Config, MAX_BATCH_SIZE
from expense_engine.utils.logging_utils import ColoredFormatter
from expense_engine.utils.metrics import ExtractionMetrics
from expense_engine.utils.sanitization import sanitize_for_logging
from expense_engine.utils.structured_logging import JSONFormatter, log_with_fields
from expense_engine.modules.expense_data import ExpenseRecord
from expense_engine.modules.expense_parser import (
    REASON_ERROR,
    ExpenseParser,
    resolve_timezone,
)
from expense_engine.modules.message_loader import MessageLoader
from expense_engine.modules.raw_message import RawMessage

REASON_FILTERED = "filtered"

RawInput = Union[RawMessage, Mapping[str, Any]]


def matches_bank_filter(bank: str, bank_filter: Optional[Sequence[str]]) -> bool:
    """
    Check a record's bank against a filter list

    An empty filter keeps everything; otherwise any filter entry that is a
    case-insensitive substring of the bank name keeps the record.
    """
    if not bank_filter:
        return True
    bank_lower = bank.lower()
    return any(entry.lower() in bank_lower for entry in bank_filter)


class ExpenseExtractionPipeline:
    """Main pipeline orchestrator"""

    def __init__(self, config_file: str = ".env", config: Optional[Config] = None):
        """
        Initialize pipeline

        Args:
            config_file: Path to configuration file
            config: Already loaded configuration (skips reading config_file)
        """
        self.config = config if config is not None else Config(config_file)

        self._setup_logging()

        self.logger = logging.getLogger("ExpenseExtractionPipeline")
        self.logger.debug("Initializing Expense Extraction Pipeline")

        self.parser = ExpenseParser(
            rules=self.config.load_rules(),
            max_depth=self.config.extraction.max_part_depth,
            tz=resolve_timezone(self.config.extraction.timezone),
        )
        self.loader = MessageLoader()
        self.metrics = ExtractionMetrics()

    def _setup_logging(self):
        """Setup logging configuration"""
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        level_name = str(self.config.system.log_level).upper()
        level = logging._nameToLevel.get(level_name, logging.INFO)

        # stdout carries the extracted records, so logs go to stderr
        stream_handler = logging.StreamHandler(sys.stderr)
        handlers: List[logging.Handler] = [stream_handler]

        if self.config.system.log_file:
            log_path = Path(self.config.system.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_path))

        if self.config.system.log_format == "json":
            formatter: logging.Formatter = JSONFormatter()
            for handler in handlers:
                handler.setFormatter(formatter)
        else:
            for handler in handlers:
                handler.setFormatter(logging.Formatter(log_format))
            if sys.stderr.isatty():
                stream_handler.setFormatter(ColoredFormatter(log_format))

        logging.basicConfig(level=level, handlers=handlers)

        if level_name not in logging._nameToLevel:
            logging.getLogger("ExpenseExtractionPipeline").warning(
                "Invalid log level '%s'; defaulting to INFO",
                self.config.system.log_level
            )

    def build_link(self, message_id: str) -> str:
        """Deep link back to the source message"""
        return self.config.extraction.link_template.format(message_id=message_id)

    def process_message(self, raw: RawInput) -> Optional[ExpenseRecord]:
        """
        Run the engine over a single message

        Malformed input and unexpected faults are logged and counted, and
        yield None; they never propagate to the caller.

        Args:
            raw: Gmail API message dictionary or RawMessage

        Returns:
            ExpenseRecord, or None if no transaction was extracted
        """
        self.metrics.record_message_processed()
        started = time.perf_counter()
        try:
            return self._process_message(raw)
        except Exception as e:
            self.logger.error(f"Error processing message: {e}", exc_info=True)
            self.metrics.record_rejection(REASON_ERROR)
            return None
        finally:
            self.metrics.record_processing_time((time.perf_counter() - started) * 1000)

    def _process_message(self, raw: RawInput) -> Optional[ExpenseRecord]:
        if isinstance(raw, RawMessage):
            message = raw
        else:
            try:
                message = RawMessage.from_dict(raw, self.config.extraction.max_part_depth)
            except ValueError as e:
                raw_id = raw.get("id", "?") if isinstance(raw, Mapping) else "?"
                self.logger.warning(
                    f"Skipping message {sanitize_for_logging(str(raw_id))}: malformed input ({e})"
                )
                self.metrics.record_rejection(REASON_ERROR)
                return None

        safe_id = sanitize_for_logging(message.message_id)
        outcome = self.parser.parse_with_outcome(message)
        if not outcome.accepted:
            self.metrics.record_rejection(outcome.reason or REASON_ERROR)
            log_with_fields(
                self.logger, logging.DEBUG,
                f"Skipping message {safe_id}: {outcome.reason}",
                message_id=message.message_id, outcome=outcome.reason,
            )
            return None

        expense = outcome.expense
        self.metrics.record_extracted(expense.transaction_type.value)
        log_with_fields(
            self.logger, logging.INFO,
            f"Extracted {expense.transaction_type.value} of {expense.amount} "
            f"at {expense.merchant} ({expense.bank})",
            message_id=message.message_id,
            amount=str(expense.amount),
            category=expense.category,
            transaction_type=expense.transaction_type.value,
        )
        return ExpenseRecord(
            expense=expense,
            message_id=message.message_id,
            thread_id=message.thread_id,
            gmail_link=self.build_link(message.message_id),
        )

    def process_batch(
        self,
        raw_messages: Iterable[RawInput],
        bank_filter: Optional[Sequence[str]] = None,
        max_results: Optional[int] = None,
    ) -> List[ExpenseRecord]:
        """
        Run the engine over a batch of messages

        Both debits and credits are kept.  Each message is processed in
        isolation, so a failure drops only that message.

        Args:
            raw_messages: Messages to process
            bank_filter: Bank name fragments to keep (None = configured filter)
            max_results: Maximum messages to process (None = configured batch size)

        Returns:
            Extracted records, newest date first

        Raises:
            ValueError: If max_results is less than 1
        """
        if max_results is None:
            max_results = self.config.system.max_messages_per_batch
        if max_results < 1:
            raise ValueError(f"max_results must be at least 1, got {max_results}")
        max_results = min(max_results, MAX_BATCH_SIZE)

        if bank_filter is None:
            bank_filter = self.config.system.bank_filter

        batch = list(raw_messages)[:max_results]
        self.logger.info(f"=== Batch of {len(batch)} messages ===")

        records = []
        for raw in batch:
            record = self.process_message(raw)
            if record is None:
                continue
            if not matches_bank_filter(record.expense.bank, bank_filter):
                self.metrics.record_rejection(REASON_FILTERED)
                continue
            records.append(record)

        records.sort(key=lambda r: r.expense.date, reverse=True)
        self.logger.info(
            f"Successfully parsed {len(records)} expenses from {len(batch)} messages"
        )
        return records

    def run(
        self,
        paths: Iterable[Union[str, Path]],
        bank_filter: Optional[Sequence[str]] = None,
        max_results: Optional[int] = None,
    ) -> List[ExpenseRecord]:
        """
        Load message dumps from disk and extract expenses from them

        Args:
            paths: JSON files or directories of JSON files
            bank_filter: Bank name fragments to keep
            max_results: Maximum messages to process

        Returns:
            Extracted records, newest date first
        """
        messages = self.loader.load(paths)
        if not messages:
            self.logger.info("No messages to process")
            return []

        records = self.process_batch(messages, bank_filter, max_results)
        log_with_fields(
            self.logger, logging.INFO, "Run complete", **self.metrics.get_summary()
        )
        return records


def main():
    """Main entry point"""
    from expense_engine.app_runner import AppRunner
    sys.exit(AppRunner().run())


if __name__ == "__main__":
    main()
