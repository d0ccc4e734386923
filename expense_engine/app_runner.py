import sys
import json
import argparse
from pathlib import Path
from typing import Optional, List

from expense_engine.utils.config import Config, MAX_BATCH_SIZE
from expense_engine.utils.colors import Colors


class AppRunner:
    """Encapsulates the startup, configuration verification, and execution logic of the Expense Extraction Pipeline."""

    def __init__(self, args: Optional[List[str]] = None) -> None:
        """
        Initialize the runner with CLI arguments.

        Args:
            args: Command line arguments (defaults to sys.argv)
        """
        self.args = args if args is not None else sys.argv
        self.options = self._build_parser().parse_args(self.args[1:])
        self.config_file = self.options.config

    @staticmethod
    def _build_parser() -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="expense-engine",
            description="Extract transaction records from saved bank alert emails.",
        )
        parser.add_argument(
            "paths", nargs="+",
            help="Gmail API message JSON files, or directories of them",
        )
        parser.add_argument(
            "--config", default=".env",
            help="Environment file with settings (default: .env)",
        )
        parser.add_argument(
            "--bank", action="append", dest="banks", default=None,
            help="Only keep records whose bank name contains this text (repeatable)",
        )
        parser.add_argument(
            "--max-results", type=int, default=None,
            help=f"Maximum messages to process (1-{MAX_BATCH_SIZE})",
        )
        return parser

    def run(self) -> int:
        """Execute the main application flow and return the exit code."""
        self.print_banner()
        config = self.load_config()
        if config is None:
            return 1
        return self.start_pipeline(config)

    def print_banner(self) -> None:
        """Print the application startup banner."""
        out = sys.stderr
        print(Colors.colorize("=" * 80, Colors.CYAN), file=out)
        print(Colors.colorize("Expense Extraction Pipeline", Colors.BOLD + Colors.CYAN), file=out)
        print(Colors.colorize("Heuristic transaction extraction from bank alert emails", Colors.GREY), file=out)
        print(Colors.colorize("=" * 80, Colors.CYAN), file=out)

    def load_config(self) -> Optional[Config]:
        """Load and validate configuration; None means startup must stop."""
        config_path = Path(self.config_file)
        if self.config_file != ".env" and not config_path.exists():
            print(Colors.error(f"Error: Configuration file '{self.config_file}' not found"), file=sys.stderr)
            return None

        try:
            config = Config(self.config_file)
            config.validate()
        except ValueError as e:
            print(Colors.error(f"Configuration Error: {e}"), file=sys.stderr)
            return None
        return config

    def start_pipeline(self, config: Config) -> int:
        """Instantiate the pipeline, process the inputs and print records as JSON."""
        from expense_engine.main import ExpenseExtractionPipeline

        try:
            pipeline = ExpenseExtractionPipeline(config=config)
        except (ValueError, OSError) as e:
            print(Colors.error(f"Could not load extraction rules: {e}"), file=sys.stderr)
            return 1

        try:
            records = pipeline.run(
                self.options.paths,
                bank_filter=self.options.banks,
                max_results=self.options.max_results,
            )
        except ValueError as e:
            print(Colors.error(f"Error: {e}"), file=sys.stderr)
            return 1

        print(json.dumps([record.to_dict() for record in records], indent=2))
        self._print_summary(records)
        return 0

    @staticmethod
    def _print_summary(records) -> None:
        if not records:
            print(Colors.warning("No expense records extracted"), file=sys.stderr)
            return
        debits = sum(1 for r in records if r.expense.transaction_type.value == "debit")
        credits = len(records) - debits
        print(
            f"{Colors.success(str(len(records)))} records "
            f"({Colors.colorize(f'{debits} debit', Colors.get_direction_color('debit'))}, "
            f"{Colors.colorize(f'{credits} credit', Colors.get_direction_color('credit'))})",
            file=sys.stderr,
        )
