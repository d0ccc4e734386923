r"""
Expense Parser Module
Assembles one ParsedExpense from one RawMessage, or rejects the message

PATTERN RECOGNITION: This is a small gated state machine:

    START -> BODY_RESOLVED -> AMOUNT_FOUND -> ASSEMBLED
       \________________\_____________\____> REJECTED

Only the body and the amount can reject a message.  Merchant, institution,
category and direction each fall back to their own sentinel, so they never
gate each other.

SECURITY STORY: This is the fault-isolation boundary.  Whatever a hostile or
broken message does to the heuristics, the caller sees a ParseOutcome, never
an exception, so one bad message cannot abort a batch.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from ..utils.extraction_rules import DEFAULT_RULES, ExtractionRules
from ..utils.sanitization import sanitize_for_logging
from .amount_extractor import AmountExtractor
from .body_resolver import BodyResolver
from .category_classifier import CategoryClassifier
from .direction_classifier import DirectionClassifier
from .expense_data import ParsedExpense
from .institution_identifier import InstitutionIdentifier
from .merchant_extractor import MerchantExtractor
from .raw_message import DEFAULT_MAX_PART_DEPTH, RawMessage

# Rejection reasons
REASON_NO_BODY = "no_body"
REASON_NO_AMOUNT = "no_amount"
REASON_ERROR = "error"

BODY_PREVIEW_LENGTH = 200


class AssemblyState(str, Enum):
    """Where a message got to in the assembly pipeline"""
    START = "start"
    BODY_RESOLVED = "body_resolved"
    AMOUNT_FOUND = "amount_found"
    ASSEMBLED = "assembled"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ParseOutcome:
    """Final state of one parse, with the record or the rejection reason"""
    state: AssemblyState
    expense: Optional[ParsedExpense] = None
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.state is AssemblyState.ASSEMBLED


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """
    Turn a configured zone name into a tzinfo

    None means the process-local zone.  "UTC" is served without the zone
    database so it works on hosts that ship no tzdata.
    """
    if not name:
        return None
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


class ExpenseParser:
    """
    Runs the extraction engine over a single message

    All collaborators are built once here and hold only immutable tables, so
    one parser can be shared by any number of threads.
    """

    def __init__(
        self,
        rules: ExtractionRules = DEFAULT_RULES,
        max_depth: int = DEFAULT_MAX_PART_DEPTH,
        tz: Optional[tzinfo] = None,
    ):
        """
        Args:
            rules: Rule tables for every extractor and classifier
            max_depth: Deepest payload level the body resolver will visit
            tz: Zone used to turn the message timestamp into a calendar day
                (None = local time)
        """
        self.tz = tz
        self.body_resolver = BodyResolver(max_depth)
        self.amount_extractor = AmountExtractor(rules)
        self.merchant_extractor = MerchantExtractor(rules)
        self.institution_identifier = InstitutionIdentifier(rules)
        self.category_classifier = CategoryClassifier(rules)
        self.direction_classifier = DirectionClassifier(rules)
        self.logger = logging.getLogger("ExpenseParser")

    def parse(self, message: RawMessage) -> Optional[ParsedExpense]:
        """
        Parse a message into an expense

        Returns:
            ParsedExpense, or None if no transaction could be extracted
        """
        return self.parse_with_outcome(message).expense

    def parse_with_outcome(self, message: RawMessage) -> ParseOutcome:
        """
        Parse a message and report how far it got

        Returns:
            ParseOutcome in state ASSEMBLED (with the expense) or REJECTED
            (with the reason)
        """
        safe_id = sanitize_for_logging(getattr(message, "message_id", "") or "?")
        try:
            return self._assemble(message, safe_id)
        except Exception as e:
            self.logger.error(f"Failed to parse message {safe_id}: {e}")
            return ParseOutcome(AssemblyState.REJECTED, reason=REASON_ERROR)

    def _assemble(self, message: RawMessage, safe_id: str) -> ParseOutcome:
        subject = message.subject
        sender = message.sender

        body = self.body_resolver.resolve(message.payload)
        if not body:
            self.logger.info(f"No email body found in message {safe_id}")
            return ParseOutcome(AssemblyState.REJECTED, reason=REASON_NO_BODY)
        self._transition(safe_id, AssemblyState.START, AssemblyState.BODY_RESOLVED)

        amount = self.amount_extractor.extract(f"{subject} {body}")
        if amount is None:
            self.logger.warning(
                f"No amount found in message {safe_id}: "
                f"subject='{sanitize_for_logging(subject)}' "
                f"body_preview='{sanitize_for_logging(body[:BODY_PREVIEW_LENGTH])}'"
            )
            return ParseOutcome(AssemblyState.REJECTED, reason=REASON_NO_AMOUNT)
        self._transition(safe_id, AssemblyState.BODY_RESOLVED, AssemblyState.AMOUNT_FOUND)

        merchant = self.merchant_extractor.extract(subject, body)
        expense = ParsedExpense(
            date=self._message_date(message.internal_date_ms),
            amount=amount,
            merchant=merchant,
            category=self.category_classifier.classify(merchant, f"{subject} {body}"),
            description=self.merchant_extractor.describe(subject),
            bank=self.institution_identifier.identify(sender),
            transaction_type=self.direction_classifier.classify(subject, body),
        )
        self._transition(safe_id, AssemblyState.AMOUNT_FOUND, AssemblyState.ASSEMBLED)
        return ParseOutcome(AssemblyState.ASSEMBLED, expense=expense)

    def _message_date(self, internal_date_ms: int) -> date:
        """Calendar day of the message timestamp in the configured zone"""
        return datetime.fromtimestamp(internal_date_ms / 1000, tz=self.tz).date()

    def _transition(self, safe_id: str, old: AssemblyState, new: AssemblyState) -> None:
        self.logger.debug(f"Message {safe_id}: {old.value} -> {new.value}")
