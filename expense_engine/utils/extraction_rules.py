"""
Extraction Rules
The ordered, immutable lookup tables that drive every heuristic in the engine.

MAINTENANCE WISDOM: Order matters in every table below.  Patterns and keyword
lists are evaluated top to bottom and the first acceptable hit wins, so a new
entry goes where its priority belongs, not at the end by habit.

The tables are plain data.  A deployment can replace any of them from a JSON
rules file (see ``ExtractionRules.from_file``) without touching control flow.
"""

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple, Union

# Sentinels returned when no heuristic matches
UNKNOWN_MERCHANT = "Unknown Merchant"
UNKNOWN_BANK = "Unknown Bank"
DEFAULT_CATEGORY = "Others"

# Accepted amount range (exclusive on both ends)
MIN_AMOUNT = 0
MAX_AMOUNT = 10_000_000

# Merchant candidates must be strictly longer than 2 and shorter than 50 chars
MIN_MERCHANT_CANDIDATE = 2
MAX_MERCHANT_CANDIDATE = 50
MAX_MERCHANT_LENGTH = 30
MAX_DESCRIPTION_LENGTH = 100
MIN_SUBJECT_TOKEN_LENGTH = 4

_CURRENCY = r"(?:INR|Rs\.?|₹)"
_NUMBER = r"(\d[\d,]*(?:\.\d{1,2})?)"
_DECIMAL_NUMBER = r"(\d[\d,]*\.\d{1,2})"
_VERB_FILLER = r"(?:(?:by|with|for)\s+)?"

DEFAULT_AMOUNT_PATTERNS: Tuple[str, ...] = (
    # Labelled structured fields (SBI / ICICI alert tables)
    r"amount\s*\(\s*(?:inr|rs\.?|₹)\s*\)[:\s]*" + _NUMBER,
    r"transaction\s*amount[:\s]*(?:" + _CURRENCY + r"\s*)?" + _NUMBER,
    # HTML table cell holding a money value
    r"<td[^>]*>\s*(?:" + _CURRENCY + r"\s*)?" + _DECIMAL_NUMBER + r"\s*</td>",
    r"\bamount[:\s]+" + _CURRENCY + r"?\s*" + _NUMBER,
    # Verb phrases
    r"\bdebited[:\s]+" + _VERB_FILLER + _CURRENCY + r"?\s*" + _NUMBER,
    r"\bcredited[:\s]+" + _VERB_FILLER + _CURRENCY + r"?\s*" + _NUMBER,
    r"\bpaid[:\s]+" + _VERB_FILLER + _CURRENCY + r"?\s*" + _NUMBER,
    r"\bwithdrawn[:\s]+" + _VERB_FILLER + _CURRENCY + r"?\s*" + _NUMBER,
    # Generic
    _CURRENCY + r"\s*" + _NUMBER,
    # Whole-number table cell
    r"<td[^>]*>\s*" + _NUMBER + r"\s*</td>",
    r"\bvalue[:\s]*" + _NUMBER,
    r"(?m):\s*" + _NUMBER + r"\s*$",
)

_LABEL_VALUE = r"([A-Za-z0-9\s*\-.]+?)"
_LINE_END = r"(?:\n|\r|$)"
_TOKEN_END = r"(?:\s|$|,|\.|;)"

DEFAULT_MERCHANT_PATTERNS: Tuple[str, ...] = (
    # Labelled plain-text fields
    r"terminal\s*owner\s*name[:\s]*" + _LABEL_VALUE + _LINE_END,
    r"terminal\s*name[:\s]*" + _LABEL_VALUE + _LINE_END,
    r"merchant\s*name[:\s]*" + _LABEL_VALUE + _LINE_END,
    r"\blocation[:\s]*" + _LABEL_VALUE + _LINE_END,
    # Labelled HTML table cells (SBI ATM / POS alerts)
    r"<td[^>]*>\s*Terminal\s*Owner\s*Name\s*</td>\s*<td[^>]*>([^<]+)</td>",
    r"<td[^>]*>\s*Location\s*</td>\s*<td[^>]*>([^<]+)</td>",
    r'<td[^>]*id="bank"[^>]*>([^<]+)</td>',
    r'<td[^>]*id="termLocation"[^>]*>([^<]+)</td>',
    # Prepositional phrases; skips "from your account" style wording
    r"\b(?:at|to|from)\s+(?!(?:your|the|a/c|ac|acct|account)\b)"
    + _LABEL_VALUE + _TOKEN_END,
    r"\bmerchant[:\s]+" + _LABEL_VALUE + _TOKEN_END,
    # Last resort: any short text table cell
    r"<td[^>]*>" + _LABEL_VALUE + r"</td>",
)

DEFAULT_MERCHANT_STOPWORDS: Tuple[str, ...] = (
    "transaction", "debited", "credited", "payment", "alert",
)

DEFAULT_INSTITUTIONS: Tuple[Tuple[str, str], ...] = (
    ("icicibank.com", "ICICI Bank"),
    ("hdfcbank.com", "HDFC Bank"),
    ("axisbank.com", "Axis Bank"),
    ("sbi.co.in", "State Bank of India"),
    ("alerts.sbi.co.in", "State Bank of India"),
    ("kotak.com", "Kotak Mahindra Bank"),
    ("yesbank.in", "Yes Bank"),
    ("pnb.co.in", "Punjab National Bank"),
)

DEFAULT_CATEGORIES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Shopping", (
        "amazon", "flipkart", "myntra", "ajio", "shopping", "mall", "store",
        "market", "retail", "purchase", "bigbasket", "grofers", "blinkit",
    )),
    ("Food & Dining", (
        "swiggy", "zomato", "dominos", "pizza", "restaurant", "cafe", "food",
        "dining", "mcdonald", "kfc", "burger", "starbucks", "dunkin",
    )),
    ("Transportation", (
        "uber", "ola", "rapido", "metro", "bus", "taxi", "auto", "petrol",
        "fuel", "diesel", "gas", "parking", "toll", "travel",
    )),
    ("Entertainment", (
        "netflix", "amazon prime", "disney", "hotstar", "spotify", "youtube",
        "movie", "cinema", "theatre", "bookmyshow", "entertainment", "music",
    )),
    ("Utilities", (
        "electricity", "power", "gas", "water", "internet", "broadband", "wifi",
        "mobile", "phone", "recharge", "bill", "utility", "bsnl", "airtel", "jio",
    )),
    ("Banking", (
        "bank", "atm", "interest", "fd", "deposit", "loan", "emi", "credit",
        "debit", "transfer", "payment", "fee", "charge",
    )),
    ("Healthcare", (
        "hospital", "clinic", "pharmacy", "medicine", "doctor", "medical",
        "health", "apollo", "fortis", "1mg", "pharmeasy",
    )),
    ("Travel", (
        "flight", "airline", "hotel", "booking", "makemytrip", "goibibo",
        "cleartrip", "indigo", "spicejet", "air india", "vacation",
    )),
    ("Groceries", (
        "grocery", "vegetables", "fruits", "milk", "bread", "supermarket",
        "hypermarket", "dmart", "more", "reliance fresh", "spencer",
    )),
)

# Tier 1: markers that only appear in structured alert tables
DEFAULT_STRUCTURED_DEBIT_MARKERS: Tuple[str, ...] = (
    'id="trantype">purchase',
    'trantype">purchase</td>',
    "transaction type: purchase",
    "transaction type: withdrawal",
    ">purchase<",
    "purchase</td>",
    'transaction type">purchase',
)

# Tier 2
DEFAULT_CREDIT_KEYWORDS: Tuple[str, ...] = (
    "credited", "credit transaction", "amount credited", "deposited",
    "refund", "cashback", "reward", "salary", "contribution credit",
    "reversal", "interest credited", "dividend", "payment received",
    "has been credited", "neft transaction", "fund transfer received",
    "transaction type: credit", "transaction type: deposit",
)

# Tier 3
DEFAULT_DEBIT_KEYWORDS: Tuple[str, ...] = (
    "debited", "charged", "payment", "withdrawal", "purchase", "spent",
    "paid", "transaction alert", "card used", "amount debited", "debit",
    "pos / ecom", "online transaction", "card transaction",
)


@dataclass(frozen=True)
class ExtractionRules:
    """
    Immutable bundle of every table the extractors consult.

    Instances are built once at startup and shared by reference; nothing in the
    engine mutates them, so one instance is safe to use from many threads.
    """
    amount_patterns: Tuple[str, ...] = DEFAULT_AMOUNT_PATTERNS
    merchant_patterns: Tuple[str, ...] = DEFAULT_MERCHANT_PATTERNS
    merchant_stopwords: Tuple[str, ...] = DEFAULT_MERCHANT_STOPWORDS
    institutions: Tuple[Tuple[str, str], ...] = DEFAULT_INSTITUTIONS
    categories: Tuple[Tuple[str, Tuple[str, ...]], ...] = DEFAULT_CATEGORIES
    structured_debit_markers: Tuple[str, ...] = DEFAULT_STRUCTURED_DEBIT_MARKERS
    credit_keywords: Tuple[str, ...] = DEFAULT_CREDIT_KEYWORDS
    debit_keywords: Tuple[str, ...] = DEFAULT_DEBIT_KEYWORDS

    def with_overrides(self, overrides: Mapping[str, Any]) -> "ExtractionRules":
        """
        Return a copy with the given tables replaced.

        Mapping-shaped tables (``institutions``, ``categories``) accept either a
        JSON object, whose key order is kept, or a list of pairs.

        Raises:
            ValueError: If an override names an unknown table.
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown rule tables: {', '.join(unknown)}")

        changes: Dict[str, Any] = {}
        for name, value in overrides.items():
            if name == "institutions":
                changes[name] = tuple(
                    (str(domain).lower(), str(label))
                    for domain, label in _pairs(value)
                )
            elif name == "categories":
                changes[name] = tuple(
                    (str(category), tuple(str(k).lower() for k in keywords))
                    for category, keywords in _pairs(value)
                )
            elif name.endswith("_patterns"):
                changes[name] = tuple(str(v) for v in value)
            else:
                changes[name] = tuple(str(v).lower() for v in value)
        return replace(self, **changes)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ExtractionRules":
        """Load default rules overridden by the tables in a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            overrides = json.load(f)
        if not isinstance(overrides, dict):
            raise ValueError(f"Rules file {path} must contain a JSON object")
        return cls().with_overrides(overrides)


def _pairs(value: Any):
    if isinstance(value, Mapping):
        return list(value.items())
    return [tuple(item) for item in value]


DEFAULT_RULES = ExtractionRules()
