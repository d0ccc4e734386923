"""
Expense Data Model
Contains the records produced by the extraction engine and the pipeline
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict


class TransactionType(str, Enum):
    """Direction of a transaction"""
    DEBIT = "debit"    # money going out (expense)
    CREDIT = "credit"  # money coming in (income)


@dataclass(frozen=True)
class ParsedExpense:
    """
    One transaction extracted from one message

    Built once by the ExpenseParser and never mutated afterwards.
    """
    date: date
    amount: Decimal
    merchant: str
    category: str
    description: str
    bank: str
    transaction_type: TransactionType

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the wire field names used by the dashboard."""
        return {
            "date": self.date.isoformat(),
            "amount": float(self.amount),
            "merchant": self.merchant,
            "category": self.category,
            "description": self.description,
            "bank": self.bank,
            "transactionType": self.transaction_type.value,
        }


@dataclass(frozen=True)
class ExpenseRecord:
    """
    A ParsedExpense plus the identifying fields the pipeline attaches

    These wrapper fields come from the source message, not from extraction.
    """
    expense: ParsedExpense
    message_id: str
    thread_id: str
    gmail_link: str
    source: str = "gmail"
    is_real_data: bool = True

    def to_dict(self) -> Dict[str, Any]:
        data = self.expense.to_dict()
        data.update({
            "id": self.message_id,
            "threadId": self.thread_id,
            "gmailLink": self.gmail_link,
            "source": self.source,
            "isRealData": self.is_real_data,
        })
        return data
