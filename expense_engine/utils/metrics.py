"""
Metrics Collection Module
Tracks extraction throughput and why messages were dropped
"""

from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Deque


@dataclass
class ExtractionMetrics:
    """
    Collects operational metrics for a run of the extraction pipeline.

    The rejection breakdown is the useful part for tuning: a rising
    ``no_amount`` count after a bank changes its alert template is the signal
    that the amount patterns need a new entry.
    """

    # Count of messages handed to the engine since startup
    messages_processed: int = 0

    # Extracted records by direction ("debit" / "credit")
    expenses_extracted: Counter = field(default_factory=Counter)

    # Dropped messages by reason ("no_body", "no_amount", "error", "filtered")
    rejections: Counter = field(default_factory=Counter)

    # Per-message processing time in milliseconds, bounded to avoid unbounded growth
    processing_time_ms: Deque[float] = field(default_factory=lambda: deque(maxlen=1000))

    start_time: datetime = field(default_factory=datetime.now)

    def record_message_processed(self):
        """Record that a message was handed to the engine."""
        self.messages_processed += 1

    def record_extracted(self, transaction_type: str):
        """
        Record that a message produced an expense record.

        Args:
            transaction_type: "debit" or "credit"
        """
        self.expenses_extracted[transaction_type] += 1

    def record_rejection(self, reason: str):
        """
        Record that a message was dropped.

        Args:
            reason: Why it was dropped (e.g. "no_amount", "filtered")
        """
        self.rejections[reason] += 1

    def record_processing_time(self, time_ms: float):
        """Record how long one message took, in milliseconds."""
        self.processing_time_ms.append(time_ms)

    def get_summary(self) -> Dict:
        """
        Get a summary of all metrics.

        Returns:
            Dictionary suitable for logging or export
        """
        stats = {}
        if self.processing_time_ms:
            sorted_times = sorted(self.processing_time_ms)
            n = len(sorted_times)
            stats = {
                "avg_ms": sum(sorted_times) / n,
                "min_ms": sorted_times[0],
                "max_ms": sorted_times[-1],
                "p50_ms": sorted_times[n // 2],
                "p95_ms": sorted_times[int(n * 0.95)] if n > 1 else sorted_times[0],
            }

        extracted_total = sum(self.expenses_extracted.values())
        return {
            "uptime_seconds": (datetime.now() - self.start_time).total_seconds(),
            "messages_processed": self.messages_processed,
            "expenses_extracted": extracted_total,
            "by_direction": dict(self.expenses_extracted),
            "rejections": dict(self.rejections),
            "extraction_rate": (
                extracted_total / self.messages_processed
                if self.messages_processed else 0.0
            ),
            "processing_time_stats": stats,
            "sample_count": len(self.processing_time_ms),
        }

    def reset(self):
        """Reset all metrics to initial state."""
        self.messages_processed = 0
        self.expenses_extracted.clear()
        self.rejections.clear()
        self.processing_time_ms.clear()
        self.start_time = datetime.now()
