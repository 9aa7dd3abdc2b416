# salestrend/aggregator.py
"""Monthly aggregation and reconciliation of normalized transactions."""
from __future__ import annotations
import logging
from collections import Counter
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Sequence, Tuple, TYPE_CHECKING

from .domain import DEFAULT_CATEGORY, MonthlySummary, Transaction
from .exceptions import StorageFailure

if TYPE_CHECKING:
    from .storage import SalesStore

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

MonthKey = Tuple[int, int]


def group_by_month(transactions: Iterable[Transaction]) -> Dict[MonthKey, List[Transaction]]:
    """Bucket transactions by (year, month), keeping input order inside each bucket."""
    groups: Dict[MonthKey, List[Transaction]] = {}
    for txn in transactions:
        groups.setdefault(txn.month_bucket, []).append(txn)
    return groups


def merge_transactions(
    existing: Sequence[Transaction],
    incoming: Iterable[Transaction],
) -> List[Transaction]:
    """
    Add incoming transactions to the stored set, skipping any whose
    (product, date, price, quantity) identity is already present.
    Stored transactions keep their position; new ones are appended.
    """
    merged = list(existing)
    seen = {t.identity for t in merged}
    for txn in incoming:
        if txn.identity in seen:
            continue
        seen.add(txn.identity)
        merged.append(txn)
    return merged


def dominant_category(transactions: Iterable[Transaction]) -> str:
    """Most frequent category; ties go to the one seen first."""
    counts = Counter(t.category for t in transactions)
    best, best_count = DEFAULT_CATEGORY, 0
    # Counter preserves first-insertion order
    for category, count in counts.items():
        if count > best_count:
            best, best_count = category, count
    return best


def summarize_month(
    user_id: int,
    year: int,
    month: int,
    transactions: Sequence[Transaction],
) -> MonthlySummary:
    """Recompute a month's figures from its complete transaction set."""
    total = sum((t.amount for t in transactions), Decimal("0"))
    count = len(transactions)
    average = (total / count).quantize(CENT, rounding=ROUND_HALF_UP) if count else Decimal("0.00")
    return MonthlySummary(
        user_id=user_id,
        year=year,
        month=month,
        total_revenue=total.quantize(CENT, rounding=ROUND_HALF_UP),
        total_transactions=count,
        avg_transaction_value=average,
        top_category=dominant_category(transactions),
        transactions=tuple(transactions),
    )


class MonthlyAggregator:
    """Merges ingested batches into stored months and recomputes their summaries."""

    def __init__(self, store: "SalesStore"):
        self.store = store

    def ingest(self, user_id: int, transactions: Iterable[Transaction]) -> List[MonthlySummary]:
        """
        Merge a batch into the stored months it touches.

        Every affected month is read, merged, recomputed and written inside a
        single storage transaction, so a failure leaves all months as they were.

        Raises:
            StorageFailure: naming the month whose write failed
        """
        groups = group_by_month(transactions)
        if not groups:
            return []

        results: List[MonthlySummary] = []
        current: MonthKey = min(groups)
        try:
            with self.store.session_scope() as session:
                for (year, month) in sorted(groups):
                    current = (year, month)
                    existing = self.store.load_month_transactions(session, user_id, year, month)
                    merged = merge_transactions(existing, groups[(year, month)])
                    summary = summarize_month(user_id, year, month, merged)
                    self.store.save_month(session, summary)
                    results.append(summary)
                    logger.info(
                        "User %s %d-%02d: %d stored, %d incoming, %d after merge, revenue %s",
                        user_id, year, month, len(existing), len(groups[(year, month)]),
                        summary.total_transactions, summary.total_revenue,
                    )
        except StorageFailure:
            raise
        except Exception as e:
            logger.error("Rolled back ingest for user %s at %d-%02d: %s", user_id, current[0], current[1], e)
            raise StorageFailure(current[0], current[1], e) from e

        return results
