# salestrend/domain.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

DEFAULT_PRODUCT = "Unknown Product"
DEFAULT_CATEGORY = "General"
DEFAULT_REGION = "Unknown"

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def month_name(month: int) -> str:
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return "Unknown"


@dataclass(frozen=True)
class Transaction:
    sale_date: date
    product: str
    category: str
    region: str
    price: Decimal
    quantity: int

    @property
    def amount(self) -> Decimal:
        return self.price * self.quantity

    @property
    def month_bucket(self) -> Tuple[int, int]:
        return self.sale_date.year, self.sale_date.month

    @property
    def identity(self) -> Tuple[str, date, Decimal, int]:
        """Dedup key used when merging into an already stored month."""
        return self.product, self.sale_date, self.price, self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.sale_date.isoformat(),
            "product": self.product,
            "category": self.category,
            "region": self.region,
            "price": str(self.price),
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class Rejected:
    row_index: int
    raw: Dict[str, Any]
    reasons: List[str]


Outcome = Union[Transaction, Rejected]


@dataclass(frozen=True)
class DataQualityReport:
    total_rows: int
    accepted_rows: int
    rejected_rows: int
    reasons_count: Dict[str, int]  # e.g. {"invalid_date": 3, "invalid_price": 1}


@dataclass(frozen=True)
class NormalizationResult:
    outcomes: List[Outcome]

    @property
    def transactions(self) -> List[Transaction]:
        return [o for o in self.outcomes if isinstance(o, Transaction)]

    @property
    def rejected(self) -> List[Rejected]:
        return [o for o in self.outcomes if isinstance(o, Rejected)]

    @property
    def report(self) -> DataQualityReport:
        reasons_count: Dict[str, int] = {}
        for r in self.rejected:
            for reason in r.reasons:
                reasons_count[reason] = reasons_count.get(reason, 0) + 1
        rejected = len(self.rejected)
        return DataQualityReport(
            total_rows=len(self.outcomes),
            accepted_rows=len(self.outcomes) - rejected,
            rejected_rows=rejected,
            reasons_count=reasons_count,
        )


@dataclass(frozen=True)
class MonthlySummary:
    user_id: int
    year: int
    month: int
    total_revenue: Decimal
    total_transactions: int
    avg_transaction_value: Decimal
    top_category: str
    transactions: Tuple[Transaction, ...] = field(default=(), compare=False, repr=False)

    @property
    def label(self) -> str:
        return f"{month_name(self.month)} {self.year}"

    def raw_snapshot(self) -> List[Dict[str, Any]]:
        return [t.to_dict() for t in self.transactions]


@dataclass(frozen=True)
class TrendPoint:
    label: str
    value: float
    projected: bool = False


class Priority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return PRIORITY_ORDER.index(self)


PRIORITY_ORDER = [Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW]


@dataclass(frozen=True)
class Insight:
    icon: str
    title: str
    text: str
    priority: Priority


@dataclass(frozen=True)
class CategoryShare:
    name: str
    value: float
    percentage: float


@dataclass(frozen=True)
class SalesSummary:
    """All-time figures for one user, input to the insight rules."""
    total_sales: float
    total_transactions: int
    avg_order_value: float
    best_month: Optional[str]
    best_month_sales: float
    growth: float
    growth_period: str
