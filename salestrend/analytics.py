# salestrend/analytics.py
"""All-time read models over a user's stored months: summary, trend and breakdown."""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Sequence, Tuple

from .domain import DEFAULT_PRODUCT, CategoryShare, MonthlySummary, SalesSummary, month_name
from .storage import SalesStore

TOP_PRODUCTS = 10


@dataclass(frozen=True)
class MonthTrend:
    label: str
    sales: float
    orders: int


def compute_summary(series: Sequence[MonthlySummary]) -> SalesSummary:
    """
    Summary figures from a chronological series of monthly summaries.

    Growth compares the first and the last month (one decimal); it stays 0
    with fewer than two months or a zero first month.
    """
    total_sales = sum((s.total_revenue for s in series), Decimal("0"))
    total_transactions = sum(s.total_transactions for s in series)
    avg_order_value = float(total_sales / total_transactions) if total_transactions else 0.0

    best_month, best_month_sales = None, 0.0
    if series:
        # first of equal maxima wins
        best = max(series, key=lambda s: s.total_revenue)
        best_month, best_month_sales = best.label, float(best.total_revenue)

    growth, growth_period = 0.0, "N/A"
    if len(series) >= 2:
        first, last = series[0], series[-1]
        if first.total_revenue > 0:
            growth = round(float((last.total_revenue - first.total_revenue) / first.total_revenue * 100), 1)
        growth_period = f"{month_name(first.month)} to {month_name(last.month)}"

    return SalesSummary(
        total_sales=float(total_sales),
        total_transactions=total_transactions,
        avg_order_value=avg_order_value,
        best_month=best_month,
        best_month_sales=best_month_sales,
        growth=growth,
        growth_period=growth_period,
    )


def compute_trends(series: Sequence[MonthlySummary]) -> List[MonthTrend]:
    return [MonthTrend(label=s.label, sales=float(s.total_revenue), orders=s.total_transactions) for s in series]


def compute_shares(totals: Sequence[Tuple[str, Decimal]]) -> List[CategoryShare]:
    grand_total = sum((value for _, value in totals), Decimal("0"))
    shares = []
    for name, value in totals:
        percentage = round(float(value / grand_total * 100)) if grand_total > 0 else 0
        shares.append(CategoryShare(name=name, value=float(value), percentage=float(percentage)))
    return shares


def category_breakdown(store: SalesStore, user_id: int) -> List[CategoryShare]:
    """
    Top products by revenue. Falls back to categories when no transaction
    carries a real product name.
    """
    products = store.revenue_by(user_id, "product_name")
    if all(name in (None, "", DEFAULT_PRODUCT) for name, _ in products):
        return compute_shares(store.revenue_by(user_id, "category"))
    return compute_shares(products[:TOP_PRODUCTS])


def sales_summary(store: SalesStore, user_id: int) -> SalesSummary:
    return compute_summary(store.monthly_series(user_id))


def sales_trends(store: SalesStore, user_id: int) -> List[MonthTrend]:
    return compute_trends(store.monthly_series(user_id))
