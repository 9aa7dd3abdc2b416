# salestrend/service.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional

from .aggregator import MonthlyAggregator, group_by_month, summarize_month
from .analytics import MonthTrend, category_breakdown, compute_summary, compute_trends
from .domain import (
    CategoryShare,
    DataQualityReport,
    MonthlySummary,
    Rejected,
    SalesSummary,
    Transaction,
    TrendPoint,
)
from .insights import InsightInput, InsightReport, classify
from .llm import TextGenerator, describe_trend
from .normalizer import normalize_rows
from .storage import SalesStore
from .trends import build_trend

logger = logging.getLogger(__name__)

STRONG_MONTHLY_AVERAGE = 10_000


@dataclass(frozen=True)
class AnalyticsResult:
    summary: SalesSummary
    trends: List[MonthTrend]
    forecast: List[TrendPoint]
    categories: List[CategoryShare]
    insights: InsightReport


@dataclass(frozen=True)
class MergeResult:
    summaries: List[MonthlySummary]
    report: DataQualityReport
    rejected: List[Rejected]


@dataclass(frozen=True)
class IngestResult:
    summaries: List[MonthlySummary]
    report: DataQualityReport
    rejected: List[Rejected]
    analytics: AnalyticsResult
    ai_insight: str

    @property
    def projection(self) -> float:
        return self.analytics.forecast[-1].value


@dataclass(frozen=True)
class ForecastResult:
    forecast: List[TrendPoint]
    report: DataQualityReport
    insight: str
    ai_insight: str


def local_insight(monthly_values: List[float]) -> str:
    average = sum(monthly_values) / len(monthly_values) if monthly_values else 0
    if average > STRONG_MONTHLY_AVERAGE:
        return "Sales are performing strongly. Focus on maintaining momentum!"
    return "Sales are moderate. Consider promotions or new product lines."


class SalesEngine:
    """Entry point used by the HTTP layer and the CSV pipeline."""

    def __init__(self, store: SalesStore, generator: Optional[TextGenerator] = None):
        self.store = store
        self.generator = generator
        self.aggregator = MonthlyAggregator(store)

    def merge(self, user_id: int, rows: Iterable[Mapping[str, Any]]) -> MergeResult:
        """
        Normalize raw rows and merge the valid ones into the user's stored months.

        Raises:
            StorageFailure: the batch was rolled back
        """
        normalized = normalize_rows(rows)
        report = normalized.report
        if report.rejected_rows:
            logger.warning(
                "User %s: rejected %d of %d rows %s",
                user_id, report.rejected_rows, report.total_rows, report.reasons_count,
            )
        summaries = self.aggregator.ingest(user_id, normalized.transactions)
        return MergeResult(summaries=summaries, report=report, rejected=normalized.rejected)

    def ingest(self, user_id: int, rows: Iterable[Mapping[str, Any]]) -> IngestResult:
        """Merge raw rows, then return the recomputed summaries with fresh analytics."""
        merged = self.merge(user_id, rows)
        analytics = self.analytics(user_id)
        return IngestResult(
            summaries=merged.summaries,
            report=merged.report,
            rejected=merged.rejected,
            analytics=analytics,
            ai_insight=describe_trend(self.generator, analytics.forecast),
        )

    def monthly_data(self, user_id: int, year: int = None, month: int = None) -> List[MonthlySummary]:
        return self.store.list_summaries(user_id, year, month)

    def month_transactions(self, user_id: int, year: int, month: int) -> List[Transaction]:
        return self.store.month_transactions(user_id, year, month)

    def delete_month(self, user_id: int, year: int, month: int) -> None:
        self.store.delete_month(user_id, year, month)

    def analytics(self, user_id: int) -> AnalyticsResult:
        series = self.store.monthly_series(user_id)
        summary = compute_summary(series)
        trends = compute_trends(series)
        forecast = build_trend([(t.label, t.sales) for t in trends])
        categories = category_breakdown(self.store, user_id)
        insights = classify(InsightInput(summary=summary, trend=forecast, categories=categories))
        return AnalyticsResult(
            summary=summary,
            trends=trends,
            forecast=forecast,
            categories=categories,
            insights=insights,
        )

    def forecast(self, rows: Iterable[Mapping[str, Any]]) -> ForecastResult:
        """Project the next month from raw rows without touching storage."""
        normalized = normalize_rows(rows)
        groups = group_by_month(normalized.transactions)
        months = [summarize_month(0, year, month, groups[(year, month)]) for year, month in sorted(groups)]
        forecast = build_trend([(m.label, float(m.total_revenue)) for m in months])
        return ForecastResult(
            forecast=forecast,
            report=normalized.report,
            insight=local_insight([float(m.total_revenue) for m in months]),
            ai_insight=describe_trend(self.generator, forecast),
        )
