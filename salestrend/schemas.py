# salestrend/schemas.py
import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .domain import MonthlySummary, Transaction


class SalesRowsIn(BaseModel):
    rows: List[Dict[str, Any]] = Field(..., description="Raw sales rows with date, price and quantity")


class TransactionOut(BaseModel):
    date: datetime.date
    product: str
    category: str
    region: str
    price: float
    quantity: int
    amount: float

    @classmethod
    def from_domain(cls, t: Transaction) -> "TransactionOut":
        return cls(
            date=t.sale_date,
            product=t.product,
            category=t.category,
            region=t.region,
            price=float(t.price),
            quantity=t.quantity,
            amount=float(t.amount),
        )


class MonthlySummaryOut(BaseModel):
    user_id: int
    year: int
    month: int
    label: str
    total_revenue: float
    total_transactions: int
    avg_transaction_value: float
    top_category: Optional[str]

    @classmethod
    def from_domain(cls, s: MonthlySummary) -> "MonthlySummaryOut":
        return cls(
            user_id=s.user_id,
            year=s.year,
            month=s.month,
            label=s.label,
            total_revenue=float(s.total_revenue),
            total_transactions=s.total_transactions,
            avg_transaction_value=float(s.avg_transaction_value),
            top_category=s.top_category,
        )


class DataQualityOut(BaseModel):
    total_rows: int
    accepted_rows: int
    rejected_rows: int
    reasons_count: Dict[str, int]


class RejectedRowOut(BaseModel):
    row_index: int
    reasons: List[str]


class TrendPointOut(BaseModel):
    month: str
    sales: float
    projected: bool = False


class MonthTrendOut(BaseModel):
    month: str
    sales: float
    orders: int


class CategoryShareOut(BaseModel):
    name: str
    value: float
    percentage: float


class InsightOut(BaseModel):
    icon: str
    title: str
    text: str
    priority: str


class SummaryOut(BaseModel):
    total_sales: float
    total_transactions: int
    avg_order_value: float
    best_month: Optional[str]
    best_month_sales: float
    growth: float
    growth_period: str


class AnalyticsOut(BaseModel):
    summary: SummaryOut
    trends: List[MonthTrendOut]
    forecast: List[TrendPointOut]
    categories: List[CategoryShareOut]
    insights: List[InsightOut]
    total_insights: int


class IngestOut(BaseModel):
    summaries: List[MonthlySummaryOut]
    data_quality: DataQualityOut
    rejected: List[RejectedRowOut]
    projection: float
    analytics: AnalyticsOut
    ai_insight: str


class ForecastOut(BaseModel):
    forecast: List[TrendPointOut]
    data_quality: DataQualityOut
    insight: str
    ai_insight: str


def analytics_out(result) -> AnalyticsOut:
    s = result.summary
    return AnalyticsOut(
        summary=SummaryOut(
            total_sales=s.total_sales,
            total_transactions=s.total_transactions,
            avg_order_value=s.avg_order_value,
            best_month=s.best_month,
            best_month_sales=s.best_month_sales,
            growth=s.growth,
            growth_period=s.growth_period,
        ),
        trends=[MonthTrendOut(month=t.label, sales=t.sales, orders=t.orders) for t in result.trends],
        forecast=forecast_out(result.forecast),
        categories=[CategoryShareOut(name=c.name, value=c.value, percentage=c.percentage) for c in result.categories],
        insights=[
            InsightOut(icon=i.icon, title=i.title, text=i.text, priority=i.priority.value)
            for i in result.insights.insights
        ],
        total_insights=result.insights.total,
    )


def forecast_out(points) -> List[TrendPointOut]:
    return [TrendPointOut(month=p.label, sales=p.value, projected=p.projected) for p in points]


def data_quality_out(report) -> DataQualityOut:
    return DataQualityOut(
        total_rows=report.total_rows,
        accepted_rows=report.accepted_rows,
        rejected_rows=report.rejected_rows,
        reasons_count=report.reasons_count,
    )
