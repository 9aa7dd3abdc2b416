# salestrend/insights.py
"""
Rule-based sales insights.

Each rule looks at the same InsightInput and returns at most one Insight.
Results are ordered by priority (critical first, stable within a priority)
and cut to MAX_INSIGHTS.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from .domain import CategoryShare, Insight, Priority, SalesSummary, TrendPoint

MAX_INSIGHTS = 5

STRONG_GROWTH_PCT = 10.0
LOW_AOV = 100.0
HIGH_AOV = 300.0
CONCENTRATION_PCT = 40.0
NICHE_CATEGORY_PCT = 5.0
SMALL_VOLUME = 50_000.0
LARGE_VOLUME = 500_000.0


@dataclass(frozen=True)
class InsightInput:
    summary: SalesSummary
    trend: Sequence[TrendPoint] = field(default_factory=tuple)
    categories: Sequence[CategoryShare] = field(default_factory=tuple)

    @property
    def observed(self) -> List[float]:
        """Trend values without projected points."""
        return [p.value for p in self.trend if not p.projected]


Rule = Callable[[InsightInput], Optional[Insight]]


def _money(value: float) -> str:
    if value >= 1000:
        return f"${value / 1000:.1f}K"
    return f"${value:,.0f}"


def growth_rule(data: InsightInput) -> Optional[Insight]:
    growth = data.summary.growth
    period = data.summary.growth_period
    if growth > STRONG_GROWTH_PCT:
        return Insight("📈", "Strong Growth Trend",
                       f"Your sales have increased by {growth:.1f}% ({period}), showing strong momentum.",
                       Priority.HIGH)
    if growth > 0:
        return Insight("📊", "Moderate Growth",
                       f"Sales grew {growth:.1f}% ({period}). Look for ways to accelerate this growth.",
                       Priority.MEDIUM)
    if growth < 0:
        return Insight("📉", "Declining Sales",
                       f"Your sales have decreased by {abs(growth):.1f}% ({period}). "
                       f"Review pricing, promotions and product mix.",
                       Priority.CRITICAL)
    return Insight("➖", "Flat Sales",
                   "Sales have not changed over the period. Consider new channels or promotions.",
                   Priority.LOW)


def avg_order_value_rule(data: InsightInput) -> Optional[Insight]:
    aov = data.summary.avg_order_value
    if aov <= 0:
        return None
    if aov < LOW_AOV:
        return Insight("🛒", "Low Average Order Value",
                       f"With an average order value of ${aov:.0f}, bundling and upselling "
                       f"could raise revenue per transaction.",
                       Priority.MEDIUM)
    if aov <= HIGH_AOV:
        return Insight("⚡", "Healthy Order Value",
                       f"Your average order value is ${aov:.0f}. Upselling strategies could increase it by 10-15%.",
                       Priority.LOW)
    return Insight("💎", "Premium Order Value",
                   f"Your average order value of ${aov:.0f} indicates premium purchases. "
                   f"Focus on retaining these high-value customers.",
                   Priority.LOW)


def peak_period_rule(data: InsightInput) -> Optional[Insight]:
    best = data.summary.best_month
    if not best:
        return None
    return Insight("🎯", "Peak Performance",
                   f"{best} was your best period with {_money(data.summary.best_month_sales)} in sales. "
                   f"Analyze what worked during this time.",
                   Priority.MEDIUM)


def category_concentration_rule(data: InsightInput) -> Optional[Insight]:
    if not data.categories:
        return None
    top = data.categories[0]
    if top.percentage > CONCENTRATION_PCT:
        return Insight("⚠️", "Concentration Risk",
                       f"{top.name} accounts for {top.percentage:.0f}% of total sales. "
                       f"Diversifying would reduce dependence on a single line.",
                       Priority.HIGH)
    return Insight("💡", "Healthy Diversification",
                   f"{top.name} leads with {top.percentage:.0f}% of total sales, "
                   f"and revenue is well spread across your range.",
                   Priority.LOW)


def niche_category_rule(data: InsightInput) -> Optional[Insight]:
    if len(data.categories) < 2:
        return None
    bottom = data.categories[-1]
    if bottom.percentage >= NICHE_CATEGORY_PCT:
        return None
    return Insight("🔍", "Underperforming Line",
                   f"{bottom.name} contributes only {bottom.percentage:.0f}% of sales. "
                   f"Consider promoting it or phasing it out.",
                   Priority.MEDIUM)


def recent_trend_rule(data: InsightInput) -> Optional[Insight]:
    values = data.observed
    if len(values) < 3:
        return None
    last = values[-3:]
    pairs: List[Tuple[float, float]] = list(zip(last, last[1:]))
    if all(b >= a for a, b in pairs):
        return Insight("🚀", "Positive Momentum",
                       "Your last 3 months show consistent growth. Maintain your current strategies.",
                       Priority.HIGH)
    if all(b <= a for a, b in pairs):
        return Insight("🔻", "Concerning Trend",
                       "Sales have declined for 3 consecutive months. Investigate the cause quickly.",
                       Priority.CRITICAL)
    return Insight("〰️", "Fluctuating Sales",
                   "Sales over the last 3 months have been uneven. Look for seasonal or one-off effects.",
                   Priority.MEDIUM)


def total_volume_rule(data: InsightInput) -> Optional[Insight]:
    total = data.summary.total_sales
    if total < SMALL_VOLUME:
        return Insight("🌱", "Building Momentum",
                       f"Total sales of {_money(total)} so far. Focus on customer acquisition to scale up.",
                       Priority.MEDIUM)
    if total < LARGE_VOLUME:
        return Insight("🏗️", "Solid Revenue Base",
                       f"Total sales of {_money(total)} give a solid base for expansion.",
                       Priority.LOW)
    return Insight("🏆", "High Volume Business",
                   f"Total sales of {_money(total)} put you in the high-volume tier. "
                   f"Optimize operations to protect margins.",
                   Priority.LOW)


RULES: List[Rule] = [
    growth_rule,
    avg_order_value_rule,
    peak_period_rule,
    category_concentration_rule,
    niche_category_rule,
    recent_trend_rule,
    total_volume_rule,
]


@dataclass(frozen=True)
class InsightReport:
    insights: List[Insight]
    total: int


def classify(data: InsightInput, rules: Sequence[Rule] = RULES, limit: int = MAX_INSIGHTS) -> InsightReport:
    fired = [insight for insight in (rule(data) for rule in rules) if insight is not None]
    # sorted() is stable, so rule order breaks ties
    ranked = sorted(fired, key=lambda i: i.priority.rank)
    return InsightReport(insights=ranked[:limit], total=len(fired))
