"""
Variance & Trend Engine

Actual-vs-budget variance with line-type aware favorability, and simple
first-to-last trend classification over an ordered series.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Sequence, Tuple, Union
import logging

from money import ZERO, decimal_str, percent_of, safe_divide, to_decimal

logger = logging.getLogger(__name__)

# changePercent must exceed this (in percent) to count as a move
TREND_EPSILON = Decimal("0")


class VarianceStatus(str, Enum):
    FAVORABLE = "favorable"
    UNFAVORABLE = "unfavorable"


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class VarianceResult:
    """Variance of one line item"""
    actual: Decimal
    budget: Decimal
    variance: Decimal  # actual - budget
    variance_percent: Decimal
    status: VarianceStatus

    @property
    def is_favorable(self) -> bool:
        return self.status == VarianceStatus.FAVORABLE

    def to_dict(self) -> Dict:
        return {
            "actual": decimal_str(self.actual),
            "budget": decimal_str(self.budget),
            "variance": decimal_str(self.variance),
            "variance_percent": decimal_str(self.variance_percent),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class TrendPoint:
    period: str
    value: Decimal


@dataclass(frozen=True)
class TrendAnalysis:
    trend: TrendDirection
    change_percent: Decimal
    avg_value: Decimal
    min_value: Decimal
    max_value: Decimal

    def to_dict(self) -> Dict:
        return {
            "trend": self.trend.value,
            "change_percent": decimal_str(self.change_percent),
            "avg_value": decimal_str(self.avg_value),
            "min_value": decimal_str(self.min_value),
            "max_value": decimal_str(self.max_value),
        }


SeriesItem = Union[TrendPoint, Tuple[str, Any], Dict[str, Any]]


# =============================================================================
# VARIANCE
# =============================================================================

def compute_variance(actual: Any, budget: Any, is_expense_line: bool = False) -> VarianceResult:
    """
    Compare actual to budget.

    For revenue-like lines a non-negative variance is favorable; for expense
    lines a non-positive variance is favorable (spent at or under budget).
    """
    actual = to_decimal(actual)
    budget = to_decimal(budget)
    variance = actual - budget
    variance_percent = percent_of(variance, budget)

    if is_expense_line:
        favorable = variance <= 0
    else:
        favorable = variance >= 0

    return VarianceResult(
        actual=actual,
        budget=budget,
        variance=variance,
        variance_percent=variance_percent,
        status=VarianceStatus.FAVORABLE if favorable else VarianceStatus.UNFAVORABLE,
    )


# =============================================================================
# TREND
# =============================================================================

def _coerce_point(item: SeriesItem) -> TrendPoint:
    if isinstance(item, TrendPoint):
        return item
    if isinstance(item, dict):
        return TrendPoint(period=str(item.get("period", "")), value=to_decimal(item.get("value")))
    period, value = item
    return TrendPoint(period=str(period), value=to_decimal(value))


def analyze_trend(series: Iterable[SeriesItem]) -> TrendAnalysis:
    """
    Classify an ordered (period, value) series.

    Direction comes from the first-to-last change; avg/min/max cover every point.
    """
    points: List[TrendPoint] = [_coerce_point(item) for item in series]

    if not points:
        return TrendAnalysis(TrendDirection.STABLE, ZERO, ZERO, ZERO, ZERO)

    values: Sequence[Decimal] = [p.value for p in points]

    if len(values) == 1:
        only = values[0]
        return TrendAnalysis(TrendDirection.STABLE, ZERO, only, only, only)

    first, last = values[0], values[-1]
    change_percent = percent_of(last - first, first)

    if change_percent > TREND_EPSILON:
        trend = TrendDirection.INCREASING
    elif change_percent < -TREND_EPSILON:
        trend = TrendDirection.DECREASING
    else:
        trend = TrendDirection.STABLE

    return TrendAnalysis(
        trend=trend,
        change_percent=change_percent,
        avg_value=safe_divide(sum(values, ZERO), len(values)),
        min_value=min(values),
        max_value=max(values),
    )
