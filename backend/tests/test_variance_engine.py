"""
Variance & Trend Engine Tests
"""

import pytest
from decimal import Decimal

from money import quantize_currency
from variance_engine import TrendDirection, TrendPoint, VarianceStatus, analyze_trend, compute_variance


class TestVarianceAnalysis:

    def test_expense_under_budget_is_favorable(self):
        r = compute_variance(90000, 100000, True)
        assert r.status == VarianceStatus.FAVORABLE
        assert r.variance == Decimal("-10000")
        assert r.variance_percent == Decimal("-10")

    def test_revenue_under_budget_is_unfavorable(self):
        r = compute_variance(90000, 100000, False)
        assert r.status == VarianceStatus.UNFAVORABLE

    def test_on_budget_is_favorable_both_ways(self):
        assert compute_variance(100, 100, False).is_favorable
        assert compute_variance(100, 100, True).is_favorable

    def test_zero_budget(self):
        r = compute_variance(500, 0)
        assert r.variance_percent == 0
        assert r.status == VarianceStatus.FAVORABLE


class TestTrendAnalysis:

    def test_increasing(self):
        t = analyze_trend([("Jan", 100), ("Feb", 120), ("Mar", 150)])

        assert t.trend == TrendDirection.INCREASING
        assert t.change_percent == Decimal("50")
        assert quantize_currency(t.avg_value) == Decimal("123.33")
        assert t.min_value == Decimal("100")
        assert t.max_value == Decimal("150")

    def test_decreasing(self):
        t = analyze_trend([TrendPoint("Q1", Decimal("150")), TrendPoint("Q2", Decimal("100"))])
        assert t.trend == TrendDirection.DECREASING

    def test_flat_is_stable(self):
        assert analyze_trend([("a", 100), ("b", 90), ("c", 100)]).trend == TrendDirection.STABLE

    def test_zero_first_value(self):
        t = analyze_trend([("a", 0), ("b", 50)])
        assert t.change_percent == 0
        assert t.trend == TrendDirection.STABLE

    def test_empty(self):
        t = analyze_trend([])
        assert t.trend == TrendDirection.STABLE
        assert t.avg_value == 0
        assert t.min_value == 0

    def test_single_point(self):
        t = analyze_trend([{"period": "Jan", "value": 42}])
        assert t.trend == TrendDirection.STABLE
        assert t.change_percent == 0
        assert t.avg_value == Decimal("42")
        assert t.max_value == Decimal("42")
