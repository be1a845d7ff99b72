"""
Property-Based Tests using Hypothesis
Generates arbitrary inputs and checks that the engine invariants hold.
"""

import pytest
from decimal import Decimal
from hypothesis import given, strategies as st, settings

from ar_aging import AgingSnapshot
from cash_flow_engine import CashFlowInputs, compute_cash_flow
from collection_strategy_simulator import CollectionStrategyParams, simulate_strategy
from pl_engine import compute_pl
from risk_scoring_engine import score_risk
from rolling_forecast_engine import BaseMonthlyFlows, rolling_forecast
from variance_engine import TrendDirection, analyze_trend
from working_capital_engine import compute_working_capital

pytestmark = pytest.mark.property


def money(min_value="-1000000000", max_value="1000000000"):
    return st.decimals(
        min_value=Decimal(min_value), max_value=Decimal(max_value),
        allow_nan=False, allow_infinity=False, places=2,
    )


def pct(max_value):
    return st.decimals(min_value=Decimal("0"), max_value=Decimal(max_value), allow_nan=False, places=2)


class TestCashFlowInvariants:

    @given(
        opening=money(), collections=money(), ap=money(), payroll=money(), capex=money(),
        debt_in=money(), debt_out=money(), equity=money(), wc=money(),
    )
    @settings(max_examples=200, deadline=2000)
    def test_closing_cash_identity(self, opening, collections, ap, payroll, capex, debt_in, debt_out, equity, wc):
        r = compute_cash_flow(CashFlowInputs(
            opening_cash=opening,
            ar_collections=collections,
            ap_payments=ap,
            payroll=payroll,
            capex=capex,
            debt_proceeds=debt_in,
            debt_repayment=debt_out,
            equity_proceeds=equity,
            working_capital_change=wc,
        ))
        assert r.closing_cash == opening + r.operating_cash_flow + r.investing_cash_flow + r.financing_cash_flow


class TestPLInvariants:

    @given(
        revenue=money(), cogs=money(), opex=money(), depreciation=money(),
        interest=money(), tax_rate=pct("100"),
    )
    @settings(max_examples=200, deadline=2000)
    def test_taxes_never_negative(self, revenue, cogs, opex, depreciation, interest, tax_rate):
        r = compute_pl(revenue, cogs, opex, depreciation, interest, tax_rate)
        assert r.taxes >= 0
        assert r.net_profit == r.ebt - r.taxes


class TestSimulatorInvariants:

    @given(
        buckets=st.lists(money("0", "100000000"), min_size=4, max_size=4),
        discount=pct("10"),
        intensity=pct("100"),
        bad_debt=pct("10"),
        cost=pct("500"),
    )
    @settings(max_examples=100, deadline=5000)
    def test_projected_ar_never_exceeds_baseline(self, buckets, discount, intensity, bad_debt, cost):
        aging = AgingSnapshot(*buckets)
        params = CollectionStrategyParams(
            early_payment_discount_pct=discount,
            collection_intensity=intensity,
            bad_debt_rate_pct=bad_debt,
            collection_cost_per_invoice=cost,
        )
        result = simulate_strategy(params, aging)

        assert result.projected_metrics.total_ar <= result.baseline_metrics.total_ar
        assert result.impact.collection_cost_increase >= 0
        for amount in result.projected_metrics.aging.to_mapping().values():
            assert amount >= 0


class TestWorkingCapitalInvariants:

    @given(ar=money("0"), ap=money("0"), inventory=money("0"), ca=money(), cl=money())
    @settings(max_examples=100, deadline=2000)
    def test_zero_activity_means_zero_days(self, ar, ap, inventory, ca, cl):
        r = compute_working_capital(ar, ap, inventory, 0, 0, ca, cl)
        assert r.dso == 0
        assert r.dpo == 0
        assert r.dio == 0
        assert r.net_working_capital == ca - cl


class TestTrendInvariants:

    @given(values=st.lists(money("0.01", "1000000"), min_size=2, max_size=24))
    @settings(max_examples=100, deadline=2000)
    def test_direction_follows_endpoints(self, values):
        t = analyze_trend([(str(i), v) for i, v in enumerate(values)])
        if values[-1] > values[0]:
            assert t.trend == TrendDirection.INCREASING
        elif values[-1] < values[0]:
            assert t.trend == TrendDirection.DECREASING
        else:
            assert t.trend == TrendDirection.STABLE
        assert t.min_value <= t.avg_value <= t.max_value


class TestRiskInvariants:

    @given(
        amount=money("0"), total=money("0"), limit=money("0"),
        days=st.integers(min_value=0, max_value=1000),
    )
    @settings(max_examples=200, deadline=2000)
    def test_score_bounded(self, amount, total, limit, days):
        assert 0 <= score_risk(amount, total, limit, days) <= 100


class TestForecastInvariants:

    @given(
        months=st.integers(min_value=1, max_value=24),
        growth=st.decimals(min_value=Decimal("-0.1"), max_value=Decimal("0.1"), places=3),
        opening=money(),
    )
    @settings(max_examples=50, deadline=5000)
    def test_periods_chain(self, months, growth, opening):
        base = BaseMonthlyFlows(ar_collections=100000, ap_payments=60000, payroll=20000, capex=10000)
        forecast = rolling_forecast(base, opening, growth_rate=growth, months=months)

        assert len(forecast.periods) == months
        assert forecast.periods[0].opening_cash == opening
        for prev, cur in zip(forecast.periods, forecast.periods[1:]):
            assert cur.opening_cash == prev.closing_cash
