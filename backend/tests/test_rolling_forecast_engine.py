"""
Rolling Forecast Tests
"""

import pytest
from decimal import Decimal

from engine_errors import EngineInputError
from rolling_forecast_engine import BaseMonthlyFlows, rolling_forecast


@pytest.fixture
def base_monthly():
    return BaseMonthlyFlows(ar_collections=100000, ap_payments=60000, payroll=20000, capex=10000)


class TestRollingForecast:

    def test_two_periods_chain(self, base_monthly):
        forecast = rolling_forecast(base_monthly, 500000, growth_rate=0, seasonality_factors=[1, 1], months=2)
        first, second = forecast.periods

        assert first.closing_cash == Decimal("510000")
        assert second.opening_cash == first.closing_cash
        assert second.closing_cash == Decimal("520000")

    def test_twelve_months_with_growth(self, base_monthly):
        forecast = rolling_forecast(base_monthly, 500000)

        assert len(forecast.periods) == 12
        assert [p.month for p in forecast.periods][:3] == ["Jan", "Feb", "Mar"]
        assert forecast.periods[11].closing_cash > forecast.periods[0].closing_cash
        assert forecast.ending_cash == forecast.periods[-1].closing_cash
        assert forecast.max_cash == forecast.ending_cash
        assert forecast.min_cash == forecast.periods[0].closing_cash

    def test_growth_and_seasonality(self, base_monthly):
        forecast = rolling_forecast(base_monthly, 0, seasonality_factors=[Decimal("1.2"), Decimal("0.8")], months=2)
        jan, feb = forecast.periods

        assert jan.ar_collections == Decimal("120000")
        assert jan.capex == Decimal("12000")
        assert jan.payroll == Decimal("20000")
        assert feb.ar_collections == Decimal("81600")
        assert feb.payroll == Decimal("20400")
        assert feb.capex == Decimal("8000")

    def test_explicit_zero_factor(self, base_monthly):
        forecast = rolling_forecast(base_monthly, 0, growth_rate=0, seasonality_factors=[0], months=1)
        only = forecast.periods[0]
        assert only.ar_collections == 0
        assert only.net_cash_flow == Decimal("-20000")

    def test_missing_factor_defaults_to_one(self, base_monthly):
        forecast = rolling_forecast(base_monthly, 0, growth_rate=0, seasonality_factors=[None, 2], months=3)
        assert [p.ar_collections for p in forecast.periods] == [
            Decimal("100000"), Decimal("200000"), Decimal("100000"),
        ]

    def test_start_month_labels(self, base_monthly):
        forecast = rolling_forecast(base_monthly, 0, months=3, start_month="2024-11")
        assert [p.month for p in forecast.periods] == ["2024-11", "2024-12", "2025-01"]
        assert [p.month_number for p in forecast.periods] == [1, 2, 3]

    def test_summary(self, base_monthly):
        forecast = rolling_forecast(base_monthly, 500000, growth_rate=0, months=2)
        assert forecast.average_closing_cash == Decimal("515000")
        assert forecast.to_dict()["ending_cash"] == "520000"

    def test_rejects_non_positive_months(self, base_monthly):
        with pytest.raises(EngineInputError):
            rolling_forecast(base_monthly, 0, months=0)

    def test_rejects_bad_start_month(self, base_monthly):
        with pytest.raises(EngineInputError):
            rolling_forecast(base_monthly, 0, start_month="2024-13")

    def test_full_decline_zeroes_growth_after_first_month(self, base_monthly):
        forecast = rolling_forecast(base_monthly, 500000, growth_rate=-1, months=3)
        first, second, third = forecast.periods

        assert first.ar_collections == Decimal("100000")
        assert first.payroll == Decimal("20000")
        for period in (second, third):
            assert period.ar_collections == 0
            assert period.ap_payments == 0
            assert period.payroll == 0
            assert period.capex == Decimal("10000")

    def test_long_steep_forecast_renders(self, base_monthly):
        payload = rolling_forecast(base_monthly, 0, growth_rate=1, months=120).to_dict()

        assert len(payload["forecast"]) == 120
        assert "E" not in payload["ending_cash"]
