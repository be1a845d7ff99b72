"""
Rolling Cash Forecast

Chains monthly cash flow statements: each month opens with the previous
month's closing cash. Collections and payments grow with the growth rate and
follow the seasonality factors; payroll only grows; capex only follows
seasonality.

Key invariant: period[i].opening_cash == period[i-1].closing_cash.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from functools import reduce
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import logging

from dateutil.relativedelta import relativedelta

from cash_flow_engine import CashFlowInputs, compute_cash_flow
from engine_errors import EngineInputError
from money import ONE, decimal_str, multiply, safe_divide, to_decimal

logger = logging.getLogger(__name__)

MONTH_ABBREVIATIONS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

DEFAULT_GROWTH_RATE = Decimal("0.02")
DEFAULT_MONTHS = 12


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class BaseMonthlyFlows:
    ar_collections: Decimal
    ap_payments: Decimal
    payroll: Decimal
    capex: Decimal

    def __post_init__(self):
        for name in self.__dataclass_fields__:
            object.__setattr__(self, name, to_decimal(getattr(self, name)))


@dataclass(frozen=True)
class MonthDriver:
    index: int
    label: str
    growth: Decimal
    seasonality: Decimal


@dataclass(frozen=True)
class ForecastPeriod:
    month: str
    month_number: int
    opening_cash: Decimal
    ar_collections: Decimal
    ap_payments: Decimal
    payroll: Decimal
    capex: Decimal
    operating_cash_flow: Decimal
    net_cash_flow: Decimal
    closing_cash: Decimal

    def to_dict(self) -> Dict:
        return {
            "month": self.month,
            "month_number": self.month_number,
            "opening_cash": decimal_str(self.opening_cash),
            "ar_collections": decimal_str(self.ar_collections),
            "ap_payments": decimal_str(self.ap_payments),
            "payroll": decimal_str(self.payroll),
            "capex": decimal_str(self.capex),
            "operating_cash_flow": decimal_str(self.operating_cash_flow),
            "net_cash_flow": decimal_str(self.net_cash_flow),
            "closing_cash": decimal_str(self.closing_cash),
        }


@dataclass(frozen=True)
class RollingForecast:
    periods: List[ForecastPeriod]
    average_closing_cash: Decimal
    min_cash: Decimal
    max_cash: Decimal
    ending_cash: Decimal

    def to_dict(self) -> Dict:
        return {
            "forecast": [p.to_dict() for p in self.periods],
            "average_monthly_closing_cash": decimal_str(self.average_closing_cash),
            "min_cash": decimal_str(self.min_cash),
            "max_cash": decimal_str(self.max_cash),
            "ending_cash": decimal_str(self.ending_cash),
        }


# =============================================================================
# DRIVERS
# =============================================================================

def _parse_start_month(start_month: Union[str, date, None]) -> Optional[date]:
    if start_month is None:
        return None
    if isinstance(start_month, datetime):
        return start_month.date().replace(day=1)
    if isinstance(start_month, date):
        return start_month.replace(day=1)
    try:
        return datetime.strptime(str(start_month), "%Y-%m").date()
    except ValueError as exc:
        raise EngineInputError(f"start_month must be YYYY-MM, got {start_month!r}") from exc


def _seasonality(factors: Optional[Sequence[Any]], i: int) -> Decimal:
    # Missing entries default to 1.0; an explicit 0 is kept
    if factors is None or i >= len(factors) or factors[i] is None:
        return ONE
    return to_decimal(factors[i])


def month_drivers(
    months: int,
    growth_rate: Any,
    seasonality_factors: Optional[Sequence[Any]] = None,
    start_month: Union[str, date, None] = None,
) -> List[MonthDriver]:
    rate = to_decimal(growth_rate)
    start = _parse_start_month(start_month)

    drivers = []
    growth = ONE
    for i in range(months):
        if start is not None:
            label = (start + relativedelta(months=i)).strftime("%Y-%m")
        else:
            label = MONTH_ABBREVIATIONS[i % 12]
        drivers.append(MonthDriver(
            index=i,
            label=label,
            growth=growth,
            seasonality=_seasonality(seasonality_factors, i),
        ))
        growth = multiply(growth, ONE + rate)
    return drivers


# =============================================================================
# FORECAST
# =============================================================================

def _forecast_month(base: BaseMonthlyFlows, opening_cash: Decimal, driver: MonthDriver) -> ForecastPeriod:
    ar = multiply(base.ar_collections, driver.growth, driver.seasonality)
    ap = multiply(base.ap_payments, driver.growth, driver.seasonality)
    payroll = multiply(base.payroll, driver.growth)
    capex = multiply(base.capex, driver.seasonality)

    flows = compute_cash_flow(CashFlowInputs(
        opening_cash=opening_cash,
        ar_collections=ar,
        ap_payments=ap,
        payroll=payroll,
        capex=capex,
    ))

    return ForecastPeriod(
        month=driver.label,
        month_number=driver.index + 1,
        opening_cash=opening_cash,
        ar_collections=ar,
        ap_payments=ap,
        payroll=payroll,
        capex=capex,
        operating_cash_flow=flows.operating_cash_flow,
        net_cash_flow=flows.net_cash_flow,
        closing_cash=flows.closing_cash,
    )


def rolling_forecast(
    base_monthly: BaseMonthlyFlows,
    opening_cash: Any,
    growth_rate: Any = DEFAULT_GROWTH_RATE,
    seasonality_factors: Optional[Sequence[Any]] = None,
    months: int = DEFAULT_MONTHS,
    start_month: Union[str, date, None] = None,
) -> RollingForecast:
    """
    Forecast `months` consecutive months.

    Month i scales AR and AP by (1 + growth_rate)^i * seasonality[i], payroll
    by the growth term only and capex by seasonality only.
    """
    if isinstance(months, bool) or not isinstance(months, int) or months < 1:
        raise EngineInputError(f"months must be a positive integer, got {months!r}")

    drivers = month_drivers(months, growth_rate, seasonality_factors, start_month)

    def step(acc: Tuple[List[ForecastPeriod], Decimal], driver: MonthDriver):
        periods, cash = acc
        period = _forecast_month(base_monthly, cash, driver)
        return periods + [period], period.closing_cash

    periods, ending_cash = reduce(step, drivers, ([], to_decimal(opening_cash)))

    closings = [p.closing_cash for p in periods]
    forecast = RollingForecast(
        periods=periods,
        average_closing_cash=safe_divide(sum(closings), len(closings)),
        min_cash=min(closings),
        max_cash=max(closings),
        ending_cash=ending_cash,
    )
    logger.debug(f"Rolling forecast over {months} months ends at {ending_cash}")
    return forecast
