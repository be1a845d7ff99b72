"""
P&L Statement Engine

Revenue -> Gross Profit -> EBITDA -> EBIT -> EBT -> Net Profit waterfall,
plus budget variance, period comparison and variance waterfall views.
Key invariant: taxes are never negative (no tax rebate on a loss).
"""

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, Dict, List
import logging

from money import HUNDRED, ZERO, decimal_str, percent_of, safe_divide, to_decimal
from variance_engine import VarianceResult, VarianceStatus, compute_variance

logger = logging.getLogger(__name__)


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class PLInputs:
    """P&L line items for one period"""
    revenue: Decimal = ZERO
    cogs: Decimal = ZERO
    operating_expenses: Decimal = ZERO
    depreciation: Decimal = ZERO
    interest_expense: Decimal = ZERO
    tax_rate: Decimal = ZERO  # percent, 0-100

    def __post_init__(self):
        for f in fields(self):
            object.__setattr__(self, f.name, to_decimal(getattr(self, f.name)))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PLInputs":
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})


@dataclass(frozen=True)
class PLResult:
    """P&L statement output"""
    revenue: Decimal
    cogs: Decimal
    gross_profit: Decimal
    gross_margin: Decimal
    operating_expenses: Decimal
    ebitda: Decimal
    ebitda_margin: Decimal
    depreciation: Decimal
    ebit: Decimal
    ebit_margin: Decimal
    interest_expense: Decimal
    ebt: Decimal
    taxes: Decimal
    net_profit: Decimal
    net_margin: Decimal

    def to_dict(self) -> Dict:
        return {f.name: decimal_str(getattr(self, f.name)) for f in fields(self)}


# =============================================================================
# STATEMENT
# =============================================================================

def _margin(value: Decimal, revenue: Decimal) -> Decimal:
    if revenue <= 0:
        return ZERO
    return percent_of(value, revenue)


def compute_pl(
    revenue: Any,
    cogs: Any,
    opex: Any,
    depreciation: Any,
    interest_expense: Any,
    tax_rate_pct: Any,
) -> PLResult:
    """
    Compute the P&L waterfall.

    Margins are value / revenue * 100 and are zero when revenue <= 0.
    """
    revenue = to_decimal(revenue)
    cogs = to_decimal(cogs)
    opex = to_decimal(opex)
    depreciation = to_decimal(depreciation)
    interest_expense = to_decimal(interest_expense)
    tax_rate = to_decimal(tax_rate_pct)

    gross_profit = revenue - cogs
    ebitda = gross_profit - opex
    ebit = ebitda - depreciation
    ebt = ebit - interest_expense
    taxes = max(ZERO, ebt * tax_rate / HUNDRED)
    if ebt < 0:
        logger.debug(f"EBT {ebt} is negative, taxes clamped to zero")
    net_profit = ebt - taxes

    return PLResult(
        revenue=revenue,
        cogs=cogs,
        gross_profit=gross_profit,
        gross_margin=_margin(gross_profit, revenue),
        operating_expenses=opex,
        ebitda=ebitda,
        ebitda_margin=_margin(ebitda, revenue),
        depreciation=depreciation,
        ebit=ebit,
        ebit_margin=_margin(ebit, revenue),
        interest_expense=interest_expense,
        ebt=ebt,
        taxes=taxes,
        net_profit=net_profit,
        net_margin=_margin(net_profit, revenue),
    )


def compute_pl_from_inputs(inputs: PLInputs) -> PLResult:
    return compute_pl(
        inputs.revenue,
        inputs.cogs,
        inputs.operating_expenses,
        inputs.depreciation,
        inputs.interest_expense,
        inputs.tax_rate,
    )


# =============================================================================
# BUDGET VARIANCE
# =============================================================================

# (line, is_expense)
VARIANCE_LINES = [
    ("revenue", False),
    ("cogs", True),
    ("gross_profit", False),
    ("operating_expenses", True),
    ("ebitda", False),
    ("ebit", False),
    ("net_profit", False),
]

MARGIN_LINES = ["gross_margin", "ebitda_margin", "net_margin"]


@dataclass(frozen=True)
class MarginVariance:
    actual: Decimal
    budget: Decimal
    variance: Decimal  # percentage points
    status: VarianceStatus

    def to_dict(self) -> Dict:
        return {
            "actual": decimal_str(self.actual),
            "budget": decimal_str(self.budget),
            "variance": decimal_str(self.variance),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class BudgetVarianceAnalysis:
    actual: PLResult
    budget: PLResult
    variances: Dict[str, VarianceResult]
    margin_variances: Dict[str, MarginVariance]
    total_favorable_variance: Decimal
    total_unfavorable_variance: Decimal

    def to_dict(self) -> Dict:
        return {
            "actual": self.actual.to_dict(),
            "budget": self.budget.to_dict(),
            "variances": {k: v.to_dict() for k, v in self.variances.items()},
            "margin_variances": {k: v.to_dict() for k, v in self.margin_variances.items()},
            "total_favorable_variance": decimal_str(self.total_favorable_variance),
            "total_unfavorable_variance": decimal_str(self.total_unfavorable_variance),
        }


def analyze_budget_variance(actual: PLInputs, budget: PLInputs) -> BudgetVarianceAnalysis:
    """
    Actual vs budget across the key P&L lines.

    COGS and operating expenses are expense lines; everything else is
    revenue-like. A margin is favorable only when it beats budget.
    """
    actual_result = compute_pl_from_inputs(actual)
    budget_result = compute_pl_from_inputs(budget)

    variances = {
        line: compute_variance(getattr(actual_result, line), getattr(budget_result, line), is_expense)
        for line, is_expense in VARIANCE_LINES
    }

    margin_variances = {}
    for line in MARGIN_LINES:
        a = getattr(actual_result, line)
        b = getattr(budget_result, line)
        margin_variances[line] = MarginVariance(
            actual=a,
            budget=b,
            variance=a - b,
            status=VarianceStatus.FAVORABLE if a > b else VarianceStatus.UNFAVORABLE,
        )

    total_favorable = sum(
        (v.variance for v in variances.values() if v.is_favorable), ZERO
    )
    total_unfavorable = sum(
        (abs(v.variance) for v in variances.values() if not v.is_favorable), ZERO
    )

    return BudgetVarianceAnalysis(
        actual=actual_result,
        budget=budget_result,
        variances=variances,
        margin_variances=margin_variances,
        total_favorable_variance=total_favorable,
        total_unfavorable_variance=total_unfavorable,
    )


# =============================================================================
# PERIOD COMPARISON
# =============================================================================

def _pct_change(current: Decimal, previous: Decimal) -> Decimal:
    return safe_divide(current - previous, abs(previous)) * HUNDRED


def compare_periods(
    current: PLInputs,
    previous: PLInputs,
    current_name: str = "Current",
    previous_name: str = "Previous",
) -> Dict[str, Any]:
    """
    Period-over-period P&L change.

    Amount lines change in percent of |previous|; margins change in points.
    """
    cur = compute_pl_from_inputs(current)
    prev = compute_pl_from_inputs(previous)

    changes: Dict[str, str] = {}
    for line in ["revenue", "cogs", "gross_profit", "operating_expenses", "ebitda", "ebit", "net_profit"]:
        changes[f"{line}_change"] = decimal_str(_pct_change(getattr(cur, line), getattr(prev, line)))
    for line in MARGIN_LINES:
        changes[f"{line}_change"] = decimal_str(getattr(cur, line) - getattr(prev, line))

    return {
        "current": {"period": current_name, **cur.to_dict()},
        "previous": {"period": previous_name, **prev.to_dict()},
        "changes": changes,
    }


# =============================================================================
# VARIANCE WATERFALL
# =============================================================================

def variance_waterfall(actual: PLInputs, budget: PLInputs) -> Dict[str, Any]:
    """
    Bridge from budget net profit to actual net profit.

    Cost variances are budget - actual so that a positive bar is always favorable.
    """
    a = compute_pl_from_inputs(actual)
    b = compute_pl_from_inputs(budget)

    revenue_variance = a.revenue - b.revenue
    cogs_variance = b.cogs - a.cogs
    opex_variance = b.operating_expenses - a.operating_expenses
    other_variance = (
        (b.depreciation - a.depreciation)
        + (b.interest_expense - a.interest_expense)
        + (b.taxes - a.taxes)
    )

    steps: List[Dict[str, Any]] = [
        {"name": "Budget Net Profit", "value": decimal_str(b.net_profit)},
        {"name": "Revenue Variance", "value": decimal_str(revenue_variance), "favorable": revenue_variance >= 0},
        {"name": "COGS Variance", "value": decimal_str(cogs_variance), "favorable": cogs_variance >= 0},
        {"name": "OpEx Variance", "value": decimal_str(opex_variance), "favorable": opex_variance >= 0},
        {"name": "Other Variance", "value": decimal_str(other_variance), "favorable": other_variance >= 0},
        {"name": "Actual Net Profit", "value": decimal_str(a.net_profit)},
    ]

    total_variance = a.net_profit - b.net_profit

    return {
        "waterfall": steps,
        "summary": {
            "budget_net_profit": decimal_str(b.net_profit),
            "actual_net_profit": decimal_str(a.net_profit),
            "total_variance": decimal_str(total_variance),
            "variance_percent": decimal_str(safe_divide(total_variance, abs(b.net_profit)) * HUNDRED),
        },
    }
