"""
Working Capital Analysis Engine

DSO, DPO, DIO, Cash Conversion Cycle and liquidity ratios, with KPI scoring,
scenario comparison and cash impact views on top.
"""

from dataclasses import dataclass, fields, replace
from decimal import Decimal
from typing import Any, Dict, List, Tuple
import logging

from money import HUNDRED, ONE, ZERO, decimal_str, multiply, safe_divide, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_DAYS_IN_PERIOD = 30

# Benchmarks shown next to each KPI (days)
KPI_BENCHMARKS = {"dso": 45, "dpo": 45, "dio": 45, "ccc": 30}


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class WorkingCapitalInputs:
    """Balances and flows for one period"""
    ar: Decimal = ZERO
    ap: Decimal = ZERO
    inventory: Decimal = ZERO
    revenue: Decimal = ZERO
    cogs: Decimal = ZERO
    current_assets: Decimal = ZERO
    current_liabilities: Decimal = ZERO
    days_in_period: Decimal = Decimal(DEFAULT_DAYS_IN_PERIOD)

    def __post_init__(self):
        for f in fields(self):
            object.__setattr__(self, f.name, to_decimal(getattr(self, f.name)))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkingCapitalInputs":
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names and v is not None})


@dataclass(frozen=True)
class WorkingCapitalResult:
    dso: Decimal
    dpo: Decimal
    dio: Decimal
    ccc: Decimal
    current_ratio: Decimal
    quick_ratio: Decimal
    net_working_capital: Decimal
    working_capital_percent_of_revenue: Decimal  # fraction of revenue

    def to_dict(self) -> Dict:
        return {f.name: decimal_str(getattr(self, f.name)) for f in fields(self)}


# =============================================================================
# CORE METRICS
# =============================================================================

def _days_outstanding(balance: Decimal, base: Decimal, days: Decimal) -> Decimal:
    if base <= 0:
        return ZERO
    return multiply(safe_divide(balance, base), days)


def calculate_dso(ar: Any, revenue: Any, days_in_period: Any = DEFAULT_DAYS_IN_PERIOD) -> Decimal:
    """Days Sales Outstanding = AR / revenue * days"""
    return _days_outstanding(to_decimal(ar), to_decimal(revenue), to_decimal(days_in_period))


def compute_working_capital(
    ar: Any,
    ap: Any,
    inventory: Any,
    revenue: Any,
    cogs: Any,
    current_assets: Any,
    current_liabilities: Any,
    days_in_period: Any = DEFAULT_DAYS_IN_PERIOD,
) -> WorkingCapitalResult:
    """
    Compute working capital metrics.

    Every ratio is zero when its denominator is not positive. A negative CCC
    is a valid (favorable) result.
    """
    ar = to_decimal(ar)
    ap = to_decimal(ap)
    inventory = to_decimal(inventory)
    revenue = to_decimal(revenue)
    cogs = to_decimal(cogs)
    current_assets = to_decimal(current_assets)
    current_liabilities = to_decimal(current_liabilities)
    days = to_decimal(days_in_period)

    dso = _days_outstanding(ar, revenue, days)
    dpo = _days_outstanding(ap, cogs, days)
    dio = _days_outstanding(inventory, cogs, days)
    ccc = dso + dio - dpo

    if current_liabilities > 0:
        current_ratio = safe_divide(current_assets, current_liabilities)
        quick_ratio = safe_divide(current_assets - inventory, current_liabilities)
    else:
        current_ratio = ZERO
        quick_ratio = ZERO

    net_working_capital = current_assets - current_liabilities
    wc_of_revenue = safe_divide(net_working_capital, revenue) if revenue > 0 else ZERO

    return WorkingCapitalResult(
        dso=dso,
        dpo=dpo,
        dio=dio,
        ccc=ccc,
        current_ratio=current_ratio,
        quick_ratio=quick_ratio,
        net_working_capital=net_working_capital,
        working_capital_percent_of_revenue=wc_of_revenue,
    )


def compute_working_capital_from_inputs(inputs: WorkingCapitalInputs) -> WorkingCapitalResult:
    return compute_working_capital(
        inputs.ar,
        inputs.ap,
        inputs.inventory,
        inputs.revenue,
        inputs.cogs,
        inputs.current_assets,
        inputs.current_liabilities,
        inputs.days_in_period,
    )


# =============================================================================
# KPI SCORECARD
# =============================================================================

def _status_lower_is_better(value: Decimal, bands: Tuple[int, int, int]) -> str:
    excellent, healthy, adequate = bands
    if value <= excellent:
        return "excellent"
    if value <= healthy:
        return "healthy"
    if value <= adequate:
        return "adequate"
    return "concerning"


def dso_status(dso: Decimal) -> str:
    return _status_lower_is_better(dso, (30, 45, 60))


def dio_status(dio: Decimal) -> str:
    return _status_lower_is_better(dio, (30, 45, 60))


def ccc_status(ccc: Decimal) -> str:
    return _status_lower_is_better(ccc, (0, 30, 60))


def dpo_status(dpo: Decimal) -> str:
    # Paying later is better
    if dpo >= 60:
        return "excellent"
    if dpo >= 45:
        return "healthy"
    if dpo >= 30:
        return "adequate"
    return "concerning"


def kpi_scorecard(inputs: WorkingCapitalInputs) -> Dict[str, Any]:
    """KPI cards with health status against industry benchmarks"""
    result = compute_working_capital_from_inputs(inputs)

    cards = [
        ("Days Sales Outstanding", "dso", result.dso, dso_status(result.dso),
         "Average time to collect payment from customers"),
        ("Days Payable Outstanding", "dpo", result.dpo, dpo_status(result.dpo),
         "Average time to pay suppliers"),
        ("Days Inventory Outstanding", "dio", result.dio, dio_status(result.dio),
         "Average time inventory is held"),
        ("Cash Conversion Cycle", "ccc", result.ccc, ccc_status(result.ccc),
         "Days between paying suppliers and collecting from customers"),
    ]

    return {
        "kpis": [
            {
                "name": name,
                "metric": key.upper(),
                "value": decimal_str(value),
                "unit": "days",
                "status": status,
                "description": description,
                "benchmark": KPI_BENCHMARKS[key],
            }
            for name, key, value, status, description in cards
        ],
        "liquidity": {
            "current_ratio": decimal_str(result.current_ratio),
            "quick_ratio": decimal_str(result.quick_ratio),
            "working_capital_percent_of_revenue": decimal_str(result.working_capital_percent_of_revenue),
        },
    }


# =============================================================================
# SCENARIOS & IMPROVEMENTS
# =============================================================================

def compare_scenarios(scenarios: List[Tuple[str, WorkingCapitalInputs]]) -> Dict[str, Any]:
    """
    Compare named scenarios against the first one (the baseline).

    The best scenario is the one with the shortest cash conversion cycle.
    """
    if not scenarios:
        return {"scenarios": [], "improvements": [], "best_scenario": None}

    computed = [(name, compute_working_capital_from_inputs(inputs)) for name, inputs in scenarios]
    baseline_name, baseline = computed[0]

    improvements = [
        {
            "name": name,
            "dso_improvement": decimal_str(baseline.dso - r.dso),
            "dpo_improvement": decimal_str(r.dpo - baseline.dpo),
            "dio_improvement": decimal_str(baseline.dio - r.dio),
            "ccc_improvement": decimal_str(baseline.ccc - r.ccc),
            "current_ratio_change": decimal_str(r.current_ratio - baseline.current_ratio),
        }
        for name, r in computed[1:]
    ]

    best_name, best = computed[0]
    for name, r in computed[1:]:
        if r.ccc < best.ccc:
            best_name, best = name, r

    return {
        "scenarios": [{"name": name, **r.to_dict()} for name, r in computed],
        "improvements": improvements,
        "best_scenario": {"name": best_name, **best.to_dict()},
    }


def analyze_improvements(
    baseline: WorkingCapitalInputs,
    ar_reduction_pct: Any = 0,
    ap_increase_pct: Any = 0,
    inventory_reduction_pct: Any = 0,
) -> Dict[str, Any]:
    """
    Project metrics after reducing AR/inventory and stretching AP.

    Cash impact = daily revenue x CCC days saved.
    """
    ar_reduction_pct = to_decimal(ar_reduction_pct)
    ap_increase_pct = to_decimal(ap_increase_pct)
    inventory_reduction_pct = to_decimal(inventory_reduction_pct)

    improved_inputs = replace(
        baseline,
        ar=multiply(baseline.ar, ONE - ar_reduction_pct / HUNDRED),
        ap=multiply(baseline.ap, ONE + ap_increase_pct / HUNDRED),
        inventory=multiply(baseline.inventory, ONE - inventory_reduction_pct / HUNDRED),
    )

    before = compute_working_capital_from_inputs(baseline)
    after = compute_working_capital_from_inputs(improved_inputs)

    daily_revenue = safe_divide(baseline.revenue, baseline.days_in_period)
    ccc_improvement = before.ccc - after.ccc
    cash_impact = multiply(daily_revenue, ccc_improvement)

    initiatives = [
        {
            "initiative": "Accelerate AR Collections",
            "description": "Reduce DSO through improved collection processes",
            "impact": decimal_str(multiply(daily_revenue, ar_reduction_pct / HUNDRED, baseline.days_in_period)),
            "effort": "medium",
            "timeline": "3-6 months",
        },
        {
            "initiative": "Extend Payables",
            "description": "Negotiate longer payment terms with suppliers",
            "impact": decimal_str(multiply(daily_revenue, ap_increase_pct / HUNDRED, baseline.days_in_period)),
            "effort": "low",
            "timeline": "1-3 months",
        },
        {
            "initiative": "Optimize Inventory",
            "description": "Reduce inventory levels through better demand forecasting",
            "impact": decimal_str(multiply(baseline.inventory, inventory_reduction_pct / HUNDRED)),
            "effort": "high",
            "timeline": "6-12 months",
        },
    ]

    return {
        "baseline": before.to_dict(),
        "improved": after.to_dict(),
        "improvements": initiatives,
        "total_cash_impact": decimal_str(cash_impact),
        "ccc_improvement": decimal_str(ccc_improvement),
    }


def cash_impact_analysis(current: WorkingCapitalInputs, target: WorkingCapitalInputs) -> Dict[str, Any]:
    """Cash released by moving balances from current to target"""
    cur = compute_working_capital_from_inputs(current)
    tgt = compute_working_capital_from_inputs(target)

    ar_impact = current.ar - target.ar
    ap_impact = target.ap - current.ap
    inventory_impact = current.inventory - target.inventory

    return {
        "current": cur.to_dict(),
        "target": tgt.to_dict(),
        "cash_impact": {
            "ar_impact": decimal_str(ar_impact),
            "ap_impact": decimal_str(ap_impact),
            "inventory_impact": decimal_str(inventory_impact),
            "total_impact": decimal_str(ar_impact + ap_impact + inventory_impact),
        },
        "improvements": {
            "dso_improvement": decimal_str(cur.dso - tgt.dso),
            "dpo_improvement": decimal_str(tgt.dpo - cur.dpo),
            "dio_improvement": decimal_str(cur.dio - tgt.dio),
            "ccc_improvement": decimal_str(cur.ccc - tgt.ccc),
        },
    }
