"""
Liquidity Stress Test Engine

Applies percentage shocks to a base month of cash flows, runs each shocked
month through the cash flow calculator and grades the resulting liquidity.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List
import logging

from cash_flow_engine import CashFlowInputs, compute_cash_flow
from money import ONE, ZERO, apply_pct_change, decimal_str, multiply, safe_divide, to_decimal

logger = logging.getLogger(__name__)

# Minimum cash held against payroll + AP
MINIMUM_CASH_BUFFER = Decimal("0.1")

HEALTHY_RATIO = Decimal("2")
ADEQUATE_RATIO = Decimal("1")
STRESSED_RATIO = Decimal("0.5")


class LiquidityStatus(str, Enum):
    HEALTHY = "healthy"
    ADEQUATE = "adequate"
    STRESSED = "stressed"
    CRITICAL = "critical"


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class ScenarioAdjustment:
    """Percentage shocks applied to the base flows (-20 = 20% lower)"""
    name: str
    ar_collection_adjustment: Decimal = ZERO
    ap_payment_adjustment: Decimal = ZERO
    payroll_adjustment: Decimal = ZERO
    capex_adjustment: Decimal = ZERO

    def __post_init__(self):
        for name in ("ar_collection_adjustment", "ap_payment_adjustment", "payroll_adjustment", "capex_adjustment"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScenarioAdjustment":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class BaseFlows:
    opening_cash: Decimal = ZERO
    ar_collections: Decimal = ZERO
    ap_payments: Decimal = ZERO
    payroll: Decimal = ZERO
    capex: Decimal = ZERO

    def __post_init__(self):
        for name in self.__dataclass_fields__:
            object.__setattr__(self, name, to_decimal(getattr(self, name)))


@dataclass(frozen=True)
class ScenarioResult:
    scenario: str
    ar_collections: Decimal
    ap_payments: Decimal
    payroll: Decimal
    capex: Decimal
    operating_cash_flow: Decimal
    net_cash_flow: Decimal
    closing_cash: Decimal
    minimum_cash_required: Decimal
    liquidity_ratio: Decimal
    is_liquidity_critical: bool
    status: LiquidityStatus

    def to_dict(self) -> Dict:
        return {
            "scenario": self.scenario,
            "ar_collections": decimal_str(self.ar_collections),
            "ap_payments": decimal_str(self.ap_payments),
            "payroll": decimal_str(self.payroll),
            "capex": decimal_str(self.capex),
            "operating_cash_flow": decimal_str(self.operating_cash_flow),
            "net_cash_flow": decimal_str(self.net_cash_flow),
            "closing_cash": decimal_str(self.closing_cash),
            "minimum_cash_required": decimal_str(self.minimum_cash_required),
            "liquidity_ratio": decimal_str(self.liquidity_ratio),
            "is_liquidity_critical": self.is_liquidity_critical,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class StressTestReport:
    results: List[ScenarioResult]
    baseline_opening_cash: Decimal
    recommendations: List[str]

    def to_dict(self) -> Dict:
        return {
            "stress_test_results": [r.to_dict() for r in self.results],
            "baseline_opening_cash": decimal_str(self.baseline_opening_cash),
            "recommendations": list(self.recommendations),
        }


# =============================================================================
# STRESS TEST
# =============================================================================

def liquidity_status(ratio: Decimal) -> LiquidityStatus:
    if ratio >= HEALTHY_RATIO:
        return LiquidityStatus.HEALTHY
    if ratio >= ADEQUATE_RATIO:
        return LiquidityStatus.ADEQUATE
    if ratio >= STRESSED_RATIO:
        return LiquidityStatus.STRESSED
    return LiquidityStatus.CRITICAL


def run_scenario(base: BaseFlows, scenario: ScenarioAdjustment) -> ScenarioResult:
    ar = apply_pct_change(base.ar_collections, scenario.ar_collection_adjustment)
    ap = apply_pct_change(base.ap_payments, scenario.ap_payment_adjustment)
    payroll = apply_pct_change(base.payroll, scenario.payroll_adjustment)
    capex = apply_pct_change(base.capex, scenario.capex_adjustment)

    flows = compute_cash_flow(CashFlowInputs(
        opening_cash=base.opening_cash,
        ar_collections=ar,
        ap_payments=ap,
        payroll=payroll,
        capex=capex,
    ))

    minimum = multiply(payroll + ap, MINIMUM_CASH_BUFFER)
    ratio = safe_divide(flows.closing_cash, minimum) if minimum > 0 else ZERO

    return ScenarioResult(
        scenario=scenario.name,
        ar_collections=ar,
        ap_payments=ap,
        payroll=payroll,
        capex=capex,
        operating_cash_flow=flows.operating_cash_flow,
        net_cash_flow=flows.net_cash_flow,
        closing_cash=flows.closing_cash,
        minimum_cash_required=minimum,
        liquidity_ratio=ratio,
        is_liquidity_critical=flows.closing_cash < minimum,
        status=liquidity_status(ratio),
    )


def stress_test_recommendations(results: List[ScenarioResult]) -> List[str]:
    recommendations: List[str] = []

    critical = [r.scenario for r in results if r.is_liquidity_critical]
    if critical:
        recommendations.append(
            f"Liquidity risk detected in {', '.join(critical)} scenarios. Consider securing credit facilities."
        )

    conservative = next((r for r in results if r.scenario == "conservative"), None)
    if conservative is not None and conservative.liquidity_ratio < ADEQUATE_RATIO:
        recommendations.append(
            "Conservative scenario shows inadequate liquidity. Review AR collection rates and AP payment terms."
        )

    if results and all(r.status == LiquidityStatus.HEALTHY for r in results):
        recommendations.append("Strong liquidity position across all scenarios. Good operational flexibility.")

    if not recommendations:
        recommendations.append(
            "Monitor cash flow trends and maintain current working capital management practices."
        )

    return recommendations


def stress_test(base_flows: BaseFlows, scenarios: Iterable[Any]) -> StressTestReport:
    """
    Run every scenario against the same base month.

    Each scenario starts from the base opening cash; scenarios do not chain.
    """
    results = [
        run_scenario(base_flows, s if isinstance(s, ScenarioAdjustment) else ScenarioAdjustment.from_dict(s))
        for s in scenarios
    ]

    for r in results:
        if r.is_liquidity_critical:
            logger.info(f"Scenario '{r.scenario}' closes at {r.closing_cash}, below minimum {r.minimum_cash_required}")

    return StressTestReport(
        results=results,
        baseline_opening_cash=base_flows.opening_cash,
        recommendations=stress_test_recommendations(results),
    )


# =============================================================================
# SCENARIO FACTORS
# =============================================================================

@dataclass(frozen=True)
class ScenarioFactors:
    revenue_multiplier: Decimal
    collection_rate_adjustment: Decimal  # -0.1 = 10 points lower
    expense_multiplier: Decimal
    capex_multiplier: Decimal


SCENARIO_FACTORS = {
    "base": ScenarioFactors(ONE, ZERO, ONE, ONE),
    "optimistic": ScenarioFactors(Decimal("1.15"), Decimal("0.05"), Decimal("0.95"), Decimal("0.9")),
    "conservative": ScenarioFactors(Decimal("0.85"), Decimal("-0.1"), Decimal("1.1"), Decimal("1.1")),
}


def apply_scenario_factors(base_value: Any, scenario: str) -> Decimal:
    """Scale a revenue-type value by the scenario multiplier; unknown names use base"""
    factors = SCENARIO_FACTORS.get(scenario, SCENARIO_FACTORS["base"])
    return multiply(base_value, factors.revenue_multiplier)
