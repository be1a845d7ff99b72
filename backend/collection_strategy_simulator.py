"""
Collection Strategy Simulator

Projects AR aging migration under a proposed collection policy (early payment
discount, collection intensity, bad debt write-off) and weighs the DSO and
cash flow gain against the cost of running the policy.

Key invariant: for non-negative parameters the projected AR total never
exceeds the baseline total.
"""

from dataclasses import asdict, dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence
import logging

from ar_aging import AgingSnapshot, collection_rate, weighted_dso
from engine_errors import EngineInputError
from money import HUNDRED, ONE, ZERO, decimal_str, multiply, percent_of, round_half_up, safe_divide, to_decimal

logger = logging.getLogger(__name__)

AVERAGE_INVOICE_SIZE = Decimal("5000")

# Share of the 90+ collection movement that lands in 31-60 and in 61-90
RECOVERED_TO_31_60 = Decimal("0.3")
RECOVERED_TO_61_90 = Decimal("0.3")

# Adoption rate (percent) gained per discount point, and its ceiling
ADOPTION_PER_DISCOUNT_POINT = Decimal("5")
MAX_DISCOUNT_ADOPTION = Decimal("40")

# Fraction of 90+ moved at full collection intensity
MAX_COLLECTION_EFFECTIVENESS = Decimal("0.3")

DAYS_PER_YEAR = Decimal("365")

# Recommendation thresholds
STRONG_DSO_REDUCTION_DAYS = Decimal("5")
HIGH_NET_BENEFIT = Decimal("100000")
LOW_ADOPTION_RATE = Decimal("20")
HIGH_COLLECTION_INTENSITY = Decimal("70")
LONG_PAYBACK_DAYS = Decimal("180")


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class CollectionStrategyParams:
    """A collection policy. Percentages are in percent (2 = 2%)."""
    early_payment_discount_pct: Decimal = ZERO
    early_payment_days: Decimal = ZERO
    standard_terms_days: Decimal = Decimal("30")
    collection_intensity: Decimal = Decimal("50")
    bad_debt_rate_pct: Decimal = Decimal("2")
    collection_cost_per_invoice: Decimal = ZERO

    def __post_init__(self):
        for name in self.__dataclass_fields__:
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CollectionStrategyParams":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__ and v is not None})

    def to_dict(self) -> Dict:
        return {name: decimal_str(getattr(self, name)) for name in self.__dataclass_fields__}


@dataclass(frozen=True)
class BaselineMetrics:
    total_ar: Decimal
    dso: Decimal
    collection_rate: Decimal
    aging: AgingSnapshot

    def to_dict(self) -> Dict:
        return {
            "total_ar": decimal_str(self.total_ar),
            "dso": decimal_str(self.dso),
            "collection_rate": decimal_str(self.collection_rate),
            "aging": self.aging.to_dict(),
        }


@dataclass(frozen=True)
class ProjectedMetrics(BaselineMetrics):
    cash_flow_improvement: Decimal = ZERO
    collection_costs: Decimal = ZERO  # total strategy cost
    net_benefit: Decimal = ZERO

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data.update({
            "cash_flow_improvement": decimal_str(self.cash_flow_improvement),
            "collection_costs": decimal_str(self.collection_costs),
            "net_benefit": decimal_str(self.net_benefit),
        })
        return data


@dataclass(frozen=True)
class StrategyImpact:
    dso_days_reduction: Decimal
    dso_percent_reduction: Decimal
    cash_flow_improvement: Decimal
    ar_reduction: Decimal
    collection_cost_increase: Decimal
    net_cash_benefit: Decimal
    payback_period: Decimal  # days

    def to_dict(self) -> Dict:
        return {k: decimal_str(v) for k, v in asdict(self).items()}


@dataclass(frozen=True)
class SimulationResult:
    strategy: CollectionStrategyParams
    baseline_metrics: BaselineMetrics
    projected_metrics: ProjectedMetrics
    impact: StrategyImpact
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "strategy": self.strategy.to_dict(),
            "baseline_metrics": self.baseline_metrics.to_dict(),
            "projected_metrics": self.projected_metrics.to_dict(),
            "impact": self.impact.to_dict(),
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class StrategyTemplate:
    key: str
    name: str
    description: str
    strategy: CollectionStrategyParams

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "description": self.description,
            "strategy": self.strategy.to_dict(),
        }


# =============================================================================
# SIMULATION
# =============================================================================

def baseline_metrics(aging: AgingSnapshot) -> BaselineMetrics:
    return BaselineMetrics(
        total_ar=aging.total,
        dso=weighted_dso(aging),
        collection_rate=collection_rate(aging),
        aging=aging,
    )


def _project_aging(params: CollectionStrategyParams, aging: AgingSnapshot):
    """Returns (projected aging, early payment amount, bad debt amount, adoption rate)"""
    adoption_rate = min(params.early_payment_discount_pct * ADOPTION_PER_DISCOUNT_POINT, MAX_DISCOUNT_ADOPTION)
    effectiveness = params.collection_intensity / HUNDRED * MAX_COLLECTION_EFFECTIVENESS

    # Early payers leave 0-30 entirely
    early_payment = multiply(aging.current, adoption_rate) / HUNDRED
    projected_current = aging.current - early_payment

    # Intensified collection pulls 90+ forward; 40% of it is collected outright
    movement = multiply(aging.days_90_plus, effectiveness)
    projected_31_60 = aging.days_31_60 + multiply(movement, RECOVERED_TO_31_60)
    projected_61_90 = aging.days_61_90 + multiply(movement, RECOVERED_TO_61_90)
    projected_90_plus = aging.days_90_plus - movement

    bad_debt = multiply(projected_90_plus, params.bad_debt_rate_pct) / HUNDRED
    projected_90_plus -= bad_debt

    projected = AgingSnapshot(
        current=projected_current,
        days_31_60=projected_31_60,
        days_61_90=projected_61_90,
        days_90_plus=projected_90_plus,
    )
    return projected, early_payment, bad_debt, adoption_rate


def _recommendations(
    params: CollectionStrategyParams,
    adoption_rate: Decimal,
    impact: StrategyImpact,
) -> List[str]:
    recommendations: List[str] = []

    if impact.dso_days_reduction > STRONG_DSO_REDUCTION_DAYS:
        days = impact.dso_days_reduction.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        recommendations.append(f"Strong DSO improvement of {days} days - strategy is effective")

    if impact.net_cash_benefit > HIGH_NET_BENEFIT:
        thousands = (impact.net_cash_benefit / 1000).quantize(ONE, rounding=ROUND_HALF_UP)
        recommendations.append(f"Net cash benefit of ${thousands}K - highly recommended")

    if params.early_payment_discount_pct > 0 and adoption_rate < LOW_ADOPTION_RATE:
        recommendations.append("Consider increasing early payment discount to boost adoption")

    if params.collection_intensity > HIGH_COLLECTION_INTENSITY:
        recommendations.append("High collection intensity may strain customer relationships - monitor carefully")

    if impact.payback_period > LONG_PAYBACK_DAYS:
        days = impact.payback_period.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        recommendations.append(f"Long payback period ({days} days) - consider adjusting strategy")

    return recommendations


def simulate_strategy(params: CollectionStrategyParams, current_aging: AgingSnapshot) -> SimulationResult:
    """
    Simulate one collection strategy against the current aging.

    Migration order: early payments leave 0-30, then the 90+ collection
    movement is applied, then bad debt is written off the remaining 90+.
    """
    baseline = baseline_metrics(current_aging)
    projected_aging, early_payment, bad_debt, adoption_rate = _project_aging(params, current_aging)

    projected_total = projected_aging.total
    projected_dso = weighted_dso(projected_aging)

    # Costs
    total_invoices = round_half_up(safe_divide(baseline.total_ar, AVERAGE_INVOICE_SIZE))
    collection_costs = multiply(total_invoices, params.collection_cost_per_invoice)
    discount_cost = multiply(early_payment, params.early_payment_discount_pct) / HUNDRED
    total_strategy_cost = collection_costs + discount_cost + bad_debt

    # Benefit
    ar_reduction = baseline.total_ar - projected_total
    dso_reduction = baseline.dso - projected_dso
    daily_cash_flow = safe_divide(baseline.total_ar, baseline.dso)
    cash_flow_improvement = multiply(dso_reduction, daily_cash_flow)
    net_cash_benefit = cash_flow_improvement - total_strategy_cost

    if total_strategy_cost > 0 and cash_flow_improvement != 0:
        payback_period = safe_divide(total_strategy_cost, cash_flow_improvement / DAYS_PER_YEAR)
    else:
        payback_period = ZERO

    impact = StrategyImpact(
        dso_days_reduction=dso_reduction,
        dso_percent_reduction=percent_of(dso_reduction, baseline.dso),
        cash_flow_improvement=cash_flow_improvement,
        ar_reduction=ar_reduction,
        collection_cost_increase=total_strategy_cost,
        net_cash_benefit=net_cash_benefit,
        payback_period=payback_period,
    )

    projected = ProjectedMetrics(
        total_ar=projected_total,
        dso=projected_dso,
        collection_rate=collection_rate(projected_aging),
        aging=projected_aging,
        cash_flow_improvement=cash_flow_improvement,
        collection_costs=total_strategy_cost,
        net_benefit=net_cash_benefit,
    )

    logger.debug(
        f"Strategy simulated: dso {baseline.dso} -> {projected_dso}, "
        f"invoices={total_invoices}, net_benefit={net_cash_benefit}"
    )

    return SimulationResult(
        strategy=params,
        baseline_metrics=baseline,
        projected_metrics=projected,
        impact=impact,
        recommendations=_recommendations(params, adoption_rate, impact),
    )


def compare_strategies(
    params_list: Sequence[CollectionStrategyParams],
    current_aging: AgingSnapshot,
) -> List[SimulationResult]:
    """Simulate each strategy independently; results keep input order"""
    return [simulate_strategy(params, current_aging) for params in params_list]


# =============================================================================
# TEMPLATES & RECOMMENDATIONS
# =============================================================================

def get_strategy_templates() -> Dict[str, StrategyTemplate]:
    """Predefined strategies, built fresh on every call"""
    return {
        "conservative": StrategyTemplate(
            key="conservative",
            name="Conservative",
            description="Minimal changes, focus on customer relationships",
            strategy=CollectionStrategyParams(
                early_payment_discount_pct=1,
                early_payment_days=5,
                standard_terms_days=30,
                collection_intensity=30,
                bad_debt_rate_pct=1,
                collection_cost_per_invoice=0,
            ),
        ),
        "balanced": StrategyTemplate(
            key="balanced",
            name="Balanced",
            description="Moderate improvements with reasonable costs",
            strategy=CollectionStrategyParams(
                early_payment_discount_pct=2,
                early_payment_days=10,
                standard_terms_days=30,
                collection_intensity=50,
                bad_debt_rate_pct=2,
                collection_cost_per_invoice=50,
            ),
        ),
        "aggressive": StrategyTemplate(
            key="aggressive",
            name="Aggressive",
            description="Maximum cash flow improvement",
            strategy=CollectionStrategyParams(
                early_payment_discount_pct=3,
                early_payment_days=15,
                standard_terms_days=20,
                collection_intensity=80,
                bad_debt_rate_pct=3,
                collection_cost_per_invoice=150,
            ),
        ),
    }


def get_strategy_template(key: str) -> StrategyTemplate:
    templates = get_strategy_templates()
    if key not in templates:
        raise EngineInputError(f"Unknown strategy template '{key}'. Expected one of {sorted(templates)}")
    return templates[key]


def get_recommendations(
    current_aging: AgingSnapshot,
    target_dso: Optional[Any] = None,
    max_budget: Optional[Any] = None,
) -> List[SimulationResult]:
    """
    Simulate every template, keep those meeting the constraints, best first.

    target_dso caps the projected DSO; max_budget caps the total strategy cost.
    Results are ranked by net cash benefit, descending.
    """
    templates = get_strategy_templates()
    results = compare_strategies([t.strategy for t in templates.values()], current_aging)

    if target_dso is not None:
        target = to_decimal(target_dso)
        results = [r for r in results if r.projected_metrics.dso <= target]
    if max_budget is not None:
        budget = to_decimal(max_budget)
        results = [r for r in results if r.projected_metrics.collection_costs <= budget]

    ranked = sorted(results, key=lambda r: r.impact.net_cash_benefit, reverse=True)
    logger.debug(f"{len(ranked)} of {len(templates)} templates meet constraints")
    return ranked
