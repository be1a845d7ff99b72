"""
Financial Engine API Endpoints

Stateless HTTP surface over the calculation engines. Request models enforce
shape and ranges; the engines do the math; responses are plain JSON with
decimals rendered as strings.
"""

from decimal import Decimal
from typing import Optional, List, Any
from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from ar_aging import AgingSnapshot, forecast_ar_collections
from cash_flow_engine import CashFlowInputs, build_waterfall, compute_cash_flow
from collection_strategy_simulator import (
    CollectionStrategyParams, compare_strategies, get_recommendations,
    get_strategy_templates, simulate_strategy,
)
from engine_settings import get_settings
from pl_engine import PLInputs, analyze_budget_variance, compare_periods, compute_pl_from_inputs, variance_waterfall
from risk_scoring_engine import (
    AlertSeverity, AlertType, ASSUMED_DAYS_OVERDUE_90_PLUS,
    assess_cash_flow_risk, assess_risk, build_ar_alerts, summarize_alerts,
)
from rolling_forecast_engine import BaseMonthlyFlows, rolling_forecast
from stress_test_engine import BaseFlows, ScenarioAdjustment, stress_test
from variance_engine import analyze_trend, compute_variance
from working_capital_engine import (
    WorkingCapitalInputs, analyze_improvements, cash_impact_analysis,
    compare_scenarios, compute_working_capital_from_inputs, kpi_scorecard,
)

router = APIRouter(prefix="/engine", tags=["Financial Engine"])


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class WorkingCapitalRequest(BaseModel):
    ar: Decimal = Decimal("0")
    ap: Decimal = Decimal("0")
    inventory: Decimal = Decimal("0")
    revenue: Decimal = Decimal("0")
    cogs: Decimal = Decimal("0")
    current_assets: Decimal = Decimal("0")
    current_liabilities: Decimal = Decimal("0")
    days_in_period: int = Field(30, gt=0)

    def to_inputs(self) -> WorkingCapitalInputs:
        return WorkingCapitalInputs.from_dict(self.model_dump())


class NamedWorkingCapitalRequest(WorkingCapitalRequest):
    name: str


class WorkingCapitalScenariosRequest(BaseModel):
    scenarios: List[NamedWorkingCapitalRequest] = Field(default_factory=list)


class WorkingCapitalImprovementRequest(BaseModel):
    baseline: WorkingCapitalRequest
    ar_reduction_pct: Decimal = Field(Decimal("0"), ge=0, le=100)
    ap_increase_pct: Decimal = Field(Decimal("0"), ge=0)
    inventory_reduction_pct: Decimal = Field(Decimal("0"), ge=0, le=100)


class CashImpactRequest(BaseModel):
    current: WorkingCapitalRequest
    target: WorkingCapitalRequest


class CashFlowRequest(BaseModel):
    opening_cash: Decimal = Decimal("0")
    ar_collections: Decimal = Decimal("0")
    ap_payments: Decimal = Decimal("0")
    payroll: Decimal = Decimal("0")
    capex: Decimal = Decimal("0")
    debt_proceeds: Decimal = Decimal("0")
    debt_repayment: Decimal = Decimal("0")
    equity_proceeds: Decimal = Decimal("0")
    working_capital_change: Decimal = Decimal("0")

    def to_inputs(self) -> CashFlowInputs:
        return CashFlowInputs.from_dict(self.model_dump())


class PLRequest(BaseModel):
    revenue: Decimal = Decimal("0")
    cogs: Decimal = Decimal("0")
    operating_expenses: Decimal = Decimal("0")
    depreciation: Decimal = Decimal("0")
    interest_expense: Decimal = Decimal("0")
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=100)

    def to_inputs(self) -> PLInputs:
        return PLInputs.from_dict(self.model_dump())


class PLBudgetVarianceRequest(BaseModel):
    actual: PLRequest
    budget: PLRequest


class PLPeriodComparisonRequest(BaseModel):
    current: PLRequest
    previous: PLRequest
    current_name: str = "Current"
    previous_name: str = "Previous"


class VarianceRequest(BaseModel):
    actual: Decimal
    budget: Decimal
    is_expense_line: bool = False


class TrendPointRequest(BaseModel):
    period: str
    value: Decimal


class TrendRequest(BaseModel):
    series: List[TrendPointRequest] = Field(default_factory=list)


class AgingRequest(BaseModel):
    """AR aging in the {"0-30", "31-60", "61-90", "90+"} keyed form"""
    model_config = ConfigDict(populate_by_name=True)

    current: Decimal = Field(Decimal("0"), alias="0-30")
    days_31_60: Decimal = Field(Decimal("0"), alias="31-60")
    days_61_90: Decimal = Field(Decimal("0"), alias="61-90")
    days_90_plus: Decimal = Field(Decimal("0"), alias="90+")

    def to_snapshot(self) -> AgingSnapshot:
        return AgingSnapshot(
            current=self.current,
            days_31_60=self.days_31_60,
            days_61_90=self.days_61_90,
            days_90_plus=self.days_90_plus,
        )


class CollectionStrategyRequest(BaseModel):
    early_payment_discount_pct: Decimal = Field(Decimal("0"), ge=0, le=10)
    early_payment_days: Decimal = Field(Decimal("0"), ge=0, le=30)
    standard_terms_days: Decimal = Field(Decimal("30"), ge=0, le=90)
    collection_intensity: Decimal = Field(Decimal("50"), ge=0, le=100)
    bad_debt_rate_pct: Decimal = Field(Decimal("2"), ge=0, le=10)
    collection_cost_per_invoice: Decimal = Field(Decimal("0"), ge=0, le=500)

    def to_params(self) -> CollectionStrategyParams:
        return CollectionStrategyParams.from_dict(self.model_dump())


class SimulateStrategyRequest(CollectionStrategyRequest):
    current_aging: AgingRequest


class CompareStrategiesRequest(BaseModel):
    strategies: List[CollectionStrategyRequest]
    current_aging: AgingRequest


class StrategyRecommendationsRequest(BaseModel):
    current_aging: AgingRequest
    target_dso: Optional[Decimal] = None
    max_budget: Optional[Decimal] = None


class BucketRateRequest(BaseModel):
    bucket: str = Field(..., pattern=r"^(0-30|31-60|61-90|90\+)$")
    rate: Decimal = Field(..., ge=0, le=100)
    days_to_collect: Optional[Decimal] = Field(None, gt=0)


class ARForecastRequest(BaseModel):
    aging: AgingRequest
    collection_rates: List[BucketRateRequest] = Field(default_factory=list)


class RiskScoreRequest(BaseModel):
    amount_90_plus: Decimal = Field(..., ge=0)
    total_ar: Decimal = Field(..., ge=0)
    credit_limit: Decimal = Field(Decimal("0"), ge=0)
    days_overdue: int = Field(ASSUMED_DAYS_OVERDUE_90_PLUS, ge=0)


class ARRecordRequest(BaseModel):
    customer_id: Any
    customer_name: str
    amount_90_plus: Decimal = Field(..., ge=0)
    total_ar: Decimal = Field(..., ge=0)
    credit_limit: Decimal = Field(Decimal("0"), ge=0)
    location_id: Optional[Any] = None
    location_name: str = ""


class AlertsRequest(BaseModel):
    records: List[ARRecordRequest] = Field(default_factory=list)
    severity: Optional[AlertSeverity] = None
    type: Optional[AlertType] = None
    limit: int = Field(50, ge=0)


class CashFlowRiskRequest(BaseModel):
    projected_cash_flow: Decimal
    minimum_cash: Optional[Decimal] = Field(None, ge=0)
    location_id: Optional[Any] = None


class ScenarioAdjustmentRequest(BaseModel):
    name: str
    ar_collection_adjustment: Decimal = Decimal("0")
    ap_payment_adjustment: Decimal = Decimal("0")
    payroll_adjustment: Decimal = Decimal("0")
    capex_adjustment: Decimal = Decimal("0")


class StressTestRequest(BaseModel):
    base_opening_cash: Decimal
    base_ar_collections: Decimal
    base_ap_payments: Decimal
    base_payroll: Decimal
    base_capex: Decimal
    scenarios: List[ScenarioAdjustmentRequest]


class RollingForecastRequest(BaseModel):
    base_monthly_ar_collections: Decimal
    base_monthly_ap_payments: Decimal
    base_monthly_payroll: Decimal
    base_monthly_capex: Decimal
    opening_cash: Decimal
    growth_rate: Optional[Decimal] = None
    seasonality_factors: Optional[List[Optional[Decimal]]] = None
    months: int = Field(12, ge=1, le=120)
    start_month: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}$")


# =============================================================================
# WORKING CAPITAL ENDPOINTS
# =============================================================================

@router.post("/working-capital")
async def working_capital(request: WorkingCapitalRequest):
    """DSO, DPO, DIO, CCC and liquidity ratios"""
    return compute_working_capital_from_inputs(request.to_inputs()).to_dict()


@router.post("/working-capital/scorecard")
async def working_capital_scorecard(request: WorkingCapitalRequest):
    return kpi_scorecard(request.to_inputs())


@router.post("/working-capital/scenarios")
async def working_capital_scenarios(request: WorkingCapitalScenariosRequest):
    return compare_scenarios([(s.name, s.to_inputs()) for s in request.scenarios])


@router.post("/working-capital/improvements")
async def working_capital_improvements(request: WorkingCapitalImprovementRequest):
    return analyze_improvements(
        request.baseline.to_inputs(),
        request.ar_reduction_pct,
        request.ap_increase_pct,
        request.inventory_reduction_pct,
    )


@router.post("/working-capital/cash-impact")
async def working_capital_cash_impact(request: CashImpactRequest):
    return cash_impact_analysis(request.current.to_inputs(), request.target.to_inputs())


# =============================================================================
# CASH FLOW ENDPOINTS
# =============================================================================

@router.post("/cash-flow")
async def cash_flow(request: CashFlowRequest):
    return compute_cash_flow(request.to_inputs()).to_dict()


@router.post("/cash-flow/waterfall")
async def cash_flow_waterfall(request: CashFlowRequest):
    return build_waterfall(request.to_inputs())


@router.post("/stress-test")
async def run_stress_test(request: StressTestRequest):
    """Liquidity stress test across scenarios"""
    base = BaseFlows(
        opening_cash=request.base_opening_cash,
        ar_collections=request.base_ar_collections,
        ap_payments=request.base_ap_payments,
        payroll=request.base_payroll,
        capex=request.base_capex,
    )
    scenarios = [ScenarioAdjustment.from_dict(s.model_dump()) for s in request.scenarios]
    return stress_test(base, scenarios).to_dict()


@router.post("/rolling-forecast")
async def run_rolling_forecast(request: RollingForecastRequest):
    """Chained monthly cash forecast"""
    growth_rate = request.growth_rate
    if growth_rate is None:
        growth_rate = get_settings().default_growth_rate
    base = BaseMonthlyFlows(
        ar_collections=request.base_monthly_ar_collections,
        ap_payments=request.base_monthly_ap_payments,
        payroll=request.base_monthly_payroll,
        capex=request.base_monthly_capex,
    )
    forecast = rolling_forecast(
        base,
        request.opening_cash,
        growth_rate=growth_rate,
        seasonality_factors=request.seasonality_factors,
        months=request.months,
        start_month=request.start_month,
    )
    return forecast.to_dict()


# =============================================================================
# P&L AND VARIANCE ENDPOINTS
# =============================================================================

@router.post("/pl")
async def profit_and_loss(request: PLRequest):
    return compute_pl_from_inputs(request.to_inputs()).to_dict()


@router.post("/pl/budget-variance")
async def pl_budget_variance(request: PLBudgetVarianceRequest):
    return analyze_budget_variance(request.actual.to_inputs(), request.budget.to_inputs()).to_dict()


@router.post("/pl/period-comparison")
async def pl_period_comparison(request: PLPeriodComparisonRequest):
    return compare_periods(
        request.current.to_inputs(),
        request.previous.to_inputs(),
        request.current_name,
        request.previous_name,
    )


@router.post("/pl/variance-waterfall")
async def pl_variance_waterfall(request: PLBudgetVarianceRequest):
    return variance_waterfall(request.actual.to_inputs(), request.budget.to_inputs())


@router.post("/variance")
async def variance(request: VarianceRequest):
    return compute_variance(request.actual, request.budget, request.is_expense_line).to_dict()


@router.post("/trend")
async def trend(request: TrendRequest):
    return analyze_trend([(p.period, p.value) for p in request.series]).to_dict()


# =============================================================================
# COLLECTION STRATEGY ENDPOINTS
# =============================================================================

@router.post("/collection-strategy/simulate")
async def simulate_collection_strategy(request: SimulateStrategyRequest):
    """Project AR aging under one collection strategy"""
    return simulate_strategy(request.to_params(), request.current_aging.to_snapshot()).to_dict()


@router.post("/collection-strategy/compare")
async def compare_collection_strategies(request: CompareStrategiesRequest):
    results = compare_strategies(
        [s.to_params() for s in request.strategies],
        request.current_aging.to_snapshot(),
    )
    return [r.to_dict() for r in results]


@router.get("/collection-strategy/templates")
async def collection_strategy_templates():
    return {key: template.to_dict() for key, template in get_strategy_templates().items()}


@router.post("/collection-strategy/recommendations")
async def collection_strategy_recommendations(request: StrategyRecommendationsRequest):
    """Templates meeting the DSO/budget constraints, best net benefit first"""
    results = get_recommendations(
        request.current_aging.to_snapshot(),
        target_dso=request.target_dso,
        max_budget=request.max_budget,
    )
    return [r.to_dict() for r in results]


@router.post("/ar-forecast")
async def ar_forecast(request: ARForecastRequest):
    rates = [r.model_dump() for r in request.collection_rates]
    return forecast_ar_collections(request.aging.to_snapshot(), rates).to_dict()


# =============================================================================
# RISK ENDPOINTS
# =============================================================================

@router.post("/risk-score")
async def risk_score(request: RiskScoreRequest):
    return assess_risk(
        request.amount_90_plus,
        request.total_ar,
        request.credit_limit,
        request.days_overdue,
    ).to_dict()


@router.post("/alerts")
async def alerts(request: AlertsRequest):
    """AR alerts plus severity summary"""
    records = [r.model_dump() for r in request.records]
    built = build_ar_alerts(records, severity=request.severity, alert_type=request.type, limit=request.limit)
    return {
        "alerts": [a.to_dict() for a in built],
        "summary": summarize_alerts(records),
    }


@router.post("/cash-flow-risk")
async def cash_flow_risk(request: CashFlowRiskRequest):
    minimum_cash = request.minimum_cash
    if minimum_cash is None:
        minimum_cash = get_settings().minimum_cash
    return assess_cash_flow_risk(
        request.projected_cash_flow,
        minimum_cash,
        location_id=request.location_id,
    ).to_dict()
