"""
Risk Scoring Engine

Customer AR risk score (0-100), severity mapping, and the alert builders for
high-risk receivables, credit limit breaches and projected cash shortfalls.

Score components:
- days overdue: up to 40 points
- share of AR in the 90+ bucket: up to 40 points
- credit limit utilization: up to 20 points
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
import logging

from engine_errors import EngineInputError
from money import HUNDRED, ZERO, decimal_str, percent_of, round_half_up, safe_divide, to_decimal

logger = logging.getLogger(__name__)

# Amounts in the 90+ bucket are scored as this many days overdue
ASSUMED_DAYS_OVERDUE_90_PLUS = 120

# Minimum 90+ balance that raises a high-risk alert
HIGH_RISK_MIN_90_PLUS = Decimal("1000")

DEFAULT_MINIMUM_CASH = Decimal("200000")
DEFAULT_ALERT_LIMIT = 50

MAX_SCORE = 100

# (threshold, points), checked top down
DAYS_OVERDUE_BANDS = [(120, 40), (90, 30), (60, 20), (30, 10)]
PERCENT_OVERDUE_BANDS = [(50, 40), (30, 30), (15, 20), (5, 10)]
UTILIZATION_BANDS = [(120, 20), (100, 15), (80, 10)]

CRITICAL_THRESHOLD = 70
WARNING_THRESHOLD = 40


class AlertSeverity(str, Enum):
    CRITICAL = "critical"  # immediate action required
    WARNING = "warning"    # monitor closely
    INFO = "info"


class AlertType(str, Enum):
    AR_HIGH_RISK = "ar_high_risk"
    AR_CREDIT_LIMIT = "ar_credit_limit"
    CASH_FLOW_SHORTFALL = "cash_flow_shortfall"
    MARGIN_DETERIORATION = "margin_deterioration"
    COLLECTION_RISK = "collection_risk"


SEVERITY_ORDER = {
    AlertSeverity.CRITICAL: 0,
    AlertSeverity.WARNING: 1,
    AlertSeverity.INFO: 2,
}

ACTION_ITEMS = {
    AlertType.AR_HIGH_RISK: [
        "Contact customer immediately for payment",
        "Review credit terms and consider payment plan",
        "Escalate to collections team",
        "Consider credit hold on future orders",
    ],
    AlertType.AR_CREDIT_LIMIT: [
        "Review customer credit limit",
        "Request updated financial statements",
        "Implement payment plan",
        "Reduce credit exposure",
    ],
    AlertType.CASH_FLOW_SHORTFALL: [
        "Accelerate AR collections",
        "Defer non-critical expenses",
        "Arrange short-term financing",
        "Review AP payment schedule",
    ],
    AlertType.MARGIN_DETERIORATION: [
        "Review pricing strategy",
        "Analyze cost structure",
        "Identify cost reduction opportunities",
        "Review product mix",
    ],
    AlertType.COLLECTION_RISK: [
        "Increase collection efforts",
        "Review collection strategy",
        "Consider early payment discounts",
        "Escalate to management",
    ],
}

DEFAULT_ACTION_ITEMS = ["Review and take appropriate action"]


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class RiskAssessment:
    risk_score: int
    severity: AlertSeverity
    risk_level: str  # High / Medium / Low

    def to_dict(self) -> Dict:
        return {
            "risk_score": self.risk_score,
            "severity": self.severity.value,
            "risk_level": self.risk_level,
        }


@dataclass(frozen=True)
class ARRiskRecord:
    """One customer's AR position at one location"""
    customer_id: Any
    customer_name: str
    amount_90_plus: Decimal
    total_ar: Decimal
    credit_limit: Decimal = ZERO
    location_id: Any = None
    location_name: str = ""

    def __post_init__(self):
        for name in ("amount_90_plus", "total_ar", "credit_limit"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ARRiskRecord":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class Alert:
    id: str
    type: AlertType
    severity: AlertSeverity
    title: str
    description: str
    amount: Decimal
    risk_score: Decimal
    action_items: List[str] = field(default_factory=list)
    location_id: Any = None
    location_name: str = ""
    customer_id: Any = None
    customer_name: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "amount": decimal_str(self.amount),
            "risk_score": decimal_str(self.risk_score),
            "action_items": list(self.action_items),
            "location_id": self.location_id,
            "location_name": self.location_name,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
        }


@dataclass(frozen=True)
class CashFlowRisk:
    projected_cash_flow: Decimal
    minimum_cash: Decimal
    shortfall: Decimal
    risk_score: Decimal
    alerts: List[Alert]

    def to_dict(self) -> Dict:
        return {
            "projected_cash_flow": decimal_str(self.projected_cash_flow),
            "minimum_cash": decimal_str(self.minimum_cash),
            "shortfall": decimal_str(self.shortfall),
            "risk_score": round_half_up(self.risk_score),
            "alerts": [a.to_dict() for a in self.alerts],
        }


# =============================================================================
# SCORING
# =============================================================================

def _band_points(value: Decimal, bands) -> int:
    for threshold, points in bands:
        if value >= threshold:
            return points
    return 0


def score_risk(amount_90_plus: Any, total_ar: Any, credit_limit: Any, days_overdue: Any) -> int:
    """
    Score a customer's AR risk, capped at 100.

    The percent-overdue component is skipped when total AR is zero and the
    utilization component when the credit limit is zero.
    """
    amount_90_plus = to_decimal(amount_90_plus)
    total_ar = to_decimal(total_ar)
    credit_limit = to_decimal(credit_limit)
    days_overdue = to_decimal(days_overdue)

    score = _band_points(days_overdue, DAYS_OVERDUE_BANDS)
    if total_ar != 0:
        score += _band_points(percent_of(amount_90_plus, total_ar), PERCENT_OVERDUE_BANDS)
    if credit_limit != 0:
        score += _band_points(percent_of(total_ar, credit_limit), UTILIZATION_BANDS)

    return min(score, MAX_SCORE)


def severity_from_score(score: Any) -> AlertSeverity:
    score = to_decimal(score)
    if score >= CRITICAL_THRESHOLD:
        return AlertSeverity.CRITICAL
    if score >= WARNING_THRESHOLD:
        return AlertSeverity.WARNING
    return AlertSeverity.INFO


def risk_level_from_score(score: Any) -> str:
    score = to_decimal(score)
    if score >= CRITICAL_THRESHOLD:
        return "High"
    if score >= WARNING_THRESHOLD:
        return "Medium"
    return "Low"


def assess_risk(
    amount_90_plus: Any,
    total_ar: Any,
    credit_limit: Any,
    days_overdue: Any = ASSUMED_DAYS_OVERDUE_90_PLUS,
) -> RiskAssessment:
    score = score_risk(amount_90_plus, total_ar, credit_limit, days_overdue)
    return RiskAssessment(
        risk_score=score,
        severity=severity_from_score(score),
        risk_level=risk_level_from_score(score),
    )


def action_items_for(alert_type: Any) -> List[str]:
    try:
        alert_type = AlertType(alert_type)
    except ValueError:
        return list(DEFAULT_ACTION_ITEMS)
    return list(ACTION_ITEMS.get(alert_type, DEFAULT_ACTION_ITEMS))


# =============================================================================
# ALERTS
# =============================================================================

def _money(value: Decimal) -> str:
    return f"${value:,.0f}"


def _high_risk_alert(record: ARRiskRecord) -> Alert:
    score = score_risk(
        record.amount_90_plus, record.total_ar, record.credit_limit, ASSUMED_DAYS_OVERDUE_90_PLUS
    )
    return Alert(
        id=f"ar-{record.customer_id}-{record.location_id}",
        type=AlertType.AR_HIGH_RISK,
        severity=severity_from_score(score),
        title=f"High-Risk AR: {record.customer_name}",
        description=(
            f"{record.customer_name} has {_money(record.amount_90_plus)} outstanding 90+ days. "
            f"Risk Score: {score}/100"
        ),
        amount=record.amount_90_plus,
        risk_score=Decimal(score),
        action_items=action_items_for(AlertType.AR_HIGH_RISK),
        location_id=record.location_id,
        location_name=record.location_name,
        customer_id=record.customer_id,
        customer_name=record.customer_name,
    )


def _credit_limit_alert(record: ARRiskRecord) -> Alert:
    exceedance = percent_of(record.total_ar - record.credit_limit, record.credit_limit)
    score = min(50 + exceedance * 2, Decimal(MAX_SCORE))
    return Alert(
        id=f"cl-{record.customer_id}-{record.location_id}",
        type=AlertType.AR_CREDIT_LIMIT,
        severity=severity_from_score(score),
        title=f"Credit Limit Exceeded: {record.customer_name}",
        description=(
            f"{record.customer_name} has exceeded credit limit by {exceedance:.1f}%. "
            f"Current AR: {_money(record.total_ar)}, Limit: {_money(record.credit_limit)}"
        ),
        amount=record.total_ar,
        risk_score=score,
        action_items=action_items_for(AlertType.AR_CREDIT_LIMIT),
        location_id=record.location_id,
        location_name=record.location_name,
        customer_id=record.customer_id,
        customer_name=record.customer_name,
    )


def _coerce_record(item: Any) -> ARRiskRecord:
    return item if isinstance(item, ARRiskRecord) else ARRiskRecord.from_dict(item)


def build_ar_alerts(
    records: Iterable[Any],
    severity: Optional[Any] = None,
    alert_type: Optional[Any] = None,
    limit: int = DEFAULT_ALERT_LIMIT,
) -> List[Alert]:
    """
    Build AR alerts from customer records.

    High-risk alerts need at least $1,000 in the 90+ bucket; credit limit
    alerts need AR above a positive limit. Alerts are ordered critical first,
    then by descending risk score, and capped to `limit`.
    """
    if limit < 0:
        raise EngineInputError(f"limit must be non-negative, got {limit}")
    severity = AlertSeverity(severity) if severity is not None else None
    alert_type = AlertType(alert_type) if alert_type is not None else None

    alerts: List[Alert] = []
    for record in (_coerce_record(item) for item in records):
        if record.amount_90_plus >= HIGH_RISK_MIN_90_PLUS:
            alerts.append(_high_risk_alert(record))
        if record.credit_limit > 0 and record.total_ar > record.credit_limit:
            alerts.append(_credit_limit_alert(record))

    if severity is not None:
        alerts = [a for a in alerts if a.severity == severity]
    if alert_type is not None:
        alerts = [a for a in alerts if a.type == alert_type]

    alerts.sort(key=lambda a: (SEVERITY_ORDER[a.severity], -a.risk_score))

    critical = sum(1 for a in alerts if a.severity == AlertSeverity.CRITICAL)
    if critical:
        logger.info(f"{critical} critical AR alerts raised")

    return alerts[:limit]


def summarize_alerts(records: Iterable[Any]) -> Dict[str, Any]:
    """Severity counts over records carrying a positive 90+ balance"""
    counts = {s: 0 for s in AlertSeverity}
    total_risk_amount = ZERO

    for record in (_coerce_record(item) for item in records):
        if record.amount_90_plus <= 0:
            continue
        total_risk_amount += record.amount_90_plus
        score = score_risk(
            record.amount_90_plus, record.total_ar, record.credit_limit, ASSUMED_DAYS_OVERDUE_90_PLUS
        )
        counts[severity_from_score(score)] += 1

    return {
        "critical_count": counts[AlertSeverity.CRITICAL],
        "warning_count": counts[AlertSeverity.WARNING],
        "info_count": counts[AlertSeverity.INFO],
        "total_alerts": sum(counts.values()),
        "total_risk_amount": decimal_str(total_risk_amount),
    }


def assess_cash_flow_risk(
    projected_cash_flow: Any,
    minimum_cash: Any = DEFAULT_MINIMUM_CASH,
    location_id: Any = None,
) -> CashFlowRisk:
    """Compare projected cash to the minimum and raise a shortfall alert"""
    projected = to_decimal(projected_cash_flow)
    minimum = to_decimal(minimum_cash)
    shortfall = max(ZERO, minimum - projected)

    risk_score = ZERO
    if shortfall > 0:
        risk_score = min(safe_divide(shortfall, minimum) * HUNDRED, Decimal(MAX_SCORE))

    alerts: List[Alert] = []
    if shortfall > 0:
        severity = AlertSeverity.CRITICAL if risk_score >= 50 else AlertSeverity.WARNING
        alerts.append(Alert(
            id=f"cf-{location_id if location_id is not None else 'company'}",
            type=AlertType.CASH_FLOW_SHORTFALL,
            severity=severity,
            title="Cash Flow Shortfall Alert",
            description=(
                f"Projected cash flow of {_money(projected)} is below minimum threshold of "
                f"{_money(minimum)}. Shortfall: {_money(shortfall)}"
            ),
            amount=shortfall,
            risk_score=risk_score,
            action_items=action_items_for(AlertType.CASH_FLOW_SHORTFALL),
            location_id=location_id,
            location_name="Company-wide" if location_id is None else "",
        ))
        logger.info(f"Cash shortfall of {shortfall} against minimum {minimum} ({severity.value})")

    return CashFlowRisk(
        projected_cash_flow=projected,
        minimum_cash=minimum,
        shortfall=shortfall,
        risk_score=risk_score,
        alerts=alerts,
    )
