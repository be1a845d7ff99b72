"""
Risk Scoring Engine Tests
"""

import pytest
from decimal import Decimal

from risk_scoring_engine import (
    ACTION_ITEMS, DEFAULT_ACTION_ITEMS, AlertSeverity, AlertType, action_items_for,
    assess_cash_flow_risk, assess_risk, build_ar_alerts, risk_level_from_score,
    score_risk, severity_from_score, summarize_alerts,
)


@pytest.fixture
def ar_records():
    return [
        # 60% of AR in 90+ and over its limit
        {"customer_id": "A", "customer_name": "Acme", "amount_90_plus": 60000,
         "total_ar": 100000, "credit_limit": 50000, "location_id": 1},
        # Small 90+ share, plenty of headroom
        {"customer_id": "B", "customer_name": "Beta", "amount_90_plus": 2000,
         "total_ar": 100000, "credit_limit": 200000, "location_id": 1},
        # Below the $1,000 alert floor, no limit on file
        {"customer_id": "C", "customer_name": "Gamma", "amount_90_plus": 500,
         "total_ar": 10000, "credit_limit": 0, "location_id": 1},
        # Current on payments but 10% over limit
        {"customer_id": "D", "customer_name": "Delta", "amount_90_plus": 0,
         "total_ar": 110000, "credit_limit": 100000, "location_id": 1},
    ]


class TestRiskScore:

    def test_maximum(self):
        assert score_risk(50000, 100000, 80000, 120) == 100

    def test_zero(self):
        assert score_risk(0, 0, 0, 0) == 0

    def test_components(self):
        # 30 days -> 10, 6% overdue -> 10, no limit -> 0
        assert score_risk(6000, 100000, 0, 30) == 20
        # 90 days -> 30, 30% -> 30, 100% utilization -> 15
        assert score_risk(30000, 100000, 100000, 90) == 75

    def test_zero_total_skips_percent(self):
        assert score_risk(1000, 0, 0, 60) == 20

    def test_severity_bands(self):
        assert severity_from_score(70) == AlertSeverity.CRITICAL
        assert severity_from_score(69) == AlertSeverity.WARNING
        assert severity_from_score(40) == AlertSeverity.WARNING
        assert severity_from_score(39) == AlertSeverity.INFO

    def test_risk_levels(self):
        assert risk_level_from_score(85) == "High"
        assert risk_level_from_score(55) == "Medium"
        assert risk_level_from_score(10) == "Low"

    def test_assess_risk_defaults_to_120_days(self):
        assessment = assess_risk(60000, 100000, 50000)
        assert assessment.risk_score == 100
        assert assessment.to_dict() == {"risk_score": 100, "severity": "critical", "risk_level": "High"}


class TestARAlerts:

    def test_alerts_sorted(self, ar_records):
        alerts = build_ar_alerts(ar_records)
        assert [a.id for a in alerts] == ["ar-A-1", "cl-A-1", "cl-D-1", "ar-B-1"]
        assert [a.severity for a in alerts] == [
            AlertSeverity.CRITICAL, AlertSeverity.CRITICAL, AlertSeverity.CRITICAL, AlertSeverity.WARNING,
        ]

    def test_credit_limit_score(self, ar_records):
        delta = next(a for a in build_ar_alerts(ar_records) if a.id == "cl-D-1")
        assert delta.risk_score == Decimal("70")
        assert "exceeded credit limit by 10.0%" in delta.description

    def test_descriptions(self, ar_records):
        acme = build_ar_alerts(ar_records)[0]
        assert acme.title == "High-Risk AR: Acme"
        assert acme.description == "Acme has $60,000 outstanding 90+ days. Risk Score: 100/100"
        assert acme.action_items == ACTION_ITEMS[AlertType.AR_HIGH_RISK]

    def test_severity_filter(self, ar_records):
        alerts = build_ar_alerts(ar_records, severity="warning")
        assert [a.id for a in alerts] == ["ar-B-1"]

    def test_type_filter(self, ar_records):
        alerts = build_ar_alerts(ar_records, alert_type=AlertType.AR_CREDIT_LIMIT)
        assert {a.type for a in alerts} == {AlertType.AR_CREDIT_LIMIT}
        assert len(alerts) == 2

    def test_limit(self, ar_records):
        assert len(build_ar_alerts(ar_records, limit=2)) == 2

    def test_summary(self, ar_records):
        summary = summarize_alerts(ar_records)
        assert summary == {
            "critical_count": 1,
            "warning_count": 2,
            "info_count": 0,
            "total_alerts": 3,
            "total_risk_amount": "62500",
        }

    def test_action_items_fallback(self):
        assert action_items_for("unheard_of") == DEFAULT_ACTION_ITEMS
        assert action_items_for("collection_risk")[0] == "Increase collection efforts"


class TestCashFlowRisk:

    def test_warning_shortfall(self):
        risk = assess_cash_flow_risk(150000, 200000)
        assert risk.shortfall == Decimal("50000")
        assert risk.risk_score == Decimal("25")
        assert risk.alerts[0].severity == AlertSeverity.WARNING

    def test_critical_shortfall(self):
        risk = assess_cash_flow_risk(50000)
        assert risk.risk_score == Decimal("75")
        assert risk.alerts[0].severity == AlertSeverity.CRITICAL
        assert risk.alerts[0].id == "cf-company"

    def test_no_shortfall(self):
        risk = assess_cash_flow_risk(350000)
        assert risk.shortfall == 0
        assert risk.risk_score == 0
        assert risk.alerts == []

    def test_score_capped(self):
        assert assess_cash_flow_risk(-500000, 200000).risk_score == Decimal("100")
