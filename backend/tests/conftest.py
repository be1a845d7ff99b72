"""
Pytest configuration and fixtures for the financial engine test suite

Markers:
    - unit: Fast unit tests
    - property: Property-based tests (Hypothesis)
    - integration: HTTP tests through the FastAPI app
"""

import pytest
import sys
import os
from decimal import Decimal

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ar_aging import AgingSnapshot
from cash_flow_engine import CashFlowInputs
from pl_engine import PLInputs
from working_capital_engine import WorkingCapitalInputs


# ═══════════════════════════════════════════════════════════════════════════════
# PYTEST CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "property: Property-based tests (Hypothesis)")
    config.addinivalue_line("markers", "integration: HTTP tests through the FastAPI app")


# ═══════════════════════════════════════════════════════════════════════════════
# SHARED FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sample_aging():
    """Company-wide AR aging used throughout the dashboard"""
    return AgingSnapshot(
        current=Decimal("1780000"),
        days_31_60=Decimal("1140000"),
        days_61_90=Decimal("612200"),
        days_90_plus=Decimal("333500"),
    )


@pytest.fixture
def sample_cash_flow_inputs():
    return CashFlowInputs(
        opening_cash=500000,
        ar_collections=1000000,
        ap_payments=600000,
        payroll=200000,
        capex=100000,
        debt_repayment=50000,
    )


@pytest.fixture
def sample_pl_inputs():
    return PLInputs(
        revenue=1000000,
        cogs=600000,
        operating_expenses=250000,
        depreciation=50000,
        interest_expense=20000,
        tax_rate=25,
    )


@pytest.fixture
def sample_wc_inputs():
    return WorkingCapitalInputs(
        ar=500000,
        ap=300000,
        inventory=200000,
        revenue=2000000,
        cogs=1200000,
        current_assets=1500000,
        current_liabilities=800000,
    )
