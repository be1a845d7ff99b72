"""
Cash Flow Statement Engine

Opening cash + operating, investing and financing flows = closing cash.
Key invariant: closing_cash == opening_cash + operating + investing + financing, exactly.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from money import ZERO, add, decimal_str, subtract, to_decimal

logger = logging.getLogger(__name__)


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class CashFlowInputs:
    """Cash movements for one period"""
    opening_cash: Decimal = ZERO
    ar_collections: Decimal = ZERO
    ap_payments: Decimal = ZERO
    payroll: Decimal = ZERO
    capex: Decimal = ZERO
    debt_proceeds: Decimal = ZERO
    debt_repayment: Decimal = ZERO
    equity_proceeds: Decimal = ZERO
    working_capital_change: Decimal = ZERO

    def __post_init__(self):
        for name in self.__dataclass_fields__:
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CashFlowInputs":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

    def to_dict(self) -> Dict:
        return {name: decimal_str(getattr(self, name)) for name in self.__dataclass_fields__}


@dataclass(frozen=True)
class CashFlowResult:
    """Derived flow totals"""
    opening_cash: Decimal
    operating_cash_flow: Decimal
    investing_cash_flow: Decimal
    financing_cash_flow: Decimal
    net_cash_flow: Decimal
    closing_cash: Decimal

    def to_dict(self) -> Dict:
        return {
            "opening_cash": decimal_str(self.opening_cash),
            "operating_cash_flow": decimal_str(self.operating_cash_flow),
            "investing_cash_flow": decimal_str(self.investing_cash_flow),
            "financing_cash_flow": decimal_str(self.financing_cash_flow),
            "net_cash_flow": decimal_str(self.net_cash_flow),
            "closing_cash": decimal_str(self.closing_cash),
        }


@dataclass(frozen=True)
class WaterfallStep:
    """One bar of the cash waterfall"""
    name: str
    value: Decimal

    def to_dict(self) -> Dict:
        return {"name": self.name, "value": decimal_str(self.value)}


# =============================================================================
# CALCULATIONS
# =============================================================================

def compute_cash_flow(inputs: CashFlowInputs) -> CashFlowResult:
    """
    Compute the cash flow statement.

    Operating = collections - AP payments - payroll + working capital change
    Investing = -capex
    Financing = debt proceeds - debt repayment + equity proceeds
    """
    operating = add(
        subtract(inputs.ar_collections, inputs.ap_payments, inputs.payroll),
        inputs.working_capital_change,
    )
    investing = -inputs.capex
    financing = add(
        subtract(inputs.debt_proceeds, inputs.debt_repayment),
        inputs.equity_proceeds,
    )
    net = operating + investing + financing
    closing = inputs.opening_cash + net

    logger.debug(f"Cash flow computed: net={net} closing={closing}")

    return CashFlowResult(
        opening_cash=inputs.opening_cash,
        operating_cash_flow=operating,
        investing_cash_flow=investing,
        financing_cash_flow=financing,
        net_cash_flow=net,
        closing_cash=closing,
    )


def build_waterfall(inputs: CashFlowInputs, result: Optional[CashFlowResult] = None) -> Dict[str, Any]:
    """
    Ordered waterfall steps from opening to closing cash.

    Outflows are rendered negative. Financing steps only appear when non-zero.
    """
    result = result or compute_cash_flow(inputs)

    steps: List[WaterfallStep] = [
        WaterfallStep("Opening Cash", inputs.opening_cash),
        WaterfallStep("AR Collections", inputs.ar_collections),
        WaterfallStep("AP Payments", -inputs.ap_payments),
        WaterfallStep("Payroll", -inputs.payroll),
        WaterfallStep("CapEx", -inputs.capex),
    ]
    if inputs.working_capital_change != 0:
        steps.append(WaterfallStep("Working Capital Change", inputs.working_capital_change))
    if inputs.debt_proceeds > 0:
        steps.append(WaterfallStep("Debt Proceeds", inputs.debt_proceeds))
    if inputs.debt_repayment > 0:
        steps.append(WaterfallStep("Debt Repayment", -inputs.debt_repayment))
    if inputs.equity_proceeds > 0:
        steps.append(WaterfallStep("Equity Proceeds", inputs.equity_proceeds))
    steps.append(WaterfallStep("Closing Cash", result.closing_cash))

    return {
        "waterfall": [s.to_dict() for s in steps],
        "summary": {
            "operating_cash_flow": decimal_str(result.operating_cash_flow),
            "investing_cash_flow": decimal_str(result.investing_cash_flow),
            "financing_cash_flow": decimal_str(result.financing_cash_flow),
            "net_cash_flow": decimal_str(result.net_cash_flow),
        },
    }
