"""
Decimal Arithmetic Core

Fixed-precision monetary math shared by every engine.
Key invariant: division never raises; a zero denominator yields Decimal("0").
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Iterable
import math

from engine_errors import EngineInputError


ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")

CURRENCY_QUANTUM = Decimal("0.01")
RATIO_QUANTUM = Decimal("0.0001")

# Significant digits used for intermediate ratio math
PRECISION = 28


def to_decimal(value: Any) -> Decimal:
    """
    Convert a numeric input to Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1") rather than its
    binary expansion. None is treated as zero.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise EngineInputError(f"Expected a number, got boolean {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise EngineInputError(f"Expected a finite number, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise EngineInputError(f"Cannot interpret {value!r} as a number") from exc


def add(*values: Any) -> Decimal:
    total = ZERO
    for value in values:
        total += to_decimal(value)
    return total


def subtract(minuend: Any, *subtrahends: Any) -> Decimal:
    result = to_decimal(minuend)
    for value in subtrahends:
        result -= to_decimal(value)
    return result


def multiply(*values: Any) -> Decimal:
    product = ONE
    with localcontext() as ctx:
        ctx.prec = PRECISION
        for value in values:
            product *= to_decimal(value)
    return product


def safe_divide(numerator: Any, denominator: Any) -> Decimal:
    """Divide, returning zero when the denominator is zero."""
    denominator = to_decimal(denominator)
    if denominator == 0:
        return ZERO
    with localcontext() as ctx:
        ctx.prec = PRECISION
        return to_decimal(numerator) / denominator


def percent_of(part: Any, whole: Any) -> Decimal:
    """part / whole * 100, zero when whole is zero."""
    return safe_divide(part, whole) * HUNDRED


def apply_pct_change(base: Any, pct: Any) -> Decimal:
    """base * (1 + pct/100)"""
    return multiply(base, ONE + to_decimal(pct) / HUNDRED)


def decimal_sum(values: Iterable[Any]) -> Decimal:
    return add(*values)


def quantize_currency(value: Any) -> Decimal:
    return to_decimal(value).quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_ratio(value: Any) -> Decimal:
    return to_decimal(value).quantize(RATIO_QUANTUM, rounding=ROUND_HALF_UP)


def round_half_up(value: Any) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(to_decimal(value).quantize(ONE, rounding=ROUND_HALF_UP))


def decimal_str(value: Any) -> str:
    """Render a Decimal for JSON payloads (full precision, no exponent)."""
    value = to_decimal(value)
    if value == 0:
        return "0"
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
