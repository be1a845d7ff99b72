"""
Decimal Arithmetic Core Tests
"""

import pytest
from decimal import Decimal

from engine_errors import EngineInputError
from money import (
    apply_pct_change, decimal_str, multiply, percent_of, quantize_currency,
    quantize_ratio, round_half_up, safe_divide, to_decimal,
)


class TestToDecimal:
    """Input coercion"""

    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_none_is_zero(self):
        assert to_decimal(None) == Decimal("0")

    def test_int_and_str(self):
        assert to_decimal(5) == Decimal("5")
        assert to_decimal("12.50") == Decimal("12.50")

    def test_rejects_bool(self):
        with pytest.raises(EngineInputError):
            to_decimal(True)

    def test_rejects_garbage(self):
        with pytest.raises(EngineInputError):
            to_decimal("twelve")

    def test_rejects_non_finite_float(self):
        with pytest.raises(EngineInputError):
            to_decimal(float("nan"))

    def test_input_error_is_value_error(self):
        with pytest.raises(ValueError):
            to_decimal("abc")


class TestArithmetic:

    def test_safe_divide_by_zero(self):
        assert safe_divide(100, 0) == Decimal("0")

    def test_safe_divide(self):
        assert safe_divide(1, 4) == Decimal("0.25")

    def test_percent_of(self):
        assert percent_of(1, 4) == Decimal("25")
        assert percent_of(1, 0) == Decimal("0")

    def test_apply_pct_change(self):
        assert apply_pct_change(100, -20) == Decimal("80")
        assert apply_pct_change(100, 15) == Decimal("115")

    def test_multiply(self):
        assert multiply(2, "1.5", 10) == Decimal("30")


class TestRounding:

    def test_quantize_currency_half_up(self):
        assert quantize_currency("2.345") == Decimal("2.35")

    def test_quantize_ratio(self):
        assert quantize_ratio("0.123456") == Decimal("0.1235")

    def test_round_half_up(self):
        assert round_half_up(Decimal("2.5")) == 3
        assert round_half_up(Decimal("773.14")) == 773
        assert round_half_up(Decimal("0.49")) == 0


class TestDecimalStr:

    def test_integral(self):
        assert decimal_str(Decimal("550000.00")) == "550000"
        assert decimal_str(Decimal("1E+3")) == "1000"

    def test_fraction_is_normalized(self):
        assert decimal_str(Decimal("7.50")) == "7.5"

    def test_zero(self):
        assert decimal_str(Decimal("-0.000")) == "0"

    def test_integral_beyond_context_precision(self):
        assert decimal_str(Decimal("1E+30")) == "1" + "0" * 30
        assert decimal_str(Decimal("-12345678901234567890123456789012")) == "-12345678901234567890123456789012"

    def test_long_fraction_keeps_every_digit(self):
        assert decimal_str(Decimal("1234567890123456789012345678.9010")) == "1234567890123456789012345678.901"
