"""
tests/test_math.py

Uint128 parsing and checked arithmetic.

Run:
    pytest tests/test_math.py -v
"""

import pytest

from tokensale.core.exceptions import ArithmeticOverflowError, ValidationError
from tokensale.core.math import (
    UINT128_MAX,
    checked_add,
    checked_mul,
    format_uint128,
    parse_uint128,
)


class TestParseUint128:

    def test_decimal_string(self):
        assert parse_uint128("40959") == 40959

    def test_plain_int(self):
        assert parse_uint128(333) == 333

    def test_zero(self):
        assert parse_uint128("0") == 0

    def test_max_value_accepted(self):
        assert parse_uint128(str(UINT128_MAX)) == UINT128_MAX

    def test_above_max_rejected(self):
        with pytest.raises(ValidationError):
            parse_uint128(str(UINT128_MAX + 1))

    def test_one_digit_past_max_width_rejected(self):
        with pytest.raises(ValidationError):
            parse_uint128("1" + "0" * len(str(UINT128_MAX)))

    def test_very_long_digit_string_rejected_as_validation_error(self):
        """Rejected by length before int() can hit the interpreter's digit limit."""
        with pytest.raises(ValidationError) as exc_info:
            parse_uint128("9" * 5000, "deposit.amount")
        assert exc_info.value.details["field"] == "deposit.amount"
        assert "5000 digits" in exc_info.value.message

    @pytest.mark.parametrize("value", ["-1", -1, "1.5", 1.5, "", " 12", "0x10", "١٢"])
    def test_malformed_values_rejected(self, value):
        """Negative, fractional, padded, hex and non-ASCII digits are not Uint128."""
        with pytest.raises(ValidationError):
            parse_uint128(value)

    def test_bool_rejected(self):
        """True is an int in Python but not an amount."""
        with pytest.raises(ValidationError):
            parse_uint128(True)

    def test_none_rejected_with_field_name(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_uint128(None, "deposit.amount")
        assert exc_info.value.details["field"] == "deposit.amount"

    def test_format_is_decimal_string(self):
        assert format_uint128(UINT128_MAX) == "340282366920938463463374607431768211455"


class TestCheckedArithmetic:

    def test_mul_within_range(self):
        assert checked_mul(333, 123) == 40959

    def test_mul_by_zero(self):
        assert checked_mul(UINT128_MAX, 0) == 0

    def test_mul_exactly_max(self):
        assert checked_mul(UINT128_MAX, 1) == UINT128_MAX

    def test_mul_overflow(self):
        with pytest.raises(ArithmeticOverflowError) as exc_info:
            checked_mul(UINT128_MAX, 2)
        assert exc_info.value.details == {"lhs": UINT128_MAX, "rhs": 2}

    def test_add_within_range(self):
        assert checked_add(UINT128_MAX - 1, 1) == UINT128_MAX

    def test_add_overflow(self):
        with pytest.raises(ArithmeticOverflowError):
            checked_add(UINT128_MAX, 1)
