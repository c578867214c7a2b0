"""
tokensale/core/math.py

Uint128 arithmetic.

Every token amount and the exchange rate are unsigned 128-bit integers.
Python integers never overflow on their own, so the bounds are enforced
here and nowhere else:

    0 <= value <= UINT128_MAX

Wire format: decimal string ("40959"). Plain ints are accepted on input.
"""

from typing import Any

from tokensale.core.exceptions import ArithmeticOverflowError, ValidationError


UINT128_MAX = (1 << 128) - 1
UINT128_DIGITS = len(str(UINT128_MAX))


def parse_uint128(value: Any, field: str = "amount") -> int:
    """
    Parse a Uint128 from its wire form.

    Accepts a non-negative int or a string of ASCII decimal digits.
    bool and float are rejected even though Python treats them as numbers.
    Raises ValidationError on anything else or on out-of-range values.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a Uint128, got bool", {"field": field})

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        if not value or not value.isascii() or not value.isdigit():
            raise ValidationError(
                f"{field} must be a decimal Uint128 string, got {value!r}",
                {"field": field},
            )
        if len(value) > UINT128_DIGITS:
            raise ValidationError(
                f"{field} out of Uint128 range: {len(value)} digits",
                {"field": field},
            )
        parsed = int(value)
    else:
        raise ValidationError(
            f"{field} must be a Uint128, got {type(value).__name__}",
            {"field": field},
        )

    if parsed < 0 or parsed > UINT128_MAX:
        raise ValidationError(
            f"{field} out of Uint128 range ({parsed.bit_length()} bits)",
            {"field": field},
        )
    return parsed


def format_uint128(value: int) -> str:
    """Render a Uint128 in its wire form."""
    return str(value)


def checked_mul(a: int, b: int) -> int:
    """a * b, or ArithmeticOverflowError if the product exceeds UINT128_MAX."""
    product = a * b
    if product > UINT128_MAX:
        raise ArithmeticOverflowError(
            "Uint128 multiplication overflow",
            {"lhs": a, "rhs": b},
        )
    return product


def checked_add(a: int, b: int) -> int:
    """a + b, or ArithmeticOverflowError if the sum exceeds UINT128_MAX."""
    total = a + b
    if total > UINT128_MAX:
        raise ArithmeticOverflowError(
            "Uint128 addition overflow",
            {"lhs": a, "rhs": b},
        )
    return total
