"""
Fixed-point amount conversion at the contract boundary.

Every amount-valued contract argument is an integer scaled by 10^7
(a human value of 1.2345678 travels as 12345678). Conversions use
``Decimal`` end to end so no binary float rounding sneaks in.

Amounts with more than 7 fractional digits are rejected rather than
truncated: the boundary never silently drops value.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

DECIMALS = 7
SCALE = 10**DECIMALS

# Working precision for conversions. i128 has 39 digits; the default
# context (28) would round or trap on large contract values.
_PRECISION = 80

_QUANTUM = Decimal(1).scaleb(-DECIMALS)


def _as_decimal(amount: Decimal | int | float | str) -> Decimal:
    if isinstance(amount, bool):
        raise TypeError("amount must be a number, not bool")
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, int):
        value = Decimal(amount)
    elif isinstance(amount, float):
        # repr() gives the shortest string that round-trips, so 0.1 stays 0.1
        value = Decimal(repr(amount))
    elif isinstance(amount, str):
        try:
            value = Decimal(amount.strip())
        except InvalidOperation:
            raise ValueError(f"not a decimal amount: {amount!r}") from None
    else:
        raise TypeError(f"unsupported amount type: {type(amount).__name__}")

    if not value.is_finite():
        raise ValueError(f"amount must be finite, got: {amount!r}")
    return value


def to_scaled(amount: Decimal | int | float | str) -> int:
    """Convert a human amount to the contract's scaled integer.

    Args:
        amount: Human-readable amount (e.g. ``"123.4567890"``).

    Returns:
        Integer scaled by 10^7.

    Raises:
        ValueError: If the amount has more than 7 fractional digits,
            or is not a finite decimal.
        TypeError: If the amount is not a number or numeric string.
    """
    value = _as_decimal(amount)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        try:
            quantized = value.quantize(_QUANTUM)
        except InvalidOperation:
            raise ValueError(f"amount {amount!r} is too large") from None
        if value != quantized:
            raise ValueError(
                f"amount {amount!r} has more than {DECIMALS} decimal places"
            )
        return int(quantized.scaleb(DECIMALS))


def from_scaled(value: int | str) -> Decimal:
    """Convert a scaled contract integer back to a human ``Decimal``.

    Trailing zeros are dropped: ``from_scaled(1234567890)`` is
    ``Decimal("123.456789")``.
    """
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise TypeError(f"scaled value must be int, got {type(value).__name__}")
    scaled = int(value)
    with localcontext() as ctx:
        ctx.prec = max(_PRECISION, len(str(abs(scaled))))
        result = Decimal(scaled).scaleb(-DECIMALS)
        if result == result.to_integral_value():
            return result.quantize(Decimal(1))
        return result.normalize()


def format_amount(value: int, places: int = 2) -> str:
    """Render a scaled integer with a fixed number of decimals."""
    human = from_scaled(value)
    return f"{human:,.{places}f}"
