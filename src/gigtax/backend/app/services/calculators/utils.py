"""Decimal helpers shared by the calculator modules."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")

_ZAR_NOISE = re.compile(r"[R\s,]")


def to_decimal(value: Any) -> Decimal:
    """Convert ``value`` into a :class:`~decimal.Decimal` without float drift."""

    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean values are not monetary amounts")
    if isinstance(value, float):
        return Decimal(repr(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Invalid monetary amount: {value!r}") from exc
    raise TypeError(f"Unsupported amount type: {type(value).__name__}")


def round_currency(value: Decimal) -> Decimal:
    """Round monetary amounts to two decimals."""

    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_percentage(value: Decimal) -> Decimal:
    """Round percentage values (already scaled by 100) to two decimals."""

    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_percentage(rate: Decimal) -> str:
    """Return a human-readable percentage label for a fractional ``rate``."""

    percentage = rate * HUNDRED
    if percentage == percentage.to_integral_value():
        return f"{int(percentage)}%"
    return f"{percentage:.2f}%"


def format_amount(value: Decimal) -> str:
    """Render ``value`` with two decimals and comma thousands separators."""

    return f"{round_currency(value):,.2f}"


def format_zar(value: Decimal, symbol: str = "R") -> str:
    """Render a rand amount as ``R 1,234.56``."""

    return f"{symbol} {format_amount(value)}"


def format_whole_rand(value: Decimal, symbol: str = "R") -> str:
    """Render a bracket bound as ``R95,751``."""

    return f"{symbol}{value:,.0f}"


def parse_zar(text: str) -> Decimal:
    """Parse a displayed rand amount, returning zero for unparseable input."""

    cleaned = _ZAR_NOISE.sub("", text or "")
    if not cleaned:
        return ZERO
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return ZERO
    return amount if amount.is_finite() else ZERO
