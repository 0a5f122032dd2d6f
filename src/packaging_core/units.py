from __future__ import annotations

import math
from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import Union

CM = float
KG = float
M3 = float

Number = Union[int, float, str, Decimal]

CM3_PER_M3 = 1_000_000
ZERO = Decimal("0")
ONE = Decimal("1")


def parse_decimal(value: str) -> Decimal:
    text = value.strip()
    if not text:
        raise ValueError("empty input")
    text = text.replace(",", ".")
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"not a number: {value!r}") from exc


def to_decimal(value: Number) -> Decimal:
    """Convert ``value`` to :class:`Decimal` without binary float noise.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")``. Strings
    accept a comma as decimal separator. NaN and infinities are kept so the
    caller decides how to treat them (see :func:`is_finite`).
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("booleans are not quantities")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isnan(value):
            return Decimal("NaN")
        if math.isinf(value):
            return Decimal("Infinity") if value > 0 else Decimal("-Infinity")
        return Decimal(repr(value))
    if isinstance(value, str):
        return parse_decimal(value)
    raise TypeError(f"unsupported quantity type: {type(value).__name__}")


def is_finite(value: Number) -> bool:
    if isinstance(value, Decimal):
        return value.is_finite()
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def floor_div(value: Decimal, divisor: Decimal) -> int:
    """Whole number of ``divisor`` contained in ``value`` (floor)."""
    if divisor <= 0:
        raise ValueError("divisor must be positive")
    return int((value / divisor).to_integral_value(rounding=ROUND_FLOOR))


def relative_close(a: Number, b: Number, rel_tol: float = 1e-3) -> bool:
    return math.isclose(float(a), float(b), rel_tol=rel_tol, abs_tol=1e-9)


def cm3_to_m3(value: float) -> M3:
    return value / CM3_PER_M3
