import math
from decimal import Decimal

import pytest

from packaging_core.units import (
    cm3_to_m3,
    floor_div,
    is_finite,
    parse_decimal,
    relative_close,
    to_decimal,
)


def test_parse_decimal_accepts_comma():
    assert parse_decimal("12,5") == Decimal("12.5")


def test_parse_decimal_strips_whitespace():
    assert parse_decimal("  10.0 ") == Decimal("10.0")


def test_parse_decimal_rejects_empty():
    with pytest.raises(ValueError):
        parse_decimal("")


def test_parse_decimal_rejects_garbage():
    with pytest.raises(ValueError):
        parse_decimal("twelve")


def test_to_decimal_float_has_no_binary_noise():
    assert to_decimal(0.1) == Decimal("0.1")


def test_to_decimal_keeps_non_finite():
    assert to_decimal(float("nan")).is_nan()
    assert to_decimal(float("inf")) == Decimal("Infinity")
    assert not is_finite(to_decimal(float("-inf")))


def test_to_decimal_rejects_bool():
    with pytest.raises(TypeError):
        to_decimal(True)


def test_floor_div():
    assert floor_div(Decimal(250), Decimal(144)) == 1
    assert floor_div(Decimal(106), Decimal(12)) == 8
    assert floor_div(Decimal("0.5"), Decimal(1)) == 0
    with pytest.raises(ValueError):
        floor_div(Decimal(1), Decimal(0))


def test_volume_conversion_and_tolerance():
    assert math.isclose(cm3_to_m3(80 * 120 * 160), 1.536)
    assert relative_close(Decimal("1.0005"), 1)
    assert not relative_close(1.01, 1)
