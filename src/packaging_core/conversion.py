"""Quantity conversion between packaging levels.

All arithmetic is :class:`~decimal.Decimal` in a local context with 28
significant digits, so results do not depend on the caller's context.
"""

from __future__ import annotations

import decimal
from decimal import Decimal

from .errors import NotFoundError, ValidationError
from .models import PackagingType
from .ports import PackagingCatalog
from .units import Number, to_decimal

PRECISION = 28


def _context() -> decimal.Context:
    return decimal.Context(prec=PRECISION)


def _quantity(value: Number, field: str) -> Decimal:
    try:
        quantity = to_decimal(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f"Invalid {field}", [{"field": field, "message": str(exc)}]
        ) from exc
    if not quantity.is_finite():
        raise ValidationError(
            f"Invalid {field}", [{"field": field, "message": "must be finite"}]
        )
    return quantity


class UnitConversionEngine:
    def __init__(self, catalog: PackagingCatalog) -> None:
        self.catalog = catalog

    def _packaging(self, packaging_type_id: int, label: str = "Packaging type") -> PackagingType:
        packaging = self.catalog.get_packaging_type(packaging_type_id)
        if packaging is None or not packaging.is_active:
            raise NotFoundError(label, packaging_type_id)
        return packaging

    def convert_to_base_units(self, quantity: Number, packaging_type_id: int) -> Decimal:
        packaging = self._packaging(packaging_type_id)
        value = _quantity(quantity, "quantity")
        return _context().multiply(value, packaging.base_unit_quantity)

    def convert_from_base_units(self, base_quantity: Number, target_packaging_id: int) -> Decimal:
        packaging = self._packaging(target_packaging_id)
        value = _quantity(base_quantity, "base_quantity")
        return _context().divide(value, packaging.base_unit_quantity)

    def calculate_conversion_factor(self, from_packaging_id: int, to_packaging_id: int) -> Decimal:
        source = self._packaging(from_packaging_id, "Source packaging")
        target = self._packaging(to_packaging_id, "Target packaging")
        return _context().divide(source.base_unit_quantity, target.base_unit_quantity)


__all__ = ["UnitConversionEngine", "PRECISION"]
