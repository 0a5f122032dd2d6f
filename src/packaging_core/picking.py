"""Largest-package-first picking plans."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List

from .errors import ValidationError
from .models import PickingPlan, PickingPlanItem, StockByPackaging
from .ports import InventoryStore, PackagingCatalog
from .stock import StockConsolidator
from .units import ZERO, Number, floor_div, to_decimal

logger = logging.getLogger(__name__)


def _requested_quantity(value: Number) -> Decimal:
    try:
        requested = to_decimal(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            "Requested quantity must be a number",
            [{"field": "requested_base_units", "message": str(exc)}],
        ) from exc
    if not requested.is_finite():
        raise ValidationError(
            "Requested quantity must be finite",
            [{"field": "requested_base_units", "message": "must be finite"}],
        )
    return requested


def optimize_picking(rows: Iterable[StockByPackaging], requested_base_units: Number) -> PickingPlan:
    """Greedy plan taking whole packages from the highest level down.

    Negative requests are returned untouched as an empty, fulfilled plan.
    """
    requested = _requested_quantity(requested_base_units)
    if requested < 0:
        logger.warning("Negative picking request %s ignored", requested)
        return PickingPlan((), ZERO, requested, True)

    ordered = sorted(rows, key=lambda row: (-row.packaging.level, row.packaging.id))
    remaining = requested
    plan: List[PickingPlanItem] = []
    for row in ordered:
        if remaining <= 0:
            break
        size = row.packaging.base_unit_quantity
        take = min(row.available_packages, floor_div(remaining, size))
        if take <= 0:
            continue
        base_units = take * size
        plan.append(PickingPlanItem(row.packaging, take, base_units))
        remaining -= base_units

    total_planned = max(requested - remaining, ZERO)
    return PickingPlan(tuple(plan), total_planned, remaining, remaining == 0)


class PickingOptimizer:
    def __init__(self, catalog: PackagingCatalog, inventory: InventoryStore) -> None:
        self.consolidator = StockConsolidator(catalog, inventory)

    def optimize_picking_by_packaging(self, product_id: int, requested_base_units: Number) -> PickingPlan:
        rows = self.consolidator.get_stock_by_packaging(product_id)
        plan = optimize_picking(rows, requested_base_units)
        logger.info(
            "Picking plan for product %s: requested=%s planned=%s remaining=%s",
            product_id,
            requested_base_units,
            plan.total_planned,
            plan.remaining,
        )
        return plan


__all__ = ["PickingOptimizer", "optimize_picking"]
