from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from .models import ConsolidatedStock, StockByPackaging
from .ports import InventoryStore, PackagingCatalog
from .units import ZERO, floor_div

logger = logging.getLogger(__name__)


class StockConsolidator:
    """Point-in-time stock views; nothing is cached between calls."""

    def __init__(self, catalog: PackagingCatalog, inventory: InventoryStore) -> None:
        self.catalog = catalog
        self.inventory = inventory

    def get_stock_consolidated(self, product_id: int) -> ConsolidatedStock:
        records = [r for r in self.inventory.active_records(product_id) if r.is_active]
        total = sum((r.quantity for r in records), ZERO)
        locations = {r.location_id for r in records}
        return ConsolidatedStock(
            product_id=product_id,
            total_base_units=total,
            locations_count=len(locations),
            items_count=len(records),
        )

    def get_stock_by_packaging(self, product_id: int) -> List[StockByPackaging]:
        """Stock of each active packaging type, ordered by level.

        A packaging type's scope is the records booked at that type. Records
        without a packaging type, or booked at a type that is no longer
        active, count towards the base unit.
        """
        packagings = [p for p in self.catalog.get_active_packaging_types(product_id) if p.is_active]
        active_ids = {p.id for p in packagings}
        base_unit_id: Optional[int] = next((p.id for p in packagings if p.is_base_unit), None)

        scopes: Dict[Optional[int], Decimal] = {}
        for record in self.inventory.active_records(product_id):
            if not record.is_active:
                continue
            key = record.packaging_type_id if record.packaging_type_id in active_ids else base_unit_id
            scopes[key] = scopes.get(key, ZERO) + record.quantity

        rows = []
        for packaging in sorted(packagings, key=lambda p: (p.level, p.id)):
            scope_total = scopes.get(packaging.id, ZERO)
            packages = floor_div(scope_total, packaging.base_unit_quantity)
            remaining = scope_total - packages * packaging.base_unit_quantity
            rows.append(
                StockByPackaging(
                    packaging=packaging,
                    available_packages=packages,
                    remaining_base_units=remaining,
                    total_base_units=scope_total,
                )
            )
        logger.debug("Stock by packaging for product %s: %d rows", product_id, len(rows))
        return rows


__all__ = ["StockConsolidator"]
