from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from packaging_core.conversion import UnitConversionEngine
from packaging_core.hierarchy import PackagingHierarchy
from packaging_core.lifecycle import CompositionLifecycleManager
from packaging_core.picking import PickingOptimizer
from packaging_core.planner import CompositionPlanner
from packaging_core.ports import CompositionRepository
from packaging_core.stock import StockConsolidator

from .data import (
    InMemoryCompositionRepository,
    InMemoryInventoryStore,
    XmlPackagingCatalog,
    XmlPalletCatalog,
    XmlProductCatalog,
    load_stock_records,
)


@dataclass
class WarehouseServices:
    hierarchy: PackagingHierarchy
    conversion: UnitConversionEngine
    stock: StockConsolidator
    picking: PickingOptimizer
    planner: CompositionPlanner
    lifecycle: CompositionLifecycleManager
    inventory: InMemoryInventoryStore


def build_services(repository: Optional[CompositionRepository] = None) -> WarehouseServices:
    """Wire the core against the XML catalogs.

    Stock is loaded from stock.xml into an in-memory store, so movements made
    by a process are not written back to the file.
    """
    packaging = XmlPackagingCatalog()
    inventory = InMemoryInventoryStore(load_stock_records())
    planner = CompositionPlanner(XmlProductCatalog(), XmlPalletCatalog(), packaging)
    lifecycle = CompositionLifecycleManager(
        repository if repository is not None else InMemoryCompositionRepository(),
        planner,
        packaging,
        inventory,
    )
    return WarehouseServices(
        hierarchy=PackagingHierarchy(packaging),
        conversion=UnitConversionEngine(packaging),
        stock=StockConsolidator(packaging, inventory),
        picking=PickingOptimizer(packaging, inventory),
        planner=planner,
        lifecycle=lifecycle,
        inventory=inventory,
    )
