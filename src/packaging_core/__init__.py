"""Packaging hierarchy, picking and pallet composition core."""

from .conversion import UnitConversionEngine
from .errors import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    PackagingCoreError,
    ValidationError,
)
from .hierarchy import HierarchyNode, PackagingHierarchy, build_hierarchy, check_new_packaging
from .lifecycle import AssemblyContext, CompositionLifecycleManager, TargetAllocation
from .models import (
    Composition,
    CompositionConstraints,
    CompositionProduct,
    CompositionRequest,
    CompositionStatus,
    InventoryRecord,
    PackagingType,
    PalletSpec,
    PickingPlan,
    ProductSpec,
    StockMovement,
)
from .picking import PickingOptimizer, optimize_picking
from .planner import CompositionPlanner, CompositionResult, ValidationResult
from .settings import load_settings
from .stock import StockConsolidator

__all__ = [
    "AssemblyContext",
    "Composition",
    "CompositionConstraints",
    "CompositionLifecycleManager",
    "CompositionPlanner",
    "CompositionProduct",
    "CompositionRequest",
    "CompositionResult",
    "CompositionStatus",
    "ConflictError",
    "HierarchyNode",
    "InsufficientStockError",
    "InventoryRecord",
    "NotFoundError",
    "PackagingCoreError",
    "PackagingHierarchy",
    "PackagingType",
    "PalletSpec",
    "PickingOptimizer",
    "PickingPlan",
    "ProductSpec",
    "StockConsolidator",
    "StockMovement",
    "TargetAllocation",
    "UnitConversionEngine",
    "ValidationError",
    "ValidationResult",
    "build_hierarchy",
    "check_new_packaging",
    "load_settings",
    "optimize_picking",
]
