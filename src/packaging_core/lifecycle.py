"""Composition lifecycle: draft -> approved -> executed, and back via disassembly.

Assembly and disassembly are the only operations touching live stock, and
they do so through the inventory store's all-or-nothing batch calls. A failed
assembly leaves both the stock and the composition status untouched.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence

from .conversion import UnitConversionEngine
from .errors import ConflictError, InsufficientStockError, NotFoundError, ValidationError
from .hierarchy import PackagingHierarchy
from .models import (
    Composition,
    CompositionItem,
    CompositionRequest,
    CompositionStatus,
    StockMovement,
)
from .planner import CompositionPlanner, CompositionResult
from .ports import CompositionRepository, InventoryStore, PackagingCatalog
from .report import CompositionReport, build_report
from .units import ZERO, is_finite, to_decimal

logger = logging.getLogger(__name__)

ITEMS_PER_LAYER_RECORD = 10


@dataclass(frozen=True)
class AssemblyContext:
    target_location: str
    source_location: Optional[str] = None


@dataclass(frozen=True)
class TargetAllocation:
    product_id: int
    quantity: Decimal
    location_id: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_decimal(self.quantity))


@dataclass
class CompositionPage:
    items: List[Composition]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _quantity_errors(quantities: Sequence[Decimal], prefix: str) -> List[Dict[str, str]]:
    return [
        {"field": f"{prefix}[{index}].quantity", "message": "must be a finite, non-negative number"}
        for index, quantity in enumerate(quantities)
        if not is_finite(quantity) or quantity < 0
    ]


class CompositionLifecycleManager:
    def __init__(
        self,
        repository: CompositionRepository,
        planner: CompositionPlanner,
        packaging: PackagingCatalog,
        inventory: InventoryStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.repository = repository
        self.planner = planner
        self.inventory = inventory
        self.hierarchy = PackagingHierarchy(packaging)
        self.conversion = UnitConversionEngine(packaging)
        self.clock = clock
        self._stock_lock = threading.Lock()

    def _get_active(self, composition_id: int) -> Composition:
        composition = self.repository.get(composition_id)
        if composition is None or not composition.is_active:
            raise NotFoundError("Composition", composition_id)
        return composition

    def _require_status(self, composition: Composition, status: CompositionStatus, action: str) -> None:
        if composition.status != status:
            raise ConflictError(
                f"Cannot {action} composition {composition.id} in status "
                f"'{composition.status.value}', expected '{status.value}'"
            )

    def create(
        self,
        request: CompositionRequest,
        user_id: int,
        name: str,
        description: Optional[str] = None,
    ) -> Composition:
        errors = _quantity_errors([p.quantity for p in request.products], "products")
        if errors:
            raise ValidationError("Invalid composition quantities", errors)
        result = self.planner.calculate_optimal_composition(request)
        now = self.clock()
        items = [
            CompositionItem(
                product_id=product.product_id,
                quantity=product.quantity,
                packaging_type_id=product.packaging_type_id,
                layer=index // ITEMS_PER_LAYER_RECORD + 1,
                sort_order=index,
            )
            for index, product in enumerate(request.products)
        ]
        composition = Composition(
            id=None,
            name=name,
            description=description,
            pallet_id=request.pallet_id if request.pallet_id is not None else result.pallet_id,
            created_by=user_id,
            created_at=now,
            updated_at=now,
            items=items,
            result=result.to_dict(),
            constraints=request.constraints.to_dict() if request.constraints else None,
        )
        composition = self.repository.add(composition)
        logger.info(
            "Composition %s '%s' created by user %s (valid=%s)",
            composition.id,
            name,
            user_id,
            result.is_valid,
        )
        return composition

    def get(self, composition_id: int) -> Composition:
        return self._get_active(composition_id)

    def list_compositions(
        self,
        status: Optional[CompositionStatus] = None,
        created_by: Optional[int] = None,
        page: int = 1,
        limit: int = 20,
    ) -> CompositionPage:
        if page < 1 or limit < 1:
            raise ValidationError(
                "Invalid pagination",
                [{"field": "page" if page < 1 else "limit", "message": "must be >= 1"}],
            )
        found = self.repository.list_active(status=status, created_by=created_by)
        found.sort(key=lambda c: (c.created_at, c.id or 0), reverse=True)
        start = (page - 1) * limit
        return CompositionPage(found[start:start + limit], len(found), page, limit)

    def approve(self, composition_id: int, user_id: int) -> Composition:
        composition = self._get_active(composition_id)
        self._require_status(composition, CompositionStatus.DRAFT, "approve")
        now = self.clock()
        composition.status = CompositionStatus.APPROVED
        composition.approved_by = user_id
        composition.approved_at = now
        composition.updated_at = now
        self.repository.save(composition)
        logger.info("Composition %s approved by user %s", composition_id, user_id)
        return composition

    def _required_base_units(self, composition: Composition) -> Dict[int, Decimal]:
        errors = _quantity_errors([item.quantity for item in composition.active_items], "items")
        if errors:
            raise ValidationError(f"Composition {composition.id} has invalid item quantities", errors)
        required: Dict[int, Decimal] = {}
        for product_id, quantity in composition.quantity_by_product().items():
            base_unit = self.hierarchy.get_base_unit(product_id)
            required[product_id] = self.conversion.convert_to_base_units(quantity, base_unit.id)
        return required

    def assemble(self, composition_id: int, context: AssemblyContext, user_id: int) -> Composition:
        # one stock-moving transition at a time per manager
        with self._stock_lock:
            return self._assemble(composition_id, context, user_id)

    def _assemble(self, composition_id: int, context: AssemblyContext, user_id: int) -> Composition:
        composition = self._get_active(composition_id)
        self._require_status(composition, CompositionStatus.APPROVED, "assemble")

        required = self._required_base_units(composition)
        for product_id, needed in required.items():
            available = self.inventory.get_consolidated_stock(product_id)
            if available < needed:
                logger.info(
                    "Assembly of composition %s blocked: product %s needs %s, has %s",
                    composition_id,
                    product_id,
                    needed,
                    available,
                )
                raise InsufficientStockError(product_id, needed, available)

        movements = [
            StockMovement(
                product_id=product_id,
                base_units=needed,
                location_id=context.source_location,
            )
            for product_id, needed in required.items()
            if needed > 0
        ]
        self.inventory.decrement_stock(movements)

        now = self.clock()
        composition.status = CompositionStatus.EXECUTED
        composition.executed_by = user_id
        composition.executed_at = now
        composition.assembled_location = context.target_location
        composition.updated_at = now
        self.repository.save(composition)
        logger.info(
            "Composition %s assembled at %s by user %s (%d stock movements)",
            composition_id,
            context.target_location,
            user_id,
            len(movements),
        )
        return composition

    def disassemble(
        self,
        composition_id: int,
        allocations: Sequence[TargetAllocation],
        user_id: int,
    ) -> Composition:
        with self._stock_lock:
            return self._disassemble(composition_id, allocations, user_id)

    def _disassemble(
        self,
        composition_id: int,
        allocations: Sequence[TargetAllocation],
        user_id: int,
    ) -> Composition:
        composition = self._get_active(composition_id)
        self._require_status(composition, CompositionStatus.EXECUTED, "disassemble")

        composed = composition.quantity_by_product()
        requested: Dict[int, Decimal] = {}
        errors = []
        for index, allocation in enumerate(allocations):
            field = f"allocations[{index}]"
            if allocation.product_id not in composed:
                errors.append(
                    {
                        "field": f"{field}.product_id",
                        "message": f"product {allocation.product_id} is not part of the composition",
                    }
                )
                continue
            if not allocation.quantity.is_finite() or allocation.quantity <= 0:
                errors.append({"field": f"{field}.quantity", "message": "must be greater than zero"})
                continue
            requested[allocation.product_id] = (
                requested.get(allocation.product_id, ZERO) + allocation.quantity
            )
        for product_id, quantity in requested.items():
            if quantity > composed[product_id]:
                errors.append(
                    {
                        "field": "allocations",
                        "message": (
                            f"product {product_id}: {quantity} exceeds composed quantity "
                            f"{composed[product_id]}"
                        ),
                    }
                )
        if errors:
            raise ValidationError("Invalid disassembly allocations", errors)

        movements = [
            StockMovement(
                product_id=allocation.product_id,
                base_units=allocation.quantity,
                location_id=allocation.location_id,
            )
            for allocation in allocations
        ]
        self.inventory.increment_stock(movements)

        now = self.clock()
        composition.status = CompositionStatus.APPROVED
        composition.executed_by = None
        composition.executed_at = None
        composition.assembled_location = None
        composition.updated_at = now
        self.repository.save(composition)
        logger.info(
            "Composition %s disassembled by user %s into %d allocations",
            composition_id,
            user_id,
            len(allocations),
        )
        return composition

    def delete(self, composition_id: int) -> None:
        composition = self._get_active(composition_id)
        if composition.status == CompositionStatus.EXECUTED:
            raise ConflictError(
                f"Composition {composition_id} is executed; disassemble it before deleting"
            )
        composition.is_active = False
        for item in composition.items:
            item.is_active = False
        composition.updated_at = self.clock()
        self.repository.save(composition)
        logger.info("Composition %s deleted", composition_id)

    def generate_report(
        self,
        composition_id: int,
        include_metrics: bool = True,
        include_recommendations: bool = True,
    ) -> CompositionReport:
        composition = self._get_active(composition_id)
        try:
            result = CompositionResult.from_dict(composition.result)
        except ValueError as exc:
            logger.warning("Composition %s has an unusable stored result: %s", composition_id, exc)
            raise NotFoundError("Composition result", composition_id) from exc
        return build_report(
            composition,
            result,
            self.clock(),
            include_metrics=include_metrics,
            include_recommendations=include_recommendations,
            settings=self.planner.settings,
        )


__all__ = [
    "AssemblyContext",
    "TargetAllocation",
    "CompositionPage",
    "CompositionLifecycleManager",
]
