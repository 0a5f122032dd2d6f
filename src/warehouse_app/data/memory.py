"""In-process implementations of the core's ports.

Used by the command line (seeded from the XML files) and by the tests.
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import replace
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from packaging_core.errors import InsufficientStockError, ValidationError
from packaging_core.hierarchy import check_new_packaging
from packaging_core.models import (
    Composition,
    CompositionStatus,
    InventoryRecord,
    PackagingType,
    StockMovement,
)
from packaging_core.units import ZERO

logger = logging.getLogger(__name__)


class InMemoryPackagingCatalog:
    def __init__(self, packagings: Iterable[PackagingType] = ()) -> None:
        self._packagings: Dict[int, PackagingType] = {}
        for packaging in packagings:
            self._packagings[packaging.id] = packaging

    def create_packaging(self, packaging: PackagingType) -> PackagingType:
        """Add a packaging type after checking the catalog invariants."""
        check_new_packaging(self._packagings.values(), packaging)
        self._packagings[packaging.id] = packaging
        logger.info(
            "Packaging %s '%s' created for product %s",
            packaging.id,
            packaging.name,
            packaging.product_id,
        )
        return packaging

    def get_active_packaging_types(self, product_id: int) -> List[PackagingType]:
        return [
            p for p in self._packagings.values() if p.product_id == product_id and p.is_active
        ]

    def get_packaging_type(self, packaging_type_id: int) -> Optional[PackagingType]:
        packaging = self._packagings.get(packaging_type_id)
        if packaging is None or not packaging.is_active:
            return None
        return packaging

    def find_by_barcode(self, barcode: str) -> Optional[PackagingType]:
        for packaging in self._packagings.values():
            if packaging.barcode == barcode and packaging.is_active:
                return packaging
        return None


class InMemoryInventoryStore:
    """Live stock guarded by a single lock.

    Batch movements are checked and applied while holding the lock, so a
    batch either lands completely or leaves the stock untouched.
    """

    def __init__(self, records: Iterable[InventoryRecord] = ()) -> None:
        self._lock = threading.Lock()
        self._records: Dict[int, InventoryRecord] = {r.id: r for r in records}

    def _matching(self, movement: StockMovement) -> List[InventoryRecord]:
        matches = []
        for record in self._records.values():
            if not record.is_active or record.product_id != movement.product_id:
                continue
            if movement.location_id is not None and record.location_id != movement.location_id:
                continue
            if (
                movement.packaging_type_id is not None
                and record.packaging_type_id != movement.packaging_type_id
            ):
                continue
            matches.append(record)
        matches.sort(key=lambda r: r.id)
        return matches

    def get_consolidated_stock(self, product_id: int) -> Decimal:
        with self._lock:
            return sum(
                (
                    r.quantity
                    for r in self._records.values()
                    if r.is_active and r.product_id == product_id
                ),
                ZERO,
            )

    def active_records(self, product_id: int) -> List[InventoryRecord]:
        with self._lock:
            return [
                r for r in self._records.values() if r.is_active and r.product_id == product_id
            ]

    def decrement_stock(self, movements: Sequence[StockMovement]) -> None:
        with self._lock:
            pending: Dict[int, Decimal] = {}
            for movement in movements:
                if movement.base_units < 0:
                    raise ValidationError(
                        "Stock movement must not be negative",
                        [{"field": "base_units", "message": "must be >= 0"}],
                    )
                records = self._matching(movement)
                available = sum((pending.get(r.id, r.quantity) for r in records), ZERO)
                if available < movement.base_units:
                    raise InsufficientStockError(
                        movement.product_id, movement.base_units, available
                    )
                needed = movement.base_units
                for record in records:
                    if needed <= 0:
                        break
                    current = pending.get(record.id, record.quantity)
                    take = min(current, needed)
                    pending[record.id] = current - take
                    needed -= take
            for record_id, quantity in pending.items():
                self._records[record_id] = replace(self._records[record_id], quantity=quantity)
        logger.info("Stock decremented: %d movements", len(movements))

    def increment_stock(self, movements: Sequence[StockMovement]) -> None:
        with self._lock:
            for movement in movements:
                if movement.base_units < 0:
                    raise ValidationError(
                        "Stock movement must not be negative",
                        [{"field": "base_units", "message": "must be >= 0"}],
                    )
            for movement in movements:
                target = None
                for record in self._matching(movement):
                    if (
                        record.location_id == movement.location_id
                        and record.packaging_type_id == movement.packaging_type_id
                    ):
                        target = record
                        break
                if target is None:
                    record_id = max(self._records, default=0) + 1
                    self._records[record_id] = InventoryRecord(
                        id=record_id,
                        product_id=movement.product_id,
                        location_id=movement.location_id or "",
                        quantity=movement.base_units,
                        packaging_type_id=movement.packaging_type_id,
                    )
                else:
                    self._records[target.id] = replace(
                        target, quantity=target.quantity + movement.base_units
                    )
        logger.info("Stock incremented: %d movements", len(movements))


class InMemoryCompositionRepository:
    """Stores copies so callers cannot mutate persisted state in place."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: Dict[int, Composition] = {}
        self._next_id = 1

    def add(self, composition: Composition) -> Composition:
        with self._lock:
            stored = copy.deepcopy(composition)
            stored.id = self._next_id
            self._next_id += 1
            self._items[stored.id] = stored
            return copy.deepcopy(stored)

    def get(self, composition_id: int) -> Optional[Composition]:
        with self._lock:
            stored = self._items.get(composition_id)
            return copy.deepcopy(stored) if stored is not None else None

    def save(self, composition: Composition) -> None:
        with self._lock:
            if composition.id not in self._items:
                raise KeyError(composition.id)
            self._items[composition.id] = copy.deepcopy(composition)

    def list_active(
        self,
        status: Optional[CompositionStatus] = None,
        created_by: Optional[int] = None,
    ) -> List[Composition]:
        with self._lock:
            found = [
                copy.deepcopy(c)
                for c in self._items.values()
                if c.is_active
                and (status is None or c.status == status)
                and (created_by is None or c.created_by == created_by)
            ]
        return found
