"""Interfaces of the collaborators the core talks to.

Adapters in ``warehouse_app.data`` implement these; tests use the in-memory
ones. Lookups raise :class:`~packaging_core.errors.NotFoundError` unless noted.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Protocol, Sequence

from .models import (
    Composition,
    CompositionStatus,
    InventoryRecord,
    PackagingType,
    PalletSpec,
    ProductSpec,
    StockMovement,
)


class ProductCatalog(Protocol):
    def get_dimensions_and_weight(self, product_id: int) -> ProductSpec:
        ...


class PalletCatalog(Protocol):
    def get_pallet(self, pallet_id: int) -> PalletSpec:
        ...

    def get_default_available_pallet(self) -> PalletSpec:
        ...


class PackagingCatalog(Protocol):
    def get_active_packaging_types(self, product_id: int) -> List[PackagingType]:
        ...

    def get_packaging_type(self, packaging_type_id: int) -> Optional[PackagingType]:
        """Return the active packaging type or ``None`` when unknown."""
        ...

    def find_by_barcode(self, barcode: str) -> Optional[PackagingType]:
        ...


class InventoryStore(Protocol):
    def get_consolidated_stock(self, product_id: int) -> Decimal:
        ...

    def active_records(self, product_id: int) -> List[InventoryRecord]:
        ...

    def decrement_stock(self, movements: Sequence[StockMovement]) -> None:
        """Apply every movement or none of them.

        Raises :class:`~packaging_core.errors.InsufficientStockError` when any
        movement cannot be covered at the moment of the call.
        """
        ...

    def increment_stock(self, movements: Sequence[StockMovement]) -> None:
        ...


class CompositionRepository(Protocol):
    def add(self, composition: Composition) -> Composition:
        """Persist a new composition and return it with its id assigned."""
        ...

    def get(self, composition_id: int) -> Optional[Composition]:
        ...

    def save(self, composition: Composition) -> None:
        ...

    def list_active(
        self,
        status: Optional[CompositionStatus] = None,
        created_by: Optional[int] = None,
    ) -> List[Composition]:
        ...


__all__ = [
    "ProductCatalog",
    "PalletCatalog",
    "PackagingCatalog",
    "InventoryStore",
    "CompositionRepository",
]
