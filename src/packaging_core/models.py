from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import ValidationError
from .units import CM, KG, ONE, M3, cm3_to_m3, is_finite, to_decimal


class CompositionStatus(str, Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    EXECUTED = "executed"


@dataclass(frozen=True)
class PackagingType:
    """One level of a product's packaging hierarchy.

    ``base_unit_quantity`` is the number of base units contained in one
    package of this type; the base unit itself always holds exactly one.
    """

    id: int
    product_id: int
    name: str
    level: int
    base_unit_quantity: Decimal
    is_base_unit: bool = False
    parent_packaging_id: Optional[int] = None
    barcode: Optional[str] = None
    is_active: bool = True

    def __post_init__(self) -> None:
        errors: List[Dict[str, str]] = []
        try:
            quantity = to_decimal(self.base_unit_quantity)
        except (TypeError, ValueError):
            quantity = None
        if quantity is None or not quantity.is_finite() or quantity <= 0:
            errors.append(
                {
                    "field": "base_unit_quantity",
                    "message": "must be a finite number greater than zero",
                }
            )
        else:
            object.__setattr__(self, "base_unit_quantity", quantity)
            if self.is_base_unit and quantity != ONE:
                errors.append(
                    {"field": "base_unit_quantity", "message": "base unit must hold exactly 1"}
                )
        if self.level < 0:
            errors.append({"field": "level", "message": "must be >= 0"})
        if self.barcode is not None and not self.barcode.strip():
            object.__setattr__(self, "barcode", None)
        if errors:
            raise ValidationError(f"Invalid packaging type {self.id}", errors)


@dataclass(frozen=True)
class InventoryRecord:
    """Live stock line: ``quantity`` base units of a product at a location."""

    id: int
    product_id: int
    location_id: str
    quantity: Decimal
    packaging_type_id: Optional[int] = None
    is_active: bool = True

    def __post_init__(self) -> None:
        quantity = to_decimal(self.quantity)
        if not quantity.is_finite() or quantity < 0:
            raise ValidationError(
                f"Invalid inventory record {self.id}",
                [{"field": "quantity", "message": "must be a finite number >= 0"}],
            )
        object.__setattr__(self, "quantity", quantity)


@dataclass(frozen=True)
class StockMovement:
    product_id: int
    base_units: Decimal
    packaging_type_id: Optional[int] = None
    location_id: Optional[str] = None


@dataclass(frozen=True)
class ConsolidatedStock:
    product_id: int
    total_base_units: Decimal
    locations_count: int
    items_count: int


@dataclass(frozen=True)
class StockByPackaging:
    packaging: PackagingType
    available_packages: int
    remaining_base_units: Decimal
    total_base_units: Decimal

    @property
    def packaging_id(self) -> int:
        return self.packaging.id


@dataclass(frozen=True)
class PickingPlanItem:
    packaging: PackagingType
    quantity: int
    base_units: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "packaging_id": self.packaging.id,
            "packaging_name": self.packaging.name,
            "level": self.packaging.level,
            "quantity": self.quantity,
            "base_units": str(self.base_units),
        }


@dataclass(frozen=True)
class PickingPlan:
    picking_plan: Tuple[PickingPlanItem, ...]
    total_planned: Decimal
    remaining: Decimal
    can_fulfill: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "picking_plan": [item.to_dict() for item in self.picking_plan],
            "total_planned": str(self.total_planned),
            "remaining": str(self.remaining),
            "can_fulfill": self.can_fulfill,
        }


@dataclass(frozen=True)
class ProductSpec:
    """Physical data of one base unit of a product."""

    id: int
    weight: KG
    width: CM
    length: CM
    height: CM
    name: str = ""
    sku: str = ""

    @property
    def footprint(self) -> float:
        return self.width * self.length

    @property
    def unit_volume(self) -> M3:
        return cm3_to_m3(self.width * self.length * self.height)

    def fits_footprint(self, width: CM, length: CM) -> bool:
        if self.width <= 0 or self.length <= 0:
            return False
        return (self.width <= width and self.length <= length) or (
            self.length <= width and self.width <= length
        )


@dataclass(frozen=True)
class PalletSpec:
    """Pallet envelope; ``height`` is the maximum load height."""

    id: int
    code: str
    width: CM
    length: CM
    height: CM
    max_weight: KG
    status: str = "available"

    @property
    def footprint(self) -> float:
        return self.width * self.length

    @property
    def volume_limit(self) -> M3:
        return cm3_to_m3(self.width * self.length * self.height)


@dataclass(frozen=True)
class CompositionProduct:
    product_id: int
    quantity: Decimal
    packaging_type_id: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_decimal(self.quantity))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "quantity": str(self.quantity),
            "packaging_type_id": self.packaging_type_id,
        }


@dataclass(frozen=True)
class CompositionConstraints:
    max_weight: Optional[KG] = None
    max_height: Optional[CM] = None
    max_volume: Optional[M3] = None

    def __post_init__(self) -> None:
        errors = []
        for name in ("max_weight", "max_height", "max_volume"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not is_finite(value) or float(value) <= 0:
                errors.append({"field": f"constraints.{name}", "message": "must be positive"})
            else:
                object.__setattr__(self, name, float(value))
        if errors:
            raise ValidationError("Invalid composition constraints", errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_weight": self.max_weight,
            "max_height": self.max_height,
            "max_volume": self.max_volume,
        }


@dataclass(frozen=True)
class CompositionRequest:
    products: Tuple[CompositionProduct, ...]
    pallet_id: Optional[int] = None
    constraints: Optional[CompositionConstraints] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "products", tuple(self.products))
        if not self.products:
            raise ValidationError(
                "At least one product is required",
                [{"field": "products", "message": "must not be empty"}],
            )

    @property
    def product_ids(self) -> List[int]:
        return [product.product_id for product in self.products]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CompositionRequest":
        """Build a request from a raw mapping, collecting every field error."""
        errors: List[Dict[str, str]] = []
        raw_products = data.get("products")
        products: List[CompositionProduct] = []
        if not isinstance(raw_products, Sequence) or isinstance(raw_products, (str, bytes)):
            errors.append({"field": "products", "message": "must be a list"})
            raw_products = []
        elif not raw_products:
            errors.append({"field": "products", "message": "must not be empty"})
        for index, raw in enumerate(raw_products):
            prefix = f"products[{index}]"
            if not isinstance(raw, Mapping):
                errors.append({"field": prefix, "message": "must be an object"})
                continue
            product_id = raw.get("product_id")
            if not _is_positive_int(product_id):
                errors.append(
                    {"field": f"{prefix}.product_id", "message": "must be a positive integer"}
                )
            packaging_type_id = raw.get("packaging_type_id")
            if packaging_type_id is not None and not _is_positive_int(packaging_type_id):
                errors.append(
                    {
                        "field": f"{prefix}.packaging_type_id",
                        "message": "must be a positive integer",
                    }
                )
            try:
                quantity = to_decimal(raw.get("quantity"))
            except (TypeError, ValueError):
                errors.append({"field": f"{prefix}.quantity", "message": "must be a number"})
                continue
            if _is_positive_int(product_id):
                products.append(CompositionProduct(product_id, quantity, packaging_type_id))

        pallet_id = data.get("pallet_id")
        if pallet_id is not None and not _is_positive_int(pallet_id):
            errors.append({"field": "pallet_id", "message": "must be a positive integer"})

        constraints = None
        raw_constraints = data.get("constraints")
        if raw_constraints:
            if not isinstance(raw_constraints, Mapping):
                errors.append({"field": "constraints", "message": "must be an object"})
            else:
                try:
                    constraints = CompositionConstraints(
                        max_weight=raw_constraints.get("max_weight"),
                        max_height=raw_constraints.get("max_height"),
                        max_volume=raw_constraints.get("max_volume"),
                    )
                except ValidationError as exc:
                    errors.extend(exc.errors)

        if errors:
            raise ValidationError("Invalid composition request", errors)
        return cls(tuple(products), pallet_id, constraints)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "products": [product.to_dict() for product in self.products],
            "pallet_id": self.pallet_id,
            "constraints": self.constraints.to_dict() if self.constraints else None,
        }


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


@dataclass
class CompositionItem:
    product_id: int
    quantity: Decimal
    packaging_type_id: Optional[int] = None
    layer: int = 1
    sort_order: int = 0
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "quantity": str(self.quantity),
            "packaging_type_id": self.packaging_type_id,
            "layer": self.layer,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CompositionItem":
        return cls(
            product_id=int(data["product_id"]),
            quantity=to_decimal(data["quantity"]),
            packaging_type_id=data.get("packaging_type_id"),
            layer=int(data.get("layer", 1)),
            sort_order=int(data.get("sort_order", 0)),
            is_active=bool(data.get("is_active", True)),
        )


@dataclass
class Composition:
    """Persisted composition record; status changes go through the lifecycle."""

    id: Optional[int]
    name: str
    pallet_id: int
    created_by: int
    created_at: datetime
    status: CompositionStatus = CompositionStatus.DRAFT
    items: List[CompositionItem] = field(default_factory=list)
    result: Dict[str, Any] = field(default_factory=dict)
    description: Optional[str] = None
    constraints: Optional[Dict[str, Any]] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    executed_by: Optional[int] = None
    executed_at: Optional[datetime] = None
    assembled_location: Optional[str] = None
    updated_at: Optional[datetime] = None
    is_active: bool = True

    @property
    def active_items(self) -> List[CompositionItem]:
        return [item for item in self.items if item.is_active]

    def quantity_by_product(self) -> Dict[int, Decimal]:
        totals: Dict[int, Decimal] = {}
        for item in self.active_items:
            totals[item.product_id] = totals.get(item.product_id, Decimal(0)) + item.quantity
        return totals

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "pallet_id": self.pallet_id,
            "items": [item.to_dict() for item in self.items],
            "constraints": self.constraints,
            "result": self.result,
            "created_by": self.created_by,
            "created_at": _iso(self.created_at),
            "approved_by": self.approved_by,
            "approved_at": _iso(self.approved_at),
            "executed_by": self.executed_by,
            "executed_at": _iso(self.executed_at),
            "assembled_location": self.assembled_location,
            "updated_at": _iso(self.updated_at),
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Composition":
        return cls(
            id=data.get("id"),
            name=data["name"],
            description=data.get("description"),
            status=CompositionStatus(data.get("status", CompositionStatus.DRAFT.value)),
            pallet_id=int(data["pallet_id"]),
            items=[CompositionItem.from_dict(item) for item in data.get("items", [])],
            constraints=data.get("constraints"),
            result=dict(data.get("result") or {}),
            created_by=int(data["created_by"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            approved_by=data.get("approved_by"),
            approved_at=_parse_iso(data.get("approved_at")),
            executed_by=data.get("executed_by"),
            executed_at=_parse_iso(data.get("executed_at")),
            assembled_location=data.get("assembled_location"),
            updated_at=_parse_iso(data.get("updated_at")),
            is_active=bool(data.get("is_active", True)),
        )


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None
