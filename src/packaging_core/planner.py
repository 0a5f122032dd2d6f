"""Pallet composition planning.

The planner is read-only: it looks products and pallets up through the
catalog ports, computes totals against the effective limits and returns a
:class:`CompositionResult`. Nothing is persisted here.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import NotFoundError
from .layout import LayoutConfiguration, build_layout
from .metrics import (
    ERROR,
    Utilization,
    Violation,
    capacity_violations,
    clamp,
    compute_efficiency,
    compute_utilization,
    risk_level,
    SUGGESTED_SOLUTIONS,
)
from .models import (
    CompositionConstraints,
    CompositionProduct,
    CompositionRequest,
    PalletSpec,
    ProductSpec,
)
from .ports import PackagingCatalog, PalletCatalog, ProductCatalog
from .settings import efficiency_weights, load_settings
from .units import to_decimal

logger = logging.getLogger(__name__)


@dataclass
class ProductResult:
    product_id: int
    packaging_type_id: int
    quantity: Decimal
    total_weight: float
    total_volume: float
    efficiency: float
    can_fit: bool
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "packaging_type_id": self.packaging_type_id,
            "quantity": str(self.quantity),
            "total_weight": self.total_weight,
            "total_volume": self.total_volume,
            "efficiency": self.efficiency,
            "can_fit": self.can_fit,
            "issues": list(self.issues),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProductResult":
        return cls(
            product_id=int(data["product_id"]),
            packaging_type_id=int(data.get("packaging_type_id") or 0),
            quantity=to_decimal(data["quantity"]),
            total_weight=float(data["total_weight"]),
            total_volume=float(data["total_volume"]),
            efficiency=float(data.get("efficiency", 0.0)),
            can_fit=bool(data.get("can_fit", True)),
            issues=[str(issue) for issue in data.get("issues", [])],
        )


@dataclass
class CompositionResult:
    is_valid: bool
    efficiency: float
    layout: LayoutConfiguration
    weight: Utilization
    volume: Utilization
    height: Utilization
    products: List[ProductResult] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    violations: List[Violation] = field(default_factory=list)
    pallet_id: Optional[int] = None

    def utilizations(self) -> Dict[str, Utilization]:
        return {"weight": self.weight, "volume": self.volume, "height": self.height}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "efficiency": self.efficiency,
            "pallet_id": self.pallet_id,
            "layout": self.layout.to_dict(),
            "weight": self.weight.to_dict(),
            "volume": self.volume.to_dict(),
            "height": self.height.to_dict(),
            "products": [p.to_dict() for p in self.products],
            "recommendations": list(self.recommendations),
            "warnings": list(self.warnings),
            "violations": [v.to_dict() for v in self.violations],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CompositionResult":
        """Rebuild a result snapshot; raise ``ValueError`` when it is unusable."""
        if not isinstance(data, Mapping):
            raise ValueError("composition result must be a mapping")
        try:
            return cls(
                is_valid=bool(data["is_valid"]),
                efficiency=float(data["efficiency"]),
                pallet_id=data.get("pallet_id"),
                layout=LayoutConfiguration.from_dict(data["layout"]),
                weight=Utilization.from_dict(data["weight"]),
                volume=Utilization.from_dict(data["volume"]),
                height=Utilization.from_dict(data["height"]),
                products=[ProductResult.from_dict(p) for p in data.get("products", [])],
                recommendations=[str(r) for r in data.get("recommendations", [])],
                warnings=[str(w) for w in data.get("warnings", [])],
                violations=[Violation.from_dict(v) for v in data.get("violations", [])],
            )
        except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
            raise ValueError(f"malformed composition result: {exc}") from exc


@dataclass
class ValidationResult:
    is_valid: bool
    violations: List[Violation]
    warnings: List[str]
    metrics: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "violations": [v.to_dict() for v in self.violations],
            "warnings": list(self.warnings),
            "metrics": dict(self.metrics),
        }


def effective_limits(
    pallet: PalletSpec, constraints: Optional[CompositionConstraints]
) -> Dict[str, float]:
    """Elementwise minimum of the pallet's limits and the request overrides."""
    limits = {
        "weight": pallet.max_weight,
        "volume": pallet.volume_limit,
        "height": pallet.height,
    }
    if constraints is None:
        return limits
    overrides = {
        "weight": constraints.max_weight,
        "volume": constraints.max_volume,
        "height": constraints.max_height,
    }
    for key, value in overrides.items():
        if value is not None:
            limits[key] = min(limits[key], value)
    return limits


def _quantity(product: CompositionProduct) -> float:
    try:
        return float(product.quantity)
    except (TypeError, ValueError, ArithmeticError):
        return math.nan


class CompositionPlanner:
    def __init__(
        self,
        products: ProductCatalog,
        pallets: PalletCatalog,
        packaging: PackagingCatalog,
        settings: Optional[Dict[str, float]] = None,
    ) -> None:
        self.products = products
        self.pallets = pallets
        self.packaging = packaging
        self.settings = settings if settings is not None else load_settings()

    def resolve_pallet(self, pallet_id: Optional[int]) -> PalletSpec:
        if pallet_id is not None:
            return self.pallets.get_pallet(pallet_id)
        return self.pallets.get_default_available_pallet()

    def _packaging_id(self, product: CompositionProduct) -> int:
        if product.packaging_type_id is not None:
            packaging = self.packaging.get_packaging_type(product.packaging_type_id)
            if packaging is None or packaging.product_id != product.product_id:
                raise NotFoundError("Packaging type", product.packaging_type_id)
            return packaging.id
        for packaging in self.packaging.get_active_packaging_types(product.product_id):
            if packaging.is_base_unit:
                return packaging.id
        return 0

    def calculate_optimal_composition(self, request: CompositionRequest) -> CompositionResult:
        pallet = self.resolve_pallet(request.pallet_id)
        limits = effective_limits(pallet, request.constraints)
        logger.debug("Planning on pallet %s with limits %s", pallet.code, limits)

        warnings: List[str] = []
        recommendations: List[str] = []
        violations: List[Violation] = []
        product_results: List[ProductResult] = []
        entries: List[Tuple[ProductSpec, float]] = []
        total_weight = 0.0
        total_volume = 0.0
        loaded_ids: List[int] = []

        for product in request.products:
            spec = self.products.get_dimensions_and_weight(product.product_id)
            packaging_id = self._packaging_id(product)
            quantity = _quantity(product)
            issues: List[str] = []

            if not math.isfinite(quantity) or quantity < 0:
                violations.append(
                    Violation(
                        type="quantity",
                        severity=ERROR,
                        message=f"Invalid quantity {product.quantity} for product {product.product_id}",
                        affected_products=[product.product_id],
                        suggested_solution=SUGGESTED_SOLUTIONS["quantity"],
                    )
                )
                issues.append("Invalid quantity")
                quantity = 0.0
            elif quantity == 0:
                warnings.append(f"Product {product.product_id} has zero quantity")
                issues.append("Zero quantity")

            product_weight = quantity * spec.weight
            product_volume = quantity * spec.unit_volume
            can_fit = spec.fits_footprint(pallet.width, pallet.length)
            if not can_fit:
                warnings.append(
                    f"Product {product.product_id} does not fit the pallet footprint "
                    f"({spec.width}x{spec.length} on {pallet.width}x{pallet.length})"
                )
                issues.append("Footprint larger than the pallet")
                if quantity > 0:
                    violations.append(
                        Violation(
                            type="footprint",
                            severity=ERROR,
                            message=f"Product {product.product_id} cannot be placed on pallet {pallet.code}",
                            affected_products=[product.product_id],
                            suggested_solution=SUGGESTED_SOLUTIONS["footprint"],
                        )
                    )
            if spec.height > limits["height"]:
                can_fit = False
                issues.append("Taller than the height limit")

            total_weight += product_weight
            total_volume += product_volume
            if quantity > 0:
                loaded_ids.append(product.product_id)
            entries.append((spec, quantity))
            product_results.append(
                ProductResult(
                    product_id=product.product_id,
                    packaging_type_id=packaging_id,
                    quantity=product.quantity,
                    total_weight=product_weight,
                    total_volume=product_volume,
                    efficiency=clamp(product_volume / limits["volume"]) if limits["volume"] > 0 else 0.0,
                    can_fit=can_fit,
                    issues=issues,
                )
            )

        layout = build_layout(entries, pallet.width, pallet.length)
        if loaded_ids and layout.items_per_layer == 0:
            warnings.append("No product fits the pallet footprint")
        elif layout.layers and len(layout.arrangement) < layout.total_items:
            warnings.append(
                f"Arrangement lists the first {len(layout.arrangement)} of "
                f"{layout.total_items} items"
            )

        utilizations = {
            "weight": compute_utilization(total_weight, limits["weight"]),
            "volume": compute_utilization(total_volume, limits["volume"]),
            "height": compute_utilization(layout.total_height, limits["height"]),
        }
        efficiency = compute_efficiency(utilizations, efficiency_weights(self.settings))
        violations.extend(
            capacity_violations(utilizations, loaded_ids, self.settings["near_capacity"])
        )
        is_valid = not any(v.severity == ERROR for v in violations)

        settings = self.settings
        if efficiency < settings["low_efficiency"]:
            warnings.append(f"Low packing efficiency ({efficiency * 100:.1f}%)")
        if layout.layers > settings["max_stable_layers"]:
            warnings.append("Many layers may compromise load stability")
        if utilizations["height"].utilization > settings["height_near_limit"]:
            warnings.append("Height close to the limit, watch load stability")
        if efficiency < settings["reorganize_efficiency"]:
            recommendations.append(
                "Consider reorganizing the products to make better use of the space"
            )
        if utilizations["weight"].utilization < settings["underused_weight"]:
            recommendations.append(
                "Pallet weight capacity is underused, consider adding more products"
            )

        logger.debug(
            "Composition on pallet %s: valid=%s efficiency=%.3f layers=%d",
            pallet.code,
            is_valid,
            efficiency,
            layout.layers,
        )
        return CompositionResult(
            is_valid=is_valid,
            efficiency=efficiency,
            layout=layout,
            weight=utilizations["weight"],
            volume=utilizations["volume"],
            height=utilizations["height"],
            products=product_results,
            recommendations=recommendations,
            warnings=warnings,
            violations=violations,
            pallet_id=pallet.id,
        )

    def validate_composition_constraints(self, request: CompositionRequest) -> ValidationResult:
        result = self.calculate_optimal_composition(request)
        metrics = {
            "total_weight": result.weight.total,
            "total_volume": result.volume.total,
            "total_height": result.height.total,
            "efficiency": result.efficiency,
            "risk_level": risk_level(result.violations, result.warnings),
        }
        return ValidationResult(result.is_valid, list(result.violations), list(result.warnings), metrics)


__all__ = [
    "CompositionPlanner",
    "CompositionResult",
    "ProductResult",
    "ValidationResult",
    "effective_limits",
]
