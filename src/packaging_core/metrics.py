from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

ERROR = "error"
WARNING = "warning"

DIMENSION_LABELS = {"weight": "Weight", "volume": "Volume", "height": "Height"}
DIMENSION_UNITS = {"weight": "kg", "volume": "m3", "height": "cm"}
SUGGESTED_SOLUTIONS = {
    "weight": "Reduce quantities of heavy products or split the load across pallets",
    "volume": "Reduce quantities or use a larger pallet",
    "height": "Reduce the number of layers or use a pallet with a higher load limit",
    "quantity": "Provide a finite, non-negative quantity",
    "footprint": "Use a larger pallet or ship the product separately",
}


@dataclass(frozen=True)
class Utilization:
    total: float
    limit: float
    utilization: float

    def to_dict(self) -> Dict[str, float]:
        return {"total": self.total, "limit": self.limit, "utilization": self.utilization}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Utilization":
        return cls(float(data["total"]), float(data["limit"]), float(data["utilization"]))


@dataclass(frozen=True)
class Violation:
    type: str
    severity: str
    message: str
    affected_products: List[int] = field(default_factory=list)
    suggested_solution: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity,
            "message": self.message,
            "affected_products": list(self.affected_products),
            "suggested_solution": self.suggested_solution,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Violation":
        return cls(
            type=str(data["type"]),
            severity=str(data["severity"]),
            message=str(data.get("message", "")),
            affected_products=[int(p) for p in data.get("affected_products", [])],
            suggested_solution=str(data.get("suggested_solution", "")),
        )


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def compute_utilization(total: float, limit: float) -> Utilization:
    if limit > 0:
        ratio = total / limit
    else:
        ratio = 0.0 if total <= 0 else math.inf
    return Utilization(total, limit, ratio)


def compute_efficiency(utilizations: Mapping[str, Utilization], weights: Mapping[str, float]) -> float:
    """Weighted mean of the clamped utilizations, in [0, 1]."""
    total_weight = sum(weights.get(key, 0.0) for key in utilizations)
    if total_weight <= 0:
        return 0.0
    value = sum(
        weights.get(key, 0.0) * clamp(util.utilization) for key, util in utilizations.items()
    )
    return clamp(value / total_weight)


def capacity_violations(
    utilizations: Mapping[str, Utilization],
    affected_products: Sequence[int],
    near_capacity: float,
) -> List[Violation]:
    violations: List[Violation] = []
    for key, util in utilizations.items():
        label = DIMENSION_LABELS.get(key, key.capitalize())
        unit = DIMENSION_UNITS.get(key, "")
        if util.utilization > 1.0:
            violations.append(
                Violation(
                    type=key,
                    severity=ERROR,
                    message=(
                        f"{label} exceeds limit: {util.total:.2f}{unit} > {util.limit:.2f}{unit}"
                    ),
                    affected_products=list(affected_products),
                    suggested_solution=SUGGESTED_SOLUTIONS.get(key, ""),
                )
            )
        elif util.utilization > near_capacity:
            violations.append(
                Violation(
                    type=key,
                    severity=WARNING,
                    message=f"{label} near limit: {util.utilization * 100:.1f}% of capacity",
                    affected_products=list(affected_products),
                    suggested_solution=SUGGESTED_SOLUTIONS.get(key, ""),
                )
            )
    return violations


def risk_level(violations: Sequence[Violation], warnings: Sequence[str]) -> str:
    if any(v.severity == ERROR for v in violations):
        return "high"
    if len(warnings) > 2 or any(v.severity == WARNING for v in violations):
        return "medium"
    return "low"


__all__ = [
    "ERROR",
    "WARNING",
    "Utilization",
    "Violation",
    "clamp",
    "compute_utilization",
    "compute_efficiency",
    "capacity_violations",
    "risk_level",
]
