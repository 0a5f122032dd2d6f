"""Layer-count heuristic and slot arrangement for a pallet load.

This is footprint and weight accounting, not a packer: items are assigned
row by row to slots without collision checks or rotation search. Rows that
run past the pallet's length are still reported. Very large loads get layer
counts and heights for every unit but slots only for the first
``ARRANGEMENT_LIMIT`` units.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .models import ProductSpec
from .units import CM

LoadEntry = Tuple[ProductSpec, float]

ARRANGEMENT_LIMIT = 10_000


@dataclass(frozen=True)
class Placement:
    product_id: int
    layer: int
    x: CM
    y: CM
    z: CM
    width: CM
    length: CM
    height: CM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "layer": self.layer,
            "position": {"x": self.x, "y": self.y, "z": self.z},
            "dimensions": {"width": self.width, "length": self.length, "height": self.height},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Placement":
        position = data["position"]
        dimensions = data["dimensions"]
        return cls(
            product_id=int(data["product_id"]),
            layer=int(data["layer"]),
            x=float(position["x"]),
            y=float(position["y"]),
            z=float(position["z"]),
            width=float(dimensions["width"]),
            length=float(dimensions["length"]),
            height=float(dimensions["height"]),
        )


@dataclass
class LayoutConfiguration:
    layers: int
    items_per_layer: int
    total_items: int
    arrangement: List[Placement] = field(default_factory=list)
    layer_heights: List[CM] = field(default_factory=list)

    @property
    def total_height(self) -> CM:
        return sum(self.layer_heights)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "layers": self.layers,
            "items_per_layer": self.items_per_layer,
            "total_items": self.total_items,
            "arrangement": [p.to_dict() for p in self.arrangement],
            "layer_heights": list(self.layer_heights),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LayoutConfiguration":
        return cls(
            layers=int(data["layers"]),
            items_per_layer=int(data["items_per_layer"]),
            total_items=int(data["total_items"]),
            arrangement=[Placement.from_dict(p) for p in data.get("arrangement", [])],
            layer_heights=[float(h) for h in data.get("layer_heights", [])],
        )


def unit_count(quantity: float) -> int:
    """Number of physical slots for ``quantity`` base units."""
    if not math.isfinite(quantity) or quantity <= 0:
        return 0
    return int(math.ceil(quantity))


def average_footprint(entries: Sequence[LoadEntry]) -> float:
    weighted = 0.0
    total_qty = 0.0
    for spec, quantity in entries:
        if not math.isfinite(quantity) or quantity <= 0:
            continue
        weighted += quantity * spec.footprint
        total_qty += quantity
    if total_qty <= 0:
        return 0.0
    return weighted / total_qty


def compute_items_per_layer(entries: Sequence[LoadEntry], pallet_w: CM, pallet_l: CM) -> int:
    """``floor(pallet area / average footprint)``, at least 1 if anything fits."""
    loaded = [(spec, q) for spec, q in entries if unit_count(q) > 0]
    if not any(spec.fits_footprint(pallet_w, pallet_l) for spec, _ in loaded):
        return 0
    footprint = average_footprint(loaded)
    if footprint <= 0:
        return 0
    return max(1, int(math.floor(pallet_w * pallet_l / footprint)))


def _slots_for_layer(
    specs: Sequence[ProductSpec], pallet_w: CM
) -> List[Tuple[CM, CM]]:
    slots = []
    x = 0.0
    y = 0.0
    row_depth = 0.0
    for spec in specs:
        if x > 0 and x + spec.width > pallet_w:
            x = 0.0
            y += row_depth
            row_depth = 0.0
        slots.append((x, y))
        x += spec.width
        row_depth = max(row_depth, spec.length)
    return slots


def _runs(entries: Sequence[LoadEntry]) -> List[Tuple[ProductSpec, int]]:
    return [(spec, unit_count(q)) for spec, q in entries if unit_count(q) > 0]


def _layer_heights(runs: Sequence[Tuple[ProductSpec, int]], per_layer: int) -> List[CM]:
    """Tallest item of each layer, filling layers in load order."""
    heights: List[CM] = []
    open_count = 0
    open_height = 0.0
    for spec, count in runs:
        if open_count:
            taken = min(per_layer - open_count, count)
            open_height = max(open_height, spec.height)
            open_count += taken
            count -= taken
            if open_count == per_layer:
                heights.append(open_height)
                open_count = 0
                open_height = 0.0
        if count:
            full, rest = divmod(count, per_layer)
            heights.extend([spec.height] * full)
            if rest:
                open_count = rest
                open_height = spec.height
    if open_count:
        heights.append(open_height)
    return heights


def build_layout(
    entries: Sequence[LoadEntry],
    pallet_w: CM,
    pallet_l: CM,
    max_placements: int = ARRANGEMENT_LIMIT,
) -> LayoutConfiguration:
    """Layer counts for the whole load, slots for at most ``max_placements`` items.

    Layer heights are derived per product run, so the cost grows with the
    number of layers rather than the number of units.
    """
    runs = _runs(entries)
    total_items = sum(count for _, count in runs)
    items_per_layer = compute_items_per_layer(entries, pallet_w, pallet_l)
    if items_per_layer == 0 or total_items == 0:
        return LayoutConfiguration(0, items_per_layer, total_items)

    layer_heights = _layer_heights(runs, items_per_layer)
    layers = len(layer_heights)

    units = itertools.islice(
        itertools.chain.from_iterable(itertools.repeat(spec, count) for spec, count in runs),
        max_placements,
    )
    arrangement: List[Placement] = []
    z = 0.0
    for layer_index, layer_height in enumerate(layer_heights):
        chunk = list(itertools.islice(units, items_per_layer))
        if not chunk:
            break
        for spec, (x, y) in zip(chunk, _slots_for_layer(chunk, pallet_w)):
            arrangement.append(
                Placement(
                    product_id=spec.id,
                    layer=layer_index + 1,
                    x=x,
                    y=y,
                    z=z,
                    width=spec.width,
                    length=spec.length,
                    height=spec.height,
                )
            )
        z += layer_height
    return LayoutConfiguration(layers, items_per_layer, total_items, arrangement, layer_heights)


__all__ = [
    "Placement",
    "LayoutConfiguration",
    "unit_count",
    "average_footprint",
    "compute_items_per_layer",
    "build_layout",
    "ARRANGEMENT_LIMIT",
]
