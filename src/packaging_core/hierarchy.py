from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .errors import ConflictError, NotFoundError, ValidationError
from .models import PackagingType
from .ports import PackagingCatalog
from .units import ONE

logger = logging.getLogger(__name__)


@dataclass
class HierarchyNode:
    packaging: PackagingType
    children: List["HierarchyNode"] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.packaging.id

    def walk(self) -> Iterable["HierarchyNode"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> Dict:
        return {
            "id": self.packaging.id,
            "name": self.packaging.name,
            "level": self.packaging.level,
            "base_unit_quantity": str(self.packaging.base_unit_quantity),
            "is_base_unit": self.packaging.is_base_unit,
            "barcode": self.packaging.barcode,
            "children": [child.to_dict() for child in self.children],
        }


def _sort_key(node: HierarchyNode):
    return (node.packaging.level, node.packaging.id)


def build_hierarchy(packagings: Iterable[PackagingType]) -> List[HierarchyNode]:
    """Build the packaging forest from a flat list of active types.

    Nodes are first indexed by id, then attached to their parent. A node whose
    parent is missing or inactive becomes a root.
    """
    nodes: Dict[int, HierarchyNode] = {}
    for packaging in packagings:
        if packaging.is_active:
            nodes[packaging.id] = HierarchyNode(packaging)

    roots: List[HierarchyNode] = []
    for node in nodes.values():
        parent_id = node.packaging.parent_packaging_id
        parent = nodes.get(parent_id) if parent_id is not None else None
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent.children.append(node)

    for node in nodes.values():
        node.children.sort(key=_sort_key)
    roots.sort(key=_sort_key)
    return roots


def check_new_packaging(existing: Iterable[PackagingType], candidate: PackagingType) -> None:
    """Reject a packaging type that would break the catalog invariants.

    ``existing`` is every packaging type already stored (any product).
    """
    existing = list(existing)
    if any(p.id == candidate.id for p in existing):
        raise ConflictError(f"Packaging type with id '{candidate.id}' already exists")
    existing = [p for p in existing if p.is_active]
    if candidate.is_base_unit:
        if candidate.base_unit_quantity != ONE:
            raise ValidationError(
                "Base unit must hold exactly one base unit",
                [{"field": "base_unit_quantity", "message": "must equal 1"}],
            )
        for packaging in existing:
            if packaging.product_id == candidate.product_id and packaging.is_base_unit:
                raise ConflictError(
                    f"Product {candidate.product_id} already has a base unit packaging "
                    f"({packaging.id})"
                )
    if candidate.barcode:
        for packaging in existing:
            if packaging.barcode == candidate.barcode:
                raise ConflictError(
                    f"Barcode '{candidate.barcode}' is already used by packaging {packaging.id}"
                )
    if candidate.parent_packaging_id is not None:
        parent = next(
            (p for p in existing if p.id == candidate.parent_packaging_id), None
        )
        if parent is None:
            raise NotFoundError("Parent packaging", candidate.parent_packaging_id)
        if parent.product_id != candidate.product_id:
            raise ValidationError(
                "Parent packaging belongs to another product",
                [{"field": "parent_packaging_id", "message": "must belong to the same product"}],
            )
        if candidate.level <= parent.level:
            raise ValidationError(
                "Packaging level must be greater than its parent's",
                [{"field": "level", "message": f"must be greater than {parent.level}"}],
            )


class PackagingHierarchy:
    """Read side of a product's packaging structure."""

    def __init__(self, catalog: PackagingCatalog) -> None:
        self.catalog = catalog

    def get_hierarchy(self, product_id: int) -> List[HierarchyNode]:
        packagings = self.catalog.get_active_packaging_types(product_id)
        roots = build_hierarchy(packagings)
        logger.debug(
            "Hierarchy for product %s: %d types, %d roots", product_id, len(packagings), len(roots)
        )
        return roots

    def get_base_unit(self, product_id: int) -> PackagingType:
        for packaging in self.catalog.get_active_packaging_types(product_id):
            if packaging.is_base_unit and packaging.is_active:
                return packaging
        raise NotFoundError("Base unit packaging for product", product_id)

    def get_packaging_by_barcode(self, barcode: str) -> PackagingType:
        packaging = self.catalog.find_by_barcode(barcode)
        if packaging is None or not packaging.is_active:
            raise NotFoundError("Packaging with barcode", barcode)
        return packaging


__all__ = ["HierarchyNode", "PackagingHierarchy", "build_hierarchy", "check_new_packaging"]
