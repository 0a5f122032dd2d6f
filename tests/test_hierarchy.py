from dataclasses import replace

import pytest

from conftest import WATER, packaging, water_packagings
from packaging_core.errors import ConflictError, NotFoundError, ValidationError
from packaging_core.hierarchy import PackagingHierarchy, build_hierarchy, check_new_packaging
from warehouse_app.data import InMemoryPackagingCatalog


def test_hierarchy_nests_levels(catalog):
    roots = PackagingHierarchy(catalog).get_hierarchy(WATER)
    assert [root.id for root in roots] == [1]
    assert [node.id for node in roots[0].walk()] == [1, 2, 3]
    assert roots[0].children[0].children[0].packaging.name == "Case"


def test_orphans_become_roots_sorted_by_level_then_id():
    packagings = [
        packaging(5, WATER, "Pallet layer", 3, 720, parent=99),
        packaging(4, WATER, "Display", 1, 6, parent=1),
        packaging(1, WATER, "Unit", 0, 1, base=True),
        packaging(2, WATER, "Box", 1, 12, parent=1),
    ]
    roots = build_hierarchy(packagings)
    assert [root.id for root in roots] == [1, 5]
    assert [child.id for child in roots[0].children] == [2, 4]


def test_inactive_parent_detaches_children():
    packagings = water_packagings()
    packagings[1] = replace(packagings[1], is_active=False)
    roots = build_hierarchy(packagings)
    assert [root.id for root in roots] == [1, 3]


def test_get_base_unit(catalog):
    assert PackagingHierarchy(catalog).get_base_unit(WATER).name == "Unit"
    with pytest.raises(NotFoundError):
        PackagingHierarchy(catalog).get_base_unit(42)


def test_get_packaging_by_barcode(catalog):
    hierarchy = PackagingHierarchy(catalog)
    assert hierarchy.get_packaging_by_barcode("B-12").id == 2
    with pytest.raises(NotFoundError):
        hierarchy.get_packaging_by_barcode("nope")


def test_second_base_unit_is_a_conflict(catalog):
    with pytest.raises(ConflictError):
        catalog.create_packaging(packaging(9, WATER, "Single", 0, 1, base=True))
    assert catalog.get_packaging_type(9) is None


def test_duplicate_barcode_is_a_conflict(catalog):
    with pytest.raises(ConflictError):
        catalog.create_packaging(packaging(9, WATER, "Tray", 1, 6, parent=1, barcode="B-12"))


def test_child_level_must_exceed_parent(catalog):
    with pytest.raises(ValidationError):
        catalog.create_packaging(packaging(9, WATER, "Tray", 1, 6, parent=2))


def test_create_packaging_for_new_product():
    catalog = InMemoryPackagingCatalog()
    catalog.create_packaging(packaging(10, 2, "Pack", 0, 1, base=True))
    catalog.create_packaging(packaging(11, 2, "Carton", 1, 24, parent=10))
    assert [p.id for p in catalog.get_active_packaging_types(2)] == [10, 11]


def test_unknown_parent_is_not_found():
    with pytest.raises(NotFoundError):
        check_new_packaging([], packaging(2, WATER, "Box", 1, 12, parent=1))


def test_existing_id_is_a_conflict(catalog):
    with pytest.raises(ConflictError):
        catalog.create_packaging(packaging(1, WATER, "Pallet", 5, 999))
    assert PackagingHierarchy(catalog).get_base_unit(WATER).name == "Unit"


def test_inactive_id_is_still_taken():
    retired = replace(packaging(7, WATER, "Old box", 1, 6), is_active=False)
    with pytest.raises(ConflictError):
        check_new_packaging([retired], packaging(7, WATER, "Box", 1, 12))
