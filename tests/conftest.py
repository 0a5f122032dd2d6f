from decimal import Decimal

import pytest

from packaging_core.errors import NotFoundError
from packaging_core.models import InventoryRecord, PackagingType, PalletSpec, ProductSpec
from packaging_core.settings import DEFAULT_SETTINGS
from warehouse_app.data import InMemoryInventoryStore, InMemoryPackagingCatalog

WATER = 1


class DictProductCatalog:
    def __init__(self, *specs):
        self.specs = {spec.id: spec for spec in specs}

    def get_dimensions_and_weight(self, product_id):
        if product_id not in self.specs:
            raise NotFoundError("Product", product_id)
        return self.specs[product_id]


class ListPalletCatalog:
    def __init__(self, *pallets):
        self.pallets = list(pallets)

    def get_pallet(self, pallet_id):
        for pallet in self.pallets:
            if pallet.id == pallet_id:
                return pallet
        raise NotFoundError("Pallet", pallet_id)

    def get_default_available_pallet(self):
        for pallet in self.pallets:
            if pallet.status == "available":
                return pallet
        raise NotFoundError("Available pallet")


def packaging(pid, product_id, name, level, qty, parent=None, base=False, barcode=None):
    return PackagingType(
        id=pid,
        product_id=product_id,
        name=name,
        level=level,
        base_unit_quantity=Decimal(qty),
        is_base_unit=base,
        parent_packaging_id=parent,
        barcode=barcode,
    )


def water_packagings():
    return [
        packaging(1, WATER, "Unit", 0, 1, base=True, barcode="U-1"),
        packaging(2, WATER, "Box", 1, 12, parent=1, barcode="B-12"),
        packaging(3, WATER, "Case", 2, 144, parent=2, barcode="C-144"),
    ]


def water_stock():
    return [
        InventoryRecord(1, WATER, "A-01", Decimal(1000), packaging_type_id=1),
        InventoryRecord(2, WATER, "A-02", Decimal(240), packaging_type_id=2),
        InventoryRecord(3, WATER, "B-01", Decimal(288), packaging_type_id=3),
    ]


@pytest.fixture
def settings():
    return DEFAULT_SETTINGS.copy()


@pytest.fixture
def catalog():
    return InMemoryPackagingCatalog(water_packagings())


@pytest.fixture
def inventory():
    return InMemoryInventoryStore(water_stock())


@pytest.fixture
def euro_pallet():
    return PalletSpec(id=1, code="EUR", width=80, length=120, height=160, max_weight=1000)


@pytest.fixture
def water_spec():
    return ProductSpec(id=WATER, weight=0.5, width=10, length=10, height=20, name="Water")
