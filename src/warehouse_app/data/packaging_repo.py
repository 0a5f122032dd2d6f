import xml.etree.ElementTree as ET
from functools import lru_cache
from typing import Iterable, List, Optional, Tuple

from packaging_core.errors import ValidationError
from packaging_core.models import PackagingType
from packaging_core.units import parse_decimal

from .paths import packaging_xml_path
from .xml_io import get_bool, get_optional_int, load_xml, write_xml


@lru_cache(maxsize=None)
def load_packaging_types() -> Tuple[PackagingType, ...]:
    """Return every packaging type in packaging_types.xml, active or not."""
    root = load_xml(packaging_xml_path())
    packagings = []
    for element in root.findall("packaging"):
        try:
            packagings.append(
                PackagingType(
                    id=int(element.get("id")),
                    product_id=int(element.get("product_id")),
                    name=element.get("name", ""),
                    level=int(element.get("level", "0")),
                    base_unit_quantity=parse_decimal(element.get("base_unit_quantity", "")),
                    is_base_unit=get_bool(element, "base_unit"),
                    parent_packaging_id=get_optional_int(element, "parent"),
                    barcode=element.get("barcode") or None,
                    is_active=get_bool(element, "active", True),
                )
            )
        except (TypeError, ValueError, ValidationError) as e:
            raise ValueError(f"Invalid packaging data '{element.attrib}': {e}")
    return tuple(packagings)


def save_packaging_types(packagings: Iterable[PackagingType]) -> None:
    """Write packaging types back to packaging_types.xml and clear the cache."""
    root = ET.Element("packaging_types")
    for packaging in packagings:
        ET.SubElement(
            root,
            "packaging",
            id=str(packaging.id),
            product_id=str(packaging.product_id),
            name=packaging.name,
            level=str(packaging.level),
            base_unit_quantity=str(packaging.base_unit_quantity),
            base_unit="true" if packaging.is_base_unit else "false",
            parent="" if packaging.parent_packaging_id is None else str(packaging.parent_packaging_id),
            barcode=packaging.barcode or "",
            active="true" if packaging.is_active else "false",
        )
    write_xml(root, packaging_xml_path())
    load_packaging_types.cache_clear()


class XmlPackagingCatalog:
    def get_active_packaging_types(self, product_id: int) -> List[PackagingType]:
        return [
            p for p in load_packaging_types() if p.product_id == product_id and p.is_active
        ]

    def get_packaging_type(self, packaging_type_id: int) -> Optional[PackagingType]:
        for packaging in load_packaging_types():
            if packaging.id == packaging_type_id and packaging.is_active:
                return packaging
        return None

    def find_by_barcode(self, barcode: str) -> Optional[PackagingType]:
        for packaging in load_packaging_types():
            if packaging.barcode == barcode and packaging.is_active:
                return packaging
        return None
