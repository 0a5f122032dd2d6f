from functools import lru_cache
from typing import Tuple

from packaging_core.errors import ValidationError
from packaging_core.models import InventoryRecord
from packaging_core.units import parse_decimal

from .paths import stock_xml_path
from .xml_io import get_bool, get_optional_int, load_xml


@lru_cache(maxsize=None)
def load_stock_records() -> Tuple[InventoryRecord, ...]:
    """Snapshot of stock.xml; quantities are base units."""
    root = load_xml(stock_xml_path())
    records = []
    for element in root.findall("record"):
        try:
            records.append(
                InventoryRecord(
                    id=int(element.get("id")),
                    product_id=int(element.get("product_id")),
                    location_id=element.get("location", ""),
                    quantity=parse_decimal(element.get("quantity", "")),
                    packaging_type_id=get_optional_int(element, "packaging_id"),
                    is_active=get_bool(element, "active", True),
                )
            )
        except (TypeError, ValueError, ValidationError) as e:
            raise ValueError(f"Invalid stock record '{element.attrib}': {e}")
    return tuple(records)
