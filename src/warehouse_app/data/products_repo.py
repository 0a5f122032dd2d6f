from functools import lru_cache
from typing import Dict

from packaging_core.errors import NotFoundError
from packaging_core.models import ProductSpec

from .paths import products_xml_path
from .xml_io import load_xml


@lru_cache(maxsize=None)
def load_products() -> Dict[int, ProductSpec]:
    """Return products keyed by id, read from products.xml."""
    root = load_xml(products_xml_path())
    products = {}
    for product in root.findall("product"):
        try:
            spec = ProductSpec(
                id=int(product.get("id")),
                weight=float(product.get("weight", "0")),
                width=float(product.get("w")),
                length=float(product.get("l")),
                height=float(product.get("h")),
                name=product.get("name", ""),
                sku=product.get("sku", ""),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid product data '{product.attrib}': {e}")
        products[spec.id] = spec
    return products


class XmlProductCatalog:
    def get_dimensions_and_weight(self, product_id: int) -> ProductSpec:
        spec = load_products().get(product_id)
        if spec is None:
            raise NotFoundError("Product", product_id)
        return spec
