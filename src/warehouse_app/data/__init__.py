from .cache import clear_all_caches, clear_catalog_cache, clear_stock_cache
from .composition_store import JsonCompositionRepository, get_composition_dir
from .memory import (
    InMemoryCompositionRepository,
    InMemoryInventoryStore,
    InMemoryPackagingCatalog,
)
from .packaging_repo import XmlPackagingCatalog, load_packaging_types, save_packaging_types
from .pallets_repo import XmlPalletCatalog, load_pallets
from .paths import (
    data_dir,
    packaging_xml_path,
    pallets_xml_path,
    products_xml_path,
    stock_xml_path,
)
from .products_repo import XmlProductCatalog, load_products
from .stock_repo import load_stock_records

__all__ = [
    "InMemoryCompositionRepository",
    "InMemoryInventoryStore",
    "InMemoryPackagingCatalog",
    "JsonCompositionRepository",
    "XmlPackagingCatalog",
    "XmlPalletCatalog",
    "XmlProductCatalog",
    "clear_all_caches",
    "clear_catalog_cache",
    "clear_stock_cache",
    "data_dir",
    "get_composition_dir",
    "load_packaging_types",
    "load_pallets",
    "load_products",
    "load_stock_records",
    "packaging_xml_path",
    "pallets_xml_path",
    "products_xml_path",
    "save_packaging_types",
    "stock_xml_path",
]
