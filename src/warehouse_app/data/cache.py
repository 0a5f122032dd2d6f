def clear_catalog_cache() -> None:
    from .packaging_repo import load_packaging_types
    from .pallets_repo import load_pallets
    from .products_repo import load_products

    load_products.cache_clear()
    load_pallets.cache_clear()
    load_packaging_types.cache_clear()


def clear_stock_cache() -> None:
    from .stock_repo import load_stock_records

    load_stock_records.cache_clear()


def clear_all_caches() -> None:
    clear_catalog_cache()
    clear_stock_cache()
