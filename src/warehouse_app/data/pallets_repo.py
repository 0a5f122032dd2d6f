from functools import lru_cache
from typing import Tuple

from packaging_core.errors import NotFoundError
from packaging_core.models import PalletSpec

from .paths import pallets_xml_path
from .xml_io import load_xml


@lru_cache(maxsize=None)
def load_pallets() -> Tuple[PalletSpec, ...]:
    """Return pallets in file order; the first available one is the default."""
    root = load_xml(pallets_xml_path())
    pallets = []
    for pallet in root.findall("pallet"):
        try:
            pallets.append(
                PalletSpec(
                    id=int(pallet.get("id")),
                    code=pallet.get("code", ""),
                    width=float(pallet.get("w")),
                    length=float(pallet.get("l")),
                    height=float(pallet.get("h")),
                    max_weight=float(pallet.get("max_weight")),
                    status=pallet.get("status", "available"),
                )
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid pallet data '{pallet.attrib}': {e}")
    return tuple(pallets)


class XmlPalletCatalog:
    def get_pallet(self, pallet_id: int) -> PalletSpec:
        for pallet in load_pallets():
            if pallet.id == pallet_id:
                return pallet
        raise NotFoundError("Pallet", pallet_id)

    def get_default_available_pallet(self) -> PalletSpec:
        for pallet in load_pallets():
            if pallet.status == "available":
                return pallet
        raise NotFoundError("Available pallet")
