from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List, Optional

from packaging_core.models import Composition, CompositionStatus

COMPOSITION_DIR_ENV = "WAREHOUSE_COMPOSITION_DIR"


def get_composition_dir() -> str:
    env_dir = os.getenv(COMPOSITION_DIR_ENV)
    if env_dir:
        return str(Path(env_dir).expanduser().resolve())
    return str((Path.cwd() / "data" / "compositions").resolve())


def ensure_composition_dir() -> str:
    path = Path(get_composition_dir())
    path.mkdir(parents=True, exist_ok=True)
    return str(path)


def _composition_path(composition_id: int) -> str:
    return str(Path(get_composition_dir()) / f"{composition_id}.json")


def list_composition_ids() -> List[int]:
    path = ensure_composition_dir()
    ids = [int(f[:-5]) for f in os.listdir(path) if f.endswith(".json") and f[:-5].isdigit()]
    ids.sort()
    return ids


def load_composition(composition_id: int) -> Composition:
    with open(_composition_path(composition_id), "r", encoding="utf-8") as f:
        payload = json.load(f)
    try:
        return Composition.from_dict(payload)
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid composition file {composition_id}.json: {e}")


def save_composition(composition: Composition) -> None:
    ensure_composition_dir()
    with open(_composition_path(composition.id), "w", encoding="utf-8") as f:
        json.dump(composition.to_dict(), f, ensure_ascii=False, indent=2)


class JsonCompositionRepository:
    """One JSON file per composition under :func:`get_composition_dir`."""

    def add(self, composition: Composition) -> Composition:
        ids = list_composition_ids()
        composition.id = (ids[-1] + 1) if ids else 1
        save_composition(composition)
        return composition

    def get(self, composition_id: int) -> Optional[Composition]:
        if not os.path.exists(_composition_path(composition_id)):
            return None
        return load_composition(composition_id)

    def save(self, composition: Composition) -> None:
        if composition.id is None:
            raise ValueError("composition has no id; use add()")
        save_composition(composition)

    def list_active(
        self,
        status: Optional[CompositionStatus] = None,
        created_by: Optional[int] = None,
    ) -> List[Composition]:
        found = []
        for composition_id in list_composition_ids():
            composition = load_composition(composition_id)
            if not composition.is_active:
                continue
            if status is not None and composition.status != status:
                continue
            if created_by is not None and composition.created_by != created_by:
                continue
            found.append(composition)
        return found


__all__ = [
    "COMPOSITION_DIR_ENV",
    "JsonCompositionRepository",
    "get_composition_dir",
    "ensure_composition_dir",
    "list_composition_ids",
    "load_composition",
    "save_composition",
]
