from __future__ import annotations

import logging
import math
import os
from functools import lru_cache
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

SETTINGS_ENV = "PACKAGING_CORE_SETTINGS"

DEFAULT_SETTINGS: Dict[str, float] = {
    "weight_factor": 0.4,
    "volume_factor": 0.4,
    "height_factor": 0.2,
    "near_capacity": 0.9,
    "height_near_limit": 0.9,
    "low_efficiency": 0.5,
    "reorganize_efficiency": 0.7,
    "underused_weight": 0.5,
    "max_stable_layers": 3,
    "rating_excellent": 0.8,
    "rating_good": 0.6,
    "rating_satisfactory": 0.5,
}


def settings_path() -> str:
    env_path = os.getenv(SETTINGS_ENV)
    if env_path:
        return os.path.expanduser(env_path)
    return os.path.join(os.path.dirname(__file__), "settings.yaml")


def _read_settings_file(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        logger.debug("Settings file %s not found, using defaults", path)
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Cannot read settings from %s: %s", path, exc)
        return {}
    if not isinstance(loaded, dict):
        logger.warning("Settings file %s is not a mapping, using defaults", path)
        return {}
    return loaded


@lru_cache(maxsize=None)
def load_settings() -> Dict[str, float]:
    """Load thresholds and efficiency weights from ``settings.yaml``.

    Known keys override :data:`DEFAULT_SETTINGS`; values that are not finite
    non-negative numbers are ignored. Call ``load_settings.cache_clear()``
    after changing the file or ``PACKAGING_CORE_SETTINGS``.
    """
    data = _read_settings_file(settings_path())
    settings = DEFAULT_SETTINGS.copy()
    for key in DEFAULT_SETTINGS:
        if key not in data:
            continue
        value = data[key]
        if isinstance(value, bool):
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid setting %s=%r", key, value)
            continue
        if not math.isfinite(number) or number < 0:
            logger.warning("Ignoring invalid setting %s=%r", key, value)
            continue
        settings[key] = number
    return settings


def efficiency_weights(settings: Dict[str, float] | None = None) -> Dict[str, float]:
    """Weights of weight/volume/height utilization, normalised to sum to 1."""
    settings = settings or load_settings()
    raw = {
        "weight": settings["weight_factor"],
        "volume": settings["volume_factor"],
        "height": settings["height_factor"],
    }
    total = sum(raw.values())
    if total <= 0:
        raw = {
            "weight": DEFAULT_SETTINGS["weight_factor"],
            "volume": DEFAULT_SETTINGS["volume_factor"],
            "height": DEFAULT_SETTINGS["height_factor"],
        }
        total = sum(raw.values())
    return {key: value / total for key, value in raw.items()}


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_ENV", "load_settings", "efficiency_weights", "settings_path"]
