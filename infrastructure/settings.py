"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import copy
import json
import locale
import os
from pathlib import Path
from typing import Any

from loguru import logger

APP_DATA_DIR = Path.home() / "AppData" / "Local" / "VaultGallery"

DEFAULT_SETTINGS: dict[str, Any] = {
    "pin": {
        "length": 4,
        "store_path": str(APP_DATA_DIR / "vault.json"),
        "hash": True,
        "hash_iterations": 200_000,
    },
    "biometric": {"enabled": True, "delay_seconds": 1.5, "success_rate": 0.9},
    "detection": {"enabled": True, "max_people": 2},
    "viewer": {"thumbnail_size": 256, "preview_side": 1600, "mem_cache": 128},
    "logging": {"dir": None, "level": "INFO"},
    # Empty locale means the user environment (LANG, LC_TIME).
    "display": {"locale": ""},
    "people": [],
}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively overlay `override` onto a copy of `base`."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class JsonSettings:
    """JSON settings reader with dotted-key access over built-in defaults."""

    def __init__(self, settings_path: str | Path, defaults: dict[str, Any] | None = None) -> None:
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise ValueError(f"settings.json must contain an object: {self._path}")
        self._data = _merge(DEFAULT_SETTINGS if defaults is None else defaults, raw)

    @classmethod
    def defaults(cls) -> JsonSettings:
        """Settings made of the built-in defaults only."""
        inst = cls.__new__(cls)
        inst._path = Path()
        inst._data = copy.deepcopy(DEFAULT_SETTINGS)
        return inst

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(self.get(key, default))
        except (ValueError, TypeError):
            logger.warning("Setting {} is not an integer, using {}", key, default)
            return default

    def get_float(self, key: str, default: float) -> float:
        try:
            return float(self.get(key, default))
        except (ValueError, TypeError):
            logger.warning("Setting {} is not a number, using {}", key, default)
            return default

    def get_path(self, key: str, default: str | Path) -> Path:
        """Return a path setting with `~` and environment variables expanded."""
        raw = self.get(key, None) or default
        return Path(os.path.expanduser(os.path.expandvars(str(raw))))


def apply_locale(name: str = "") -> bool:
    """Use `name` (or the user environment when empty) for date names."""
    try:
        locale.setlocale(locale.LC_TIME, name)
    except locale.Error as ex:
        current = locale.setlocale(locale.LC_TIME)
        logger.warning("Locale {!r} unavailable, keeping {}: {}", name, current, ex)
        return False
    return True
