"""
Site configuration.

A nested settings mapping addressed by dot paths (``storage.default_ttl``,
``forms.validation.game_username.pattern``). Defaults are built in; an
optional YAML file and the persisted ``medic_config`` entry are merged on
top. Anything absent or unreadable falls back to the defaults, so the data
layer always has a usable value.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

import yaml

from .core.logging import get_logger
from .errors import StorageFailureError
from .storage.collections import CONFIG_KEY, read_json
from .storage.protocol import KeyValueBackend

logger = get_logger(__name__)

DAY_SECONDS = 24 * 60 * 60

DEFAULT_CONFIG: dict[str, Any] = {
    "version": "2.2.0",
    "environment": "production",  # development, staging, production
    "debug": False,
    "storage": {
        "prefix": "medic_",
        "default_ttl": DAY_SECONDS,
        "max_items": {
            "applications": 1000,
            "uploads": 500,
        },
    },
    "cache": {
        "ttl": 5 * 60,
    },
    "activity": {
        "ttl": 30 * DAY_SECONDS,
        "max_entries": 1000,
    },
    "forms": {
        "validation": {
            "game_username": {
                "required": True,
                "min_length": 3,
                "max_length": 20,
                "pattern": r"^[a-zA-Z0-9_]+$",
            },
            "discord_id": {
                "required": False,
                "pattern": r"^.{3,32}#[0-9]{4}$",
            },
        },
    },
    "tickets": {
        "admin_sender": "System Admin",
        "anonymous_sender": "Anonymous",
    },
    "features": {
        "rating_system": True,
        "ticket_system": True,
        "analytics": True,
    },
}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class SiteConfig:
    """Dot-path accessible configuration tree."""

    def __init__(self, values: dict[str, Any] | None = None, backend: KeyValueBackend | None = None):
        self._values = deep_merge(DEFAULT_CONFIG, values or {})
        self.backend = backend

    def get(self, path: str, default: Any = None) -> Any:
        """
        Look up a dot-separated path.

        Returns:
            The value, or default when any segment is missing
        """
        value: Any = self._values
        for part in path.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value

    def set(self, path: str, value: Any) -> bool:
        """Set a dot-separated path, creating intermediate mappings."""
        parts = path.split(".")
        node = self._values
        for part in parts[:-1]:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
        return True

    def get_all(self) -> dict[str, Any]:
        """Deep copy of the whole tree."""
        return copy.deepcopy(self._values)

    def is_development(self) -> bool:
        return self.get("environment") == "development"

    # =========================================================================
    # Persistence
    # =========================================================================

    def save_to_storage(self) -> bool:
        """Persist the tree under medic_config. Returns False on failure."""
        if self.backend is None:
            return False
        try:
            self.backend.set_item(CONFIG_KEY, json.dumps(self._values))
        except StorageFailureError as e:
            logger.error("Failed to save site configuration: %s", e)
            return False
        return True

    def load_from_storage(self) -> bool:
        """Merge the persisted tree over the current values. Returns True if one was found."""
        if self.backend is None:
            return False
        saved = read_json(self.backend, CONFIG_KEY)
        if not isinstance(saved, dict):
            return False
        self._values = deep_merge(self._values, saved)
        return True

    def load_yaml(self, path: Path | str) -> bool:
        """
        Merge a YAML override file over the current values.

        Returns:
            True if the file was read and merged
        """
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.warning("Site configuration file not found: %s", path)
            return False
        except yaml.YAMLError as e:
            logger.warning("Invalid site configuration file %s: %s", path, e)
            return False

        if data is None:
            return True
        if not isinstance(data, dict):
            logger.warning("Site configuration file %s must contain a mapping", path)
            return False
        self._values = deep_merge(self._values, data)
        return True
