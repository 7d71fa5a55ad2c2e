"""
Expiring key-value store.

Wraps every value in a ``{value, expiry, version}`` envelope under a fixed
key prefix. Expiry is enforced lazily: any read of an expired entry deletes
it and reports it absent. ``cleanup()`` sweeps the namespace on a
best-effort basis; a partial sweep is harmless because reads enforce expiry
on their own.
"""

from __future__ import annotations

from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict

from ..core.formatters import Clock, system_clock
from ..core.logging import get_logger
from ..errors import StorageFailureError
from .protocol import KeyValueBackend

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

DEFAULT_PREFIX = "medic_"
DEFAULT_TTL_SECONDS = 24 * 60 * 60
ENVELOPE_VERSION = "2.2"


class StoredEntry(BaseModel):
    """Envelope persisted for every expiring entry."""

    model_config = ConfigDict(extra="ignore")

    value: Any
    expiry: float  # epoch seconds
    version: str = ENVELOPE_VERSION

    def is_expired(self, now: float) -> bool:
        return now > self.expiry


class ExpiringStore:
    """
    Namespaced get/set/remove with per-entry time-to-live.

    Never raises for storage problems: failed writes return False and
    corrupt or expired entries read as None.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        prefix: str = DEFAULT_PREFIX,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Clock = system_clock,
    ):
        self.backend = backend
        self.prefix = prefix
        self.default_ttl = default_ttl
        self.clock = clock

    def _full_key(self, key: str) -> str:
        return self.prefix + key

    def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """
        Store value under key for ttl seconds (default_ttl when omitted).

        Returns:
            True on success, False if the backend rejected the write
        """
        if ttl is None:
            ttl = self.default_ttl

        entry = StoredEntry(value=value, expiry=self.clock() + ttl)
        try:
            self.backend.set_item(self._full_key(key), entry.model_dump_json())
        except StorageFailureError as e:
            logger.error("Failed to store %s: %s", key, e)
            return False
        return True

    def get(self, key: str) -> Any:
        """
        Read the live value for key.

        Returns None when the key is absent, corrupt, or expired. Expired
        entries are deleted as a side effect.
        """
        raw = self.backend.get_item(self._full_key(key))
        if raw is None:
            return None

        try:
            entry = StoredEntry.model_validate_json(raw)
        except pydantic.ValidationError as e:
            # Raw (non-envelope) keys share the prefix and land here too
            logger.debug("Ignoring unreadable entry %s: %s", key, e.errors()[0]["msg"])
            return None

        if entry.is_expired(self.clock()):
            logger.debug("Entry %s expired", key)
            self.remove(key)
            return None

        return entry.value

    def remove(self, key: str) -> None:
        """Delete key. Idempotent."""
        self.backend.remove_item(self._full_key(key))

    def cleanup(self) -> int:
        """
        Force a read of every namespaced key so expired entries are deleted.

        Returns:
            Number of entries removed
        """
        removed = 0
        for full_key in self.backend.keys():
            if not full_key.startswith(self.prefix):
                continue
            key = full_key[len(self.prefix) :]
            self.get(key)
            if self.backend.get_item(full_key) is None:
                removed += 1

        if removed:
            logger.info("Cleanup removed %d expired entries", removed)
        return removed

    def get_all(self, group: str) -> list[Any]:
        """Return every live value whose key starts with the group prefix."""
        items = []
        for full_key in self.backend.keys():
            if full_key.startswith(self.prefix + group):
                value = self.get(full_key[len(self.prefix) :])
                if value is not None:
                    items.append(value)
        return items

    def get_stats(self) -> dict[str, Any]:
        """
        Summarize the namespace.

        Returns:
            Dict with total namespaced keys, backend size in bytes, and the
            distinct key groups (first segment after the prefix)
        """
        keys = [k for k in self.backend.keys() if k.startswith(self.prefix)]
        groups = sorted({k[len(self.prefix) :].split("_")[0] for k in keys})
        return {
            "total": len(keys),
            "size": self.backend.size_bytes(),
            "groups": groups,
        }
