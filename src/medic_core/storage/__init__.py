"""
Medic Storage - Local Persistent Key-Value Layer.

Key Components:
- KeyValueBackend: protocol for the physical string store
- MemoryBackend / SQLiteBackend: backend implementations
- ExpiringStore: namespaced values with per-entry TTL
- RecordCollection: typed view over an authoritative JSON array

Usage:
    from medic_core.storage import ExpiringStore, MemoryBackend

    store = ExpiringStore(MemoryBackend())
    store.set("applications", [], ttl=300)
    store.get("applications")
"""

from .collections import (
    APPLICATIONS_KEY,
    CONFIG_KEY,
    RATINGS_KEY,
    THEME_KEY,
    TICKETS_KEY,
    UPLOADS_KEY,
    RecordCollection,
    read_json,
)
from .expiring import DEFAULT_PREFIX, DEFAULT_TTL_SECONDS, ExpiringStore, StoredEntry
from .memory import MemoryBackend
from .protocol import KeyValueBackend
from .sqlite import SQLiteBackend

__all__ = [
    # Backends
    "KeyValueBackend",
    "MemoryBackend",
    "SQLiteBackend",
    # Expiring store
    "ExpiringStore",
    "StoredEntry",
    "DEFAULT_PREFIX",
    "DEFAULT_TTL_SECONDS",
    # Collections
    "RecordCollection",
    "read_json",
    "APPLICATIONS_KEY",
    "UPLOADS_KEY",
    "TICKETS_KEY",
    "RATINGS_KEY",
    "THEME_KEY",
    "CONFIG_KEY",
]
