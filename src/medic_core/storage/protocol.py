"""
Key-Value Backend Protocol Interface.

Defines the physical store every other storage component sits on: a flat,
synchronous namespace of string keys to string values, shared by everything
in the process. Implementations raise StorageQuotaError (a
StorageFailureError) when a write would exceed their byte quota.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol, runtime_checkable

from ..errors import StorageQuotaError


@runtime_checkable
class KeyValueBackend(Protocol):
    """
    Abstract interface for a string key-value store.

    Design notes:
    - All operations are synchronous and globally visible to the process
    - remove_item is idempotent
    - keys() returns a snapshot, safe to iterate while mutating
    """

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored string or None if the key is absent."""
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Store a string under key, replacing any previous value.

        Raises:
            StorageFailureError: if the write is rejected
        """
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete key if present."""
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        """Return all keys currently stored."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove every key."""
        ...

    @abstractmethod
    def size_bytes(self) -> int:
        """Approximate stored size (keys plus values, UTF-8)."""
        ...


def entry_size(key: str, value: str) -> int:
    """Bytes a single key/value pair counts against a quota."""
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


def check_quota(key: str, value: str, current: int, previous: str | None, quota: int | None) -> None:
    """
    Raise StorageQuotaError if replacing ``previous`` with ``value`` overflows.

    Args:
        key: Key being written
        value: New value
        current: Bytes currently stored
        previous: Value being replaced, if any
        quota: Byte quota (None = unlimited)
    """
    if quota is None:
        return
    required = current + entry_size(key, value)
    if previous is not None:
        required -= entry_size(key, previous)
    if required > quota:
        raise StorageQuotaError(key, required, quota)
