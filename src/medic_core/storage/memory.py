"""
In-memory key-value backend.

Mirrors browser local storage inside a single process: a dict of strings
with an optional byte quota. Contents are lost when the process exits.
"""

from __future__ import annotations

from .protocol import check_quota, entry_size


class MemoryBackend:
    """Dictionary-backed KeyValueBackend with an optional byte quota."""

    def __init__(self, quota_bytes: int | None = None, initial: dict[str, str] | None = None):
        self.quota_bytes = quota_bytes
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        check_quota(key, value, self.size_bytes(), self._items.get(key), self.quota_bytes)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def size_bytes(self) -> int:
        return sum(entry_size(k, v) for k, v in self._items.items())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"MemoryBackend(keys={len(self._items)}, quota_bytes={self.quota_bytes})"
