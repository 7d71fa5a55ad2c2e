"""
Raw JSON collections.

Authoritative record sets (applications, uploads, tickets, ratings) live as
plain JSON arrays directly in the backend, without an expiry envelope.
Reads decode each element through a pydantic model; a corrupt array reads
as empty and malformed elements are skipped, both with a warning. Writes
keep the elements they do not touch, malformed ones included.
"""

from __future__ import annotations

import json
from typing import Any, Generic, TypeVar

import pydantic
from pydantic import BaseModel

from ..core.logging import get_logger
from .protocol import KeyValueBackend

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Authoritative collection keys (shared flat namespace)
APPLICATIONS_KEY = "medicApplications"
UPLOADS_KEY = "galleryUploads"
TICKETS_KEY = "medic_tickets"
RATINGS_KEY = "medic_ratings"
THEME_KEY = "medic_theme"
CONFIG_KEY = "medic_config"


def read_json(backend: KeyValueBackend, key: str, default: object = None) -> object:
    """Parse the raw JSON stored under key, returning default if absent or corrupt."""
    raw = backend.get_item(key)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except ValueError as e:
        logger.warning("Corrupt JSON under %s, treating as absent: %s", key, e)
        return default


class RecordCollection(Generic[ModelT]):
    """
    Typed view over one authoritative JSON array.

    ``load()`` never raises; ``save()`` propagates StorageFailureError so the
    calling operation can report the failure in its result.

    Writes go through ``load_raw()`` rather than ``load()``: an operation
    replaces, appends or removes only the element it touches, and every
    other stored element is written back as it was read, including elements
    the model cannot decode.
    """

    def __init__(self, backend: KeyValueBackend, key: str, model: type[ModelT]):
        self.backend = backend
        self.key = key
        self.model = model

    def load_raw(self) -> list[Any]:
        """Return the stored array as-is (empty if absent, corrupt or not a list)."""
        data = read_json(self.backend, self.key, default=[])
        if not isinstance(data, list):
            logger.warning("Expected a list under %s, got %s", self.key, type(data).__name__)
            return []
        return data

    def load(self) -> list[ModelT]:
        """Decode every well-formed record in stored order."""
        return self.decode(self.load_raw())

    def decode(self, items: list[Any]) -> list[ModelT]:
        """Validate plain dicts into models, skipping malformed ones."""
        return [record for _, record in self.decode_indexed(items)]

    def decode_indexed(self, items: list[Any]) -> list[tuple[int, ModelT]]:
        """Like decode(), but pair each record with its position in items."""
        records: list[tuple[int, ModelT]] = []
        for index, item in enumerate(items):
            try:
                records.append((index, self.model.model_validate(item)))
            except pydantic.ValidationError as e:
                logger.warning(
                    "Skipping malformed %s record in %s: %s",
                    self.model.__name__,
                    self.key,
                    e.errors()[0]["msg"],
                )
        return records

    @staticmethod
    def encode(records: list[ModelT]) -> list[dict]:
        """Dump models to the persisted (camelCase) shape."""
        return [record.model_dump(mode="json", by_alias=True) for record in records]

    def save(self, items: list[Any]) -> None:
        """
        Replace the stored array.

        Model elements are dumped to their persisted shape; anything else is
        written unchanged.

        Raises:
            StorageFailureError: if the backend rejects the write
        """
        payload = [
            item.model_dump(mode="json", by_alias=True) if isinstance(item, BaseModel) else item
            for item in items
        ]
        self.backend.set_item(self.key, json.dumps(payload, ensure_ascii=False))


def field_values(items: list[Any], field: str) -> set[str]:
    """Collect the string values of one persisted field across a raw array."""
    return {item[field] for item in items if isinstance(item, dict) and isinstance(item.get(field), str)}
