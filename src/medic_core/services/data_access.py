"""
Data Access Service for applications and uploads.

Typed façade over the key-value backend:
- Authoritative collections (medicApplications, galleryUploads) are raw
  JSON arrays with no expiry
- Each collection is mirrored by a 5-minute cache entry in the expiring
  store; every write invalidates its mirror before returning
- Reads are async and pause for a simulated network delay on cache miss
- Every successful submission appends one activity-log entry

Write operations never raise for expected failures; they return an
OperationResult carrying the error code and message.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Mapping
from typing import Any

import pydantic

from ..core.formatters import (
    Clock,
    epoch_millis,
    format_timestamp,
    generate_record_id,
    sequence_number,
    system_clock,
)
from ..core.logging import get_logger
from ..errors import MedicError, ValidationError
from ..models import (
    RECORD_STATUSES,
    ActivityLogEntry,
    Application,
    MedicModel,
    OperationResult,
    RecordType,
    SearchHit,
    SearchScope,
    Upload,
)
from ..site_config import SiteConfig
from ..storage.collections import APPLICATIONS_KEY, UPLOADS_KEY, RecordCollection, field_values
from ..storage.expiring import ExpiringStore

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

CACHE_TTL_SECONDS = 5 * 60
ACTIVITY_LOG_KEY = "activity_logs"
ACTIVITY_LOG_TTL_SECONDS = 30 * 24 * 60 * 60
ACTIVITY_LOG_LIMIT = 1000
DEFAULT_READ_DELAY_SECONDS = 0.5

APPLICATION_SEARCH_FIELDS = ("game_username", "discord_id", "why_join", "status")
UPLOAD_SEARCH_FIELDS = ("name", "description", "category")


class DataAccessService:
    """
    Submit, fetch, search and aggregate applications and uploads.

    Collections are read through a short-lived cache in the expiring store.
    The service is the only writer of both collections and of the activity
    log.
    """

    def __init__(
        self,
        storage: ExpiringStore,
        config: SiteConfig | None = None,
        clock: Clock = system_clock,
        read_delay: float = DEFAULT_READ_DELAY_SECONDS,
        strict_validation: bool = False,
        user_agent: str = "medic-core",
    ):
        self.storage = storage
        self.config = config or SiteConfig()
        self.clock = clock
        self.read_delay = read_delay
        self.strict_validation = strict_validation
        self.user_agent = user_agent
        self._collections: dict[str, RecordCollection[Any]] = {
            "applications": RecordCollection(storage.backend, APPLICATIONS_KEY, Application),
            "uploads": RecordCollection(storage.backend, UPLOADS_KEY, Upload),
        }

    @property
    def cache_ttl(self) -> float:
        return self.config.get("cache.ttl", CACHE_TTL_SECONDS)

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_applications(self, force_refresh: bool = False) -> list[Application]:
        """
        Return all applications, from cache unless forced or missing.

        Args:
            force_refresh: Bypass the cache and re-read the collection
        """
        return await self._load("applications", force_refresh=force_refresh)

    async def get_uploads(self) -> list[Upload]:
        """Return all upload requests, from cache when available."""
        return await self._load("uploads")

    async def _load(
        self,
        kind: str,
        force_refresh: bool = False,
        populate_cache: bool = True,
    ) -> list[Any]:
        collection = self._collections[kind]

        if not force_refresh:
            cached = self.storage.get(kind)
            if isinstance(cached, list):
                return collection.decode(cached)

        # Simulated network round trip
        await asyncio.sleep(self.read_delay)

        records = collection.load()
        if populate_cache:
            self.storage.set(kind, collection.encode(records), ttl=self.cache_ttl)
        return records

    def invalidate(self, kind: str) -> None:
        """Drop the cache mirror of a collection."""
        self.storage.remove(kind)

    def _commit(self, kind: str, items: list[Any]) -> None:
        """
        Persist a raw collection array and invalidate its cache mirror.

        Raises:
            StorageFailureError: if the backend rejects the write
        """
        self._collections[kind].save(items)
        self.invalidate(kind)

    # =========================================================================
    # Submissions
    # =========================================================================

    async def submit_application(self, data: Mapping[str, Any]) -> OperationResult:
        """
        Validate and append a membership application.

        Returns:
            OperationResult with request_number and the stored record, or a
            failed result (VALIDATION_ERROR, STORAGE_FAILURE)
        """
        try:
            payload = Application.normalize_keys(dict(data))
            self._validate_application(payload)

            items = self._collections["applications"].load_raw()
            now = self._unique_now(field_values(items, "requestNumber"), "MED", self.clock())
            payload.update(
                id=generate_record_id(now),
                requestNumber=sequence_number("MED", now),
                timestamp=format_timestamp(now),
                status="pending",
            )
            application = _build(Application, payload)

            items.append(application)
            self._commit("applications", items)
        except MedicError as e:
            logger.warning("Application rejected: %s", e)
            return OperationResult.from_error(e)

        self.log_activity("application_submit", application.to_dict())
        logger.info("Application %s submitted", application.request_number)
        return OperationResult.ok(
            "Application submitted successfully",
            request_number=application.request_number,
            data=application,
        )

    async def submit_upload(self, data: Mapping[str, Any]) -> OperationResult:
        """
        Validate and append a gallery upload request.

        Returns:
            OperationResult with the stored record, or a failed result
        """
        try:
            payload = Upload.normalize_keys(dict(data))
            missing = [f for f in ("name", "description") if not _text(payload.get(f))]
            if missing:
                raise ValidationError("Name and description are required", fields=missing)

            items = self._collections["uploads"].load_raw()
            now = self._unique_now(field_values(items, "uploadNumber"), "UPL", self.clock())
            payload.setdefault("category", "operations")
            payload.update(
                id=generate_record_id(now),
                uploadNumber=sequence_number("UPL", now),
                date=format_timestamp(now),
                status="pending",
            )
            upload = _build(Upload, payload)

            items.append(upload)
            self._commit("uploads", items)
        except MedicError as e:
            logger.warning("Upload rejected: %s", e)
            return OperationResult.from_error(e)

        self.log_activity("upload_submit", upload.to_dict())
        logger.info("Upload %s submitted", upload.upload_number)
        return OperationResult.ok("Upload request submitted", data=upload)

    def _validate_application(self, payload: dict[str, Any]) -> None:
        username = _text(payload.get("gameUsername"))
        if not username:
            raise ValidationError("Game username is required", fields=["gameUsername"])

        if not self.strict_validation:
            return

        rules = self.config.get("forms.validation.game_username", {})
        min_length = rules.get("min_length")
        max_length = rules.get("max_length")
        if min_length is not None and len(username) < min_length:
            raise ValidationError(
                f"Game username must be at least {min_length} characters", fields=["gameUsername"]
            )
        if max_length is not None and len(username) > max_length:
            raise ValidationError(
                f"Game username must be at most {max_length} characters", fields=["gameUsername"]
            )
        pattern = rules.get("pattern")
        if pattern and not re.match(pattern, username):
            raise ValidationError("Game username has invalid characters", fields=["gameUsername"])

        discord_id = _text(payload.get("discordId"))
        discord_pattern = self.config.get("forms.validation.discord_id.pattern")
        if discord_id and discord_pattern and not re.match(discord_pattern, discord_id):
            raise ValidationError("Discord ID is not valid", fields=["discordId"])

    @staticmethod
    def _unique_now(existing_numbers: set[str], prefix: str, now: float) -> float:
        """Advance now by whole milliseconds until its sequence number is unused."""
        while sequence_number(prefix, now) in existing_numbers:
            now += 0.001
        return now

    # =========================================================================
    # Activity Log
    # =========================================================================

    def log_activity(self, action: str, data: Any = None) -> bool:
        """
        Prepend an entry to the activity log.

        The log is capped (oldest entries dropped) and always stored with the
        30-day log TTL regardless of the store's default.

        Returns:
            False if the log could not be written
        """
        now = self.clock()
        entry = ActivityLogEntry(
            id=epoch_millis(now),
            timestamp=format_timestamp(now),
            action=action,
            data=data if data is not None else {},
            user_agent=self.user_agent,
        )

        logs = self.storage.get(ACTIVITY_LOG_KEY)
        if not isinstance(logs, list):
            logs = []
        logs.insert(0, entry.to_dict())

        limit = self.config.get("activity.max_entries", ACTIVITY_LOG_LIMIT)
        del logs[limit:]

        ttl = self.config.get("activity.ttl", ACTIVITY_LOG_TTL_SECONDS)
        return self.storage.set(ACTIVITY_LOG_KEY, logs, ttl=ttl)

    def get_activity_logs(self, limit: int = 50) -> list[ActivityLogEntry]:
        """Newest-first prefix of the activity log."""
        return self._all_activity_logs()[: max(limit, 0)]

    def _all_activity_logs(self) -> list[ActivityLogEntry]:
        logs = self.storage.get(ACTIVITY_LOG_KEY)
        if not isinstance(logs, list):
            return []
        entries = []
        for item in logs:
            try:
                entries.append(ActivityLogEntry.model_validate(item))
            except pydantic.ValidationError:
                logger.debug("Skipping malformed activity log entry")
        return entries

    # =========================================================================
    # Aggregates & Queries
    # =========================================================================

    async def get_stats(self) -> dict[str, Any]:
        """
        Per-status counts for both collections plus a system summary.

        Reads through the cache when it is warm but never writes it.
        """
        applications = await self._load("applications", populate_cache=False)
        uploads = await self._load("uploads", populate_cache=False)
        logs = self._all_activity_logs()

        return {
            "applications": _status_counts(applications),
            "uploads": _status_counts(uploads),
            "system": {
                "logs_count": len(logs),
                "storage": self.storage.get_stats(),
                "last_activity": logs[0].timestamp if logs else None,
            },
        }

    async def search(self, query: str, type: SearchScope = "all") -> list[SearchHit]:
        """
        Case-insensitive substring search.

        Applications match on game username, discord id, reason for joining
        and status; uploads on name, description and category. An empty
        query matches every record.
        """
        term = (query or "").lower().strip()
        results: list[SearchHit] = []

        if type in ("applications", "all"):
            for app in await self.get_applications():
                if _matches(app, APPLICATION_SEARCH_FIELDS, term):
                    results.append(SearchHit(type="application", data=app))

        if type in ("uploads", "all"):
            for upload in await self.get_uploads():
                if _matches(upload, UPLOAD_SEARCH_FIELDS, term):
                    results.append(SearchHit(type="upload", data=upload))

        return results

    async def filter(
        self,
        filters: Mapping[str, Any],
        type: RecordType = "applications",
    ) -> list[Any]:
        """
        Exact-match AND filter.

        Keys may be camelCase or snake_case; falsy values are ignored.
        """
        records = await self.get_applications() if type == "applications" else await self.get_uploads()

        active = {key: value for key, value in filters.items() if value}
        if not active:
            return list(records)

        def keep(record: MedicModel) -> bool:
            fields = {**record.model_dump(mode="json"), **record.to_dict()}
            return all(fields.get(key) == value for key, value in active.items())

        return [record for record in records if keep(record)]


# =============================================================================
# Helpers
# =============================================================================


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _build(model: type[MedicModel], payload: dict[str, Any]) -> Any:
    """Validate a payload into a model, mapping schema errors to ValidationError."""
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ValidationError(f"Invalid {field}: {first['msg']}", fields=[field]) from e


def _matches(record: MedicModel, fields: tuple[str, ...], term: str) -> bool:
    for name in fields:
        value = getattr(record, name, None)
        if isinstance(value, str) and term in value.lower():
            return True
    return False


def _status_counts(records: list[Any]) -> dict[str, int]:
    counts = {"total": len(records)}
    for status in RECORD_STATUSES:
        counts[status] = sum(1 for r in records if r.status == status)
    return counts


__all__ = [
    "DataAccessService",
    "CACHE_TTL_SECONDS",
    "ACTIVITY_LOG_KEY",
    "ACTIVITY_LOG_LIMIT",
    "ACTIVITY_LOG_TTL_SECONDS",
]
