"""
Medic Context.

One explicit object wiring the storage backend, site configuration,
expiring store and domain services together. Built once at start-up by
``create_context()`` and handed to collaborators by reference.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from . import __version__
from .core.config import MedicSettings, get_settings
from .core.formatters import Clock, system_clock
from .core.logging import get_logger
from .services import DataAccessService, RatingService, ThemePreferences, TicketService
from .site_config import SiteConfig
from .storage import ExpiringStore, KeyValueBackend, MemoryBackend, SQLiteBackend

logger = get_logger(__name__)


@dataclass
class MedicContext:
    """Process-wide registry of the data layer components."""

    backend: KeyValueBackend
    config: SiteConfig
    storage: ExpiringStore
    api: DataAccessService
    tickets: TicketService
    ratings: RatingService
    theme: ThemePreferences
    settings: MedicSettings
    initialized: bool = field(default=False)

    def init(self) -> int:
        """
        Sweep expired entries once.

        Returns:
            Number of entries removed (0 on repeated calls)
        """
        if self.initialized:
            return 0
        removed = self.storage.cleanup()
        self.initialized = True
        logger.info("Medic data layer initialized (%d expired entries removed)", removed)
        return removed

    def get_system_info(self) -> dict[str, Any]:
        return {
            "version": __version__,
            "initialized": self.initialized,
            "debug": bool(self.config.get("debug")) or self.settings.debug,
            "theme": self.theme.get_theme_info(),
            "storage": self.storage.get_stats(),
        }

    def close(self) -> None:
        """Release the backend connection, if it holds one."""
        if isinstance(self.backend, SQLiteBackend):
            self.backend.close()


def build_backend(settings: MedicSettings) -> KeyValueBackend:
    """Instantiate the backend selected by settings."""
    if settings.storage_backend == "memory":
        return MemoryBackend(quota_bytes=settings.quota_bytes)
    return SQLiteBackend(settings.db_path, quota_bytes=settings.quota_bytes)


def create_context(
    settings: Optional[MedicSettings] = None,
    backend: Optional[KeyValueBackend] = None,
    clock: Optional[Clock] = None,
) -> MedicContext:
    """
    Build a fully wired context.

    Args:
        settings: Settings to use (defaults to get_settings())
        backend: Backend to use instead of the one settings select
        clock: Time source for every component (defaults to time.time)
    """
    settings = settings or get_settings()
    backend = backend if backend is not None else build_backend(settings)
    clock = clock or system_clock

    config = SiteConfig(backend=backend)
    if settings.config_file is not None:
        config.load_yaml(settings.config_file)
    config.load_from_storage()

    storage = ExpiringStore(
        backend,
        prefix=config.get("storage.prefix", "medic_"),
        default_ttl=config.get("storage.default_ttl", 24 * 60 * 60),
        clock=clock,
    )
    api = DataAccessService(
        storage,
        config=config,
        clock=clock,
        read_delay=settings.read_delay_seconds,
        strict_validation=settings.strict_validation,
    )
    tickets = TicketService(
        backend,
        clock=clock,
        activity_logger=api.log_activity,
        admin_sender=config.get("tickets.admin_sender", "System Admin"),
        anonymous_sender=config.get("tickets.anonymous_sender", "Anonymous"),
    )

    return MedicContext(
        backend=backend,
        config=config,
        storage=storage,
        api=api,
        tickets=tickets,
        ratings=RatingService(backend, clock=clock),
        theme=ThemePreferences(backend),
        settings=settings,
    )
