"""
Medic Test Suite - Shared Fixtures and Configuration

Every fixture runs against an in-memory backend and a controllable clock so
expiry, caching and identifier generation are deterministic.
"""

from __future__ import annotations

import os
from unittest import mock

import pytest

from medic_core.core.config import MedicSettings, reset_settings
from medic_core.core.logging import reset_logging
from medic_core.services import DataAccessService, RatingService, ThemePreferences, TicketService
from medic_core.site_config import SiteConfig
from medic_core.storage import ExpiringStore, MemoryBackend

# 2023-11-14T22:13:20.000Z
BASE_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = BASE_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_all_singletons():
    """
    Reset module-level state between tests.

    Clears the settings cache (so MEDIC_* changes are picked up) and restores
    logger propagation so caplog sees records.
    """
    reset_settings()
    reset_logging()
    yield
    reset_settings()
    reset_logging()


@pytest.fixture
def clean_env():
    """Run with no MEDIC_* variables set."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("MEDIC_")}
    with mock.patch.dict(os.environ, env, clear=True):
        yield


@pytest.fixture
def memory_settings(tmp_path) -> MedicSettings:
    """Settings selecting the memory backend with no read delay."""
    return MedicSettings(
        storage_backend="memory",
        instance_root=tmp_path,
        read_delay_seconds=0,
    )


# =============================================================================
# Storage
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend, clock) -> ExpiringStore:
    return ExpiringStore(backend, clock=clock)


@pytest.fixture
def site_config(backend) -> SiteConfig:
    return SiteConfig(backend=backend)


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def api(store, site_config, clock) -> DataAccessService:
    """Data access service with the simulated network delay disabled."""
    return DataAccessService(store, config=site_config, clock=clock, read_delay=0)


@pytest.fixture
def tickets(backend, clock, api) -> TicketService:
    return TicketService(backend, clock=clock, activity_logger=api.log_activity)


@pytest.fixture
def ratings(backend, clock) -> RatingService:
    return RatingService(backend, clock=clock)


@pytest.fixture
def theme(backend) -> ThemePreferences:
    return ThemePreferences(backend)
