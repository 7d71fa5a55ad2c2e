"""
Medic Core Centralized Configuration

Provides validated, type-safe access to all environment variables using Pydantic Settings.
All environment variables are validated at first access with helpful error messages.

Usage:
    from medic_core.core.config import get_settings

    settings = get_settings()
    if settings.storage_backend == "sqlite":
        ...

Data Paths:
    Persistent state is stored in {instance_root}/data/:
    - data/medic.db: SQLite key-value store (sqlite backend only)

Environment Variables:
    MEDIC_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    MEDIC_DEBUG: Legacy debug flag (enables DEBUG level if set)
    MEDIC_LOG_JSON: Output logs as JSON
    MEDIC_INSTANCE_ROOT: Override instance root directory
    MEDIC_STORAGE_BACKEND: Key-value backend (memory, sqlite)
    MEDIC_STORAGE_PATH: Custom SQLite database path
    MEDIC_QUOTA_BYTES: Maximum bytes the key-value backend may hold
    MEDIC_READ_DELAY_SECONDS: Simulated network delay on cache misses
    MEDIC_STRICT_VALIDATION: Enforce configured form validation rules
    MEDIC_CONFIG_FILE: YAML file merged over the site configuration defaults
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_project_root() -> Path | None:
    """
    Search upward from this file for the directory holding pyproject.toml.

    Returns:
        Project root if found, None otherwise
    """
    current = Path(__file__).resolve().parent
    for _ in range(10):  # Limit search depth
        if (current / "pyproject.toml").exists():
            return current
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def _find_project_env_file() -> Path | None:
    """Return the project .env file if one exists next to pyproject.toml."""
    root = _find_project_root()
    if root is None:
        return None
    env_file = root / ".env"
    return env_file if env_file.exists() else None


def _find_instance_root() -> Path:
    """
    Find the instance root directory.

    Resolution order:
    1. MEDIC_INSTANCE_ROOT environment variable (explicit override)
    2. Project root (directory containing pyproject.toml)
    3. Current working directory (fallback)
    """
    override = os.environ.get("MEDIC_INSTANCE_ROOT")
    if override:
        return Path(override)
    return _find_project_root() or Path.cwd()


_ENV_FILE = _find_project_env_file()


class MedicSettings(BaseSettings):
    """
    Medic configuration settings with validation.

    Environment variables are automatically loaded with the MEDIC_ prefix.
    All settings have sensible defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="MEDIC_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Log level for Medic components",
    )

    debug: bool = Field(
        default=False,
        description="Legacy debug flag (enables DEBUG level if set)",
    )

    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format for machine parsing",
    )

    # =========================================================================
    # Storage
    # =========================================================================

    instance_root: Path = Field(
        default_factory=_find_instance_root,
        description="Instance root directory (project root containing pyproject.toml)",
    )

    storage_backend: Literal["memory", "sqlite"] = Field(
        default="sqlite",
        description="Physical key-value backend",
    )

    storage_path: Optional[Path] = Field(
        default=None,
        description="Custom SQLite database path",
    )

    quota_bytes: Optional[int] = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Maximum bytes the backend may hold (None = unlimited)",
    )

    # =========================================================================
    # Data Access
    # =========================================================================

    read_delay_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Simulated network delay applied on collection cache misses",
    )

    strict_validation: bool = Field(
        default=False,
        description="Enforce length/pattern rules from the site configuration",
    )

    config_file: Optional[Path] = Field(
        default=None,
        description="YAML file merged over the site configuration defaults",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("storage_backend", mode="before")
    @classmethod
    def lowercase_backend(cls, v: str) -> str:
        if isinstance(v, str):
            return v.lower()
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def effective_log_level(self) -> str:
        """
        Get effective log level, respecting legacy MEDIC_DEBUG.

        Priority:
        1. Explicit MEDIC_LOG_LEVEL
        2. MEDIC_DEBUG=1 -> DEBUG
        3. Default: WARNING
        """
        if self.debug and self.log_level == "WARNING":
            return "DEBUG"
        return self.log_level

    @property
    def log_level_int(self) -> int:
        """Get effective log level as logging constant."""
        return getattr(logging, self.effective_log_level)

    @property
    def data_dir(self) -> Path:
        """Path to the data directory."""
        return self.instance_root / "data"

    @property
    def db_path(self) -> Path:
        """Path to the SQLite key-value database."""
        if self.storage_path is not None:
            return self.storage_path
        return self.data_dir / "medic.db"


# =============================================================================
# Singleton Accessor
# =============================================================================


@lru_cache(maxsize=1)
def get_settings() -> MedicSettings:
    """
    Get the singleton settings instance.

    Uses lru_cache to ensure settings are only loaded once.

    Returns:
        MedicSettings instance with validated configuration
    """
    return MedicSettings()


def reset_settings() -> None:
    """
    Reset the settings cache (for testing).

    After calling this, the next get_settings() call will
    reload settings from environment variables.
    """
    get_settings.cache_clear()


# =============================================================================
# Convenience Functions
# =============================================================================


def is_debug_enabled() -> bool:
    """Check if debug logging is enabled."""
    return get_settings().effective_log_level == "DEBUG"


def is_json_logging() -> bool:
    """Check if JSON logging is enabled."""
    return get_settings().log_json
