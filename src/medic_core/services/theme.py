"""Persisted dark/light theme preference."""

from __future__ import annotations

from typing import Any

from ..core.logging import get_logger
from ..errors import StorageFailureError
from ..storage.collections import THEME_KEY
from ..storage.protocol import KeyValueBackend

logger = get_logger(__name__)

THEMES: tuple[str, ...] = ("dark", "light")
DEFAULT_THEME = "dark"


class ThemePreferences:
    """Theme choice stored as a raw string under medic_theme."""

    def __init__(self, backend: KeyValueBackend):
        self.backend = backend
        self.current = self.get_saved_theme()

    def get_saved_theme(self) -> str:
        saved = self.backend.get_item(THEME_KEY)
        return saved if saved in THEMES else DEFAULT_THEME

    def apply_theme(self, theme: str) -> str:
        """
        Switch to theme and persist it.

        Unknown names fall back to the default. Returns the applied theme.
        """
        if theme not in THEMES:
            logger.warning("Unknown theme %r, using %s", theme, DEFAULT_THEME)
            theme = DEFAULT_THEME

        self.current = theme
        try:
            self.backend.set_item(THEME_KEY, theme)
        except StorageFailureError as e:
            logger.error("Failed to save theme preference: %s", e)
        return theme

    def toggle_theme(self) -> str:
        return self.apply_theme("light" if self.current == "dark" else "dark")

    def get_theme_info(self) -> dict[str, Any]:
        return {
            "current": self.current,
            "available": list(THEMES),
            "is_dark": self.current == "dark",
            "is_light": self.current == "light",
        }
