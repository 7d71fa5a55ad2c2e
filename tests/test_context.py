"""
Tests for context construction and wiring.
"""

from __future__ import annotations

import pytest

from medic_core import __version__, create_context
from medic_core.core.config import MedicSettings
from medic_core.storage import MemoryBackend, SQLiteBackend


class TestCreateContext:
    """Tests for create_context."""

    def test_memory_backend_from_settings(self, memory_settings):
        ctx = create_context(settings=memory_settings)

        assert isinstance(ctx.backend, MemoryBackend)
        assert ctx.backend.quota_bytes == memory_settings.quota_bytes
        assert ctx.api.read_delay == 0

    def test_sqlite_backend_from_settings(self, tmp_path):
        settings = MedicSettings(storage_backend="sqlite", instance_root=tmp_path)

        ctx = create_context(settings=settings)
        try:
            assert isinstance(ctx.backend, SQLiteBackend)
            assert ctx.backend.db_path == tmp_path / "data" / "medic.db"
        finally:
            ctx.close()

    def test_explicit_backend_and_clock(self, memory_settings, backend, clock):
        ctx = create_context(settings=memory_settings, backend=backend, clock=clock)

        assert ctx.backend is backend
        assert ctx.storage.clock is clock
        assert ctx.tickets.clock is clock

    def test_components_share_backend(self, memory_settings, backend):
        ctx = create_context(settings=memory_settings, backend=backend)

        assert ctx.storage.backend is backend
        assert ctx.tickets.collection.backend is backend
        assert ctx.ratings.collection.backend is backend
        assert ctx.theme.backend is backend

    def test_ticket_creation_logged_through_api(self, memory_settings, backend):
        ctx = create_context(settings=memory_settings, backend=backend)

        ctx.tickets.create_ticket({"title": "t", "description": "d"})

        assert ctx.api.get_activity_logs()[0].action == "ticket_created"

    def test_persisted_config_applied(self, memory_settings, backend):
        first = create_context(settings=memory_settings, backend=backend)
        first.config.set("storage.default_ttl", 60)
        first.config.set("tickets.admin_sender", "Medic Lead")
        first.config.save_to_storage()

        second = create_context(settings=memory_settings, backend=backend)

        assert second.storage.default_ttl == 60
        assert second.tickets.admin_sender == "Medic Lead"

    def test_yaml_config_file(self, tmp_path, backend):
        path = tmp_path / "site.yaml"
        path.write_text("cache:\n  ttl: 42\n", encoding="utf-8")
        settings = MedicSettings(storage_backend="memory", instance_root=tmp_path, config_file=path)

        ctx = create_context(settings=settings, backend=backend)

        assert ctx.api.cache_ttl == 42


class TestInit:
    """Tests for init and system info."""

    def test_init_sweeps_once(self, memory_settings, backend, clock):
        ctx = create_context(settings=memory_settings, backend=backend, clock=clock)
        ctx.storage.set("stale", 1, ttl=1)
        clock.advance(2)

        assert ctx.init() == 1
        assert ctx.initialized is True

        ctx.storage.set("stale", 1, ttl=1)
        clock.advance(2)
        assert ctx.init() == 0

    def test_system_info(self, memory_settings, backend):
        ctx = create_context(settings=memory_settings, backend=backend)
        ctx.init()

        info = ctx.get_system_info()

        assert info["version"] == __version__
        assert info["initialized"] is True
        assert info["debug"] is False
        assert info["theme"]["current"] == "dark"
        assert info["storage"]["total"] == 0

    @pytest.mark.asyncio
    async def test_end_to_end_submission(self, memory_settings, backend):
        ctx = create_context(settings=memory_settings, backend=backend)

        result = await ctx.api.submit_application({"gameUsername": "pilot_one"})

        assert result.success is True
        assert [a.game_username for a in await ctx.api.get_applications()] == ["pilot_one"]
