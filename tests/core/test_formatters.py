"""
Tests for time and identifier helpers.
"""

from __future__ import annotations

import pytest

from medic_core.core.formatters import (
    epoch_millis,
    format_timestamp,
    generate_record_id,
    parse_timestamp,
    sequence_number,
    to_base36,
)


class TestTimestamps:
    """Test timestamp formatting and parsing."""

    def test_epoch_millis(self):
        assert epoch_millis(1_700_000_000.25) == 1_700_000_000_250

    def test_format_epoch(self):
        assert format_timestamp(0) == "1970-01-01T00:00:00.000Z"

    def test_format_keeps_milliseconds(self):
        assert format_timestamp(1_700_000_000.5) == "2023-11-14T22:13:20.500Z"

    def test_parse_roundtrip_second(self):
        parsed = parse_timestamp("2023-11-14T22:13:20.500Z")
        assert parsed is not None
        assert parsed.timestamp() == pytest.approx(1_700_000_000.5)

    def test_parse_without_milliseconds(self):
        parsed = parse_timestamp("2023-11-14T22:13:20Z")
        assert parsed is not None
        assert parsed.timestamp() == 1_700_000_000

    @pytest.mark.parametrize("value", ["", "yesterday", "2023-11-14"])
    def test_parse_invalid(self, value):
        assert parse_timestamp(value) is None


class TestIdentifiers:
    """Test base-36 and identifier generation."""

    @pytest.mark.parametrize(
        "value,expected",
        [(0, "0"), (9, "9"), (10, "a"), (35, "z"), (36, "10"), (1295, "zz")],
    )
    def test_to_base36(self, value, expected):
        assert to_base36(value) == expected

    def test_to_base36_rejects_negative(self):
        with pytest.raises(ValueError):
            to_base36(-1)

    def test_sequence_number_uses_last_six_digits(self):
        assert sequence_number("MED", 1_700_000_123.5) == "MED-123500"
        assert sequence_number("UPL", 1_700_000_123.5) == "UPL-123500"

    def test_record_id_starts_with_time_component(self):
        record_id = generate_record_id(1_700_000_000.0)
        prefix = to_base36(1_700_000_000_000)

        assert record_id.startswith(prefix)
        assert len(record_id) == len(prefix) + 11

    def test_record_ids_differ_at_same_instant(self):
        ids = {generate_record_id(1_700_000_000.0) for _ in range(50)}
        assert len(ids) == 50
