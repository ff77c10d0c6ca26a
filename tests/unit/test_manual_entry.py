"""Tests for manual per-minute power entry."""
import pytest

from ftplab.parsers.manual import (
    ManualEntryError,
    decode_manual_entry,
    expand_minutes,
    parse_manual_entry,
    parse_minute_values,
)


class TestExpansion:
    def test_each_minute_becomes_sixty_samples(self):
        series = parse_manual_entry([250, 255, 245, 260], target_minutes=4)
        assert len(series.power) == 240
        assert series.power[:60] == [250] * 60
        assert series.power[60:120] == [255] * 60
        assert series.time == list(range(240))
        assert series.heart_rate is None

    @pytest.mark.parametrize("minutes", [8, 20, 40])
    def test_sample_count_matches_target(self, minutes):
        series = parse_manual_entry([240] * minutes, target_minutes=minutes)
        assert len(series.power) == minutes * 60

    def test_excess_values_are_truncated(self):
        series = parse_manual_entry([250, 255, 245, 260, 999], target_minutes=4)
        assert len(series.power) == 240
        assert series.power[-1] == 260

    def test_fractional_values_round_half_up(self):
        assert expand_minutes([250.5])[:1] == [251]

    def test_metadata(self):
        series = parse_manual_entry([250, 250], target_minutes=2)
        assert series.metadata.name == "Manual entry"
        assert series.metadata.duration_seconds == 119


class TestTextInput:
    def test_parse_minute_values_drops_non_integers(self):
        assert parse_minute_values("250, 255,abc, 260") == [250, 255, 260]

    def test_comma_separated_text(self):
        series = parse_manual_entry("250, 255, abc, 260", target_minutes=3)
        assert len(series.power) == 180
        assert series.power[-1] == 260


class TestFailures:
    def test_too_few_values(self):
        with pytest.raises(ManualEntryError, match="Missing 1 minute of data"):
            decode_manual_entry([250, 255, 245], target_minutes=4)
        assert parse_manual_entry([250, 255, 245], target_minutes=4) is None

    def test_missing_minutes_are_pluralized(self):
        with pytest.raises(ManualEntryError, match="Missing 2 minutes of data"):
            decode_manual_entry([250, 255], target_minutes=4)

    def test_empty_input(self):
        assert parse_manual_entry([], target_minutes=20) is None
        assert parse_manual_entry("", target_minutes=20) is None

    def test_negative_value(self):
        assert parse_manual_entry([250, -1], target_minutes=2) is None

    def test_zero_target(self):
        with pytest.raises(ManualEntryError):
            decode_manual_entry([250], target_minutes=0)
