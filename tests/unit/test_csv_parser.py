"""Tests for generic and TrainingPeaks CSV parsing."""
import logging

import pytest

from ftplab.parsers.csv_parser import (
    CsvParseError,
    decode_csv,
    decode_trainingpeaks_csv,
    is_csv_filename,
    parse_csv,
    parse_trainingpeaks_csv,
)


class TestGenericCsv:
    def test_basic_columns(self):
        series = parse_csv("Time,Power,Heart Rate\n1,250,160\n2,255,162\n3,245,164")
        assert series.power == [250, 255, 245]
        assert series.heart_rate == [160, 162, 164]
        assert series.time == [0, 1, 2]

    def test_invalid_and_negative_power_rows_are_dropped(self):
        series = parse_csv("Power\n250\ninvalid\n-50\n300\n0")
        assert series.power == [250, 300, 0]
        assert series.time == [0, 3, 4]
        assert series.heart_rate is None

    def test_zero_power_is_kept(self):
        series = parse_csv("Watts\n0\n0\n180")
        assert series.power == [0, 0, 180]

    def test_bad_heart_rate_becomes_zero(self):
        series = parse_csv("Power,HR\n250,160\n255,abc\n245,165")
        assert series.heart_rate == [160, 0, 165]

    def test_missing_cell_reads_as_zero(self):
        series = parse_csv("Time,Power,HR\n1,250\n2,255,150")
        assert series.power == [250, 255]
        assert series.heart_rate == [0, 150]

    def test_decimal_power_rounds_half_up(self):
        series = parse_csv("Power\n250.5\n249.4")
        assert series.power == [251, 249]

    def test_headers_match_case_insensitively(self):
        series = parse_csv("ELAPSED,AVG_POWER,BPM\n0,200,140\n1,210,141")
        assert series.power == [200, 210]
        assert series.heart_rate == [140, 141]

    def test_quoted_fields(self):
        series = parse_csv('"Time","Power"\n"1","250"\n"2","260"')
        assert series.power == [250, 260]

    def test_blank_lines_are_ignored(self):
        series = parse_csv("Power\n\n250\n\n260\n")
        assert series.power == [250, 260]

    def test_time_column_is_rebased(self):
        series = parse_csv("Seconds,Power\n100,200\n101,210\n103,220")
        assert series.time == [0, 1, 3]
        assert series.metadata.duration_seconds == 3

    def test_unparseable_time_repeats_previous(self):
        series = parse_csv("Time,Power\n10,200\nabc,210\n12,220")
        assert series.time == [0, 0, 2]

    def test_time_never_decreases(self):
        series = parse_csv("Time,Power\n10,200\n8,210\n12,220")
        assert series.time == [0, 0, 2]


class TestGenericCsvFailures:
    def test_no_power_column(self):
        with pytest.raises(CsvParseError, match="No power column found"):
            decode_csv("Time,Cadence\n1,90\n2,91")

    def test_header_only(self):
        with pytest.raises(CsvParseError):
            decode_csv("Power")

    def test_no_valid_power_values(self):
        with pytest.raises(CsvParseError, match="No valid power data"):
            decode_csv("Power\nabc\n-1")

    def test_parse_returns_none_and_logs(self, caplog):
        with caplog.at_level(logging.WARNING, logger="ftplab.parsers.csv_parser"):
            assert parse_csv("Time,Cadence\n1,90") is None
        assert "No power column found" in caplog.text

    def test_empty_text(self):
        assert parse_csv("") is None


class TestTrainingPeaksCsv:
    def test_trainingpeaks_headers(self):
        text = "Minutes,Power (watts),Heart Rate (bpm)\n0,250,150\n0.02,260,152"
        series = parse_trainingpeaks_csv(text)
        assert series.power == [250, 260]
        assert series.heart_rate == [150, 152]
        assert series.time == [0, 1]

    def test_invalid_power_rows_are_dropped(self):
        series = decode_trainingpeaks_csv("Power (watts)\n250\n-\n260")
        assert series.power == [250, 260]
        assert series.time == [0, 2]

    def test_time_is_row_index(self):
        series = parse_trainingpeaks_csv("Time,Avg_Power\n10,250\n20,255")
        assert series.power == [250, 255]
        assert series.time == [0, 1]

    def test_failure_returns_none(self):
        assert parse_trainingpeaks_csv("Cadence\n90") is None


@pytest.mark.parametrize("name,expected", [
    ("ride.csv", True),
    ("RIDE.CSV", True),
    ("ride.fit", False),
    ("csv", False),
])
def test_is_csv_filename(name, expected):
    assert is_csv_filename(name) is expected
