"""Tests for the watts-per-kg grade table and grading."""
import pytest

from ftplab.analysis.grading import (
    PERFORMANCE_GRADES,
    find_grade,
    get_performance_grades,
    grade_watts_per_kg,
)
from ftplab.analysis.power import PowerStats, compute_stats


def make_stats(classic: int = 300, normalized: int = 310, average: int = 316, maximum: int = 400) -> PowerStats:
    return PowerStats(
        average=average,
        normalized=normalized,
        max=maximum,
        min=150,
        variability_index="1.000",
        std_dev=10,
        classic_ftp=classic,
        normalized_ftp=normalized,
        intensity_factor=1.0,
    )


class TestGradeTable:
    def test_thirteen_bands(self):
        assert len(get_performance_grades()) == 13

    def test_bands_are_contiguous(self):
        for lower, upper in zip(PERFORMANCE_GRADES, PERFORMANCE_GRADES[1:]):
            assert lower.max_watts_per_kg == upper.min_watts_per_kg

    def test_table_starts_at_zero_and_is_open_ended(self):
        assert PERFORMANCE_GRADES[0].min_watts_per_kg == 0.0
        assert PERFORMANCE_GRADES[-1].max_watts_per_kg is None

    def test_percentiles_strictly_increase(self):
        percentiles = [g.percentile for g in PERFORMANCE_GRADES]
        assert percentiles == sorted(set(percentiles))


class TestFindGrade:
    @pytest.mark.parametrize("wpk,grade", [
        (0.0, "F"),
        (1.99, "F"),
        (2.0, "D-"),
        (3.1, "D+"),
        (3.99, "C+"),
        (4.0, "B-"),
        (5.99, "A"),
        (6.0, "A+"),
        (8.5, "A+"),
    ])
    def test_band_edges(self, wpk, grade):
        assert find_grade(wpk).grade == grade

    def test_below_table_maps_to_lowest_band(self):
        assert find_grade(-1.0).grade == "F"


class TestGradeWattsPerKg:
    def test_per_kg_values(self):
        result = grade_watts_per_kg(make_stats(), 75)
        assert result.classic_ftp_per_kg == 4.0
        assert result.normalized_ftp_per_kg == 4.13
        assert result.average_power_per_kg == 4.21
        assert result.max_power_per_kg == 5.33
        assert result.grade == "B-"
        assert result.category == "Very Good"
        assert result.percentile == 70

    def test_heavier_rider_never_grades_higher(self):
        stats = compute_stats([300] * 1200)
        letters = [g.grade for g in PERFORMANCE_GRADES]
        ranks = [letters.index(grade_watts_per_kg(stats, w).grade) for w in range(50, 101)]
        assert ranks == sorted(ranks, reverse=True)

    @pytest.mark.parametrize("weight", [0, -70])
    def test_non_positive_weight_raises(self, weight):
        with pytest.raises(ValueError):
            grade_watts_per_kg(make_stats(), weight)
