"""
Watts-per-kilogram performance grading.

The grade table is static reference data: 13 contiguous bands keyed on
classic FTP per kg. Each band's lower bound is inclusive and its upper bound
exclusive; the top band is open-ended. Percentiles rise strictly with the
bands.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from ftplab.analysis.power import PowerStats
from ftplab.analysis.rounding import round_to


@dataclass(frozen=True)
class PerformanceGrade:
    grade: str
    category: str
    min_watts_per_kg: float
    max_watts_per_kg: Optional[float]   # None = unbounded
    percentile: int
    description: str

    def contains(self, watts_per_kg: float) -> bool:
        if watts_per_kg < self.min_watts_per_kg:
            return False
        return self.max_watts_per_kg is None or watts_per_kg < self.max_watts_per_kg


PERFORMANCE_GRADES: Tuple[PerformanceGrade, ...] = (
    PerformanceGrade("F", "Untrained", 0.0, 2.0, 5, "New to cycling or very sedentary"),
    PerformanceGrade("D-", "Novice", 2.0, 2.5, 15, "Recreational cyclist, getting started"),
    PerformanceGrade("D", "Novice", 2.5, 3.0, 25, "Regular recreational riding"),
    PerformanceGrade("D+", "Fair", 3.0, 3.2, 35, "Developing fitness base"),
    PerformanceGrade("C-", "Fair", 3.2, 3.4, 40, "Solid recreational cyclist"),
    PerformanceGrade("C", "Good", 3.4, 3.7, 50, "Above average fitness"),
    PerformanceGrade("C+", "Good", 3.7, 4.0, 60, "Strong recreational rider"),
    PerformanceGrade("B-", "Very Good", 4.0, 4.3, 70, "Club level competitive"),
    PerformanceGrade("B", "Very Good", 4.3, 4.6, 80, "Strong club racer"),
    PerformanceGrade("B+", "Excellent", 4.6, 5.0, 87, "Regional competitive level"),
    PerformanceGrade("A-", "Excellent", 5.0, 5.4, 93, "Cat 2-3 racing level"),
    PerformanceGrade("A", "Superior", 5.4, 6.0, 97, "Cat 1-2 racing level"),
    PerformanceGrade("A+", "World Class", 6.0, None, 99, "Professional/elite level"),
)


@dataclass(frozen=True)
class WattsPerKgStats:
    classic_ftp_per_kg: float
    normalized_ftp_per_kg: float
    average_power_per_kg: float
    max_power_per_kg: float
    grade: str
    category: str
    percentile: int
    description: str


def get_performance_grades() -> Tuple[PerformanceGrade, ...]:
    return PERFORMANCE_GRADES


def find_grade(watts_per_kg: float) -> PerformanceGrade:
    """Band containing watts_per_kg. Values below the table map to the lowest band."""
    for grade in PERFORMANCE_GRADES:
        if grade.contains(watts_per_kg):
            return grade
    return PERFORMANCE_GRADES[0]


def grade_watts_per_kg(stats: PowerStats, rider_weight_kg: float) -> WattsPerKgStats:
    """
    Normalize power figures by rider weight and grade the classic FTP.

    Raises:
        ValueError: if rider_weight_kg is not positive
    """
    if rider_weight_kg <= 0:
        raise ValueError(f"Rider weight must be positive, got {rider_weight_kg}")

    classic = stats.classic_ftp / rider_weight_kg
    grade = find_grade(classic)

    return WattsPerKgStats(
        classic_ftp_per_kg=round_to(classic, 2),
        normalized_ftp_per_kg=round_to(stats.normalized_ftp / rider_weight_kg, 2),
        average_power_per_kg=round_to(stats.average / rider_weight_kg, 2),
        max_power_per_kg=round_to(stats.max / rider_weight_kg, 2),
        grade=grade.grade,
        category=grade.category,
        percentile=grade.percentile,
        description=grade.description,
    )
