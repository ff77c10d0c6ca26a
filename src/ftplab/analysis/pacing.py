"""
Pacing quality analysis for a steady FTP test.

A well-paced test holds power flat from start to finish. We compare the
first and last quarters of the effort (fade) and the overall coefficient of
variation (CV), then turn both into a 0-100 score and a list of coaching
insights.

Scoring (deductions are independent, result clamped to [0, 100]):
  fade > 10%       -30
  fade >  5%       -15
  fade >  3%        -5
  fade < -3%       -10   (negative split: started too easy)
  CV   > 10%       -20
  CV   >  7%       -10
  CV   >  5%        -5

The thresholds and deductions are a fixed rubric. Changing them changes
every historical score.
"""
from dataclasses import dataclass, field
from statistics import mean
from typing import List, Sequence, Tuple

from ftplab.analysis.power import compute_stats
from ftplab.analysis.rounding import round_half_up, round_to, to_fixed

# (threshold_pct, deduction), checked highest first, first match wins
FADE_DEDUCTIONS: Tuple[Tuple[float, int], ...] = ((10.0, 30), (5.0, 15), (3.0, 5))
CV_DEDUCTIONS: Tuple[Tuple[float, int], ...] = ((10.0, 20), (7.0, 10), (5.0, 5))

NEGATIVE_SPLIT_PCT = -3.0
NEGATIVE_SPLIT_DEDUCTION = 10

SIGNIFICANT_FADE_PCT = 10.0
MODERATE_FADE_PCT = 5.0
HIGH_CV_PCT = 10.0
ELEVATED_CV_PCT = 7.0

# Watts recovered per fade percentage point above 3%
WATTS_LOST_PER_FADE_PCT = 0.5
WATTS_LOST_FADE_FLOOR_PCT = 3.0

MIN_SAMPLES = 4


@dataclass(frozen=True)
class Insight:
    """One coaching observation."""

    type: str             # "error" | "warning" | "success" | "info"
    message: str
    recommendation: str


@dataclass(frozen=True)
class PacingAnalysis:
    score: int
    fade_pct: float                 # first → last quarter, 1 decimal
    half_split_pct: float           # first → second half, 1 decimal
    avg_first_quarter: int
    avg_last_quarter: int
    watts_lost: int
    strategy: str                   # "even" | "positive-split" | "negative-split"
    insights: List[Insight] = field(default_factory=list)


def _percent_drop(before: float, after: float) -> float:
    if before == 0:
        return 0.0
    return (before - after) / before * 100


def _tiered_deduction(value: float, tiers: Tuple[Tuple[float, int], ...]) -> int:
    for threshold, deduction in tiers:
        if value > threshold:
            return deduction
    return 0


def pacing_score(fade_pct: float, cv_pct: float) -> int:
    """Apply the fixed deduction rubric and clamp to [0, 100]."""
    score = 100
    score -= _tiered_deduction(fade_pct, FADE_DEDUCTIONS)
    if fade_pct < NEGATIVE_SPLIT_PCT:
        score -= NEGATIVE_SPLIT_DEDUCTION
    score -= _tiered_deduction(cv_pct, CV_DEDUCTIONS)
    return max(0, min(100, score))


def pacing_strategy(fade_pct: float) -> str:
    if fade_pct > MODERATE_FADE_PCT:
        return "positive-split"
    if fade_pct < NEGATIVE_SPLIT_PCT:
        return "negative-split"
    return "even"


def analyze_pacing(power: Sequence[float]) -> PacingAnalysis:
    """
    Score the pacing of a test effort and generate coaching insights.

    Args:
        power: watts, one sample per second (at least 4 samples)

    Returns:
        PacingAnalysis

    Raises:
        ValueError: if fewer than 4 samples are given
    """
    n = len(power)
    if n < MIN_SAMPLES:
        raise ValueError(f"Pacing analysis needs at least {MIN_SAMPLES} samples, got {n}")

    avg_first = mean(power[: n // 4])
    avg_last = mean(power[(n * 3) // 4:])
    avg_first_half = mean(power[: n // 2])
    avg_second_half = mean(power[n // 2:])

    fade_pct = _percent_drop(avg_first, avg_last)
    half_split_pct = _percent_drop(avg_first_half, avg_second_half)

    stats = compute_stats(power)
    cv_pct = stats.std_dev / stats.average * 100 if stats.average > 0 else 0.0

    insights: List[Insight] = []

    if fade_pct > SIGNIFICANT_FADE_PCT:
        insights.append(Insight(
            type="error",
            message=f"Significant power fade ({to_fixed(fade_pct, 1)}%) - started too hard",
            recommendation=(
                f"Start {round_half_up(avg_first * 0.95)}w next time "
                f"(not {round_half_up(avg_first)}w)"
            ),
        ))
    elif fade_pct > MODERATE_FADE_PCT:
        insights.append(Insight(
            type="warning",
            message=f"Moderate power fade ({to_fixed(fade_pct, 1)}%) detected",
            recommendation="Consider starting 2-3% easier",
        ))
    elif fade_pct < NEGATIVE_SPLIT_PCT:
        insights.append(Insight(
            type="info",
            message="Negative split detected - you got stronger",
            recommendation="You could start slightly harder next time",
        ))
    else:
        insights.append(Insight(
            type="success",
            message="Excellent pacing strategy!",
            recommendation="Maintain this approach in future tests",
        ))

    if cv_pct > HIGH_CV_PCT:
        insights.append(Insight(
            type="error",
            message=f"Very high power variability (CV: {to_fixed(cv_pct, 1)}%)",
            recommendation="Focus on steady-state effort, use ERG mode if available",
        ))
    elif cv_pct > ELEVATED_CV_PCT:
        insights.append(Insight(
            type="warning",
            message=f"High power variability (CV: {to_fixed(cv_pct, 1)}%)",
            recommendation="Work on holding steady power output",
        ))

    watts_lost = 0
    if fade_pct > MODERATE_FADE_PCT:
        watts_lost = round_half_up(
            (fade_pct - WATTS_LOST_FADE_FLOOR_PCT) * WATTS_LOST_PER_FADE_PCT
        )
        insights.append(Insight(
            type="info",
            message=f"Estimated {watts_lost}w lost due to suboptimal pacing",
            recommendation=(
                f"True FTP potentially {stats.classic_ftp + watts_lost}w with better pacing"
            ),
        ))

    return PacingAnalysis(
        score=pacing_score(fade_pct, cv_pct),
        fade_pct=round_to(fade_pct, 1),
        half_split_pct=round_to(half_split_pct, 1),
        avg_first_quarter=round_half_up(avg_first),
        avg_last_quarter=round_half_up(avg_last),
        watts_lost=watts_lost,
        strategy=pacing_strategy(fade_pct),
        insights=insights,
    )
