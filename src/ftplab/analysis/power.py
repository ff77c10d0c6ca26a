"""
Power statistics and FTP estimates for a single test effort.

Normalized Power (NP) follows the standard Coggan definition:
  1. 30-sample rolling mean (stride 1, ~30 s at 1 Hz)
  2. raise each rolling mean to the 4th power
  3. average those values
  4. take the 4th root

Both constants are fixed. Series shorter than one window fall back to
NP == average power.

FTP is estimated two ways, both as 95% of a 20-minute-style effort:
  classic_ftp    = 0.95 × average power
  normalized_ftp = 0.95 × normalized power
"""
from dataclasses import dataclass
from statistics import mean, pstdev
from typing import List, Sequence

from ftplab.analysis.rounding import round_half_up, to_fixed

NP_WINDOW_SAMPLES = 30
NP_EXPONENT = 4
FTP_FACTOR = 0.95


@dataclass(frozen=True)
class PowerStats:
    """Summary statistics for one power series."""

    average: int
    normalized: int
    max: int
    min: int
    variability_index: str    # NP / AP, 3 decimals, display precision
    std_dev: int              # population standard deviation
    classic_ftp: int
    normalized_ftp: int
    intensity_factor: float   # variability_index as a number


def rolling_means(power: Sequence[float], window: int) -> List[float]:
    """Mean of every contiguous `window`-sample slice, stride 1."""
    if len(power) < window:
        return []
    running = sum(power[:window])
    means = [running / window]
    for i in range(window, len(power)):
        running += power[i] - power[i - window]
        means.append(running / window)
    return means


def normalized_power(power: Sequence[float]) -> float:
    """
    Unrounded Normalized Power.

    Returns the arithmetic mean when the series is shorter than
    NP_WINDOW_SAMPLES.
    """
    windows = rolling_means(power, NP_WINDOW_SAMPLES)
    if not windows:
        return float(mean(power))
    avg_fourth = mean(w ** NP_EXPONENT for w in windows)
    return avg_fourth ** (1.0 / NP_EXPONENT)


def compute_stats(power: Sequence[float]) -> PowerStats:
    """
    Compute PowerStats for a power series.

    Args:
        power: watts, one sample per second

    Returns:
        PowerStats

    Raises:
        ValueError: if power is empty
    """
    if len(power) == 0:
        raise ValueError("Power data cannot be empty")

    avg = float(mean(power))
    np_ = normalized_power(power)

    # An all-zero series is perfectly steady
    vi = np_ / avg if avg > 0 else 1.0
    vi_text = to_fixed(vi, 3)

    return PowerStats(
        average=round_half_up(avg),
        normalized=round_half_up(np_),
        max=max(power),
        min=min(power),
        variability_index=vi_text,
        std_dev=round_half_up(pstdev(power)),
        classic_ftp=round_half_up(avg * FTP_FACTOR),
        normalized_ftp=round_half_up(np_ * FTP_FACTOR),
        intensity_factor=float(vi_text),
    )
