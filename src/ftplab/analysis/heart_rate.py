"""
Heart rate statistics for a test effort.

Zero-valued samples mean "no reading" and are excluded everywhere.

LTHR is approximated as the mean HR over the whole test. That is a rough
field estimate, not a lab lactate-threshold measurement.

Cardiac drift relates the HR change between the first and last quarters to
the power change over the same quarters:

    cardiac_drift = (last_q_hr - first_q_hr) / |first_q_power - last_q_power|

A positive value means HR rose while power fell (fatigue, heat,
dehydration). When power moved by 1 W or less the ratio is meaningless and
0 is reported instead.
"""
import logging
from dataclasses import dataclass
from statistics import mean
from typing import List, Optional, Sequence

from ftplab.analysis.rounding import round_half_up, round_to

logger = logging.getLogger(__name__)

MIN_POWER_CHANGE_W = 1.0


@dataclass(frozen=True)
class HeartRateStats:
    average: int
    max: int
    min: int
    lthr: int              # approximated as average HR during the test
    hr_drift: float        # % change first → last quarter, 1 decimal
    cardiac_drift: float   # bpm per watt of power drop, 2 decimals


def _valid(hr: Sequence[int]) -> List[int]:
    return [v for v in hr if v > 0]


def _mean_or_none(values: Sequence[float]) -> Optional[float]:
    return float(mean(values)) if values else None


def compute_hr_stats(heart_rate: Sequence[int], power: Sequence[float]) -> HeartRateStats:
    """
    Compute HeartRateStats from paired HR and power series.

    Args:
        heart_rate: bpm per sample, 0 = no reading
        power: watts per sample

    Returns:
        HeartRateStats

    Raises:
        ValueError: if heart_rate contains no positive reading
    """
    valid = _valid(heart_rate)
    if not valid:
        raise ValueError("Heart rate data contains no valid readings")

    avg = float(mean(valid))

    n_hr = len(heart_rate)
    first_hr = _mean_or_none(_valid(heart_rate[: n_hr // 4]))
    last_hr = _mean_or_none(_valid(heart_rate[(n_hr * 3) // 4:]))

    n_p = len(power)
    first_power = _mean_or_none(power[: n_p // 4])
    last_power = _mean_or_none(power[(n_p * 3) // 4:])

    hr_drift = 0.0
    cardiac_drift = 0.0
    if first_hr is not None and last_hr is not None:
        hr_increase = last_hr - first_hr
        hr_drift = hr_increase / first_hr * 100

        if first_power is not None and last_power is not None:
            power_drop = first_power - last_power
            if abs(power_drop) > MIN_POWER_CHANGE_W:
                cardiac_drift = hr_increase / abs(power_drop)
            logger.debug(
                "Cardiac drift: power %.1f -> %.1f (drop %.1f), HR %.1f -> %.1f (rise %.1f), drift %.3f",
                first_power, last_power, power_drop, first_hr, last_hr, hr_increase, cardiac_drift,
            )

    return HeartRateStats(
        average=round_half_up(avg),
        max=max(valid),
        min=min(valid),
        lthr=round_half_up(avg),
        hr_drift=round_to(hr_drift, 1),
        cardiac_drift=round_to(cardiac_drift, 2),
    )
