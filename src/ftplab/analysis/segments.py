"""
Best-effort segment extraction for long recordings.

An FTP test is usually a 20-minute effort, but riders often upload the whole
ride. When the recording is much longer than the target, we look for the
contiguous window of exactly target_minutes × 60 samples with the highest
average power and analyze only that.

Policy:
  length within [0.75, 1.25] × target   → use everything ("close to target")
  length below 0.75 × target            → use everything ("short workout")
  otherwise                             → best window, scanned every
                                          `step_samples` samples

The scan is approximate. With the default 30-sample step the chosen window
can start up to 29 s away from the true optimum. That is a deliberate
speed/precision trade-off for multi-hour files; pass step_samples=1 for an
exhaustive search.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, TypeVar

from ftplab.analysis.rounding import round_half_up
from ftplab.models.series import SegmentInfo

logger = logging.getLogger(__name__)

DEFAULT_TARGET_MINUTES = 20
DEFAULT_STEP_SAMPLES = 30
CLOSE_TO_TARGET_LOW = 0.75
CLOSE_TO_TARGET_HIGH = 1.25

T = TypeVar("T")


@dataclass(frozen=True)
class ExtractedSegment:
    """The analyzed slice of every series, plus why it was chosen."""

    power: List[int]
    segment_info: SegmentInfo
    heart_rate: Optional[List[int]] = None
    speed: Optional[List[float]] = None
    distance: Optional[List[int]] = None
    elevation: Optional[List[int]] = None
    cadence: Optional[List[int]] = None


def _slice(series: Optional[Sequence[T]], start: int, end: int) -> Optional[List[T]]:
    if series is None:
        return None
    return list(series[start:end])


def find_best_window(
    power: Sequence[float],
    window: int,
    step_samples: int = DEFAULT_STEP_SAMPLES,
) -> Tuple[int, float]:
    """
    Start index and mean of the highest-average window.

    Candidate starts are 0, step, 2·step, … while the window still fits.
    Only a strictly higher mean replaces the current best, so ties keep the
    earliest window.
    """
    if window <= 0 or window > len(power):
        raise ValueError(f"Window of {window} samples does not fit {len(power)} samples")
    if step_samples <= 0:
        raise ValueError(f"step_samples must be positive, got {step_samples}")

    prefix = [0.0]
    for p in power:
        prefix.append(prefix[-1] + p)

    best_start = 0
    best_avg = prefix[window] / window
    for start in range(step_samples, len(power) - window + 1, step_samples):
        avg = (prefix[start + window] - prefix[start]) / window
        if avg > best_avg:
            best_avg = avg
            best_start = start
    return best_start, best_avg


def extract_best_segment(
    power: Sequence[int],
    heart_rate: Optional[Sequence[int]] = None,
    target_minutes: int = DEFAULT_TARGET_MINUTES,
    speed: Optional[Sequence[float]] = None,
    distance: Optional[Sequence[int]] = None,
    elevation: Optional[Sequence[int]] = None,
    cadence: Optional[Sequence[int]] = None,
    step_samples: int = DEFAULT_STEP_SAMPLES,
) -> ExtractedSegment:
    """
    Pick the slice of a recording to analyze as the FTP effort.

    Args:
        power: watts, one sample per second
        heart_rate, speed, distance, elevation, cadence: optional series
            aligned with power; sliced with the same indices
        target_minutes: desired effort length
        step_samples: stride of the window scan for long recordings

    Returns:
        ExtractedSegment with the (possibly unchanged) series and SegmentInfo.
    """
    target_samples = target_minutes * 60
    n = len(power)
    length_minutes = round_half_up(n / 60)

    if target_samples * CLOSE_TO_TARGET_LOW <= n <= target_samples * CLOSE_TO_TARGET_HIGH:
        reason = (
            f"Full {length_minutes}-minute workout used "
            f"(close to {target_minutes}-minute target)"
        )
        start, end = 0, n
    elif n < target_samples * CLOSE_TO_TARGET_LOW:
        reason = f"Short {length_minutes}-minute workout - using all available data"
        start, end = 0, n
    else:
        logger.info(
            "Long workout detected: %d minutes. Extracting best %d-minute segment",
            length_minutes, target_minutes,
        )
        start, best_avg = find_best_window(power, target_samples, step_samples)
        end = start + target_samples
        reason = (
            f"Best {target_minutes}-minute segment from {length_minutes}-minute workout "
            f"(minutes {round_half_up(start / 60)}-{round_half_up(end / 60)}, "
            f"avg {round_half_up(best_avg)}w)"
        )

    return ExtractedSegment(
        power=list(power[start:end]),
        segment_info=SegmentInfo(start_time=start, duration=end - start, reason=reason),
        heart_rate=_slice(heart_rate, start, end),
        speed=_slice(speed, start, end),
        distance=_slice(distance, start, end),
        elevation=_slice(elevation, start, end),
        cadence=_slice(cadence, start, end),
    )
