"""
Manual entry: per-minute average power typed in by the rider.

Each minute value is expanded to 60 one-second samples so downstream
analysis sees the same 1 Hz series it gets from files. The output always
has exactly target_minutes × 60 samples: extra minutes are truncated from
the end, too few minutes is a failure.

Every second of a minute repeats that minute's value. Adding visual jitter
is left to the presentation layer.
"""
import logging
from typing import List, Optional, Sequence, Union

from ftplab.analysis.rounding import round_half_up
from ftplab.models.series import ParsedSeries, SeriesMetadata
from ftplab.parsers.base import SeriesParseError

logger = logging.getLogger(__name__)

SECONDS_PER_MINUTE = 60


class ManualEntryError(SeriesParseError):
    """Raised when manual minute values cannot fill the requested test."""


def parse_minute_values(text: str) -> List[int]:
    """
    Comma-separated minute averages → ints. Tokens that are not integers
    are dropped.

    >>> parse_minute_values("250, 255,abc, 260")
    [250, 255, 260]
    """
    values = []
    for token in text.split(","):
        token = token.strip()
        try:
            values.append(int(token))
        except ValueError:
            continue
    return values


def expand_minutes(minute_values: Sequence[float]) -> List[int]:
    return [
        round_half_up(value)
        for value in minute_values
        for _ in range(SECONDS_PER_MINUTE)
    ]


def decode_manual_entry(
    minute_values: Union[str, Sequence[float]],
    target_minutes: int,
) -> ParsedSeries:
    """
    Strict variant of parse_manual_entry().

    Raises:
        ManualEntryError: no values, or fewer values than target_minutes
    """
    if isinstance(minute_values, str):
        minute_values = parse_minute_values(minute_values)
    values = list(minute_values)

    if target_minutes < 1:
        raise ManualEntryError(f"Test duration must be at least 1 minute, got {target_minutes}")
    if not values:
        raise ManualEntryError("Please enter power data")
    if any(v < 0 for v in values):
        raise ManualEntryError("Minute power values cannot be negative")

    if len(values) < target_minutes:
        missing = target_minutes - len(values)
        raise ManualEntryError(
            f"Not enough data for {target_minutes}-minute test. You provided "
            f"{len(values)} minute{'' if len(values) == 1 else 's'} of data, but need "
            f"{target_minutes} minutes. Missing {missing} minute{'' if missing == 1 else 's'} of data."
        )
    if len(values) > target_minutes:
        logger.warning(
            "Truncated %d excess values for %d-minute test",
            len(values) - target_minutes, target_minutes,
        )
        values = values[:target_minutes]

    power = expand_minutes(values)
    return ParsedSeries(
        power=power,
        time=list(range(len(power))),
        metadata=SeriesMetadata(duration_seconds=len(power) - 1, name="Manual entry"),
    )


def parse_manual_entry(
    minute_values: Union[str, Sequence[float]],
    target_minutes: int,
) -> Optional[ParsedSeries]:
    """
    Expand per-minute averages into a 1 Hz ParsedSeries.

    Returns:
        ParsedSeries with exactly target_minutes × 60 samples, or None if
        too few values were given (diagnostic is logged)
    """
    try:
        return decode_manual_entry(minute_values, target_minutes)
    except SeriesParseError as exc:
        logger.warning("Manual entry rejected: %s", exc)
        return None
