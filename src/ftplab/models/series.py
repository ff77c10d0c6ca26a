"""
Canonical decoded workout series and segment description.

Every parser (CSV, FIT, GPX, manual entry) produces a ParsedSeries. It is the
only thing the analysis layer ever sees from an uploaded file: power is
mandatory, every other metric is optional and is omitted entirely (None)
when the source never carried it.

Heart rate is the one exception to "absent means None": inside a present
heart-rate series, 0 means "no reading at this sample" (sensor dropout).
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class SeriesMetadata:
    """Informational descriptors. Never consumed by the analysis engine."""

    start_time: Optional[datetime] = None
    duration_seconds: int = 0
    device: Optional[str] = None
    sport: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class ParsedSeries:
    """
    One recording, one sample per entry.

    power and time always have the same length. Optional series, when
    present, share that length too.
    """

    power: List[int]
    time: List[int]
    heart_rate: Optional[List[int]] = None   # bpm, 0 = no reading
    cadence: Optional[List[int]] = None      # rpm
    speed: Optional[List[float]] = None      # km/h, 1 decimal
    distance: Optional[List[int]] = None     # meters, cumulative
    elevation: Optional[List[int]] = None    # meters
    metadata: SeriesMetadata = field(default_factory=SeriesMetadata)

    @property
    def sample_count(self) -> int:
        return len(self.power)

    @property
    def duration_minutes(self) -> float:
        """Length in minutes assuming 1 Hz sampling."""
        return len(self.power) / 60

    @property
    def has_heart_rate(self) -> bool:
        return self.heart_rate is not None and any(hr > 0 for hr in self.heart_rate)


@dataclass(frozen=True)
class SegmentInfo:
    """Which slice of the recording was analyzed, and why."""

    start_time: int   # sample index
    duration: int     # sample count
    reason: str
