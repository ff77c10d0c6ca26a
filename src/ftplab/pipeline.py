"""
WorkoutAnalysis assembler.

Takes one uploaded payload (or an already parsed series), optionally narrows
a long recording to its best effort, then runs every analysis over the
result to produce a WorkoutAnalysis: the single object handed to the
presentation layer (charts, tables, PDF export, local storage).

All analysis is pure; settings are only read here to fill in defaults.
"""
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from ftplab.analysis.grading import WattsPerKgStats, grade_watts_per_kg
from ftplab.analysis.heart_rate import HeartRateStats, compute_hr_stats
from ftplab.analysis.pacing import MIN_SAMPLES, PacingAnalysis, analyze_pacing
from ftplab.analysis.power import PowerStats, compute_stats
from ftplab.analysis.rounding import round_half_up
from ftplab.analysis.segments import ExtractedSegment, extract_best_segment
from ftplab.config import get_settings
from ftplab.models.series import ParsedSeries, SegmentInfo, SeriesMetadata
from ftplab.parsers.csv_parser import is_csv_filename, parse_trainingpeaks_csv
from ftplab.parsers.fit_parser import is_fit_filename, parse_fit
from ftplab.parsers.gpx_parser import is_gpx_filename, parse_gpx

logger = logging.getLogger(__name__)

PAYLOAD_KINDS = ("csv", "fit", "gpx")


@dataclass
class WorkoutAnalysis:
    """
    Complete result for one test.

    Produced by analyze_series() and consumed by the presentation layer.
    """
    stats: PowerStats
    pacing: Optional[PacingAnalysis]        # None when fewer than 4 samples
    segment_info: SegmentInfo
    power: List[int]

    heart_rate_stats: Optional[HeartRateStats] = None
    watts_per_kg: Optional[WattsPerKgStats] = None

    # Analyzed slice of the optional series (None if the file had none)
    heart_rate: Optional[List[int]] = None
    speed: Optional[List[float]] = None
    distance: Optional[List[int]] = None
    elevation: Optional[List[int]] = None
    cadence: Optional[List[int]] = None

    metadata: Optional[SeriesMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        """Plain, JSON-ready dict (datetimes as ISO strings)."""
        return _jsonable(asdict(self))


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return value


# ─── Parsing ───────────────────────────────────────────────────────────────────

def detect_kind(filename: str) -> Optional[str]:
    """Payload kind from a file name, or None for unsupported extensions."""
    if is_csv_filename(filename):
        return "csv"
    if is_fit_filename(filename):
        return "fit"
    if is_gpx_filename(filename):
        return "gpx"
    return None


def _as_text(payload: Union[str, bytes]) -> str:
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload).decode("utf-8-sig", errors="replace")
    return payload


def parse_payload(payload: Union[str, bytes], kind: str) -> Optional[ParsedSeries]:
    """
    Parse an uploaded payload with the parser for its kind.

    Returns:
        ParsedSeries, or None if the parser rejected the payload

    Raises:
        ValueError: for an unknown kind
        TypeError: for a FIT payload given as text
    """
    if kind == "csv":
        return parse_trainingpeaks_csv(_as_text(payload))
    if kind == "fit":
        if isinstance(payload, str):
            raise TypeError("FIT payloads must be bytes")
        return parse_fit(bytes(payload))
    if kind == "gpx":
        return parse_gpx(_as_text(payload))
    raise ValueError(f"Unknown payload kind {kind!r}, expected one of {PAYLOAD_KINDS}")


# ─── Analysis ──────────────────────────────────────────────────────────────────

def _copy(series: Optional[List[Any]]) -> Optional[List[Any]]:
    return list(series) if series is not None else None


def _full_workout(series: ParsedSeries) -> ExtractedSegment:
    n = len(series.power)
    return ExtractedSegment(
        power=list(series.power),
        segment_info=SegmentInfo(
            start_time=0,
            duration=n,
            reason=f"Full {round_half_up(n / 60)}-minute workout analyzed",
        ),
        heart_rate=_copy(series.heart_rate),
        speed=_copy(series.speed),
        distance=_copy(series.distance),
        elevation=_copy(series.elevation),
        cadence=_copy(series.cadence),
    )


def analyze_series(
    series: ParsedSeries,
    rider_weight_kg: Optional[float] = None,
    target_minutes: Optional[int] = None,
    extract_segment: Optional[bool] = None,
    long_workout_minutes: Optional[int] = None,
) -> WorkoutAnalysis:
    """
    Run the full analysis over one parsed recording.

    Unset arguments fall back to Settings. Recordings longer than
    long_workout_minutes are narrowed to their best target_minutes effort
    when extract_segment is on.

    Raises:
        ValueError: if the series has no power samples
    """
    settings = get_settings()
    if rider_weight_kg is None:
        rider_weight_kg = settings.rider_weight_kg
    if target_minutes is None:
        target_minutes = settings.target_minutes
    if extract_segment is None:
        extract_segment = settings.extract_long_workouts
    if long_workout_minutes is None:
        long_workout_minutes = settings.long_workout_minutes

    if extract_segment and series.duration_minutes > long_workout_minutes:
        segment = extract_best_segment(
            series.power,
            heart_rate=series.heart_rate,
            target_minutes=target_minutes,
            speed=series.speed,
            distance=series.distance,
            elevation=series.elevation,
            cadence=series.cadence,
        )
    else:
        segment = _full_workout(series)
    logger.info("Analyzing segment: %s", segment.segment_info.reason)

    stats = compute_stats(segment.power)

    pacing = None
    if len(segment.power) >= MIN_SAMPLES:
        pacing = analyze_pacing(segment.power)
    else:
        logger.warning("Skipping pacing analysis: only %d samples", len(segment.power))

    hr_stats = None
    if segment.heart_rate is not None and any(hr > 0 for hr in segment.heart_rate):
        hr_stats = compute_hr_stats(segment.heart_rate, segment.power)

    wpk = None
    if rider_weight_kg is not None and rider_weight_kg > 0:
        wpk = grade_watts_per_kg(stats, rider_weight_kg)

    return WorkoutAnalysis(
        stats=stats,
        pacing=pacing,
        segment_info=segment.segment_info,
        power=segment.power,
        heart_rate_stats=hr_stats,
        watts_per_kg=wpk,
        heart_rate=segment.heart_rate,
        speed=segment.speed,
        distance=segment.distance,
        elevation=segment.elevation,
        cadence=segment.cadence,
        metadata=series.metadata,
    )


def analyze_payload(
    payload: Union[str, bytes],
    kind: str,
    rider_weight_kg: Optional[float] = None,
    target_minutes: Optional[int] = None,
    extract_segment: Optional[bool] = None,
) -> Optional[WorkoutAnalysis]:
    """Parse then analyze. Returns None if the payload could not be parsed."""
    series = parse_payload(payload, kind)
    if series is None:
        return None
    return analyze_series(
        series,
        rider_weight_kg=rider_weight_kg,
        target_minutes=target_minutes,
        extract_segment=extract_segment,
    )
