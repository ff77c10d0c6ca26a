"""
FIT file parser: converts a FIT binary buffer into a ParsedSeries.

Decoding happens in two steps:

  1. decode_fit_messages() turns the binary into a plain message tree with
     fitparse: {"records": [...], "laps": [...], "sessions": [...],
     "file_id": [...], "sport": [...], ...}, one values dict per message.
  2. parse_fit_tree() finds the per-second record list inside a tree and
     extracts the series.

Step 2 also accepts trees produced by other FIT decoders (for example a JSON
export in "cascade" layout, where records hang under
activity.sessions[].laps[]). Record lists are searched in this order:

  records                               flat top-level list
  activity.sessions[].laps[].records    every lap of every session, in order
  activity                              when it is itself a list
  session                               top-level session list
  <tree>                                when the tree itself is a list
  any top-level list                    first one whose items carry
                                        power/heart/time-like field names

Field mapping (first present alias with a valid value wins):
  power       power, watts, avg_power                      >= 0, int
  heart_rate  heart_rate, hr, heartrate                    >  0, int
  cadence     cadence, rpm                                 >= 0, int
  speed       speed, enhanced_speed          (m/s → km/h) >= 0, 1 decimal
  distance    distance, total_distance       (m)          >= 0, int
  elevation   altitude, enhanced_altitude, elevation (m)  any,  int
"""
import io
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import fitparse

from ftplab.analysis.rounding import round_half_up
from ftplab.models.series import ParsedSeries, SeriesMetadata
from ftplab.parsers.base import (
    MetricSpec,
    SeriesBuilder,
    SeriesParseError,
    any_sign,
    coerce_timestamp,
    elapsed_seconds,
    non_negative,
    positive,
)

logger = logging.getLogger(__name__)

# 1 m/s = 3.6 km/h
_MS_TO_KMH = 3.6

_RECORD_FIELD_HINTS = ("power", "heart", "timestamp", "time", "hr", "watts")

_MESSAGE_KEYS = {"record": "records", "lap": "laps", "session": "sessions"}

FIT_METRICS: Tuple[MetricSpec, ...] = (
    MetricSpec("power", ("power", "watts", "avg_power"), non_negative, round_half_up),
    MetricSpec("heart_rate", ("heart_rate", "hr", "heartrate"), positive, round_half_up),
    MetricSpec("cadence", ("cadence", "rpm"), non_negative, round_half_up),
    MetricSpec(
        "speed",
        ("speed", "enhanced_speed"),
        non_negative,
        lambda ms: round_half_up(ms * _MS_TO_KMH * 10) / 10,
    ),
    MetricSpec("distance", ("distance", "total_distance"), non_negative, round_half_up),
    MetricSpec("elevation", ("altitude", "enhanced_altitude", "elevation"), any_sign, round_half_up),
)


class FitParseError(SeriesParseError):
    """Raised when a FIT payload cannot be decoded or holds no usable records."""


# ─── Binary decoding ───────────────────────────────────────────────────────────

def decode_fit_messages(data: bytes) -> Dict[str, List[Dict[str, Any]]]:
    """
    Decode a FIT binary buffer into a message tree.

    Raises:
        FitParseError: if fitparse rejects the buffer (bad header, CRC, truncation)
    """
    if not data:
        raise FitParseError("FIT payload is empty")

    tree: Dict[str, List[Dict[str, Any]]] = {}
    try:
        fit = fitparse.FitFile(io.BytesIO(bytes(data)))
        for message in fit.get_messages():
            key = _MESSAGE_KEYS.get(message.name, message.name)
            tree.setdefault(key, []).append(message.get_values())
    except Exception as exc:
        raise FitParseError(f"Failed to decode FIT file: {exc}") from exc

    logger.debug(
        "Decoded FIT messages: %s",
        ", ".join(f"{k}={len(v)}" for k, v in sorted(tree.items())),
    )
    return tree


# ─── Record location strategies ────────────────────────────────────────────────

def _non_empty_list(value: Any) -> Optional[List[Any]]:
    return value if isinstance(value, list) and value else None


def _get(tree: Any, key: str) -> Any:
    return tree.get(key) if isinstance(tree, dict) else None


def _lap_lists(tree: Any) -> List[List[Any]]:
    """Every laps list under activity.sessions[]."""
    activity = _get(tree, "activity")
    sessions = _get(activity, "sessions")
    if not isinstance(sessions, list):
        return []
    return [s["laps"] for s in sessions if isinstance(s, dict) and isinstance(s.get("laps"), list)]


def _flat_records(tree: Any) -> Optional[List[Any]]:
    return _non_empty_list(_get(tree, "records"))


def _lap_records(tree: Any) -> Optional[List[Any]]:
    combined: List[Any] = []
    for laps in _lap_lists(tree):
        for lap in laps:
            records = _get(lap, "records")
            if isinstance(records, list):
                combined.extend(records)
    return combined or None


def _activity_list(tree: Any) -> Optional[List[Any]]:
    return _non_empty_list(_get(tree, "activity"))


def _session_list(tree: Any) -> Optional[List[Any]]:
    return _non_empty_list(_get(tree, "session"))


def _tree_as_list(tree: Any) -> Optional[List[Any]]:
    return _non_empty_list(tree)


def _looks_like_record(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    return any(hint in str(key) for key in item for hint in _RECORD_FIELD_HINTS)


def _scanned_list(tree: Any) -> Optional[List[Any]]:
    if not isinstance(tree, dict):
        return None
    for key, value in tree.items():
        if isinstance(value, list) and value and _looks_like_record(value[0]):
            logger.debug("Selected records from top-level list '%s'", key)
            return value
    return None


RECORD_LOCATIONS: Tuple[Tuple[str, Callable[[Any], Optional[List[Any]]]], ...] = (
    ("records", _flat_records),
    ("activity.sessions[].laps[].records", _lap_records),
    ("activity", _activity_list),
    ("session", _session_list),
    ("<root list>", _tree_as_list),
    ("<top-level list scan>", _scanned_list),
)


def locate_records(tree: Any) -> Tuple[str, List[Any]]:
    """
    Find the record list in a decoded FIT tree.

    Returns:
        (location name, records)

    Raises:
        FitParseError: with a diagnostic describing what was found instead
    """
    for name, strategy in RECORD_LOCATIONS:
        records = strategy(tree)
        if records:
            logger.info("Found %d FIT records in %s", len(records), name)
            return name, records
    raise FitParseError(_missing_records_diagnostic(tree))


def _missing_records_diagnostic(tree: Any) -> str:
    checked = "Checked: " + ", ".join(name for name, _ in RECORD_LOCATIONS) + "."
    keys = sorted(str(k) for k in tree) if isinstance(tree, dict) else []
    lap_lists = _lap_lists(tree)

    if lap_lists:
        laps = [lap for laps in lap_lists for lap in laps]
        if laps and all(not _get(lap, "records") for lap in laps):
            message = (
                f"FIT file contains workout structure (activity.sessions[].laps, {len(laps)} laps) "
                "but no detailed power/HR records in lap data. This appears to be a "
                "summary-only export; try \"Export Original\" or a detailed data export."
            )
        else:
            message = (
                "FIT file has activity structure (activity.sessions[].laps) but laps contain "
                "no recognizable record data. Try converting to GPX or CSV instead."
            )
    elif isinstance(_get(tree, "activity"), dict):
        message = (
            "FIT file contains activity data but lacks the detailed lap/record structure "
            "needed for FTP analysis. This appears to be a summary-style FIT file."
        )
    elif keys:
        message = (
            "FIT file parsed but contains no recognizable workout data structure. "
            f"Found: {', '.join(keys)}."
        )
    else:
        message = "No workout record data found in FIT file."
    return f"{message} {checked}"


# ─── Series extraction ─────────────────────────────────────────────────────────

def _first_message(tree: Any, key: str) -> Dict[str, Any]:
    messages = _get(tree, key)
    if isinstance(messages, list) and messages and isinstance(messages[0], dict):
        return messages[0]
    return {}


def _device_info(tree: Any) -> str:
    file_id = _first_message(tree, "file_id")
    manufacturer = file_id.get("manufacturer")
    if not manufacturer:
        return "Unknown Device"
    product = file_id.get("product")
    return f"{manufacturer} {product}" if product else f"{manufacturer}"


def _sport(tree: Any) -> str:
    return _first_message(tree, "sport").get("sport") or "cycling"


def series_from_records(records: Sequence[Any]) -> Tuple[SeriesBuilder, Optional[datetime]]:
    """
    Extract aligned series from FIT-style records.

    Records without a usable timestamp are dropped; the first timestamped
    record is t=0.
    """
    builder = SeriesBuilder(FIT_METRICS)
    start = None
    for record in records:
        if not isinstance(record, dict):
            continue
        ts = coerce_timestamp(record.get("timestamp"))
        if ts is None:
            continue
        if start is None:
            start = ts
        builder.add_record(elapsed_seconds(ts, start), record)
    return builder, start


def parse_fit_tree(tree: Any) -> ParsedSeries:
    """
    Build a ParsedSeries from a decoded FIT message tree.

    Raises:
        FitParseError: if no record list is found or no record has valid power
    """
    location, records = locate_records(tree)
    builder, start = series_from_records(records)

    power = builder.series("power")
    if power is None:
        sample = builder.values["power"][:10]
        raise FitParseError(
            f"No valid power data found in FIT file. Found {len(records)} records in "
            f"{location}, {len(builder)} with timestamps, first power values: {sample}"
        )

    duration = max(builder.time) if builder.time else 0
    logger.info(
        "FIT parsed: %d samples, %d s, heart rate %s",
        len(power), duration, "present" if builder.seen["heart_rate"] else "absent",
    )

    return ParsedSeries(
        power=power,
        time=builder.time,
        heart_rate=builder.series("heart_rate"),
        cadence=builder.series("cadence"),
        speed=builder.series("speed"),
        distance=builder.series("distance"),
        elevation=builder.series("elevation"),
        metadata=SeriesMetadata(
            start_time=start,
            duration_seconds=duration,
            device=_device_info(tree),
            sport=str(_sport(tree)),
        ),
    )


def decode_fit(data: bytes) -> ParsedSeries:
    """Strict variant of parse_fit(): raises FitParseError on failure."""
    return parse_fit_tree(decode_fit_messages(data))


def parse_fit(data: bytes) -> Optional[ParsedSeries]:
    """
    Parse a FIT binary buffer.

    Returns:
        ParsedSeries, or None if the file cannot be used (diagnostic is logged)
    """
    try:
        return decode_fit(data)
    except SeriesParseError as exc:
        logger.warning("FIT parse failed: %s", exc)
        return None


def is_fit_filename(filename: str) -> bool:
    return filename.lower().endswith(".fit")
