"""
CSV parsers: generic power/HR exports and TrainingPeaks exports.

Columns are located by case-insensitive substring match on the header row;
the leftmost matching column wins:

  power  "power", "watts", "avg_power"
  hr     "heart", "hr", "bpm"
  time   "time", "elapsed", "seconds"

Per-row rules:
  - power that is non-numeric or negative drops the whole row; 0 W is kept
    (coasting is real data)
  - heart rate that is non-numeric or <= 0 becomes 0 (sensor dropout) and
    the row is kept
  - a missing or empty cell reads as 0
  - without a time column, time is the row index (1 Hz), counted from the
    first kept row

parse_trainingpeaks_csv() tries TrainingPeaks header names first and falls
back to parse_csv() when it cannot find a power column.
"""
import csv
import io
import logging
from typing import Callable, List, Optional, Sequence

from ftplab.analysis.rounding import round_half_up
from ftplab.models.series import ParsedSeries, SeriesMetadata
from ftplab.parsers.base import SeriesParseError, parse_number

logger = logging.getLogger(__name__)

POWER_HEADER_HINTS = ("power", "watts", "avg_power")
HR_HEADER_HINTS = ("heart", "hr", "bpm")
TIME_HEADER_HINTS = ("time", "elapsed", "seconds")

TP_POWER_HEADER = "Power (watts)"
TP_HR_HEADER = "Heart Rate (bpm)"


class CsvParseError(SeriesParseError):
    """Raised when CSV text has no usable power data."""


def find_column(headers: Sequence[str], matches: Callable[[str], bool]) -> Optional[int]:
    for index, header in enumerate(headers):
        if matches(header):
            return index
    return None


def _hint_matcher(hints: Sequence[str]) -> Callable[[str], bool]:
    def matches(header: str) -> bool:
        lowered = header.strip().lower()
        return any(hint in lowered for hint in hints)
    return matches


def _read_rows(text: str) -> List[List[str]]:
    """Rows of the CSV, blank lines removed. Fewer than two rows is a failure."""
    rows = [row for row in csv.reader(io.StringIO(text.strip())) if row]
    if len(rows) < 2:
        raise CsvParseError("CSV needs a header row and at least one data row")
    return rows


def _cell(row: Sequence[str], index: Optional[int]) -> str:
    if index is None or index >= len(row):
        return ""
    return row[index].strip() or "0"


def _read_power(row: Sequence[str], index: int) -> Optional[int]:
    value = parse_number(_cell(row, index) or "0")
    if value is None or value < 0:
        return None
    return round_half_up(value)


def _read_hr(row: Sequence[str], index: int) -> int:
    value = parse_number(_cell(row, index) or "0")
    if value is None or value <= 0:
        return 0
    return round_half_up(value)


def _build(
    power: List[int],
    time: List[int],
    heart_rate: Optional[List[int]],
    source: str,
) -> ParsedSeries:
    if not power:
        raise CsvParseError("No valid power data found")
    logger.info("%s parsed: %d samples", source, len(power))
    return ParsedSeries(
        power=power,
        time=time,
        heart_rate=heart_rate,
        metadata=SeriesMetadata(duration_seconds=max(time) if time else 0),
    )


def decode_csv(text: str) -> ParsedSeries:
    """
    Strict variant of parse_csv().

    When a time column exists its values are rebased so the first kept row
    is t=0 and clamped to never decrease; an unparseable time cell repeats
    the previous elapsed value.

    Raises:
        CsvParseError: too few lines, no power column, or no valid power value
    """
    rows = _read_rows(text)
    headers = rows[0]

    power_idx = find_column(headers, _hint_matcher(POWER_HEADER_HINTS))
    if power_idx is None:
        raise CsvParseError(f"No power column found in CSV (headers: {', '.join(headers)})")
    hr_idx = find_column(headers, _hint_matcher(HR_HEADER_HINTS))
    time_idx = find_column(headers, _hint_matcher(TIME_HEADER_HINTS))

    power: List[int] = []
    heart_rate: List[int] = []
    time: List[int] = []
    first_row: Optional[int] = None
    first_time: Optional[float] = None

    for row_index, row in enumerate(rows[1:]):
        watts = _read_power(row, power_idx)
        if watts is None:
            continue
        power.append(watts)

        if hr_idx is not None:
            heart_rate.append(_read_hr(row, hr_idx))

        previous = time[-1] if time else 0
        if time_idx is None:
            if first_row is None:
                first_row = row_index
            time.append(row_index - first_row)
            continue

        seconds = parse_number(_cell(row, time_idx))
        if seconds is None:
            time.append(previous)
            continue
        if first_time is None:
            first_time = seconds
        time.append(max(previous, round_half_up(seconds - first_time)))

    return _build(power, time, heart_rate if hr_idx is not None else None, "CSV")


def decode_trainingpeaks_csv(text: str) -> ParsedSeries:
    """
    Strict variant of parse_trainingpeaks_csv().

    Raises:
        CsvParseError: see decode_csv()
    """
    rows = _read_rows(text)
    headers = [h.strip() for h in rows[0]]

    power_idx = find_column(
        headers,
        lambda h: "power" in h.lower() or "watts" in h.lower() or h == TP_POWER_HEADER,
    )
    if power_idx is None:
        logger.debug("No TrainingPeaks power column, falling back to generic CSV")
        return decode_csv(text)
    hr_idx = find_column(
        headers,
        lambda h: "heart rate" in h.lower() or "hr" in h.lower() or h == TP_HR_HEADER,
    )

    power: List[int] = []
    heart_rate: List[int] = []
    time: List[int] = []
    first_row: Optional[int] = None

    for row_index, row in enumerate(rows[1:]):
        watts = _read_power(row, power_idx)
        if watts is None:
            continue
        if first_row is None:
            first_row = row_index
        power.append(watts)
        time.append(row_index - first_row)
        if hr_idx is not None:
            heart_rate.append(_read_hr(row, hr_idx))

    return _build(power, time, heart_rate if hr_idx is not None else None, "TrainingPeaks CSV")


def parse_csv(text: str) -> Optional[ParsedSeries]:
    """Parse a generic CSV export. Returns None on failure (diagnostic is logged)."""
    try:
        return decode_csv(text)
    except SeriesParseError as exc:
        logger.warning("CSV parse failed: %s", exc)
        return None


def parse_trainingpeaks_csv(text: str) -> Optional[ParsedSeries]:
    """Parse a TrainingPeaks CSV export, falling back to the generic layout."""
    try:
        return decode_trainingpeaks_csv(text)
    except SeriesParseError as exc:
        logger.warning("TrainingPeaks CSV parse failed: %s", exc)
        return None


def is_csv_filename(filename: str) -> bool:
    return filename.lower().endswith(".csv")
