"""
Shared building blocks for the format parsers.

Vendors disagree on field names, so each metric is described by a
MetricSpec: an ordered tuple of alias names and a sign rule. Probing a
record tries the aliases in order and takes the first numeric value that
passes the rule. Adding a vendor alias is a one-line change to a spec.

SeriesBuilder accumulates one sample per accepted record and remembers, per
metric, whether any record ever produced a valid reading. Optional series
with no valid reading are dropped from the result instead of being returned
as all-zero lists.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple


class SeriesParseError(Exception):
    """Raised when a payload cannot be turned into a ParsedSeries."""


def non_negative(value: float) -> bool:
    return value >= 0


def positive(value: float) -> bool:
    return value > 0


def any_sign(value: float) -> bool:
    return True


@dataclass(frozen=True)
class MetricSpec:
    name: str
    aliases: Tuple[str, ...]
    accept: Callable[[float], bool]
    convert: Optional[Callable[[float], Any]] = None  # rounding/unit conversion

    def finish(self, value: float) -> Any:
        return self.convert(value) if self.convert is not None else value


def as_number(value: Any) -> Optional[float]:
    """A finite int/float, else None. Strings and booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_number(text: Optional[str]) -> Optional[float]:
    """Parse a numeric token from text. Returns None for blank or non-numeric input."""
    if text is None:
        return None
    try:
        value = float(text.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def probe(record: Mapping[str, Any], spec: MetricSpec) -> Optional[float]:
    """First alias present in record with a numeric value accepted by spec."""
    for alias in spec.aliases:
        value = as_number(record.get(alias))
        if value is not None and spec.accept(value):
            return value
    return None


def to_utc_naive(ts: datetime) -> datetime:
    """Aware datetimes → naive UTC. Naive datetimes are assumed to be UTC already."""
    if ts.tzinfo is not None:
        return ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """
    Accept a datetime, an ISO-8601 string (optionally ending in Z) or epoch
    seconds. Anything else, or an unparseable string, yields None.
    """
    if isinstance(value, datetime):
        return to_utc_naive(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_utc_naive(datetime.fromisoformat(text))
        except ValueError:
            return None
    number = as_number(value)
    if number is not None:
        try:
            return datetime.fromtimestamp(number, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None
    return None


def elapsed_seconds(ts: datetime, start: datetime) -> int:
    """Whole seconds from start to ts, floored."""
    return math.floor((ts - start).total_seconds())


class SeriesBuilder:
    """Collects aligned per-sample values for a set of metrics."""

    def __init__(self, specs: Iterable[MetricSpec]):
        self.specs = tuple(specs)
        self.time: List[int] = []
        self.values: Dict[str, List[Any]] = {s.name: [] for s in self.specs}
        self.seen: Dict[str, bool] = {s.name: False for s in self.specs}

    def __len__(self) -> int:
        return len(self.time)

    def add(self, elapsed: int, readings: Mapping[str, Optional[float]]) -> None:
        """
        Append one sample. Missing or rejected readings become 0.

        Elapsed time is clamped to the previous sample so the time axis never
        goes backwards or below 0.
        """
        self.time.append(max(elapsed, self.time[-1] if self.time else 0))
        for spec in self.specs:
            value = readings.get(spec.name)
            if value is None:
                self.values[spec.name].append(spec.finish(0))
            else:
                self.seen[spec.name] = True
                self.values[spec.name].append(spec.finish(value))

    def add_record(self, elapsed: int, record: Mapping[str, Any]) -> None:
        self.add(elapsed, {spec.name: probe(record, spec) for spec in self.specs})

    def series(self, name: str) -> Optional[List[Any]]:
        """The collected series, or None when no sample ever had a valid reading."""
        return self.values[name] if self.seen[name] else None
