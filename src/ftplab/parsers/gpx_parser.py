"""
GPX parser: converts GPX track XML into a ParsedSeries.

Track points (<trk><trkseg><trkpt>) are read with gpxpy. Each point needs a
<time> element to be placed on the time axis; points without one are
skipped. Power, heart rate and cadence live in the point's <extensions>,
where every vendor uses its own tag names and namespaces:

  <extensions><power>250</power></extensions>                       generic
  <extensions><gpxtpx:TrackPointExtension>
      <gpxtpx:hr>160</gpxtpx:hr>
  </gpxtpx:TrackPointExtension></extensions>                         Garmin
  <extensions><ns3:power>250</ns3:power></extensions>                other prefixes
  <extensions><data power="250"/></extensions>                       attribute form

For each metric the probes below run in order (generic tag, vendor tag,
attribute) and the first numeric value passing the sign rule wins.
"""
import logging
from typing import Callable, Iterable, Iterator, List, Optional, Tuple
from xml.etree.ElementTree import Element

import gpxpy
import gpxpy.gpx

from ftplab.analysis.rounding import round_half_up
from ftplab.models.series import ParsedSeries, SeriesMetadata
from ftplab.parsers.base import (
    MetricSpec,
    SeriesBuilder,
    SeriesParseError,
    coerce_timestamp,
    elapsed_seconds,
    non_negative,
    parse_number,
    positive,
)

logger = logging.getLogger(__name__)

# Unprefixed children of <extensions> inherit the GPX default namespace
_GPX_NAMESPACES = frozenset({
    "http://www.topografix.com/GPX/1/0",
    "http://www.topografix.com/GPX/1/1",
})

GPX_METRICS: Tuple[MetricSpec, ...] = (
    MetricSpec("power", ("power",), non_negative, round_half_up),
    MetricSpec("heart_rate", ("hr", "heartrate"), positive, round_half_up),
    MetricSpec("cadence", ("cadence", "cad"), non_negative, round_half_up),
)

# Metrics that may also appear as an attribute named after their first alias
_ATTRIBUTE_METRICS = frozenset({"power", "heart_rate"})

DEFAULT_TRACK_NAME = "GPX Workout"

Probe = Callable[[List[Element], MetricSpec], Iterator[Optional[str]]]


class GpxParseError(SeriesParseError):
    """Raised when GPX text cannot be parsed or holds no usable track points."""


def _split_tag(tag) -> Tuple[Optional[str], str]:
    """'{ns}local' → (ns, local); 'local' → (None, local)."""
    if not isinstance(tag, str):
        return None, ""
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return namespace, local
    return None, tag


def _walk(extensions: Iterable[Element]) -> Iterator[Element]:
    for element in extensions:
        yield from element.iter()


def _generic_tags(extensions: List[Element], spec: MetricSpec) -> Iterator[Optional[str]]:
    for element in _walk(extensions):
        namespace, local = _split_tag(element.tag)
        if (namespace is None or namespace in _GPX_NAMESPACES) and local.lower() in spec.aliases:
            yield element.text


def _vendor_tags(extensions: List[Element], spec: MetricSpec) -> Iterator[Optional[str]]:
    for element in _walk(extensions):
        namespace, local = _split_tag(element.tag)
        if namespace is not None and namespace not in _GPX_NAMESPACES and local.lower() in spec.aliases:
            yield element.text


def _attributes(extensions: List[Element], spec: MetricSpec) -> Iterator[Optional[str]]:
    if spec.name not in _ATTRIBUTE_METRICS:
        return
    for element in _walk(extensions):
        yield element.get(spec.aliases[0])


EXTENSION_PROBES: Tuple[Probe, ...] = (_generic_tags, _vendor_tags, _attributes)


def probe_extensions(extensions: List[Element], spec: MetricSpec) -> Optional[float]:
    """First value for spec found in a track point's extension elements."""
    for strategy in EXTENSION_PROBES:
        for text in strategy(extensions, spec):
            value = parse_number(text)
            if value is not None and spec.accept(value):
                return value
    return None


def _track_points(gpx: gpxpy.gpx.GPX) -> List[gpxpy.gpx.GPXTrackPoint]:
    return [
        point
        for track in gpx.tracks
        for segment in track.segments
        for point in segment.points
    ]


def decode_gpx(text: str) -> ParsedSeries:
    """
    Strict variant of parse_gpx().

    Raises:
        GpxParseError: on malformed XML, no track points, or no valid power
    """
    try:
        gpx = gpxpy.parse(text)
    except Exception as exc:
        raise GpxParseError(f"GPX XML parsing error: {exc}") from exc

    points = _track_points(gpx)
    if not points:
        raise GpxParseError("No track points found in GPX file")

    builder = SeriesBuilder(GPX_METRICS)
    start = None
    for point in points:
        ts = coerce_timestamp(point.time)
        if ts is None:
            continue
        if start is None:
            start = ts
        extensions = list(point.extensions or [])
        builder.add(
            elapsed_seconds(ts, start),
            {spec.name: probe_extensions(extensions, spec) for spec in GPX_METRICS},
        )

    power = builder.series("power")
    if power is None:
        raise GpxParseError(
            f"No valid power data found in GPX file. Found {len(points)} track points, "
            f"{len(builder)} with timestamps, first power values: {builder.values['power'][:10]}. "
            "Check if your GPX export includes power meter data."
        )

    duration = max(builder.time) if builder.time else 0
    name = gpx.tracks[0].name if gpx.tracks and gpx.tracks[0].name else DEFAULT_TRACK_NAME
    logger.info("GPX parsed: %d of %d track points, %d s", len(builder), len(points), duration)

    return ParsedSeries(
        power=power,
        time=builder.time,
        heart_rate=builder.series("heart_rate"),
        cadence=builder.series("cadence"),
        metadata=SeriesMetadata(start_time=start, duration_seconds=duration, name=name),
    )


def parse_gpx(text: str) -> Optional[ParsedSeries]:
    """
    Parse GPX text.

    Returns:
        ParsedSeries, or None if the file cannot be used (diagnostic is logged)
    """
    try:
        return decode_gpx(text)
    except SeriesParseError as exc:
        logger.warning("GPX parse failed: %s", exc)
        return None


def is_gpx_filename(filename: str) -> bool:
    return filename.lower().endswith(".gpx")
