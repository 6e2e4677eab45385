"""GPX 1.1 encoding of tracks."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from ..aggregation import TrackStatistics, compute_track_statistics
from ..config import GPX_CREATOR
from ..errors import InsufficientPointsError
from ..models import GeoPoint, Track
from ..utils import escape_xml, format_date, isoformat_utc

GPX_NAMESPACE = "http://www.topografix.com/GPX/1/1"
TRACKPOINT_EXTENSION_NAMESPACE = (
    "http://www.garmin.com/xmlschemas/TrackPointExtension/v2"
)


def build_description(track: Track, stats: TrackStatistics) -> str:
    """Return the multi-line summary embedded in the GPX metadata."""

    devices = ", ".join(track.device_ids)
    lines = [
        f"startDate : {format_date(stats.start_date)}",
        f"endDate : {format_date(stats.end_date)}",
        f"pointCount : {stats.point_count}",
        f"trackedDevices : [{devices}]",
        f"averageSpeed : {stats.speed_or_default()}",
        f"averageHeading : {stats.heading_or_default()}",
        f"averageAccuracyInMeters : {stats.accuracy_or_default()}",
        f"duration : {stats.duration_label}",
        f"travelledDistanceInMeters : {stats.travelled_distance_m}",
    ]
    return "\n".join(lines)


def _waypoint_lines(tag: str, point: GeoPoint, indent: str) -> List[str]:
    inner = indent + "  "
    lines = [f'{indent}<{tag} lat="{point.latitude}" lon="{point.longitude}">']
    if point.altitude is not None:
        lines.append(f"{inner}<ele>{point.altitude}</ele>")
    lines.append(f"{inner}<time>{isoformat_utc(point.timestamp)}</time>")
    lines.append(f"{inner}<src>{escape_xml(point.collector_id)}</src>")
    # Speed is expressed in metres per second by the extension schema.
    lines.extend(
        [
            f"{inner}<extensions>",
            f"{inner}  <gpxtpx:TrackPointExtension>",
            f"{inner}    <gpxtpx:speed>{point.speed}</gpxtpx:speed>",
            f"{inner}    <gpxtpx:course>{point.heading}</gpxtpx:course>",
            f"{inner}  </gpxtpx:TrackPointExtension>",
            f"{inner}</extensions>",
            f"{indent}</{tag}>",
        ]
    )
    return lines


def to_gpx(
    track: Track,
    stats: Optional[TrackStatistics] = None,
    now: Optional[datetime] = None,
) -> str:
    """Encode ``track`` as a GPX document string.

    Args:
        track: Track whose points become the single track segment.
        stats: Precomputed statistics; computed from ``track`` when omitted.
        now: Metadata timestamp, defaults to the current time.

    Returns:
        GPX XML string.

    Raises:
        InsufficientPointsError: If the track has no points.
    """
    stats = stats or compute_track_statistics(track)
    if stats.start_point is None or stats.end_point is None:
        raise InsufficientPointsError(
            f"GPX export requires at least one point for '{track.subject_id}'"
        )
    subject = escape_xml(track.subject_id)
    created = isoformat_utc(now or datetime.now(timezone.utc))

    gpx_lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<gpx version="1.1" creator="{subject or GPX_CREATOR}"',
        f'     xmlns="{GPX_NAMESPACE}"',
        f'     xmlns:gpxtpx="{TRACKPOINT_EXTENSION_NAMESPACE}"',
        '     xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"',
        '     xsi:schemaLocation="http://www.topografix.com/GPX/1/1 '
        'http://www.topografix.com/GPX/1/1/gpx.xsd">',
        "  <metadata>",
        f"    <name>GPX traces of {subject}</name>",
        f"    <desc>{escape_xml(build_description(track, stats))}</desc>",
        "    <author>",
        f"      <name>{subject}</name>",
        "    </author>",
        f"    <time>{created}</time>",
        "  </metadata>",
    ]
    gpx_lines.extend(_waypoint_lines("wpt", stats.start_point, "  "))
    gpx_lines.extend(_waypoint_lines("wpt", stats.end_point, "  "))
    gpx_lines.extend(["  <trk>", "    <trkseg>"])
    for point in track.points:
        gpx_lines.extend(_waypoint_lines("trkpt", point, "      "))
    gpx_lines.extend(["    </trkseg>", "  </trk>", "</gpx>"])

    return "\n".join(gpx_lines)


__all__ = ["build_description", "to_gpx"]
