"""GeoJSON encoding of tracks."""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from ..aggregation import TrackStatistics, compute_track_statistics
from ..models import GeoPoint, Track
from ..utils import format_date, isoformat_utc, json_dumps

Feature = Dict[str, Any]


def _feature_id() -> str:
    return str(uuid.uuid4())


def waypoint_feature(point: GeoPoint) -> Feature:
    """Return a Point feature describing a single track point."""

    return {
        "type": "Feature",
        "id": _feature_id(),
        "geometry": {"type": "Point", "coordinates": point.as_lonlatalt()},
        "properties": {
            "unitId": point.unit_id,
            "collectorId": point.collector_id,
            "timestamp": isoformat_utc(point.timestamp),
            "speed": point.speed,
            "heading": point.heading,
            "accuracy": point.accuracy,
        },
    }


def line_feature(track: Track, stats: TrackStatistics) -> Feature:
    """Return the LineString feature carrying the track summary properties."""

    default_vector = [0.0, 0.0, 0.0]
    if len(track.points) == 1:
        default_vector = track.points[0].as_vector()
    start_vector = stats.start_point.as_vector() if stats.start_point else default_vector
    end_vector = stats.end_point.as_vector() if stats.end_point else default_vector
    return {
        "type": "Feature",
        "id": _feature_id(),
        "geometry": {
            "type": "LineString",
            "coordinates": [point.as_lonlatalt() for point in track.points],
        },
        "properties": {
            "startPoint": start_vector,
            "endPoint": end_vector,
            "startDate": format_date(stats.start_date),
            "endDate": format_date(stats.end_date),
            "pointCount": stats.point_count,
            "trackedUser": track.subject_id,
            "trackedDevices": list(track.device_ids),
            "averageSpeed": stats.speed_or_default(),
            "averageHeading": stats.heading_or_default(),
            "averageAccuracyInMeters": stats.accuracy_or_default(),
            "duration": stats.duration_label,
            "travelledDistanceInMeters": stats.travelled_distance_m,
        },
    }


def track_feature_collection(
    track: Track,
    include_waypoints: bool = False,
    stats: Optional[TrackStatistics] = None,
) -> Dict[str, Any]:
    stats = stats or compute_track_statistics(track)
    features: List[Feature] = [line_feature(track, stats)]
    if include_waypoints:
        features.extend(waypoint_feature(point) for point in track.points)
    return {"type": "FeatureCollection", "features": features}


def to_geojson(
    track: Track,
    include_waypoints: bool = False,
    stats: Optional[TrackStatistics] = None,
) -> str:
    """Encode ``track`` as a GeoJSON FeatureCollection string.

    Never fails: an empty track yields a LineString without coordinates and
    default summary values.
    """

    return json_dumps(track_feature_collection(track, include_waypoints, stats))


__all__ = [
    "line_feature",
    "to_geojson",
    "track_feature_collection",
    "waypoint_feature",
]
