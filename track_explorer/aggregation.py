"""Summary statistics computed over a final track."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from .config import DEFAULT_ACCURACY_M, DEFAULT_HEADING, DEFAULT_SPEED
from .geometry import path_length_m
from .models import GeoPoint, Traceable, Track

MINUTE_SECONDS = 60
HOUR_SECONDS = 60 * MINUTE_SECONDS
DAY_SECONDS = 24 * HOUR_SECONDS


def format_duration(seconds: int) -> str:
    """Render a duration using its largest whole unit (floored)."""

    if seconds < MINUTE_SECONDS:
        return f"{seconds} seconds"
    if seconds < HOUR_SECONDS:
        return f"{seconds // MINUTE_SECONDS} minutes"
    if seconds < DAY_SECONDS:
        return f"{seconds // HOUR_SECONDS} hours"
    return f"{seconds // DAY_SECONDS} days"


def _mean(values: Iterable[Optional[float]]) -> Optional[float]:
    present = [float(value) for value in values if value is not None]
    if not present:
        return None
    return sum(present) / len(present)


@dataclass(frozen=True, slots=True)
class TrackStatistics:
    """Aggregates for a track; averages are None when no point has a value."""

    point_count: int
    start_point: Optional[GeoPoint]
    end_point: Optional[GeoPoint]
    duration: timedelta
    average_speed: Optional[float]
    average_heading: Optional[float]
    average_accuracy: Optional[float]
    travelled_distance_m: int

    @property
    def start_date(self) -> Optional[datetime]:
        return self.start_point.timestamp if self.start_point else None

    @property
    def end_date(self) -> Optional[datetime]:
        return self.end_point.timestamp if self.end_point else None

    @property
    def duration_seconds(self) -> int:
        return math.floor(self.duration.total_seconds())

    @property
    def duration_label(self) -> str:
        return format_duration(self.duration_seconds)

    def speed_or_default(self) -> float:
        return DEFAULT_SPEED if self.average_speed is None else self.average_speed

    def heading_or_default(self) -> float:
        return DEFAULT_HEADING if self.average_heading is None else self.average_heading

    def accuracy_or_default(self) -> float:
        if self.average_accuracy is None:
            return DEFAULT_ACCURACY_M
        return self.average_accuracy


def _timestamp(item: Traceable) -> datetime:
    return item.timestamp


def compute_track_statistics(track: Track) -> TrackStatistics:
    """Compute start/end, duration, averages and travelled distance for ``track``."""

    points = track.points
    start_point = min(points, key=_timestamp) if points else None
    end_point = max(points, key=_timestamp) if points else None
    duration = timedelta(0)
    if start_point is not None and end_point is not None:
        duration = end_point.timestamp - start_point.timestamp
    return TrackStatistics(
        point_count=len(points),
        start_point=start_point,
        end_point=end_point,
        duration=duration,
        average_speed=_mean(p.speed for p in points),
        average_heading=_mean(p.heading for p in points),
        average_accuracy=_mean(p.accuracy for p in points),
        travelled_distance_m=math.ceil(path_length_m(points)),
    )


__all__ = ["TrackStatistics", "compute_track_statistics", "format_duration"]
